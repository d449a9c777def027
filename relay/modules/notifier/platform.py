"""Chat platform interface used by the notifier.

The Discord adapter implements this for a single guild; tests substitute a
mock so routing and role logic run without a gateway connection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import discord


class ChatPlatform(ABC):
    """Abstract base class for the outbound chat platform."""

    @abstractmethod
    async def resolve_member(self, identity: str) -> Any | None:
        """Find a guild member by linked identity, or None if absent."""

    @abstractmethod
    async def send_direct_message(self, member: Any, content: str) -> None:
        """Send a direct message to a member."""

    @abstractmethod
    async def send_channel_message(
        self,
        channel_id: int,
        content: str | None = None,
        embed: discord.Embed | None = None,
    ) -> None:
        """Post a message and/or embed to a guild channel."""

    @abstractmethod
    async def grant_role(self, member: Any, role_id: int) -> None:
        """Add a role to a member."""

    @abstractmethod
    async def revoke_roles(self, member: Any, role_ids: Iterable[int]) -> None:
        """Remove roles from a member."""
