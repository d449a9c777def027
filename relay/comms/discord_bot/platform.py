"""discord.py implementation of the chat platform for a single guild."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import discord
import structlog

from relay.modules.notifier.platform import ChatPlatform

logger = structlog.get_logger()

_ROLE_SYNC_REASON = "Permission level sync"


class DiscordChatPlatform(ChatPlatform):
    """Resolves members of one guild and delivers messages and roles."""

    def __init__(self, client: discord.Client, guild: discord.Guild):
        self.client = client
        self.guild = guild

    async def resolve_member(self, identity: str) -> discord.Member | None:
        member = self.guild.get_member_named(identity)
        if member is not None:
            return member

        # Not cached yet, ask the gateway
        try:
            candidates = await self.guild.query_members(query=identity, limit=5)
        except asyncio.TimeoutError:
            logger.warning("member_query_timeout", identity=identity)
            return None

        for candidate in candidates:
            if identity in (candidate.name, str(candidate), candidate.global_name):
                return candidate
        return None

    async def send_direct_message(self, member: discord.Member, content: str) -> None:
        await member.send(content)
        logger.info("direct_message_sent", member=str(member))

    async def send_channel_message(
        self,
        channel_id: int,
        content: str | None = None,
        embed: discord.Embed | None = None,
    ) -> None:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        await channel.send(content=content, embed=embed)
        logger.info("channel_message_sent", channel_id=channel_id)

    async def grant_role(self, member: discord.Member, role_id: int) -> None:
        await member.add_roles(discord.Object(id=role_id), reason=_ROLE_SYNC_REASON)

    async def revoke_roles(self, member: discord.Member, role_ids: Iterable[int]) -> None:
        roles = [discord.Object(id=role_id) for role_id in role_ids]
        if roles:
            await member.remove_roles(*roles, reason=_ROLE_SYNC_REASON)
