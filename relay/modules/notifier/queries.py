"""Point lookups against the club database."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from relay.shared.models.inventory import InventoryItem
from relay.shared.models.machine import Machine
from relay.shared.models.machine_event import MachineEvent
from relay.shared.models.print_job import Print
from relay.shared.models.profile import Profile, UserLevel


class RelayQueries:
    """Read-only queries used by the event router. Misses return None."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_discord_identity(self, user_id: uuid.UUID) -> str | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Profile.discord_identity).where(Profile.id == user_id)
            )
            return result.scalar_one_or_none()

    async def get_permission_level(self, user_id: uuid.UUID) -> int | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UserLevel.level).where(UserLevel.user_id == user_id)
            )
            return result.scalar_one_or_none()

    async def get_print(self, print_id: uuid.UUID) -> Print | None:
        """Print with its owner and machine loaded."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Print)
                .where(Print.id == print_id)
                .options(selectinload(Print.owner), selectinload(Print.machine))
            )
            return result.scalar_one_or_none()

    async def get_machine_event(self, event_id: uuid.UUID) -> MachineEvent | None:
        """Machine event joined with machine (and its definition) and reporter."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(MachineEvent)
                .where(MachineEvent.id == event_id)
                .options(
                    selectinload(MachineEvent.machine).selectinload(Machine.machine_def),
                    selectinload(MachineEvent.created_by),
                )
            )
            return result.scalar_one_or_none()

    async def get_inventory_item(self, inventory_id: uuid.UUID) -> InventoryItem | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(InventoryItem).where(InventoryItem.id == inventory_id)
            )
            return result.scalar_one_or_none()
