"""Shared test fixtures for the relay test suite.

Provides a resolved config, mock chat platform, mock queries, database and
Redis mocks, and factories for ORM rows so notifier tests run without
Discord, Postgres or Redis.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from relay.modules.notifier.platform import ChatPlatform
from relay.modules.notifier.queries import RelayQueries
from relay.shared.config import RelayConfig, TierRoles
from relay.shared.models.inventory import InventoryItem
from relay.shared.models.machine import Machine, MachineDef
from relay.shared.models.machine_event import MachineEvent
from relay.shared.models.print_job import Print
from relay.shared.models.profile import Profile

TIER_1_ROLE = 1001
TIER_2_ROLE = 1002
TIER_3_ROLE = 1003
ANNOUNCEMENT_CHANNEL = 555


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def tier_roles():
    return TierRoles(tier_1=TIER_1_ROLE, tier_2=TIER_2_ROLE, tier_3=TIER_3_ROLE)


@pytest.fixture
def relay_config(tier_roles):
    return RelayConfig(
        bot_token="test-token",
        guild_id=42,
        debug_channel_id=444,
        announcement_channel_id=ANNOUNCEMENT_CHANNEL,
        tier_roles=tier_roles,
        debug=False,
        ping_channel="discord-ping",
    )


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def member():
    m = MagicMock(name="member")
    m.__str__.return_value = "alice"
    return m


@pytest.fixture
def mock_platform(member):
    """Mock chat platform where every identity resolves to ``member``."""
    platform = MagicMock(spec=ChatPlatform)
    platform.resolve_member = AsyncMock(return_value=member)
    platform.send_direct_message = AsyncMock()
    platform.send_channel_message = AsyncMock()
    platform.grant_role = AsyncMock()
    platform.revoke_roles = AsyncMock()
    return platform


@pytest.fixture
def mock_queries():
    """Mock queries; every lookup misses unless a test says otherwise."""
    queries = MagicMock(spec=RelayQueries)
    queries.get_discord_identity = AsyncMock(return_value=None)
    queries.get_permission_level = AsyncMock(return_value=None)
    queries.get_print = AsyncMock(return_value=None)
    queries.get_machine_event = AsyncMock(return_value=None)
    queries.get_inventory_item = AsyncMock(return_value=None)
    return queries


# ---------------------------------------------------------------------------
# Database mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db_session():
    """Mock async SQLAlchemy session.

    Supports ``session.execute(stmt) -> result`` with
    ``result.scalar_one_or_none()``.
    """
    session = AsyncMock()
    default_result = MagicMock()
    default_result.scalar_one_or_none.return_value = None
    session.execute = AsyncMock(return_value=default_result)
    return session


@pytest.fixture
def mock_session_factory(mock_db_session):
    """Mock async session factory compatible with ``async with factory() as session:``."""

    @asynccontextmanager
    async def _session_ctx():
        yield mock_db_session

    factory = MagicMock(side_effect=lambda: _session_ctx())
    return factory


# ---------------------------------------------------------------------------
# Redis mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_redis():
    """Mock async Redis client with common operations."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_profile():
    def _make(discord_identity: str | None = "alice", full_name: str | None = "Alice A.") -> Profile:
        return Profile(id=uuid.uuid4(), full_name=full_name, discord_identity=discord_identity)

    return _make


@pytest.fixture
def make_machine():
    def _make(nickname: str = "Sparky", tier: int = 2) -> Machine:
        machine_def = MachineDef(id=uuid.uuid4(), make="Prusa", model="MK4")
        return Machine(
            id=uuid.uuid4(),
            nickname=nickname,
            tier=tier,
            machine_defs_id=machine_def.id,
            machine_def=machine_def,
        )

    return _make


@pytest.fixture
def make_print(make_profile, make_machine):
    def _make(owner: Profile | None = None, file_name: str | None = "benchy.gcode") -> Print:
        owner = owner or make_profile()
        machine = make_machine()
        return Print(
            id=uuid.uuid4(),
            owner_id=owner.id,
            owner=owner,
            machine_id=machine.id,
            machine=machine,
            file_name=file_name,
            canceled=False,
            created_at=datetime.now(timezone.utc),
        )

    return _make


@pytest.fixture
def make_machine_event(make_profile, make_machine):
    def _make(
        event_type: str = "FAULT",
        print_id: uuid.UUID | None = None,
        description: str | None = "Layer shift on the first layer",
        created_by: Profile | None = None,
    ) -> MachineEvent:
        machine = make_machine()
        reporter = created_by or make_profile(full_name="Bob B.")
        return MachineEvent(
            id=uuid.uuid4(),
            machine_id=machine.id,
            machine=machine,
            print_id=print_id,
            created_by_id=reporter.id,
            created_by=reporter,
            event_type=event_type,
            description=description,
            resolved=True,
            created_at=datetime.now(timezone.utc),
        )

    return _make


@pytest.fixture
def make_inventory_item():
    def _make(current_stock: int = 10, minimum: int = 5, name: str = "PLA Black 1kg") -> InventoryItem:
        return InventoryItem(id=uuid.uuid4(), name=name, current_stock=current_stock, minimum=minimum)

    return _make
