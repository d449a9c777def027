"""Change-feed and broadcast subscriptions.

Row changes arrive over PostgreSQL LISTEN/NOTIFY (triggers installed by the
alembic migrations publish on ``row_changes.<table>``); broadcast channels are
Redis pub/sub. Both push onto per-subscription queues that the router drains,
so a dead connection surfaces as a SubscriptionError in the consumer instead
of a listener that silently stops.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod

import asyncpg
import redis.asyncio as aioredis
import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from relay.shared.exceptions import SubscriptionError
from relay.shared.schemas.broadcasts import BroadcastMessage
from relay.shared.schemas.events import RowChange, parse_row_change

logger = structlog.get_logger()

CHANNEL_PREFIX = "row_changes."

_CLOSED = object()


def table_channel(table: str) -> str:
    return f"{CHANNEL_PREFIX}{table}"


class Subscription:
    """Queue-backed async iterator over one table's or channel's events."""

    def __init__(self, name: str):
        self.name = name
        self._queue: asyncio.Queue = asyncio.Queue()

    def push(self, item: RowChange | BroadcastMessage) -> None:
        self._queue.put_nowait(item)

    def fail(self, error: SubscriptionError) -> None:
        """Make the consumer raise ``error`` once queued events are drained."""
        self._queue.put_nowait(error)

    def close(self) -> None:
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> RowChange | BroadcastMessage:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, SubscriptionError):
            raise item
        return item


class EventSource(ABC):
    """Provider of table and broadcast subscriptions."""

    @abstractmethod
    async def subscribe_to_table(self, table: str) -> Subscription:
        """Subscribe to every row mutation on ``table``."""

    @abstractmethod
    async def subscribe_to_broadcast(self, channel: str) -> Subscription:
        """Subscribe to messages published on a named broadcast channel."""

    @abstractmethod
    async def close(self) -> None:
        """Tear down connections and end every subscription."""


class PostgresChangeFeed:
    """LISTEN on one asyncpg connection, one channel per watched table."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self._conn: asyncpg.Connection | None = None
        self._subscriptions: dict[str, Subscription] = {}
        self._closing = False

    async def _connection(self) -> asyncpg.Connection:
        if self._conn is None:
            try:
                self._conn = await asyncpg.connect(self.dsn)
            except (OSError, asyncpg.PostgresError) as e:
                raise SubscriptionError(f"Could not connect to change feed: {e}") from e
            self._conn.add_termination_listener(self._on_terminated)
        return self._conn

    async def subscribe(self, table: str) -> Subscription:
        conn = await self._connection()
        channel = table_channel(table)

        try:
            exists = await conn.fetchval("SELECT to_regclass($1::text)", f"public.{table}")
        except asyncpg.PostgresError as e:
            raise SubscriptionError(f"Subscription to {table!r} rejected: {e}") from e
        if exists is None:
            raise SubscriptionError(f"Subscription to {table!r} rejected: no such table")

        subscription = Subscription(table)
        self._subscriptions[channel] = subscription
        try:
            await conn.add_listener(channel, self._on_notification)
        except asyncpg.PostgresError as e:
            del self._subscriptions[channel]
            raise SubscriptionError(f"Subscription to {table!r} rejected: {e}") from e

        logger.info("monitoring_table", table=table, channel=channel)
        return subscription

    def _on_notification(self, connection, pid: int, channel: str, payload: str) -> None:
        subscription = self._subscriptions.get(channel)
        if subscription is None:
            return
        try:
            change = parse_row_change(payload)
        except ValidationError as e:
            logger.error("row_change_payload_invalid", channel=channel, error=str(e))
            return
        subscription.push(change)

    def _on_terminated(self, connection) -> None:
        if self._closing:
            return
        logger.error("change_feed_connection_lost")
        for subscription in self._subscriptions.values():
            subscription.fail(SubscriptionError("Change feed connection lost"))

    async def close(self) -> None:
        self._closing = True
        for subscription in self._subscriptions.values():
            subscription.close()
        self._subscriptions.clear()
        if self._conn is not None:
            await self._conn.close()
            self._conn = None


class RedisBroadcastFeed:
    """Redis pub/sub reader fanning messages out to per-channel subscriptions."""

    def __init__(self, redis_client: aioredis.Redis):
        self.redis = redis_client
        self._pubsub = None
        self._reader: asyncio.Task | None = None
        self._subscriptions: dict[str, Subscription] = {}

    async def subscribe(self, channel: str) -> Subscription:
        if self._pubsub is None:
            self._pubsub = self.redis.pubsub()

        try:
            await self._pubsub.subscribe(channel)
        except (OSError, RedisError) as e:
            raise SubscriptionError(f"Subscription to {channel!r} rejected: {e}") from e

        subscription = Subscription(channel)
        self._subscriptions[channel] = subscription
        if self._reader is None or self._reader.done():
            self._reader = asyncio.create_task(self._listen())

        logger.info("monitoring_broadcast_channel", channel=channel)
        return subscription

    async def _listen(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message["type"] != "message":
                    continue
                self._deliver(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("broadcast_listener_failed", error=str(e))
            for subscription in self._subscriptions.values():
                subscription.fail(SubscriptionError(f"Broadcast listener failed: {e}"))

    def _deliver(self, message: dict) -> None:
        channel = message["channel"]
        if isinstance(channel, bytes):
            channel = channel.decode()
        subscription = self._subscriptions.get(channel)
        if subscription is None:
            return

        try:
            payload = json.loads(message["data"])
        except (TypeError, ValueError):
            logger.warning("broadcast_payload_not_json", channel=channel)
            return
        if not isinstance(payload, dict):
            logger.warning("broadcast_payload_not_object", channel=channel)
            return

        subscription.push(BroadcastMessage(channel=channel, payload=payload))

    async def close(self) -> None:
        for subscription in self._subscriptions.values():
            subscription.close()
        self._subscriptions.clear()
        if self._reader is not None:
            self._reader.cancel()
            await asyncio.gather(self._reader, return_exceptions=True)
            self._reader = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None


class LiveEventSource(EventSource):
    """Postgres change feed plus Redis broadcast channels."""

    def __init__(self, dsn: str, redis_client: aioredis.Redis):
        self.changes = PostgresChangeFeed(dsn)
        self.broadcasts = RedisBroadcastFeed(redis_client)

    async def subscribe_to_table(self, table: str) -> Subscription:
        return await self.changes.subscribe(table)

    async def subscribe_to_broadcast(self, channel: str) -> Subscription:
        return await self.broadcasts.subscribe(channel)

    async def close(self) -> None:
        await self.changes.close()
        await self.broadcasts.close()
