"""Event router: drains subscriptions and turns domain events into actions."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from relay.modules.notifier.classifier import (
    DomainEvent,
    InventoryChanged,
    LevelChanged,
    MachineEventRaised,
    PingRequested,
    PrintCanceled,
    PrintStarted,
    ProfileLinkChanged,
    classify,
    classify_broadcast,
    is_low_stock,
    is_stop_event,
)
from relay.modules.notifier.feed import EventSource, Subscription
from relay.modules.notifier.messages import (
    PING_RECEIVED_MESSAGE,
    bad_quip,
    low_stock_embed,
    machine_event_embed,
    print_canceled_message,
    print_completed_message,
)
from relay.modules.notifier.platform import ChatPlatform
from relay.modules.notifier.queries import RelayQueries
from relay.modules.notifier.roles import RoleReconciler
from relay.modules.notifier.scheduler import NotificationScheduler
from relay.shared.config import RelayConfig
from relay.shared.models.print_job import Print
from relay.shared.schemas.broadcasts import BroadcastMessage
from relay.shared.schemas.events import WATCHED_TABLES, RowChange

logger = structlog.get_logger()


class EventRouter:
    """Routes change-feed and broadcast events to role, message and timer actions."""

    def __init__(
        self,
        config: RelayConfig,
        source: EventSource,
        queries: RelayQueries,
        platform: ChatPlatform,
        scheduler: NotificationScheduler,
        reconciler: RoleReconciler,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config
        self.source = source
        self.queries = queries
        self.platform = platform
        self.scheduler = scheduler
        self.reconciler = reconciler
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(self) -> None:
        """Subscribe to every watched table and the ping channel, then drain.

        Each subscription is drained by its own task so one table's events are
        handled in order while different tables interleave. Returns when every
        subscription closes; raises SubscriptionError if any of them dies.
        """
        subscriptions: list[Subscription] = []
        for table in WATCHED_TABLES:
            subscriptions.append(await self.source.subscribe_to_table(table))
        subscriptions.append(await self.source.subscribe_to_broadcast(self.config.ping_channel))

        logger.info("event_router_started", subscriptions=[s.name for s in subscriptions])

        tasks = [
            asyncio.create_task(self._drain(subscription), name=f"drain:{subscription.name}")
            for subscription in subscriptions
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _drain(self, subscription: Subscription) -> None:
        async for item in subscription:
            try:
                if isinstance(item, BroadcastMessage):
                    await self.dispatch_broadcast(item)
                else:
                    await self.dispatch(item)
            except Exception:
                logger.exception("event_handling_failed", subscription=subscription.name)

    async def dispatch(self, change: RowChange) -> DomainEvent | None:
        event = classify(change)
        if event is None:
            logger.debug("row_change_ignored", table=change.table, operation=change.operation)
            return None
        await self.handle(event)
        return event

    async def dispatch_broadcast(self, message: BroadcastMessage) -> DomainEvent | None:
        event = classify_broadcast(message, self.config.ping_channel)
        if event is None:
            logger.debug("broadcast_ignored", channel=message.channel)
            return None
        await self.handle(event)
        return event

    async def handle(self, event: DomainEvent) -> None:
        logger.info("domain_event", event_type=type(event).__name__)
        if isinstance(event, LevelChanged):
            await self._on_level_changed(event)
        elif isinstance(event, ProfileLinkChanged):
            await self._on_profile_link_changed(event)
        elif isinstance(event, PrintStarted):
            self._on_print_started(event)
        elif isinstance(event, PrintCanceled):
            await self._on_print_canceled(event)
        elif isinstance(event, MachineEventRaised):
            await self._on_machine_event(event)
        elif isinstance(event, InventoryChanged):
            await self._on_inventory_changed(event)
        elif isinstance(event, PingRequested):
            await self._on_ping(event)
        else:
            raise TypeError(f"Unhandled domain event: {type(event).__name__}")

    # --- Roles ---

    async def _on_level_changed(self, event: LevelChanged) -> None:
        identity = await self.queries.get_discord_identity(event.user_id)
        if not identity:
            logger.info("level_change_no_linked_identity", user_id=str(event.user_id))
            return
        await self.reconciler.apply_roles(identity, event.level)

    async def _on_profile_link_changed(self, event: ProfileLinkChanged) -> None:
        # The old identity is stripped even if syncing the new one fails
        try:
            if event.linked:
                level = await self.queries.get_permission_level(event.user_id)
                await self.reconciler.apply_roles(event.linked, level)
        finally:
            if event.unlinked:
                await self.reconciler.apply_roles(event.unlinked, None, override=())

    # --- Prints ---

    def _on_print_started(self, event: PrintStarted) -> None:
        delay = event.completion_estimate - self._clock()
        print_id = event.print_id
        self.scheduler.schedule(
            print_id,
            delay,
            lambda: self._notify_print_owner(print_id, print_completed_message),
        )

    async def _on_print_canceled(self, event: PrintCanceled) -> None:
        self.scheduler.cancel(event.print_id)
        await self._notify_print_owner(event.print_id, print_canceled_message)

    async def _notify_print_owner(
        self, print_id: uuid.UUID, render: Callable[[Print], str]
    ) -> None:
        print_job = await self.queries.get_print(print_id)
        if print_job is None:
            logger.warning("print_not_found", print_id=str(print_id))
            return

        identity = print_job.owner.discord_identity if print_job.owner is not None else None
        if not identity:
            logger.info("print_owner_not_linked", print_id=str(print_id))
            return

        member = await self.platform.resolve_member(identity)
        if member is None:
            logger.info("print_owner_not_in_guild", print_id=str(print_id), identity=identity)
            return

        await self.platform.send_direct_message(member, render(print_job))

    # --- Machines ---

    async def _on_machine_event(self, event: MachineEventRaised) -> None:
        machine_event = await self.queries.get_machine_event(event.event_id)
        if machine_event is None:
            logger.warning("machine_event_not_found", event_id=str(event.event_id))
            return

        if is_stop_event(machine_event.event_type, machine_event.print_id):
            self.scheduler.cancel(machine_event.print_id)
            await self._notify_print_owner(machine_event.print_id, print_canceled_message)
            return

        await self.platform.send_channel_message(
            self.config.announcement_channel_id,
            content=bad_quip(),
            embed=machine_event_embed(machine_event),
        )
        logger.info(
            "machine_event_announced",
            event_id=str(event.event_id),
            channel_id=self.config.announcement_channel_id,
        )

    # --- Inventory ---

    async def _on_inventory_changed(self, event: InventoryChanged) -> None:
        item = await self.queries.get_inventory_item(event.inventory_id)
        if item is None:
            logger.warning("inventory_item_not_found", inventory_id=str(event.inventory_id))
            return

        if not is_low_stock(item.current_stock, item.minimum):
            return

        await self.platform.send_channel_message(
            self.config.announcement_channel_id,
            embed=low_stock_embed(item),
        )
        logger.info(
            "low_stock_announced",
            inventory_id=str(event.inventory_id),
            current_stock=item.current_stock,
            minimum=item.minimum,
        )

    # --- Broadcasts ---

    async def _on_ping(self, event: PingRequested) -> None:
        member = await self.platform.resolve_member(event.identity)
        if member is None:
            logger.info("ping_member_not_found", identity=event.identity)
            return
        await self.platform.send_direct_message(member, PING_RECEIVED_MESSAGE)
