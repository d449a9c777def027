"""Change classification: decide whether a row change is worth announcing.

Every rule diffs one meaningful field between ``before`` and ``after`` so
bookkeeping writes to unrelated columns never re-fire a notification.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from relay.shared.schemas.broadcasts import BroadcastMessage, PingRequest
from relay.shared.schemas.events import (
    InventoryChangesChange,
    MachineEventsChange,
    PrintsChange,
    ProfilesChange,
    RowChange,
    UserLevelsChange,
)

STOP_EVENT_TYPE = "STOP"


@dataclass(frozen=True)
class LevelChanged:
    user_id: uuid.UUID
    level: int | None


@dataclass(frozen=True)
class ProfileLinkChanged:
    user_id: uuid.UUID
    linked: str | None  # identity that now needs roles
    unlinked: str | None  # identity that lost its link


@dataclass(frozen=True)
class PrintStarted:
    print_id: uuid.UUID
    completion_estimate: datetime


@dataclass(frozen=True)
class PrintCanceled:
    print_id: uuid.UUID


@dataclass(frozen=True)
class MachineEventRaised:
    event_id: uuid.UUID


@dataclass(frozen=True)
class InventoryChanged:
    inventory_id: uuid.UUID


@dataclass(frozen=True)
class PingRequested:
    identity: str


DomainEvent = (
    LevelChanged
    | ProfileLinkChanged
    | PrintStarted
    | PrintCanceled
    | MachineEventRaised
    | InventoryChanged
    | PingRequested
)


def classify(change: RowChange) -> DomainEvent | None:
    """Map a row change to the domain event it represents, if any."""
    if isinstance(change, UserLevelsChange):
        return _classify_user_level(change)
    if isinstance(change, ProfilesChange):
        return _classify_profile(change)
    if isinstance(change, PrintsChange):
        return _classify_print(change)
    if isinstance(change, MachineEventsChange):
        return _classify_machine_event(change)
    if isinstance(change, InventoryChangesChange):
        return _classify_inventory_change(change)
    raise TypeError(f"Unhandled change type: {type(change).__name__}")


def _classify_user_level(change: UserLevelsChange) -> LevelChanged | None:
    if change.operation != "UPDATE" or change.before is None or change.after is None:
        return None
    if change.after.level == change.before.level:
        return None
    return LevelChanged(user_id=change.after.user_id, level=change.after.level)


def _classify_profile(change: ProfilesChange) -> ProfileLinkChanged | None:
    if change.operation != "UPDATE" or change.before is None or change.after is None:
        return None
    old, new = change.before.discord_identity, change.after.discord_identity
    if old == new:
        return None
    return ProfileLinkChanged(user_id=change.after.id, linked=new, unlinked=old)


def _classify_print(change: PrintsChange) -> PrintStarted | PrintCanceled | None:
    after = change.after
    if after is None:
        return None

    if change.operation == "INSERT":
        # Prints without an estimate have nothing to remind about
        if after.completion_estimate is None:
            return None
        return PrintStarted(print_id=after.id, completion_estimate=after.completion_estimate)

    if change.operation == "UPDATE" and change.before is not None:
        if after.canceled != change.before.canceled and after.canceled:
            return PrintCanceled(print_id=after.id)

    return None


def _classify_machine_event(change: MachineEventsChange) -> MachineEventRaised | None:
    if change.operation != "INSERT" or change.after is None:
        return None
    # A missing before-image counts as a transition from "unknown"
    before_resolved = change.before.resolved if change.before is not None else None
    if change.after.resolved == before_resolved:
        return None
    return MachineEventRaised(event_id=change.after.id)


def _classify_inventory_change(change: InventoryChangesChange) -> InventoryChanged | None:
    if change.operation != "INSERT" or change.after is None:
        return None
    return InventoryChanged(inventory_id=change.after.inventory_id)


def classify_broadcast(message: BroadcastMessage, ping_channel: str) -> PingRequested | None:
    """Map a broadcast message to a ping request when it targets the ping channel."""
    if message.channel != ping_channel:
        return None
    identity = PingRequest.model_validate(message.payload).identity.strip()
    if not identity:
        return None
    return PingRequested(identity=identity)


def is_low_stock(current_stock: int | None, minimum: int | None) -> bool:
    if current_stock is None or minimum is None:
        return False
    return current_stock < minimum


def is_stop_event(event_type: str | None, print_id: uuid.UUID | None) -> bool:
    """A STOP event tied to a print cancels that print instead of announcing."""
    return event_type == STOP_EVENT_TYPE and print_id is not None
