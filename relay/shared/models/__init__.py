"""SQLAlchemy models."""

from relay.shared.models.base import Base
from relay.shared.models.inventory import InventoryChange, InventoryItem
from relay.shared.models.machine import Machine, MachineDef
from relay.shared.models.machine_event import MachineEvent
from relay.shared.models.print_job import Print
from relay.shared.models.profile import Profile, UserLevel

__all__ = [
    "Base",
    "InventoryChange",
    "InventoryItem",
    "Machine",
    "MachineDef",
    "MachineEvent",
    "Print",
    "Profile",
    "UserLevel",
]
