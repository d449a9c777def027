"""Row-change payloads delivered by the database change feed.

Each watched table has its own variant, discriminated by ``table``, so the
classifier dispatch is exhaustive over a closed set of types. Rows carry only
the columns the relay reads; anything else in the payload is ignored.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

Operation = Literal["INSERT", "UPDATE", "DELETE"]


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class UserLevelRow(_Row):
    user_id: uuid.UUID
    level: int | None = None


class ProfileRow(_Row):
    id: uuid.UUID
    full_name: str | None = None
    discord_identity: str | None = None


class PrintRow(_Row):
    id: uuid.UUID
    owner_id: uuid.UUID | None = None
    machine_id: uuid.UUID | None = None
    file_name: str | None = None
    completion_estimate: datetime | None = None
    canceled: bool = False

    @field_validator("completion_estimate")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # timestamp without time zone columns arrive with no offset
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class MachineEventRow(_Row):
    id: uuid.UUID
    machine_id: uuid.UUID | None = None
    print_id: uuid.UUID | None = None
    event_type: str | None = None
    resolved: bool | None = None


class InventoryChangeRow(_Row):
    id: uuid.UUID
    inventory_id: uuid.UUID
    quantity: int | None = None


class _Change(BaseModel):
    model_config = ConfigDict(frozen=True)

    operation: Operation


class UserLevelsChange(_Change):
    table: Literal["user_levels"] = "user_levels"
    before: UserLevelRow | None = None
    after: UserLevelRow | None = None


class ProfilesChange(_Change):
    table: Literal["profiles"] = "profiles"
    before: ProfileRow | None = None
    after: ProfileRow | None = None


class PrintsChange(_Change):
    table: Literal["prints"] = "prints"
    before: PrintRow | None = None
    after: PrintRow | None = None


class MachineEventsChange(_Change):
    table: Literal["machine_events"] = "machine_events"
    before: MachineEventRow | None = None
    after: MachineEventRow | None = None


class InventoryChangesChange(_Change):
    table: Literal["inv_changes"] = "inv_changes"
    before: InventoryChangeRow | None = None
    after: InventoryChangeRow | None = None


RowChange = Annotated[
    Union[
        UserLevelsChange,
        ProfilesChange,
        PrintsChange,
        MachineEventsChange,
        InventoryChangesChange,
    ],
    Field(discriminator="table"),
]

WATCHED_TABLES: tuple[str, ...] = (
    "user_levels",
    "profiles",
    "prints",
    "machine_events",
    "inv_changes",
)

_row_change_adapter: TypeAdapter[RowChange] = TypeAdapter(RowChange)


def parse_row_change(payload: str | bytes | dict) -> RowChange:
    """Validate a raw change-feed payload into its table's variant.

    Raises pydantic.ValidationError for unknown tables or malformed rows.
    """
    if isinstance(payload, dict):
        return _row_change_adapter.validate_python(payload)
    return _row_change_adapter.validate_json(payload)
