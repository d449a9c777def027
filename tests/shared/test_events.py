"""Tests for change-feed payload parsing."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from relay.shared.schemas.events import (
    InventoryChangesChange,
    MachineEventsChange,
    PrintsChange,
    ProfilesChange,
    UserLevelsChange,
    parse_row_change,
)


class TestParseRowChange:
    def test_trigger_payload_json(self):
        print_id = str(uuid.uuid4())
        payload = json.dumps(
            {
                "table": "prints",
                "operation": "INSERT",
                "before": None,
                "after": {
                    "id": print_id,
                    "owner_id": str(uuid.uuid4()),
                    "completion_estimate": "2026-10-19T18:30:00+00:00",
                    "canceled": False,
                    "bookkeeping_column": "ignored",
                },
            }
        )
        change = parse_row_change(payload)
        assert isinstance(change, PrintsChange)
        assert change.before is None
        assert str(change.after.id) == print_id
        assert change.after.completion_estimate.hour == 18

    @pytest.mark.parametrize(
        "table,expected,row",
        [
            ("user_levels", UserLevelsChange, {"user_id": str(uuid.uuid4()), "level": 3}),
            ("profiles", ProfilesChange, {"id": str(uuid.uuid4()), "discord_identity": "alice"}),
            ("machine_events", MachineEventsChange, {"id": str(uuid.uuid4()), "resolved": True}),
            (
                "inv_changes",
                InventoryChangesChange,
                {"id": str(uuid.uuid4()), "inventory_id": str(uuid.uuid4()), "quantity": -2},
            ),
        ],
    )
    def test_each_table_gets_its_variant(self, table, expected, row):
        change = parse_row_change({"table": table, "operation": "UPDATE", "before": row, "after": row})
        assert isinstance(change, expected)

    def test_delete_has_no_after(self):
        change = parse_row_change(
            {"table": "profiles", "operation": "DELETE", "before": {"id": str(uuid.uuid4())}}
        )
        assert change.after is None

    def test_unknown_table_rejected(self):
        with pytest.raises(ValidationError):
            parse_row_change({"table": "orders", "operation": "INSERT", "after": {}})

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValidationError):
            parse_row_change({"table": "profiles", "operation": "TRUNCATE"})

    def test_malformed_row_rejected(self):
        with pytest.raises(ValidationError):
            parse_row_change(
                {"table": "user_levels", "operation": "INSERT", "after": {"user_id": "not-a-uuid"}}
            )

    def test_naive_completion_estimate_is_read_as_utc(self):
        change = parse_row_change(
            {
                "table": "prints",
                "operation": "INSERT",
                "after": {"id": str(uuid.uuid4()), "completion_estimate": "2026-10-19T13:00:00"},
            }
        )
        assert change.after.completion_estimate == datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc)

    def test_offset_completion_estimate_is_kept(self):
        change = parse_row_change(
            {
                "table": "prints",
                "operation": "INSERT",
                "after": {"id": str(uuid.uuid4()), "completion_estimate": "2026-10-19T15:00:00+02:00"},
            }
        )
        assert change.after.completion_estimate == datetime(2026, 10, 19, 13, 0, tzinfo=timezone.utc)
