"""Tests for the row-change trigger migrations."""

from __future__ import annotations

import importlib.util
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from relay.shared.schemas.events import (
    WATCHED_TABLES,
    InventoryChangeRow,
    MachineEventRow,
    PrintRow,
    ProfileRow,
    UserLevelRow,
)

VERSIONS = Path(__file__).resolve().parents[1] / "alembic" / "versions"

ROW_MODELS = {
    "user_levels": UserLevelRow,
    "profiles": ProfileRow,
    "prints": PrintRow,
    "machine_events": MachineEventRow,
    "inv_changes": InventoryChangeRow,
}


def _load(filename: str):
    spec = importlib.util.spec_from_file_location(filename.removesuffix(".py"), VERSIONS / filename)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def projection():
    return _load("002_project_row_change_payloads.py")


class TestPayloadProjection:
    def test_covers_every_watched_table(self, projection):
        assert set(projection.NOTIFIED_COLUMNS) == set(WATCHED_TABLES)

    @pytest.mark.parametrize("table", WATCHED_TABLES)
    def test_columns_match_row_schema(self, projection, table):
        assert set(projection.NOTIFIED_COLUMNS[table]) == set(ROW_MODELS[table].model_fields)

    def test_oversized_payload_is_skipped_not_raised(self, projection):
        sql = projection.PROJECTED_FUNCTION
        assert f"octet_length(payload) > {projection.MAX_PAYLOAD_BYTES}" in sql
        assert "RAISE WARNING" in sql
        assert "RAISE EXCEPTION" not in sql
        assert projection.MAX_PAYLOAD_BYTES < 8000

    def test_upgrade_passes_columns_as_trigger_arguments(self, projection, monkeypatch):
        op = MagicMock()
        monkeypatch.setattr(projection, "op", op)

        projection.upgrade()

        statements = [c.args[0] for c in op.execute.call_args_list]
        assert statements[0] == projection.PROJECTED_FUNCTION
        create = next(s for s in statements if "CREATE TRIGGER relay_machine_events_changes" in s)
        assert (
            "relay_notify_row_change('id', 'machine_id', 'print_id', 'event_type', 'resolved')"
            in create
        )

    def test_revision_chain(self, projection):
        assert projection.down_revision == _load("001_add_row_change_triggers.py").revision
