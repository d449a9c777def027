"""Publish only the columns the relay reads.

pg_notify payloads are capped at 8000 bytes and an error inside the trigger
rolls back the writer's statement, so whole-row images are replaced with a
per-table column projection passed as trigger arguments. A change whose
projection still does not fit is skipped with a WARNING.

Revision ID: 002
Revises: 001
Create Date: 2026-10-20
"""

from typing import Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels = None
depends_on = None

NOTIFIED_COLUMNS = {
    "user_levels": ("user_id", "level"),
    "profiles": ("id", "full_name", "discord_identity"),
    "prints": ("id", "owner_id", "machine_id", "file_name", "completion_estimate", "canceled"),
    "machine_events": ("id", "machine_id", "print_id", "event_type", "resolved"),
    "inv_changes": ("id", "inventory_id", "quantity"),
}

MAX_PAYLOAD_BYTES = 7999

PROJECTED_FUNCTION = f"""
CREATE OR REPLACE FUNCTION relay_notify_row_change() RETURNS trigger AS $$
DECLARE
    before_row jsonb;
    after_row jsonb;
    payload text;
BEGIN
    IF TG_OP <> 'INSERT' THEN
        SELECT jsonb_object_agg(key, value) INTO before_row
        FROM jsonb_each(to_jsonb(OLD))
        WHERE key = ANY(TG_ARGV);
    END IF;
    IF TG_OP <> 'DELETE' THEN
        SELECT jsonb_object_agg(key, value) INTO after_row
        FROM jsonb_each(to_jsonb(NEW))
        WHERE key = ANY(TG_ARGV);
    END IF;

    payload := jsonb_build_object(
        'table', TG_TABLE_NAME,
        'operation', TG_OP,
        'before', before_row,
        'after', after_row
    )::text;

    IF octet_length(payload) > {MAX_PAYLOAD_BYTES} THEN
        RAISE WARNING 'relay: % on % too large to notify (% bytes)',
            TG_OP, TG_TABLE_NAME, octet_length(payload);
        RETURN NULL;
    END IF;

    PERFORM pg_notify('row_changes.' || TG_TABLE_NAME, payload);
    RETURN NULL;
END;
$$ LANGUAGE plpgsql
"""

WHOLE_ROW_FUNCTION = """
CREATE OR REPLACE FUNCTION relay_notify_row_change() RETURNS trigger AS $$
BEGIN
    PERFORM pg_notify(
        'row_changes.' || TG_TABLE_NAME,
        json_build_object(
            'table', TG_TABLE_NAME,
            'operation', TG_OP,
            'before', CASE WHEN TG_OP = 'INSERT' THEN NULL ELSE row_to_json(OLD) END,
            'after', CASE WHEN TG_OP = 'DELETE' THEN NULL ELSE row_to_json(NEW) END
        )::text
    );
    RETURN NULL;
END;
$$ LANGUAGE plpgsql
"""


def _create_trigger(table: str, columns: tuple[str, ...] = ()) -> None:
    args = ", ".join(f"'{column}'" for column in columns)
    op.execute(
        f"""
        CREATE TRIGGER relay_{table}_changes
        AFTER INSERT OR UPDATE OR DELETE ON public.{table}
        FOR EACH ROW EXECUTE FUNCTION relay_notify_row_change({args})
        """
    )


def upgrade() -> None:
    op.execute(PROJECTED_FUNCTION)
    for table, columns in NOTIFIED_COLUMNS.items():
        op.execute(f"DROP TRIGGER IF EXISTS relay_{table}_changes ON public.{table}")
        _create_trigger(table, columns)


def downgrade() -> None:
    for table in NOTIFIED_COLUMNS:
        op.execute(f"DROP TRIGGER IF EXISTS relay_{table}_changes ON public.{table}")
        _create_trigger(table)
    op.execute(WHOLE_ROW_FUNCTION)
