"""Publish row changes on watched tables with pg_notify.

Each trigger sends ``{"table", "operation", "before", "after"}`` on channel
``row_changes.<table>``, which the relay LISTENs on.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from typing import Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels = None
depends_on = None

WATCHED_TABLES = ("user_levels", "profiles", "prints", "machine_events", "inv_changes")


def upgrade() -> None:
    op.execute(
        """
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
    )
    for table in WATCHED_TABLES:
        op.execute(
            f"""
            CREATE TRIGGER relay_{table}_changes
            AFTER INSERT OR UPDATE OR DELETE ON public.{table}
            FOR EACH ROW EXECUTE FUNCTION relay_notify_row_change()
            """
        )


def downgrade() -> None:
    for table in WATCHED_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS relay_{table}_changes ON public.{table}")
    op.execute("DROP FUNCTION IF EXISTS relay_notify_row_change()")
