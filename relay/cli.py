"""Admin CLI for the print club relay."""

from __future__ import annotations

import asyncio
import json
import os

import click


def run_async(coro):
    """Run an async function in a new event loop."""
    return asyncio.run(coro)


@click.group()
def cli():
    """Print club relay administration CLI."""
    pass


# --- Setup ---


@cli.command()
def setup():
    """Install the row-change notification triggers."""
    click.echo("Running database migrations...")
    _run_migrations()
    click.echo("Setup complete.")


def _run_migrations():
    """Run Alembic migrations using the Python API."""
    from alembic import command
    from alembic.config import Config

    # Look for alembic.ini in /app (Docker) or at the repository root (local)
    repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    for candidate in ["/app/alembic.ini", os.path.join(repo_root, "alembic.ini")]:
        if os.path.exists(candidate):
            alembic_cfg = Config(candidate)
            script_dir = os.path.join(os.path.dirname(candidate), "alembic")
            if os.path.isdir(script_dir):
                alembic_cfg.set_main_option("script_location", script_dir)
            command.upgrade(alembic_cfg, "head")
            return

    click.echo("  Warning: alembic.ini not found, skipping migrations.")


@cli.command("check-config")
def check_config():
    """Validate configuration for the current environment."""
    from relay.shared.config import RelayConfig, get_settings
    from relay.shared.exceptions import ConfigurationError

    settings = get_settings()
    try:
        config = RelayConfig.from_settings(settings)
    except ConfigurationError as e:
        click.echo(f"Configuration invalid ({settings.environment}):")
        for name in e.missing:
            click.echo(f"  missing: {name.upper()}")
        raise SystemExit(1)

    click.echo(f"Configuration OK ({settings.environment})")
    click.echo(f"  guild:        {config.guild_id}")
    click.echo(f"  debug:        {config.debug_channel_id}")
    click.echo(f"  announcements: {config.announcement_channel_id}")
    tiers = config.tier_roles
    click.echo(f"  tier roles:   {tiers.tier_1}, {tiers.tier_2}, {tiers.tier_3}")


# --- Utilities ---


@cli.command()
@click.argument("identity")
def ping(identity: str):
    """Ask the bot to DM IDENTITY a ping acknowledgement."""
    receivers = run_async(_publish_ping(identity))
    if receivers == 0:
        click.echo("No relay is listening on the ping channel.")
    else:
        click.echo(f"Ping sent for {identity}.")


async def _publish_ping(identity: str) -> int:
    from relay.shared.config import get_settings
    from relay.shared.redis import close_redis, get_redis

    settings = get_settings()
    redis = await get_redis(settings.redis_url)
    try:
        return await redis.publish(settings.ping_channel, json.dumps({"identity": identity}))
    finally:
        await close_redis()


@cli.command()
@click.argument("value")
def perms(value: str):
    """Decode a permission bitfield (decimal or 0x-prefixed hex)."""
    from relay.shared.permissions import (
        ADMIN_FLAG,
        PermissionCategory,
        describe_permissions,
        get_category_value,
    )

    try:
        bitfield = int(value, 0)
    except ValueError:
        raise click.BadParameter(f"not an integer: {value}", param_hint="VALUE")

    click.echo(f"{bitfield & 0xFFFFFFFF:#010x}")
    described = describe_permissions(bitfield)
    if not described:
        click.echo("  (no permissions)")
    for category, flags in described.items():
        click.echo(f"  {category}: {', '.join(flags)}")
    if get_category_value(bitfield, PermissionCategory.SPECIAL) & (1 << ADMIN_FLAG):
        click.echo("  admin override: every check passes")


if __name__ == "__main__":
    cli()
