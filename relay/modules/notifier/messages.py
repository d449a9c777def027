"""Message text and embeds for relay notifications."""

from __future__ import annotations

import random

import discord

from relay.shared.models.inventory import InventoryItem
from relay.shared.models.machine_event import MachineEvent
from relay.shared.models.print_job import Print

FAULT_COLOR = 0xFF5555
EVENT_COLOR = 0x5599FF
LOW_STOCK_COLOR = 0xFFAA33

EMBED_TITLE_LIMIT = 256
EMBED_FIELD_LIMIT = 1024

ROLES_UPDATED_MESSAGE = (
    "Your roles in the print club server have been updated to match your "
    "current certification level."
)
PING_RECEIVED_MESSAGE = "Ping received! :wave:"

BAD_QUIPS = [
    "Houston, we have a problem :dizzy_face:",
    "Another one bites the dust :dizzy_face:",
    "I come bearing bad news :dizzy_face:",
    "Is it a Prusa? I can't look! :dizzy_face:",
    "Frustrating times at the 3D print club :dizzy_face:",
    "I'll just leave this here :dizzy_face:",
    "So who's the VP of Operations again? :dizzy_face:",
    "Here's something for the to-do (to-fix) list :dizzy_face:",
    "This just in :dizzy_face:",
]


def bad_quip() -> str:
    return random.choice(BAD_QUIPS)


def _print_label(print_job: Print) -> str:
    name = print_job.file_name or "your print"
    machine = print_job.machine
    if machine is not None:
        return f"**{name}** on {machine.nickname}"
    return f"**{name}**"


def print_completed_message(print_job: Print) -> str:
    return f"Your print {_print_label(print_job)} should be finished! Come pick it up :tada:"


def print_canceled_message(print_job: Print) -> str:
    return f"Your print {_print_label(print_job)} was canceled :dizzy_face:"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def machine_event_embed(event: MachineEvent) -> discord.Embed:
    """Announcement embed for a fault or other machine event.

    Title and field values are clipped to Discord's embed limits.
    """
    machine = event.machine
    is_fault = (event.event_type or "").upper() == "FAULT"
    kind = "Fault Report" if is_fault else f"{(event.event_type or 'Event').title()} Report"
    if machine is not None:
        subject = f"{machine.nickname} (Tier {machine.tier})"
    else:
        subject = "an unknown machine"

    embed = discord.Embed(
        color=FAULT_COLOR if is_fault else EVENT_COLOR,
        title=_truncate(f"{kind} for {subject}", EMBED_TITLE_LIMIT),
        timestamp=event.created_at,
    )
    if machine is not None and machine.machine_def is not None:
        embed.add_field(
            name="Machine Type",
            value=_truncate(
                f"{machine.machine_def.make} {machine.machine_def.model}", EMBED_FIELD_LIMIT
            ),
            inline=False,
        )
    issuer = event.created_by.full_name if event.created_by is not None else None
    embed.add_field(
        name="Issuer",
        value=_truncate(issuer or "no account name", EMBED_FIELD_LIMIT),
        inline=False,
    )
    embed.add_field(
        name="Provided Description",
        value=_truncate(event.description or "no description provided", EMBED_FIELD_LIMIT),
        inline=False,
    )
    return embed


def low_stock_embed(item: InventoryItem) -> discord.Embed:
    embed = discord.Embed(
        color=LOW_STOCK_COLOR,
        title=_truncate(f"Low stock: {item.name}", EMBED_TITLE_LIMIT),
        description="Stock has dropped below its minimum. Time to reorder!",
    )
    embed.add_field(name="Current Stock", value=str(item.current_stock))
    embed.add_field(name="Minimum", value=str(item.minimum))
    return embed
