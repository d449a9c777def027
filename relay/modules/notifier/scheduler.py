"""In-process one-shot notification timers keyed by entity id.

Each key is UNARMED, ARMED, then FIRED or CANCELED. Arming an armed key
replaces the old timer, so at most one notification is live per key. Timers
live on the running asyncio loop and are lost when the process exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta

import structlog

logger = structlog.get_logger()

Action = Callable[[], Awaitable[None]]


class NotificationScheduler:
    """Arms, replaces and cancels delayed notification actions."""

    def __init__(self) -> None:
        self._timers: dict[str, asyncio.Task] = {}

    def schedule(self, key: object, delay: float | timedelta, action: Action) -> None:
        """Run ``action`` after ``delay``; a non-positive delay is due now."""
        key = str(key)
        self.cancel(key)

        seconds = delay.total_seconds() if isinstance(delay, timedelta) else float(delay)
        seconds = max(seconds, 0.0)

        task = asyncio.get_running_loop().create_task(
            self._fire_after(key, seconds, action),
            name=f"scheduled-notification:{key}",
        )
        self._timers[key] = task
        logger.info("notification_scheduled", key=key, delay_seconds=round(seconds, 1))

    def cancel(self, key: object) -> bool:
        """Cancel the armed timer for ``key``. Returns False if nothing was armed."""
        key = str(key)
        task = self._timers.pop(key, None)
        if task is None:
            return False
        task.cancel()
        logger.info("notification_canceled", key=key)
        return True

    def is_armed(self, key: object) -> bool:
        return str(key) in self._timers

    def __len__(self) -> int:
        return len(self._timers)

    async def shutdown(self) -> None:
        """Cancel every armed timer and wait for them to unwind."""
        tasks = list(self._timers.values())
        self._timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _fire_after(self, key: str, seconds: float, action: Action) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

        # Drop the key before running so the action may re-arm it
        if self._timers.get(key) is asyncio.current_task():
            del self._timers[key]

        try:
            await action()
            logger.info("notification_fired", key=key)
        except Exception:
            logger.warning("scheduled_notification_failed", key=key, exc_info=True)
