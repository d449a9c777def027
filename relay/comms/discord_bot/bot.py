"""Discord bot implementation."""

from __future__ import annotations

import asyncio

import redis.asyncio as aioredis
import structlog
import discord
from discord import Intents

from relay.comms.discord_bot.platform import DiscordChatPlatform
from relay.modules.notifier.feed import LiveEventSource
from relay.modules.notifier.queries import RelayQueries
from relay.modules.notifier.roles import RoleReconciler
from relay.modules.notifier.router import EventRouter
from relay.modules.notifier.scheduler import NotificationScheduler
from relay.shared.config import RelayConfig
from relay.shared.database import create_engine, create_session_factory, to_asyncpg_dsn
from relay.shared.exceptions import ConfigurationError, RelayError, SubscriptionError

logger = structlog.get_logger()


class RelayDiscordBot(discord.Client):
    """Discord client that relays database changes into the club guild."""

    def __init__(self, config: RelayConfig):
        intents = Intents.default()
        # Resolving members by name needs the privileged members intent
        intents.members = True
        super().__init__(intents=intents)

        self.config = config
        self.scheduler = NotificationScheduler()
        # Set when the bot shuts itself down for a reason that must not be retried
        self.fatal_error: RelayError | None = None
        self._router_task: asyncio.Task | None = None

    async def on_ready(self):
        logger.info("discord_bot_ready", user=str(self.user), debug=self.config.debug)
        if self.config.bot_activity:
            await self.change_presence(activity=discord.Game(name=self.config.bot_activity))

        # on_ready fires again on reconnect, avoid duplicate subscriptions
        if self._router_task is not None and not self._router_task.done():
            return

        guild = self.get_guild(self.config.guild_id)
        if guild is None:
            logger.error("discord_guild_not_found", guild_id=self.config.guild_id)
            self.fatal_error = ConfigurationError(["guild_id"])
            await self.close()
            return

        self._router_task = asyncio.create_task(self._run_router(guild))

    async def _run_router(self, guild: discord.Guild) -> None:
        platform = DiscordChatPlatform(self, guild)
        redis_client = aioredis.from_url(self.config.redis_url, decode_responses=True)
        engine = create_engine(self.config.database_url)
        source = LiveEventSource(to_asyncpg_dsn(self.config.database_url), redis_client)

        router = EventRouter(
            config=self.config,
            source=source,
            queries=RelayQueries(create_session_factory(engine)),
            platform=platform,
            scheduler=self.scheduler,
            reconciler=RoleReconciler(platform, self.config.tier_roles),
        )

        try:
            await router.run()
        except SubscriptionError as e:
            logger.error("subscription_failed_terminating", error=str(e))
            self.fatal_error = e
            await self.close()
        finally:
            await source.close()
            await redis_client.aclose()
            await engine.dispose()

    async def close(self):
        await self.scheduler.shutdown()
        task = self._router_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await super().close()
