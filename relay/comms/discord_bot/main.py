"""Discord relay bot entry point."""

from __future__ import annotations

import sys
import time

import structlog

# Import specific discord errors to handle fatal vs non-fatal crashes
from discord.errors import LoginFailure, PrivilegedIntentsRequired

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
)

logger = structlog.get_logger()


def main():
    from relay.comms.discord_bot.bot import RelayDiscordBot
    from relay.shared.config import RelayConfig, get_settings
    from relay.shared.exceptions import ConfigurationError

    settings = get_settings()

    try:
        config = RelayConfig.from_settings(settings)
    except ConfigurationError as e:
        logger.error("relay_config_invalid", environment=settings.environment, missing=e.missing)
        sys.exit(1)

    logger.info("starting_discord_bot_loop", environment=settings.environment)

    while True:
        try:
            bot = RelayDiscordBot(config)

            logger.info("connecting_to_discord")
            bot.run(config.bot_token, log_handler=None)

            if bot.fatal_error is not None:
                logger.error("bot_stopped_fatal", error=str(bot.fatal_error))
                sys.exit(1)

            # bot.run() swallows KeyboardInterrupt and returns
            logger.info("bot_stopped")
            break

        except LoginFailure:
            logger.error("invalid_discord_token_terminating")
            sys.exit(1)

        except PrivilegedIntentsRequired:
            logger.error("privileged_intents_missing_terminating")
            sys.exit(1)

        except KeyboardInterrupt:
            logger.info("bot_stopped_by_user")
            break

        except Exception as e:
            # Pending print reminders live in memory and are lost here
            logger.error("bot_crashed_restarting", error=str(e))

            time.sleep(5)


if __name__ == "__main__":
    main()
