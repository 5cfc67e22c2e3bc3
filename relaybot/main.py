"""Main entry point for relaybot.

Initializes logging in two phases (defaults then config-driven),
creates the RelayBot, connects both networks, and runs until
SIGTERM/SIGINT.

Key functions:
    main: Async entry point.
    run: Synchronous wrapper that calls asyncio.run(main()).
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import structlog

from .logging_config import setup_logging


async def main(config_dir: Optional[Path] = None):
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("relaybot")

    from . import __version__
    from .bot import RelayBot
    from .config import Config

    logger.info("relaybot_starting", version=__version__)

    config = Config(config_dir)
    config.validate()

    # Phase 2: reconfigure with real config
    setup_logging(config)

    bot = RelayBot(config)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: fall back to signal.signal for SIGINT
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    try:
        await bot.start()
        await shutdown_event.wait()
    except Exception as e:
        logger.error("bot_error", error=str(e), exc_type=type(e).__name__)
        raise
    finally:
        await bot.stop()
        logger.info("relaybot_stopped")


def run():
    """Synchronous entry point for the ``relaybot`` console script."""
    from .exceptions import ConfigurationError, IRCConnectionError, WatchlistError

    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        asyncio.run(main(config_dir))
    except KeyboardInterrupt:
        pass
    except (ConfigurationError, IRCConnectionError, WatchlistError) as e:
        print(f"relaybot: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    run()
