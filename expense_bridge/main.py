"""
Command-line entry point.

    expense-bridge /etc/expense-bridge/config.toml

Exit status:
    0  event stream ended or interrupted
    1  chat session lost (login rejected, token revoked, homeserver gone)
    2  configuration error
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog

from expense_bridge import __version__
from expense_bridge.audit import configure_logging
from expense_bridge.config import BotConfig, ConfigError, load_config
from expense_bridge.config.settings import LOG_LEVELS
from expense_bridge.orchestrator import create_app_components
from expense_bridge.services.chat import ChatSessionError


EXIT_OK = 0
EXIT_SESSION_LOST = 1
EXIT_CONFIG_ERROR = 2

logger = structlog.get_logger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="expense-bridge",
        description="Record expenses in Firefly III from Matrix chat commands.",
    )
    parser.add_argument(
        "config",
        help="Path to the TOML configuration file",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Override the log level from the configuration file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


async def run_bot(config: BotConfig) -> None:
    """Build the components, run the bot, and always release the clients."""
    bot, chat, ledger = create_app_components(config)
    try:
        await bot.run()
    finally:
        await chat.close()
        ledger.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(args.log_level or config.log_level, config.log_json)
    logger.info("starting", version=__version__, room_id=config.matrix_room_id)

    try:
        asyncio.run(run_bot(config))
    except ChatSessionError as e:
        logger.critical("chat_session_lost", error=str(e))
        return EXIT_SESSION_LOST
    except KeyboardInterrupt:
        logger.info("interrupted")

    logger.info("exiting")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
