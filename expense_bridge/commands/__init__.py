"""Chat command parsing and dispatch."""

from expense_bridge.commands.parser import (
    ADD_CMD,
    ADD_USAGE,
    CATEGORIES_CMD,
    HELP_CMD,
    KNOWN_COMMANDS,
    PING_CMD,
    AmountError,
    looks_like_command,
    parse,
    parse_amount,
    render,
)
from expense_bridge.commands.dispatcher import (
    HELP_TEXT,
    PONG,
    CommandDispatcher,
    DispatchContext,
)

__all__ = [
    "ADD_CMD",
    "ADD_USAGE",
    "CATEGORIES_CMD",
    "HELP_CMD",
    "KNOWN_COMMANDS",
    "PING_CMD",
    "AmountError",
    "looks_like_command",
    "parse",
    "parse_amount",
    "render",
    "HELP_TEXT",
    "PONG",
    "CommandDispatcher",
    "DispatchContext",
]
