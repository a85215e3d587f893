"""
Command Parser

Turns the text of one chat message into a Command. Pure: no I/O, no
logging, never raises.

    "!add Groceries: 12.50 Milk #food"
        -> AddCommand(category="Groceries", amount=Decimal("12.50"),
                      note="Milk", tags=("food",))
    "!add Groceries: abc"
        -> UnrecognizedCommand(reason=LOOKS_LIKE_COMMAND, command="!add")
    "just chatting"
        -> UnrecognizedCommand(reason=NOT_A_COMMAND)

The leading token is matched case-sensitively. Only a message whose
first word is exactly one of the known command tokens is treated as an
attempted command; anything else, including `!unknown` and `!addition`,
is ordinary chat.

`!add` grammar, left to right:
1. Something must follow `!add`.
2. The remainder is split at the FIRST ':'. The left side, trimmed, is
   the category and must not be empty.
3. The right side is split on whitespace. The first token is the amount.
4. Every later token starting with '#' is a tag (one '#' removed, empty
   tags dropped). The other tokens, space-joined in order, are the note.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from expense_bridge.models.command import (
    AddCommand,
    CategoriesCommand,
    HelpCommand,
    PingCommand,
    UnrecognizedCommand,
    UnrecognizedReason,
)


ADD_CMD = "!add"
CATEGORIES_CMD = "!categories"
HELP_CMD = "!help"
PING_CMD = "!ping"

KNOWN_COMMANDS = (ADD_CMD, CATEGORIES_CMD, HELP_CMD, PING_CMD)

ADD_USAGE = "!add <Category>: <Amount> [Note] [#Tag...]"

TAG_PREFIX = "#"
CURRENCY_PREFIX = "$"

DEFAULT_MAX_DECIMAL_PLACES = 2

# Plain decimal notation only: no sign, no exponent, no NaN/Infinity
_AMOUNT_PATTERN = re.compile(r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


ParsedCommand = Union[
    AddCommand,
    CategoriesCommand,
    HelpCommand,
    PingCommand,
    UnrecognizedCommand,
]


class AmountError(ValueError):
    """The amount token is not a valid positive amount."""
    pass


def parse_amount(
    token: str,
    max_decimal_places: int = DEFAULT_MAX_DECIMAL_PLACES,
) -> Decimal:
    """
    Parse an amount token such as `12.50` or `$100`.

    Never rounds or truncates: too many fractional digits is an error.

    Raises:
        AmountError: If the token is not a plain decimal number, is zero,
                     or has more than `max_decimal_places` fractional digits
    """
    text = token[1:] if token.startswith(CURRENCY_PREFIX) else token

    if not _AMOUNT_PATTERN.fullmatch(text):
        raise AmountError(f"Invalid amount: {token}")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise AmountError(f"Invalid amount: {token}")

    if amount <= 0:
        raise AmountError(f"Amount must be greater than zero: {token}")

    fraction = text.partition(".")[2]
    if len(fraction) > max_decimal_places:
        raise AmountError(
            f"Amount has more than {max_decimal_places} decimal places: {token}"
        )

    return amount


def split_category(args: str) -> tuple[str, str]:
    """
    Split `!add` arguments at the first ':'.

    Returns:
        (trimmed category, everything after the colon)

    Raises:
        ValueError: If there is no ':' or the category is empty
    """
    category, separator, rest = args.partition(":")
    category = category.strip()
    if not separator:
        raise ValueError("Missing ':' after category")
    if not category:
        raise ValueError("Empty category")
    return category, rest


def split_note_and_tags(tokens: list[str]) -> tuple[Optional[str], tuple[str, ...]]:
    """
    Separate '#tag' tokens from note words.

    Tag order and note-word order are each preserved. Duplicate tags
    are kept. A '#' that is not at the start of a token (e.g. `C#`)
    belongs to the note.
    """
    note_words = []
    tags = []
    for token in tokens:
        if token.startswith(TAG_PREFIX):
            tag = token[len(TAG_PREFIX):]
            if tag:
                tags.append(tag)
        else:
            note_words.append(token)

    note = " ".join(note_words) or None
    return note, tuple(tags)


def _parse_add(
    raw: str,
    args: str,
    max_decimal_places: int,
) -> Union[AddCommand, UnrecognizedCommand]:
    malformed = UnrecognizedCommand(
        raw=raw,
        reason=UnrecognizedReason.LOOKS_LIKE_COMMAND,
        command=ADD_CMD,
    )

    if not args.strip():
        return malformed

    try:
        category, rest = split_category(args)
    except ValueError:
        return malformed

    tokens = rest.split()
    if not tokens:
        return malformed

    try:
        amount = parse_amount(tokens[0], max_decimal_places)
    except AmountError:
        return malformed

    note, tags = split_note_and_tags(tokens[1:])

    return AddCommand(
        category=category,
        amount=amount,
        note=note,
        tags=tags,
    )


def looks_like_command(text: str) -> bool:
    """True if the first word of `text` is a known command token."""
    parts = text.split(maxsplit=1)
    return bool(parts) and parts[0] in KNOWN_COMMANDS


def parse(
    text: str,
    max_decimal_places: int = DEFAULT_MAX_DECIMAL_PLACES,
) -> ParsedCommand:
    """
    Parse one chat message.

    Never raises: anything that is not a well-formed command comes back
    as an UnrecognizedCommand whose `reason` tells the dispatcher whether
    to answer with a usage hint or stay silent.
    """
    parts = text.split(maxsplit=1)
    if not parts:
        return UnrecognizedCommand(raw=text)

    token = parts[0]
    args = parts[1] if len(parts) > 1 else ""

    if token not in KNOWN_COMMANDS:
        return UnrecognizedCommand(raw=text)

    if token == PING_CMD:
        return PingCommand()
    if token == HELP_CMD:
        return HelpCommand()
    if token == CATEGORIES_CMD:
        return CategoriesCommand()
    return _parse_add(text, args, max_decimal_places)


def render(command: AddCommand) -> str:
    """
    Render an AddCommand back into `!add` syntax.

    For any command produced by parse(), parse(render(cmd)) == cmd.
    """
    parts = [f"{ADD_CMD} {command.category}: {format(command.amount, 'f')}"]
    if command.note:
        parts.append(command.note)
    parts.extend(f"{TAG_PREFIX}{tag}" for tag in command.tags)
    return " ".join(parts)
