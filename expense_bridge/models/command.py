"""
Command Models for Matrix Expense Bridge

A Command is what the parser makes of one chat message. It is created
per message, consumed by the dispatcher, and discarded once a reply has
been produced. Every variant is frozen.

The `kind` field discriminates the variants so a Command can be
validated or serialized without knowing the concrete class up front.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class CommandKind(str, Enum):
    """Every command the bot understands, plus the fallback."""
    ADD = "add"
    CATEGORIES = "categories"
    HELP = "help"
    PING = "ping"
    UNRECOGNIZED = "unrecognized"


class UnrecognizedReason(str, Enum):
    """
    Why a message did not produce a real command.

    LOOKS_LIKE_COMMAND messages get a usage hint.
    NOT_A_COMMAND messages are ordinary chat and get no reply at all.
    """
    LOOKS_LIKE_COMMAND = "looks_like_command"
    NOT_A_COMMAND = "not_a_command"


# =============================================================================
# COMMAND VARIANTS
# =============================================================================

class AddCommand(BaseModel):
    """`!add <Category>: <Amount> [Note] [#Tag...]`"""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: Literal[CommandKind.ADD] = CommandKind.ADD
    category: str = Field(
        ...,
        min_length=1,
        description="Ledger category name (free text, trimmed)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Expense amount, strictly positive"
    )
    note: Optional[str] = Field(
        default=None,
        description="Free-text note made of the non-tag words"
    )
    tags: tuple[str, ...] = Field(
        default=(),
        description="Tags without their leading '#', in the order typed"
    )


class CategoriesCommand(BaseModel):
    """`!categories`"""
    model_config = ConfigDict(frozen=True)

    kind: Literal[CommandKind.CATEGORIES] = CommandKind.CATEGORIES


class HelpCommand(BaseModel):
    """`!help`"""
    model_config = ConfigDict(frozen=True)

    kind: Literal[CommandKind.HELP] = CommandKind.HELP


class PingCommand(BaseModel):
    """`!ping`"""
    model_config = ConfigDict(frozen=True)

    kind: Literal[CommandKind.PING] = CommandKind.PING


class UnrecognizedCommand(BaseModel):
    """
    A message the parser could not turn into a command.

    `raw` is the message text exactly as received. `command` names the
    leading token when the message was an attempted command.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal[CommandKind.UNRECOGNIZED] = CommandKind.UNRECOGNIZED
    raw: str
    reason: UnrecognizedReason = UnrecognizedReason.NOT_A_COMMAND
    command: Optional[str] = None

    @property
    def looks_like_command(self) -> bool:
        return self.reason == UnrecognizedReason.LOOKS_LIKE_COMMAND


Command = Annotated[
    Union[
        AddCommand,
        CategoriesCommand,
        HelpCommand,
        PingCommand,
        UnrecognizedCommand,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# REPLY
# =============================================================================

class Reply(BaseModel):
    """Text the bot sends back to the room in answer to a command."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    is_error: bool = False
