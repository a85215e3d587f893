"""
Command Dispatcher

Maps a parsed Command to an action and a reply:

    PingCommand          -> "pong"
    HelpCommand          -> usage text
    CategoriesCommand    -> ledger.list_categories() -> category list
    AddCommand           -> ledger.create_withdrawal() -> confirmation
    Unrecognized (looks like a command) -> usage hint
    Unrecognized (ordinary chat)        -> None, stay silent

Ledger failures are turned into a reply here: the room learns that the
expense was NOT recorded and why, in words a person can act on. The
details (status codes, server bodies) only go to the log.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from expense_bridge.audit import AuditLogger
from expense_bridge.commands.parser import (
    ADD_CMD,
    ADD_USAGE,
    CATEGORIES_CMD,
    HELP_CMD,
    PING_CMD,
    TAG_PREFIX,
    ParsedCommand,
)
from expense_bridge.config import BotConfig
from expense_bridge.models.audit import AuditEventBuilder
from expense_bridge.models.chat import ChatEvent
from expense_bridge.models.command import (
    AddCommand,
    CategoriesCommand,
    HelpCommand,
    PingCommand,
    Reply,
    UnrecognizedCommand,
)
from expense_bridge.models.ledger import WithdrawalRequest
from expense_bridge.services.ledger import LedgerError, LedgerInterface


PONG = "pong"

HELP_TEXT = (
    "Available commands:\n"
    f" - {ADD_USAGE}\n"
    f" - {CATEGORIES_CMD}\n"
    f" - {HELP_CMD}\n"
    f" - {PING_CMD}"
)

INVALID_ARGS = "Invalid arguments."

USAGE_HINTS = {
    ADD_CMD: f"{INVALID_ARGS} Usage: {ADD_USAGE}",
}


@dataclass(frozen=True)
class DispatchContext:
    """
    Everything the dispatcher needs from the outside world.

    Built once at startup and shared read-only.
    """
    ledger: LedgerInterface
    source_account_id: int
    destination_name: str = "General expense"

    @classmethod
    def from_config(cls, config: BotConfig, ledger: LedgerInterface) -> "DispatchContext":
        return cls(
            ledger=ledger,
            source_account_id=config.firefly_source_account_id,
            destination_name=config.firefly_destination_name,
        )


def format_amount(amount) -> str:
    return format(amount, "f")


class CommandDispatcher:
    """
    Executes one command and produces the reply for it.

    Stateless: the same dispatcher handles every message for the life
    of the process.
    """

    def __init__(
        self,
        context: DispatchContext,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._context = context
        self._audit_logger = audit_logger or AuditLogger()

    async def handle(
        self,
        command: ParsedCommand,
        message: Optional[ChatEvent] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Reply]:
        """
        Handle one command.

        Args:
            command: Output of the parser
            message: The chat event the command came from, if any.
                     Supplies the sender and timestamp for expenses.
            correlation_id: Ties the resulting audit events to the message

        Returns:
            The reply to post, or None when the bot must stay silent
        """
        if isinstance(command, PingCommand):
            return Reply(text=PONG)

        if isinstance(command, HelpCommand):
            return Reply(text=HELP_TEXT)

        if isinstance(command, CategoriesCommand):
            return await self._list_categories(correlation_id)

        if isinstance(command, AddCommand):
            return await self._add_expense(command, message, correlation_id)

        if isinstance(command, UnrecognizedCommand):
            return self._usage_hint(command, correlation_id)

        raise TypeError(f"Unsupported command type: {type(command).__name__}")

    def _usage_hint(
        self,
        command: UnrecognizedCommand,
        correlation_id: Optional[UUID],
    ) -> Optional[Reply]:
        if not command.looks_like_command:
            return None

        self._audit_logger.log(
            AuditEventBuilder.command_malformed(
                raw=command.raw,
                command=command.command,
                correlation_id=correlation_id,
            )
        )
        hint = USAGE_HINTS.get(command.command, f"{INVALID_ARGS} Try {HELP_CMD}")
        return Reply(text=hint, is_error=True)

    def build_withdrawal(
        self,
        command: AddCommand,
        message: Optional[ChatEvent] = None,
    ) -> WithdrawalRequest:
        """
        Turn an AddCommand into a ledger request.

        The sender's localpart is named in the description and added as
        a trailing tag so expenses can be filtered per person.
        """
        tags = list(command.tags)
        description = command.category
        date = datetime.now(timezone.utc)

        if message is not None:
            person = message.sender_localpart
            if person:
                description = f"{command.category} by {person}"
                if person not in tags:
                    tags.append(person)
            if message.timestamp is not None:
                date = message.timestamp

        return WithdrawalRequest(
            source_account_id=self._context.source_account_id,
            category=command.category,
            amount=command.amount,
            destination_name=self._context.destination_name,
            description=description,
            notes=command.note,
            tags=tuple(tags),
            date=date,
        )

    async def _add_expense(
        self,
        command: AddCommand,
        message: Optional[ChatEvent],
        correlation_id: Optional[UUID],
    ) -> Reply:
        amount = format_amount(command.amount)
        request = self.build_withdrawal(command, message)

        try:
            created = await self._context.ledger.create_withdrawal(request)
        except LedgerError as e:
            self._audit_logger.log(
                AuditEventBuilder.ledger_call_failed(
                    operation="create_withdrawal",
                    error_message=str(e),
                    status_code=e.status_code,
                    correlation_id=correlation_id,
                )
            )
            return Reply(
                text=f"Failed to add {command.category}: {amount}. {e.user_message}",
                is_error=True,
            )

        self._audit_logger.log(
            AuditEventBuilder.expense_created(
                category=created.category,
                amount=created.amount,
                transaction_id=created.transaction_id,
                correlation_id=correlation_id,
            )
        )

        text = f"Added {command.category}: {amount}"
        if command.note:
            text += f" ({command.note})"
        if command.tags:
            text += " " + " ".join(f"{TAG_PREFIX}{tag}" for tag in command.tags)
        return Reply(text=text)

    async def _list_categories(self, correlation_id: Optional[UUID]) -> Reply:
        try:
            categories = await self._context.ledger.list_categories()
        except LedgerError as e:
            self._audit_logger.log(
                AuditEventBuilder.ledger_call_failed(
                    operation="list_categories",
                    error_message=str(e),
                    status_code=e.status_code,
                    correlation_id=correlation_id,
                )
            )
            return Reply(
                text=f"Failed to list categories. {e.user_message}",
                is_error=True,
            )

        self._audit_logger.log(
            AuditEventBuilder.categories_listed(
                count=len(categories),
                correlation_id=correlation_id,
            )
        )

        if not categories:
            return Reply(text="Categories: none")
        return Reply(text="Categories:\n - " + "\n - ".join(categories))
