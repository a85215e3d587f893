"""
Main Orchestrator for Matrix Expense Bridge

Ties the components together and runs the event loop:

    chat event -> filter -> parse -> dispatch -> (ledger)? -> reply -> send

Events are handled one at a time, in arrival order, so replies appear
in the same order as the commands that caused them.

FAILURE POLICY:
- Anything that goes wrong with ONE message (a bug in a handler, a
  reply that cannot be delivered) is logged and the loop moves on.
- Losing the chat session (ChatSessionError) ends the loop and the
  process; an external supervisor is expected to restart it.
"""

from typing import Optional
from uuid import UUID

from expense_bridge.audit import AuditLogger, create_correlation_id
from expense_bridge.commands import (
    CommandDispatcher,
    DispatchContext,
    looks_like_command,
    parse,
)
from expense_bridge.config import BotConfig
from expense_bridge.models.audit import AuditEventBuilder
from expense_bridge.models.chat import ChatEvent
from expense_bridge.models.command import Reply, UnrecognizedCommand
from expense_bridge.services.chat import (
    ChatClientInterface,
    ChatSessionError,
    MatrixChatClient,
)
from expense_bridge.services.ledger import FireflyLedgerClient


GENERIC_FAILURE = "Sorry, something went wrong while handling that command."


class ExpenseBot:
    """
    The long-running event loop.

    Owns the BotConfig and hands the dispatcher what it needs; holds no
    state between messages.
    """

    def __init__(
        self,
        config: BotConfig,
        chat: ChatClientInterface,
        dispatcher: CommandDispatcher,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._config = config
        self._chat = chat
        self._dispatcher = dispatcher
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def room_id(self) -> str:
        return self._config.matrix_room_id

    async def run(self) -> None:
        """
        Log in, join the room and process events until the stream ends.

        Raises:
            ChatSessionError: If login, join or the event stream fails
        """
        try:
            await self._chat.login()
            self._audit_logger.log(
                AuditEventBuilder.bot_started(
                    user_id=self._chat.user_id or self._config.matrix_username,
                    room_id=self.room_id,
                )
            )
            await self._chat.join_room(self.room_id)
            self._audit_logger.log(AuditEventBuilder.bot_listening(self.room_id))

            async for event in self._chat.events():
                await self.process_event(event)
        except ChatSessionError as e:
            self._audit_logger.log(AuditEventBuilder.session_failed(str(e)))
            raise

        self._audit_logger.log(AuditEventBuilder.bot_stopped(self.room_id))

    def ignore_reason(self, event: ChatEvent) -> Optional[str]:
        """Why this event must not be processed, or None if it should be."""
        if not event.is_text:
            return "not a text message"
        if event.room_id != self.room_id:
            return "different room"
        if event.sender == self._chat.user_id:
            return "own message"
        return None

    async def process_event(self, event: ChatEvent) -> Optional[Reply]:
        """
        Handle one chat event end to end.

        Returns:
            The reply that was produced (sent or not), or None

        Raises:
            ChatSessionError: Only session-level failures escape
        """
        correlation_id = create_correlation_id()

        reason = self.ignore_reason(event)
        if reason is not None:
            self._audit_logger.log(
                AuditEventBuilder.message_ignored(
                    reason=reason,
                    room_id=event.room_id,
                    sender=event.sender,
                    chat_event_id=event.event_id,
                    correlation_id=correlation_id,
                )
            )
            return None

        self._audit_logger.log(
            AuditEventBuilder.message_received(
                room_id=event.room_id,
                sender=event.sender,
                chat_event_id=event.event_id,
                correlation_id=correlation_id,
            )
        )

        reply = await self._dispatch(event, correlation_id)
        if reply is None:
            return None

        await self._send_reply(event.room_id, reply, correlation_id)
        return reply

    async def _dispatch(self, event: ChatEvent, correlation_id: UUID) -> Optional[Reply]:
        try:
            command = parse(event.body, self._config.amount_max_decimal_places)
            if not isinstance(command, UnrecognizedCommand):
                self._audit_logger.log(
                    AuditEventBuilder.command_parsed(
                        command=command.kind.value,
                        correlation_id=correlation_id,
                    )
                )
            return await self._dispatcher.handle(command, event, correlation_id)
        except ChatSessionError:
            raise
        except Exception as e:
            self._audit_logger.log(
                AuditEventBuilder.message_processing_failed(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            )
            # An attempted command still deserves an answer
            if looks_like_command(event.body):
                return Reply(text=GENERIC_FAILURE, is_error=True)
            return None

    async def _send_reply(self, room_id: str, reply: Reply, correlation_id: UUID) -> None:
        try:
            await self._chat.send_text(room_id, reply.text)
        except ChatSessionError:
            raise
        except Exception as e:
            self._audit_logger.log(
                AuditEventBuilder.reply_failed(
                    room_id=room_id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            )
            return

        self._audit_logger.log(
            AuditEventBuilder.reply_sent(
                room_id=room_id,
                is_error=reply.is_error,
                correlation_id=correlation_id,
            )
        )


def create_app_components(
    config: BotConfig,
) -> tuple[ExpenseBot, MatrixChatClient, FireflyLedgerClient]:
    """
    Factory function to create all application components.

    Returns:
        (bot, chat_client, ledger_client) - the clients are returned so
        the caller can close them on shutdown
    """
    audit_logger = AuditLogger()

    ledger = FireflyLedgerClient.from_config(config)
    chat = MatrixChatClient.from_config(config)

    dispatcher = CommandDispatcher(
        DispatchContext.from_config(config, ledger),
        audit_logger=audit_logger,
    )
    bot = ExpenseBot(
        config=config,
        chat=chat,
        dispatcher=dispatcher,
        audit_logger=audit_logger,
    )

    return bot, chat, ledger
