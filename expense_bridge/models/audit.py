"""
Audit Models for Matrix Expense Bridge

Every significant step of handling a chat message is recorded as an
AuditEvent and written to the structured log. This provides:
1. Traceability from a chat message to the ledger call it caused
2. Debugging information when a command fails
3. Operator visibility into ignored or failed messages

Events are local only: nothing here is persisted.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each step of the message pipeline has its own event type.
    """
    # Lifecycle
    BOT_STARTED = "bot_started"
    BOT_LISTENING = "bot_listening"
    BOT_STOPPED = "bot_stopped"

    # Message intake
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_IGNORED = "message_ignored"
    COMMAND_PARSED = "command_parsed"
    COMMAND_MALFORMED = "command_malformed"

    # Ledger
    EXPENSE_CREATED = "expense_created"
    CATEGORIES_LISTED = "categories_listed"
    LEDGER_CALL_FAILED = "ledger_call_failed"

    # Replies
    REPLY_SENT = "reply_sent"
    REPLY_FAILED = "reply_failed"

    # System events
    MESSAGE_PROCESSING_FAILED = "message_processing_failed"
    SESSION_FAILED = "session_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the activity log.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which chat message is this about?
    room_id: Optional[str] = None
    sender: Optional[str] = None
    chat_event_id: Optional[str] = None

    # Correlation - all events caused by one chat message share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one message"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a chat user?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "room_id": self.room_id,
            "sender": self.sender,
            "chat_event_id": self.chat_event_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


DESCRIPTION_TEXT_LIMIT = 200


def _clip(value: object, limit: int = DESCRIPTION_TEXT_LIMIT) -> str:
    """Shorten user or server text so a description stays within max_length."""
    text = str(value)
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.message_ignored(reason="own message", ...)
        event = AuditEventBuilder.expense_created(category, amount, ...)
    """

    @staticmethod
    def bot_started(user_id: str, room_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOT_STARTED,
            room_id=room_id,
            sender=user_id,
            description=f"Logged in as {_clip(user_id)}",
        )

    @staticmethod
    def bot_listening(room_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOT_LISTENING,
            room_id=room_id,
            description="Listening for messages",
        )

    @staticmethod
    def bot_stopped(room_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOT_STOPPED,
            room_id=room_id,
            description="Event stream ended",
        )

    @staticmethod
    def message_received(
        room_id: str,
        sender: str,
        chat_event_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_RECEIVED,
            severity=AuditSeverity.DEBUG,
            room_id=room_id,
            sender=sender,
            chat_event_id=chat_event_id,
            correlation_id=correlation_id,
            description="Text message received",
            is_user_action=True,
        )

    @staticmethod
    def message_ignored(
        reason: str,
        room_id: str,
        sender: str,
        chat_event_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_IGNORED,
            severity=AuditSeverity.DEBUG,
            room_id=room_id,
            sender=sender,
            chat_event_id=chat_event_id,
            correlation_id=correlation_id,
            description=f"Message ignored: {_clip(reason)}",
            details={"reason": reason},
        )

    @staticmethod
    def command_parsed(
        command: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_PARSED,
            correlation_id=correlation_id,
            description=f"Received command: {_clip(command)}",
            details={"command": command},
            is_user_action=True,
        )

    @staticmethod
    def command_malformed(
        raw: str,
        command: Optional[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_MALFORMED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Failed to parse: '{_clip(raw)}'",
            details={"command": command},
            is_user_action=True,
        )

    @staticmethod
    def expense_created(
        category: str,
        amount: Decimal,
        transaction_id: Optional[str],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            correlation_id=correlation_id,
            description=f"Expense added: {_clip(category)} - {_clip(amount, 40)}",
            details={
                "category": category,
                "amount": str(amount),
                "transaction_id": transaction_id,
            },
        )

    @staticmethod
    def categories_listed(
        count: int,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_LISTED,
            correlation_id=correlation_id,
            description=f"Listed {count} categories",
            details={"count": count},
        )

    @staticmethod
    def ledger_call_failed(
        operation: str,
        error_message: str,
        status_code: Optional[int],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CALL_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Ledger call failed: {_clip(operation)}",
            error_message=error_message,
            details={
                "operation": operation,
                "status_code": status_code,
            },
        )

    @staticmethod
    def reply_sent(
        room_id: str,
        is_error: bool,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPLY_SENT,
            severity=AuditSeverity.DEBUG,
            room_id=room_id,
            correlation_id=correlation_id,
            description="Reply sent",
            details={"is_error": is_error},
        )

    @staticmethod
    def reply_failed(
        room_id: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPLY_FAILED,
            severity=AuditSeverity.ERROR,
            room_id=room_id,
            correlation_id=correlation_id,
            description="Failed to send reply",
            error_message=error_message,
        )

    @staticmethod
    def message_processing_failed(
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_PROCESSING_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Failed to process message: {_clip(error_type)}",
            error_message=error_message,
            details={"error_type": error_type},
        )

    @staticmethod
    def session_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_FAILED,
            severity=AuditSeverity.CRITICAL,
            description="Chat session lost",
            error_message=error_message,
        )
