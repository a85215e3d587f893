"""
Data Models Package

This package contains all Pydantic models used in the Matrix Expense Bridge.
All data flowing through the system must conform to these schemas.
"""

from expense_bridge.models.command import (
    AddCommand,
    CategoriesCommand,
    Command,
    CommandKind,
    HelpCommand,
    PingCommand,
    Reply,
    UnrecognizedCommand,
    UnrecognizedReason,
)
from expense_bridge.models.chat import ChatEvent, ChatEventKind
from expense_bridge.models.ledger import CreatedTransaction, WithdrawalRequest
from expense_bridge.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Command models
    "AddCommand",
    "CategoriesCommand",
    "Command",
    "CommandKind",
    "HelpCommand",
    "PingCommand",
    "Reply",
    "UnrecognizedCommand",
    "UnrecognizedReason",
    # Chat models
    "ChatEvent",
    "ChatEventKind",
    # Ledger models
    "CreatedTransaction",
    "WithdrawalRequest",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
