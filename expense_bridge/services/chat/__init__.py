"""
Chat Services Package

Provides the abstract chat interface, the Matrix implementation and an
in-memory implementation for tests.
"""

from expense_bridge.services.chat.interface import (
    ChatClientInterface,
    ChatError,
    ChatSendError,
    ChatSessionError,
    ChatTransportError,
)
from expense_bridge.services.chat.matrix import MatrixChatClient
from expense_bridge.services.chat.memory import InMemoryChatClient

__all__ = [
    # Interface
    "ChatClientInterface",
    # Exceptions
    "ChatError",
    "ChatSendError",
    "ChatSessionError",
    "ChatTransportError",
    # Implementations
    "InMemoryChatClient",
    "MatrixChatClient",
]
