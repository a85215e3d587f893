"""
Abstract Chat Interface

The event loop sees the chat protocol only as:
- an async stream of ChatEvents (source)
- a way to post plain text to a room (sink)

Login, room membership, sync tokens and transport are the concrete
client's business. The Matrix client is the production implementation;
the in-memory client drives the tests.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from expense_bridge.models.chat import ChatEvent


class ChatClientInterface(ABC):
    """
    Abstract interface for a chat-protocol client.
    """

    @property
    @abstractmethod
    def user_id(self) -> Optional[str]:
        """The bot's own user id (known after login)."""
        pass

    @abstractmethod
    async def login(self) -> None:
        """
        Authenticate the bot account.

        Raises:
            ChatSessionError: If the homeserver rejects the credentials
                              or cannot be reached
        """
        pass

    @abstractmethod
    async def join_room(self, room_id: str) -> None:
        """
        Join (or confirm membership in) a room.

        Raises:
            ChatSessionError: If the room cannot be joined
        """
        pass

    @abstractmethod
    def events(self) -> AsyncIterator[ChatEvent]:
        """
        Yield new room events in arrival order, for as long as the
        session lives. History from before the call is not replayed.

        Raises:
            ChatSessionError: If the session is lost
        """
        pass

    @abstractmethod
    async def send_text(self, room_id: str, text: str) -> None:
        """
        Post a plain-text message to a room.

        Raises:
            ChatSendError: If the message could not be delivered
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        pass


class ChatError(Exception):
    """Base exception for chat operations."""
    pass


class ChatSendError(ChatError):
    """A message could not be delivered. Recoverable."""
    pass


class ChatSessionError(ChatError):
    """The chat session is unusable (auth rejected, token lost). Fatal."""
    pass


class ChatTransportError(ChatSessionError):
    """
    The homeserver could not be reached.

    Retried a few times by the client; fatal once retries run out.
    """
    pass
