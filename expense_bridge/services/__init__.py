"""Services package."""

from expense_bridge.services.chat import (
    ChatClientInterface,
    ChatError,
    ChatSendError,
    ChatSessionError,
    ChatTransportError,
    InMemoryChatClient,
    MatrixChatClient,
)
from expense_bridge.services.ledger import (
    FireflyLedgerClient,
    InMemoryLedger,
    LedgerConnectionError,
    LedgerError,
    LedgerInterface,
    LedgerResponseError,
)

__all__ = [
    # Chat services
    "ChatClientInterface",
    "ChatError",
    "ChatSendError",
    "ChatSessionError",
    "ChatTransportError",
    "InMemoryChatClient",
    "MatrixChatClient",
    # Ledger services
    "FireflyLedgerClient",
    "InMemoryLedger",
    "LedgerConnectionError",
    "LedgerError",
    "LedgerInterface",
    "LedgerResponseError",
]
