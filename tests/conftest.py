"""Shared fixtures: a config, the in-memory collaborators, and a bot wired to them."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from expense_bridge.audit import AuditLogger
from expense_bridge.commands import CommandDispatcher, DispatchContext
from expense_bridge.config import BotConfig
from expense_bridge.models.chat import ChatEvent, ChatEventKind
from expense_bridge.orchestrator import ExpenseBot
from expense_bridge.services.chat import InMemoryChatClient
from expense_bridge.services.ledger import InMemoryLedger


ROOM_ID = "!expenses:example.org"
OTHER_ROOM_ID = "!elsewhere:example.org"
BOT_USER_ID = "@bot:example.org"
ALICE = "@alice:example.org"
BOB = "@bob:example.org"

CONFIG_VALUES = {
    "matrix_homeserver_url": "https://matrix.example.org",
    "matrix_username": "bot",
    "matrix_password": "hunter2",
    "matrix_room_id": ROOM_ID,
    "firefly_url": "https://firefly.example.org",
    "firefly_api_key": "secret-token",
    "firefly_source_account_id": 7,
}


def make_event(
    body="!ping",
    sender=ALICE,
    room_id=ROOM_ID,
    kind=ChatEventKind.TEXT,
    event_id="$event:example.org",
):
    return ChatEvent(
        room_id=room_id,
        sender=sender,
        kind=kind,
        body=body if kind == ChatEventKind.TEXT else None,
        event_id=event_id,
        timestamp=datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def config():
    return BotConfig(**CONFIG_VALUES)


@pytest.fixture
def audit_logger():
    """An AuditLogger whose underlying structlog logger is a mock."""
    return AuditLogger(logger=MagicMock())


@pytest.fixture
def ledger():
    return InMemoryLedger(categories=["Groceries", "Rent"])


@pytest.fixture
def chat():
    return InMemoryChatClient(user_id=BOT_USER_ID)


@pytest.fixture
def dispatcher(config, ledger, audit_logger):
    return CommandDispatcher(
        DispatchContext.from_config(config, ledger),
        audit_logger=audit_logger,
    )


@pytest.fixture
def bot(config, chat, dispatcher, audit_logger):
    return ExpenseBot(
        config=config,
        chat=chat,
        dispatcher=dispatcher,
        audit_logger=audit_logger,
    )
