"""
Matrix Chat Client using matrix-nio

Wraps nio's AsyncClient behind ChatClientInterface:
1. Password login (retried on transport errors)
2. Room join
3. One initial sync to find "now", then long-poll syncs from there
4. Plain-text sends

Encryption and session persistence are not handled: the bot logs in
fresh on every start and only works in unencrypted rooms.
"""

import asyncio
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Union

import aiohttp
import structlog
from nio import (
    AsyncClient,
    AsyncClientConfig,
    JoinError,
    LoginError,
    RoomMessageText,
    RoomSendError,
    SyncError,
    SyncResponse,
)
from nio.exceptions import LocalProtocolError
from pydantic import SecretStr
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_bridge.config import BotConfig
from expense_bridge.models.chat import ChatEvent, ChatEventKind
from expense_bridge.services.chat.interface import (
    ChatClientInterface,
    ChatSendError,
    ChatSessionError,
    ChatTransportError,
)


SYNC_TIMEOUT_MS = 30_000

# Sync error codes that mean the access token is gone for good
SESSION_ERROR_CODES = ("M_UNKNOWN_TOKEN", "M_MISSING_TOKEN", "M_FORBIDDEN")

# nio retries timed-out requests itself; cap it so tenacity owns the retry budget
MAX_TIMEOUTS = 2

TRANSPORT_ERRORS = (OSError, asyncio.TimeoutError, aiohttp.ClientError)

logger = structlog.get_logger(__name__)


def to_chat_event(room_id: str, event) -> ChatEvent:
    """Convert a nio timeline event into a ChatEvent."""
    timestamp = None
    server_timestamp = getattr(event, "server_timestamp", None)
    if server_timestamp:
        timestamp = datetime.fromtimestamp(server_timestamp / 1000, tz=timezone.utc)

    if isinstance(event, RoomMessageText):
        return ChatEvent(
            room_id=room_id,
            sender=event.sender,
            kind=ChatEventKind.TEXT,
            body=event.body,
            event_id=event.event_id,
            timestamp=timestamp,
        )

    return ChatEvent(
        room_id=room_id,
        sender=getattr(event, "sender", None) or "",
        kind=ChatEventKind.OTHER,
        event_id=getattr(event, "event_id", None),
        timestamp=timestamp,
    )


class MatrixChatClient(ChatClientInterface):
    """
    Chat client for a Matrix homeserver.
    """

    def __init__(
        self,
        homeserver_url: str,
        username: str,
        password: Union[SecretStr, str],
        device_name: str = "expense bot",
        sync_timeout_ms: int = SYNC_TIMEOUT_MS,
        client: Optional[AsyncClient] = None,
    ):
        self._password = password if isinstance(password, SecretStr) else SecretStr(password)
        self._device_name = device_name
        self._sync_timeout_ms = sync_timeout_ms
        self._client = client or AsyncClient(
            homeserver_url,
            username,
            config=AsyncClientConfig(max_timeouts=MAX_TIMEOUTS),
        )

    @classmethod
    def from_config(cls, config: BotConfig) -> "MatrixChatClient":
        return cls(
            homeserver_url=config.matrix_homeserver_url,
            username=config.matrix_username,
            password=config.matrix_password,
            device_name=config.bot_display_name,
        )

    @property
    def user_id(self) -> Optional[str]:
        return self._client.user_id or None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ChatTransportError),
        reraise=True,
    )
    async def login(self) -> None:
        try:
            response = await self._client.login(
                self._password.get_secret_value(),
                device_name=self._device_name,
            )
        except TRANSPORT_ERRORS as e:
            raise ChatTransportError(f"Could not reach homeserver: {e}") from e

        if isinstance(response, LoginError):
            raise ChatSessionError(f"Login failed: {response.message}")

        logger.info("matrix_logged_in", user_id=self._client.user_id)

    async def join_room(self, room_id: str) -> None:
        try:
            response = await self._client.join(room_id)
        except TRANSPORT_ERRORS as e:
            raise ChatTransportError(f"Could not reach homeserver: {e}") from e

        if isinstance(response, JoinError):
            raise ChatSessionError(f"Failed to join {room_id}: {response.message}")

        logger.info("matrix_room_joined", room_id=room_id)

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(ChatTransportError),
        reraise=True,
    )
    async def _sync(self, since: Optional[str], timeout: int) -> SyncResponse:
        """
        One sync round-trip.

        Raises:
            ChatTransportError: Network trouble or a transient server error
            ChatSessionError: The access token is no longer valid
        """
        try:
            response = await self._client.sync(
                timeout=timeout,
                since=since,
                full_state=False,
            )
        except TRANSPORT_ERRORS as e:
            raise ChatTransportError(f"Sync failed: {e}") from e

        if isinstance(response, SyncError):
            if response.status_code in SESSION_ERROR_CODES:
                raise ChatSessionError(f"Session lost: {response.message}")
            raise ChatTransportError(f"Sync failed: {response.message}")

        return response

    async def events(self) -> AsyncIterator[ChatEvent]:
        # The first sync only establishes where "now" is; older messages
        # must not trigger commands again after a restart.
        response = await self._sync(since=None, timeout=0)
        since = response.next_batch

        while True:
            response = await self._sync(since=since, timeout=self._sync_timeout_ms)
            since = response.next_batch

            for room_id, room_info in response.rooms.join.items():
                for event in room_info.timeline.events:
                    yield to_chat_event(room_id, event)

    async def send_text(self, room_id: str, text: str) -> None:
        try:
            response = await self._client.room_send(
                room_id,
                message_type="m.room.message",
                content={"msgtype": "m.text", "body": text},
            )
        except TRANSPORT_ERRORS + (LocalProtocolError,) as e:
            raise ChatSendError(f"Failed to send to {room_id}: {e}") from e

        if isinstance(response, RoomSendError):
            raise ChatSendError(f"Failed to send to {room_id}: {response.message}")

    async def close(self) -> None:
        await self._client.close()
