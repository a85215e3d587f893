"""
In-Memory Chat Client

A ChatClientInterface that replays a scripted list of events and records
every message the bot sends. Lets the event loop run deterministically
without a homeserver.
"""

from typing import AsyncIterator, Iterable, Optional

from expense_bridge.models.chat import ChatEvent
from expense_bridge.services.chat.interface import (
    ChatClientInterface,
    ChatSendError,
    ChatSessionError,
)


class InMemoryChatClient(ChatClientInterface):
    """
    Scripted chat client.

    - `events()` yields the scripted events in order, then raises
      `session_error` if one is set, else ends the stream.
    - `sent` collects (room_id, text) for every successful send.
    - `failing_sends` makes that many upcoming sends raise ChatSendError.
    """

    def __init__(
        self,
        user_id: str = "@bot:example.org",
        events: Optional[Iterable[ChatEvent]] = None,
        login_error: Optional[ChatSessionError] = None,
        session_error: Optional[ChatSessionError] = None,
    ):
        self._user_id = user_id
        self.scripted_events = list(events or [])
        self.login_error = login_error
        self.session_error = session_error
        self.failing_sends = 0
        self.logged_in = False
        self.closed = False
        self.joined_rooms: list[str] = []
        self.sent: list[tuple[str, str]] = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def push(self, event: ChatEvent) -> None:
        self.scripted_events.append(event)

    async def login(self) -> None:
        if self.login_error is not None:
            raise self.login_error
        self.logged_in = True

    async def join_room(self, room_id: str) -> None:
        self.joined_rooms.append(room_id)

    async def events(self) -> AsyncIterator[ChatEvent]:
        for event in self.scripted_events:
            yield event
        if self.session_error is not None:
            raise self.session_error

    async def send_text(self, room_id: str, text: str) -> None:
        if self.failing_sends > 0:
            self.failing_sends -= 1
            raise ChatSendError(f"Simulated send failure to {room_id}")
        self.sent.append((room_id, text))

    async def close(self) -> None:
        self.closed = True
