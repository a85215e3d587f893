"""
Chat Event Model

The chat client hands the event loop one ChatEvent per room timeline
event. Only TEXT events carry a body worth parsing; everything else is
passed through as OTHER so the loop can log and skip it.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatEventKind(str, Enum):
    TEXT = "text"
    OTHER = "other"


class ChatEvent(BaseModel):
    """A single inbound room event."""
    model_config = ConfigDict(frozen=True)

    room_id: str = Field(..., description="Room the event was sent in")
    sender: str = Field(..., description="Full user id of the sender, e.g. @alice:example.org")
    kind: ChatEventKind = ChatEventKind.TEXT
    body: Optional[str] = Field(
        default=None,
        description="Plain-text body (TEXT events only)"
    )
    event_id: Optional[str] = None
    timestamp: Optional[datetime] = Field(
        default=None,
        description="Origin server timestamp"
    )

    @property
    def is_text(self) -> bool:
        return self.kind == ChatEventKind.TEXT and self.body is not None

    @property
    def sender_localpart(self) -> str:
        """`@alice:example.org` -> `alice`"""
        localpart = self.sender
        if localpart.startswith("@"):
            localpart = localpart[1:]
        return localpart.split(":", 1)[0]
