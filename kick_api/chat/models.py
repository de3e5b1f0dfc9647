"""
Message models for Kick live chat.

Relay frames are decoded in two stages: the outer Pusher envelope, whose
``data`` field is a JSON string, and the chat message carried inside it.
"""

import json
import logging
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Relay ids and counts are JSON integers; floats, strings and negatives are rejected
UnsignedInt = Annotated[int, Field(strict=True, ge=0)]


class PusherMessage(BaseModel):
    """Pusher wire envelope (outer layer of every inbound frame)."""

    model_config = ConfigDict(extra="ignore")

    event: str
    channel: Optional[str] = None
    data: str

    @field_validator("data", mode="before")
    @classmethod
    def _stringify_data(cls, value: Any) -> Any:
        # pusher:ping and a few control events carry an object instead of a string
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    @classmethod
    def from_json_string(cls, text: str) -> Optional["PusherMessage"]:
        """
        Parse a Pusher envelope from a text frame.

        Args:
            text: Raw text frame

        Returns:
            PusherMessage instance or None if the frame is not an envelope
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            logger.debug(f"Discarding malformed frame: {e.error_count()} error(s)")
            return None


class PusherCommand(BaseModel):
    """Outbound envelope sent to the relay."""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)


class PusherEvent(BaseModel):
    """A raw Pusher event received on the subscribed channel."""

    event: str
    channel: Optional[str] = None
    data: str  # Still JSON text, the relay double-encodes it


class ChatBadge(BaseModel):
    """A badge displayed next to a user's name."""

    type: str
    text: str
    count: Optional[UnsignedInt] = None  # e.g. subscription months


class ChatIdentity(BaseModel):
    """Visual identity of a chat sender."""

    color: str
    badges: list[ChatBadge]


class ChatSender(BaseModel):
    """Sender of a live chat message."""

    id: UnsignedInt
    username: str
    slug: Optional[str] = None
    identity: ChatIdentity


class OriginalSender(BaseModel):
    username: str


class OriginalMessage(BaseModel):
    content: str


class ChatMessageMetadata(BaseModel):
    """Reply metadata attached to a message."""

    original_sender: Optional[OriginalSender] = None
    original_message: Optional[OriginalMessage] = None


class LiveChatMessage(BaseModel):
    """A live chat message received over the relay."""

    id: str
    chatroom_id: Optional[UnsignedInt] = None
    content: str
    type: str  # "message" or "reply"
    created_at: Optional[str] = None
    sender: ChatSender
    metadata: Optional[ChatMessageMetadata] = None

    @property
    def is_reply(self) -> bool:
        return self.metadata is not None and self.metadata.original_message is not None

    @classmethod
    def from_json_string(cls, data: str) -> Optional["LiveChatMessage"]:
        """
        Parse a chat message from the inner ``data`` string of an event.

        Args:
            data: JSON string carried by a ChatMessageEvent

        Returns:
            LiveChatMessage instance or None if the payload is invalid
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            logger.debug(f"Dropping unparseable chat payload: {e.error_count()} error(s)")
            return None
