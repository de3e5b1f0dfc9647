"""Data models and settings for kick-api."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from kick_api.chat.models import LiveChatMessage
from kick_api.chat.protocol import PUSHER_URL


class ChatRecord(BaseModel):
    """Chat message record matching the events.jsonl schema."""

    chatroom_id: int
    message_id: str
    type: str
    user: str
    user_id: int
    text: str
    created_at: Optional[str] = None  # As sent by the relay
    received_at: datetime
    reply_to: Optional[str] = None  # Username of the original sender

    @classmethod
    def from_message(
        cls, chatroom_id: int, message: LiveChatMessage, received_at: datetime
    ) -> "ChatRecord":
        reply_to = None
        if message.metadata and message.metadata.original_sender:
            reply_to = message.metadata.original_sender.username

        return cls(
            chatroom_id=message.chatroom_id or chatroom_id,
            message_id=message.id,
            type=message.type,
            user=message.sender.username,
            user_id=message.sender.id,
            text=message.content,
            created_at=message.created_at,
            received_at=received_at,
            reply_to=reply_to,
        )


class Config(BaseModel):
    """Configuration model."""

    # Relay settings
    relay_url: str = PUSHER_URL
    connect_timeout: Optional[float] = 15.0

    # Reconnect settings
    max_reconnect_attempts: int = 10
    initial_backoff: float = 1.0
    max_backoff: float = 60.0

    # Output settings
    outdir: str = "output"
    log_level: str = "INFO"
