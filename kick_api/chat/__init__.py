"""
Kick live chat over the Pusher WebSocket relay.
"""

from kick_api.chat.client import KickChatClient
from kick_api.chat.websocket import KickChatWebSocket
from kick_api.chat.models import (
    ChatBadge,
    ChatIdentity,
    ChatMessageMetadata,
    ChatSender,
    LiveChatMessage,
    PusherEvent,
)
from kick_api.chat.protocol import CHAT_MESSAGE_EVENT, PUSHER_URL, SessionState, SessionStats
from kick_api.chat.exceptions import (
    KickChatError,
    ConnectionError,
    TransportError,
    MaxReconnectAttemptsError,
)

__all__ = [
    "KickChatClient",
    "KickChatWebSocket",
    "ChatBadge",
    "ChatIdentity",
    "ChatMessageMetadata",
    "ChatSender",
    "LiveChatMessage",
    "PusherEvent",
    "CHAT_MESSAGE_EVENT",
    "PUSHER_URL",
    "SessionState",
    "SessionStats",
    "KickChatError",
    "ConnectionError",
    "TransportError",
    "MaxReconnectAttemptsError",
]
