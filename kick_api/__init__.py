"""kick-api: typed client for Kick live chat."""

from kick_api.chat import (
    KickChatClient,
    KickChatWebSocket,
    LiveChatMessage,
    PusherEvent,
    KickChatError,
    ConnectionError,
    TransportError,
    MaxReconnectAttemptsError,
)

__version__ = "0.1.0"

__all__ = [
    "KickChatClient",
    "KickChatWebSocket",
    "LiveChatMessage",
    "PusherEvent",
    "KickChatError",
    "ConnectionError",
    "TransportError",
    "MaxReconnectAttemptsError",
]
