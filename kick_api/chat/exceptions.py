"""
Custom exceptions for the Kick live chat client.
"""


class KickChatError(Exception):
    """Base exception for all Kick chat errors."""
    pass


class ConnectionError(KickChatError):
    """Failed to open the relay connection or complete the subscribe handshake."""
    pass


class TransportError(KickChatError):
    """Send or receive failed on an established session."""
    pass


class MaxReconnectAttemptsError(KickChatError):
    """Maximum reconnection attempts exceeded."""
    pass
