"""
Pusher protocol codec and session state machine.

The state machine never touches a socket: each inbound frame category has
one transition that returns a Step telling the transport what to do.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from kick_api.chat.models import LiveChatMessage, PusherCommand, PusherEvent, PusherMessage

logger = logging.getLogger(__name__)

PUSHER_URL = (
    "wss://ws-us2.pusher.com/app/32cbd69e4b950bf97679"
    "?protocol=7&client=js&version=8.4.0&flash=false"
)

CONNECTION_ESTABLISHED = "pusher:connection_established"
SUBSCRIBE = "pusher:subscribe"
SUBSCRIPTION_SUCCEEDED = "pusher_internal:subscription_succeeded"
PING = "pusher:ping"
PONG = "pusher:pong"
INTERNAL_PREFIXES = ("pusher:", "pusher_internal:")

CHAT_MESSAGE_EVENT = "App\\Events\\ChatMessageEvent"


class SessionState(str, Enum):
    """Lifecycle of a relay session."""

    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    READY = "ready"
    CLOSED = "closed"


def channel_name(chatroom_id: int) -> str:
    """Public Pusher channel for a chatroom."""
    return f"chatrooms.{chatroom_id}.v2"


def encode_envelope(event: str, data: Optional[dict[str, Any]] = None) -> str:
    """Serialize an outbound envelope to JSON text."""
    return PusherCommand(event=event, data=data or {}).model_dump_json()


def subscribe_envelope(channel: str) -> str:
    return encode_envelope(SUBSCRIBE, {"auth": "", "channel": channel})


def ping_envelope() -> str:
    return encode_envelope(PING)


def pong_envelope() -> str:
    return encode_envelope(PONG)


def decode_envelope(text: str) -> Optional[PusherMessage]:
    """Decode the outer envelope of a text frame, None if malformed."""
    return PusherMessage.from_json_string(text)


def decode_chat_message(data: str) -> Optional[LiveChatMessage]:
    """Decode the inner chat payload of an event, None if unparseable."""
    return LiveChatMessage.from_json_string(data)


def is_internal(event: str) -> bool:
    """Check if an event name belongs to the relay's reserved namespaces."""
    return event.startswith(INTERNAL_PREFIXES)


@dataclass
class SessionStats:
    """Counters for frames the session consumed without surfacing them."""

    frames_received: int = 0
    transport_pings: int = 0
    protocol_pings: int = 0
    frames_discarded: int = 0
    payloads_dropped: int = 0


@dataclass
class Step:
    """Outcome of feeding one inbound frame to the state machine."""

    reply: Optional[str] = None  # Text frame to send back
    pong: Optional[bytes] = None  # Transport-level pong payload
    event: Optional[PusherEvent] = None
    closed: bool = False
    discarded: bool = False


class PusherProtocol:
    """
    Session state machine for one chatroom subscription.

    CONNECTING -> SUBSCRIBING on pusher:connection_established,
    SUBSCRIBING -> READY on pusher_internal:subscription_succeeded,
    any state -> CLOSED on close or transport failure.
    """

    def __init__(self, chatroom_id: int):
        self.chatroom_id = chatroom_id
        self.channel = channel_name(chatroom_id)
        self.state = SessionState.CONNECTING
        self.stats = SessionStats()

    @property
    def ready(self) -> bool:
        return self.state is SessionState.READY

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def _discard(self, reason: str) -> Step:
        self.stats.frames_discarded += 1
        logger.debug(f"Discarded frame ({reason})")
        return Step(discarded=True)

    def on_ping(self, payload: Optional[bytes]) -> Step:
        """Transport-level ping: echo the payload in a pong."""
        self.stats.frames_received += 1
        if self.closed:
            return Step(closed=True)
        self.stats.transport_pings += 1
        return Step(pong=payload or b"")

    def on_close(self) -> Step:
        """Close control frame from the relay."""
        self.stats.frames_received += 1
        if not self.closed:
            logger.debug(f"Relay closed connection in state {self.state.value}")
        self.state = SessionState.CLOSED
        return Step(closed=True)

    def on_other(self) -> Step:
        """Binary, pong and other frames carry nothing for us."""
        self.stats.frames_received += 1
        if self.closed:
            return Step(closed=True)
        return self._discard("non-text frame")

    def fail(self) -> None:
        """Transport error or local close: the session is over."""
        self.state = SessionState.CLOSED

    def on_text(self, text: str) -> Step:
        """Text frame: decode the envelope and advance the state machine."""
        self.stats.frames_received += 1
        if self.closed:
            return Step(closed=True)

        envelope = decode_envelope(text)
        if envelope is None:
            return self._discard("malformed envelope")

        if envelope.event == PING:
            self.stats.protocol_pings += 1
            return Step(reply=pong_envelope())

        if self.state is SessionState.CONNECTING:
            if envelope.event == CONNECTION_ESTABLISHED:
                self.state = SessionState.SUBSCRIBING
                logger.debug(f"Connection established, subscribing to {self.channel}")
                return Step(reply=subscribe_envelope(self.channel))
            return self._discard(f"{envelope.event} before connection established")

        if self.state is SessionState.SUBSCRIBING:
            if envelope.event == SUBSCRIPTION_SUCCEEDED:
                self.state = SessionState.READY
                return Step()
            return self._discard(f"{envelope.event} before subscription succeeded")

        if is_internal(envelope.event):
            return self._discard(envelope.event)

        return Step(
            event=PusherEvent(
                event=envelope.event,
                channel=envelope.channel,
                data=envelope.data,
            )
        )
