"""Tests for the envelope codec and session state machine."""

import json

from kick_api.chat.protocol import (
    CHAT_MESSAGE_EVENT,
    CONNECTION_ESTABLISHED,
    SUBSCRIPTION_SUCCEEDED,
    PusherProtocol,
    SessionState,
    channel_name,
    is_internal,
    ping_envelope,
    pong_envelope,
    subscribe_envelope,
)


def _envelope(event, data="{}", channel=None):
    envelope = {"event": event, "data": data}
    if channel:
        envelope["channel"] = channel
    return json.dumps(envelope)


def _ready_protocol() -> PusherProtocol:
    protocol = PusherProtocol(27670567)
    protocol.on_text(_envelope(CONNECTION_ESTABLISHED))
    protocol.on_text(_envelope(SUBSCRIPTION_SUCCEEDED))
    return protocol


def test_channel_name():
    assert channel_name(27670567) == "chatrooms.27670567.v2"


def test_outbound_envelopes():
    """Test the shape of subscribe, ping and pong commands."""
    assert json.loads(subscribe_envelope("chatrooms.1.v2")) == {
        "event": "pusher:subscribe",
        "data": {"auth": "", "channel": "chatrooms.1.v2"},
    }
    assert json.loads(ping_envelope()) == {"event": "pusher:ping", "data": {}}
    assert json.loads(pong_envelope()) == {"event": "pusher:pong", "data": {}}


def test_is_internal():
    assert is_internal("pusher:connection_established")
    assert is_internal("pusher_internal:member_added")
    assert not is_internal(CHAT_MESSAGE_EVENT)
    assert not is_internal("pusherish")


def test_handshake_transitions():
    """Test CONNECTING -> SUBSCRIBING -> READY."""
    protocol = PusherProtocol(27670567)
    assert protocol.state is SessionState.CONNECTING

    step = protocol.on_text(_envelope(CONNECTION_ESTABLISHED))
    assert protocol.state is SessionState.SUBSCRIBING
    assert json.loads(step.reply) == json.loads(subscribe_envelope("chatrooms.27670567.v2"))

    step = protocol.on_text(_envelope(SUBSCRIPTION_SUCCEEDED))
    assert protocol.state is SessionState.READY
    assert step.reply is None
    assert step.event is None


def test_events_before_ready_are_discarded():
    """Test that nothing is surfaced before the subscription succeeds."""
    protocol = PusherProtocol(27670567)

    step = protocol.on_text(_envelope(CHAT_MESSAGE_EVENT))
    assert step.discarded
    assert protocol.state is SessionState.CONNECTING

    protocol.on_text(_envelope(CONNECTION_ESTABLISHED))
    step = protocol.on_text(_envelope(CHAT_MESSAGE_EVENT))
    assert step.discarded
    assert step.event is None
    assert protocol.state is SessionState.SUBSCRIBING


def test_pings_answered_in_every_live_state():
    """Test that both ping kinds get exactly one pong."""
    protocol = PusherProtocol(27670567)

    assert protocol.on_ping(b"abc").pong == b"abc"
    assert json.loads(protocol.on_text(_envelope("pusher:ping")).reply)["event"] == "pusher:pong"

    protocol = _ready_protocol()
    step = protocol.on_text('{"event": "pusher:ping", "data": {}}')
    assert json.loads(step.reply)["event"] == "pusher:pong"
    assert step.event is None
    assert protocol.on_ping(None).pong == b""

    assert protocol.stats.protocol_pings == 1
    assert protocol.stats.transport_pings == 1


def test_reserved_prefixes_filtered():
    """Test that protocol-internal events never become events."""
    protocol = _ready_protocol()

    for name in ("pusher:cache_miss", "pusher_internal:member_added", SUBSCRIPTION_SUCCEEDED):
        step = protocol.on_text(_envelope(name))
        assert step.discarded
        assert step.event is None

    assert protocol.stats.frames_discarded == 3


def test_ready_surfaces_events():
    """Test that channel events keep name, channel and raw data."""
    protocol = _ready_protocol()

    step = protocol.on_text(_envelope("App\\Events\\PinnedMessageCreatedEvent", '{"a": 1}', "chatrooms.27670567.v2"))

    assert step.event.event == "App\\Events\\PinnedMessageCreatedEvent"
    assert step.event.channel == "chatrooms.27670567.v2"
    assert step.event.data == '{"a": 1}'


def test_malformed_and_binary_frames_discarded():
    protocol = _ready_protocol()

    assert protocol.on_text("not json").discarded
    assert protocol.on_other().discarded
    assert protocol.state is SessionState.READY


def test_close_is_terminal():
    """Test that every frame after close reports end of stream."""
    protocol = _ready_protocol()

    assert protocol.on_close().closed
    assert protocol.state is SessionState.CLOSED
    assert protocol.on_text(_envelope(CHAT_MESSAGE_EVENT)).closed
    assert protocol.on_ping(b"x").closed
    assert protocol.on_other().closed


def test_fail_closes():
    protocol = PusherProtocol(1)
    protocol.fail()
    assert protocol.closed
