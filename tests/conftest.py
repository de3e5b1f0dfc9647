"""Fixtures and fakes for relay tests."""

import asyncio
import json
from collections import namedtuple
from typing import Any, Optional

import aiohttp
import pytest

from kick_api.chat.protocol import (
    CHAT_MESSAGE_EVENT,
    CONNECTION_ESTABLISHED,
    SUBSCRIPTION_SUCCEEDED,
)

Frame = namedtuple("Frame", ["type", "data", "extra"])


class FrameFactory:
    """Builds inbound relay frames for one chatroom."""

    chatroom_id = 27670567
    channel = "chatrooms.27670567.v2"

    def text(self, payload: Any) -> Frame:
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        return Frame(aiohttp.WSMsgType.TEXT, payload, None)

    def envelope(self, event: str, data: Any = "{}", channel: Optional[str] = None) -> Frame:
        envelope = {"event": event, "data": data}
        if channel is not None:
            envelope["channel"] = channel
        return self.text(envelope)

    def ping(self, payload: bytes = b"keepalive") -> Frame:
        return Frame(aiohttp.WSMsgType.PING, payload, None)

    def close(self) -> Frame:
        return Frame(aiohttp.WSMsgType.CLOSE, 1000, "")

    def error(self) -> Frame:
        return Frame(aiohttp.WSMsgType.ERROR, None, None)

    def chat_payload(self, message_id: str = "1", content: str = "hi", **overrides) -> dict:
        payload = {
            "id": message_id,
            "chatroom_id": self.chatroom_id,
            "content": content,
            "type": "message",
            "created_at": "2025-01-01T12:00:00+00:00",
            "sender": {
                "id": 5,
                "username": "bob",
                "slug": "bob",
                "identity": {
                    "color": "#75FD46",
                    "badges": [{"type": "subscriber", "text": "Subscriber", "count": 3}],
                },
            },
        }
        payload.update(overrides)
        return payload

    def chat(self, payload: Any) -> Frame:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        return self.envelope(CHAT_MESSAGE_EVENT, data, channel=self.channel)

    def handshake(self) -> list:
        return [
            self.envelope(
                CONNECTION_ESTABLISHED,
                json.dumps({"socket_id": "123.456", "activity_timeout": 120}),
            ),
            self.envelope(SUBSCRIPTION_SUCCEEDED, "{}", channel=self.channel),
        ]


class FakeWebSocket:
    """Stands in for aiohttp.ClientWebSocketResponse."""

    def __init__(self, frames, block_when_empty: bool = False, send_error: Optional[Exception] = None):
        self.frames = list(frames)
        self.block_when_empty = block_when_empty
        self.block_send = False
        self.send_error = send_error
        self.sent: list[str] = []
        self.pongs: list[bytes] = []
        self.closed = False
        self.close_calls = 0

    async def receive(self):
        if self.frames:
            frame = self.frames.pop(0)
            if isinstance(frame, Exception):
                raise frame
            return frame
        if self.block_when_empty:
            await asyncio.Event().wait()
        return Frame(aiohttp.WSMsgType.CLOSED, None, None)

    async def send_str(self, data: str) -> None:
        if self.block_send:
            await asyncio.Event().wait()
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    async def pong(self, message: bytes = b"") -> None:
        self.pongs.append(message)

    async def close(self) -> bool:
        self.close_calls += 1
        self.closed = True
        return True

    def exception(self):
        return RuntimeError("boom")

    @property
    def sent_envelopes(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]


class FakeSession:
    """Stands in for aiohttp.ClientSession."""

    def __init__(self, ws: Optional[FakeWebSocket] = None, error: Optional[Exception] = None):
        self.ws = ws
        self.error = error
        self.closed = False
        self.url = None
        self.kwargs = None

    async def ws_connect(self, url, **kwargs):
        self.url = url
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.ws

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def frames() -> FrameFactory:
    return FrameFactory()


@pytest.fixture
def fake_ws():
    """Factory for fake websockets."""
    return FakeWebSocket


@pytest.fixture
def fake_session():
    """Factory for fake HTTP sessions."""
    return FakeSession


@pytest.fixture
def message_payload(frames) -> dict:
    return frames.chat_payload()
