"""
WebSocket session with the Pusher relay for one Kick chatroom.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

import aiohttp

from kick_api.chat.exceptions import (
    ConnectionError as KickConnectionError,
    TransportError,
)
from kick_api.chat.models import LiveChatMessage, PusherEvent
from kick_api.chat.protocol import (
    CHAT_MESSAGE_EVENT,
    PUSHER_URL,
    PusherProtocol,
    SessionState,
    SessionStats,
    Step,
    decode_chat_message,
    ping_envelope,
)

logger = logging.getLogger(__name__)

_CLOSE_TYPES = (
    aiohttp.WSMsgType.CLOSE,
    aiohttp.WSMsgType.CLOSING,
    aiohttp.WSMsgType.CLOSED,
)


class KickChatWebSocket:
    """
    Subscription to a chatroom's public channel on the Pusher relay.

    One task must own a session: at most one operation may be in flight,
    the underlying websocket is not shared and there is no lock.

    Usage:
        chat = await KickChatWebSocket.connect(27670567)
        while (message := await chat.next_message()) is not None:
            print(f"{message.sender.username}: {message.content}")
    """

    def __init__(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        chatroom_id: int,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._ws = ws
        self._session = session
        self._protocol = PusherProtocol(chatroom_id)
        self._released = False

    @classmethod
    async def connect(
        cls,
        chatroom_id: int,
        url: str = PUSHER_URL,
        timeout: Optional[float] = None,
    ) -> "KickChatWebSocket":
        """
        Open a WebSocket to the relay and subscribe to a chatroom.

        Args:
            chatroom_id: The Kick chatroom ID
            url: Relay endpoint
            timeout: Optional deadline in seconds for connect and handshake

        Returns:
            Subscribed KickChatWebSocket instance

        Raises:
            ConnectionError: If the connection or the subscribe handshake fails
        """
        if timeout is None:
            return await cls._open(chatroom_id, url)

        try:
            return await asyncio.wait_for(cls._open(chatroom_id, url), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise KickConnectionError(
                f"Timeout subscribing to chatroom {chatroom_id} after {timeout}s"
            ) from e

    @classmethod
    async def _open(cls, chatroom_id: int, url: str) -> "KickChatWebSocket":
        logger.info(f"Connecting to relay for chatroom {chatroom_id}")

        session = aiohttp.ClientSession()
        try:
            # Transport pings must reach the session so it can answer them
            ws = await session.ws_connect(url, autoping=False)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            raise KickConnectionError(f"WebSocket connection failed: {e}") from e
        except BaseException:
            await session.close()
            raise

        instance = cls(ws=ws, chatroom_id=chatroom_id, session=session)
        try:
            await instance.handshake()
        except BaseException:
            await instance._abort()
            raise

        return instance

    async def handshake(self) -> None:
        """
        Wait for the connection to be established, subscribe, and wait for
        the subscription to succeed.

        Raises:
            ConnectionError: If the relay closes or the transport fails first
        """
        while not self._protocol.ready:
            try:
                step = await self._next_step()
            except TransportError as e:
                raise KickConnectionError(f"Handshake failed: {e}") from e

            if step.closed:
                await self._abort()
                raise KickConnectionError(
                    f"Connection closed while subscribing to {self.channel}"
                )

        logger.info(f"Subscribed to {self.channel}")

    async def _send_text(self, text: str) -> None:
        try:
            await self._ws.send_str(text)
        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            self._protocol.fail()
            raise TransportError(f"Failed to send message: {e}") from e

    async def _send_pong(self, payload: bytes) -> None:
        try:
            await self._ws.pong(payload)
        except Exception as e:
            logger.error(f"Failed to send pong: {e}")
            self._protocol.fail()
            raise TransportError(f"Failed to send pong: {e}") from e

    async def _receive(self) -> aiohttp.WSMessage:
        try:
            msg = await self._ws.receive()
        except Exception as e:
            logger.error(f"Error receiving message: {e}")
            self._protocol.fail()
            raise TransportError(f"Error receiving message: {e}") from e

        if msg.type == aiohttp.WSMsgType.ERROR:
            logger.error(f"WebSocket error: {self._ws.exception()}")
            self._protocol.fail()
            raise TransportError(f"WebSocket error: {self._ws.exception()}")

        return msg

    async def _next_step(self) -> Step:
        """Receive one frame, run it through the state machine and answer pings."""
        try:
            return await self._exchange()
        except asyncio.CancelledError:
            # An abandoned receive or reply must not leave a half-open socket behind
            self._protocol.fail()
            await self._abort()
            raise
        except TransportError:
            await self._abort()
            raise

    async def _exchange(self) -> Step:
        msg = await self._receive()

        if msg.type == aiohttp.WSMsgType.TEXT:
            step = self._protocol.on_text(msg.data)
        elif msg.type == aiohttp.WSMsgType.PING:
            step = self._protocol.on_ping(msg.data)
        elif msg.type in _CLOSE_TYPES:
            step = self._protocol.on_close()
        else:
            step = self._protocol.on_other()

        if step.pong is not None:
            logger.debug("Received transport PING, sending PONG")
            await self._send_pong(step.pong)
        if step.reply is not None:
            await self._send_text(step.reply)

        return step

    async def next_event(self) -> Optional[PusherEvent]:
        """
        Receive the next raw Pusher event on the subscribed channel.

        Pings are answered and protocol-internal events skipped without
        surfacing them.

        Returns:
            The next event, or None once the relay closed the connection

        Raises:
            TransportError: If sending or receiving fails
        """
        if self._protocol.closed:
            return None
        if not self._protocol.ready:
            raise RuntimeError("Session is not subscribed")

        while True:
            step = await self._next_step()

            if step.closed:
                logger.warning(f"Relay closed the connection for {self.channel}")
                await self._abort()
                return None

            if step.event is not None:
                return step.event

    async def next_message(self) -> Optional[LiveChatMessage]:
        """
        Receive the next chat message.

        Non-chat events and chat payloads that fail to decode are skipped.

        Returns:
            The next chat message, or None once the relay closed the connection

        Raises:
            TransportError: If sending or receiving fails
        """
        while True:
            event = await self.next_event()
            if event is None:
                return None

            if event.event != CHAT_MESSAGE_EVENT:
                continue

            # Data is double-encoded: the envelope carries it as a JSON string
            message = decode_chat_message(event.data)
            if message is None:
                self._protocol.stats.payloads_dropped += 1
                continue

            return message

    async def events(self) -> AsyncIterator[PusherEvent]:
        """Yield events until the relay closes the connection."""
        while True:
            event = await self.next_event()
            if event is None:
                return
            yield event

    async def messages(self) -> AsyncIterator[LiveChatMessage]:
        """Yield chat messages until the relay closes the connection."""
        while True:
            message = await self.next_message()
            if message is None:
                return
            yield message

    async def send_ping(self) -> None:
        """Send a Pusher-level ping to keep the connection alive."""
        await self._send_text(ping_envelope())
        logger.debug("Sent PING")

    async def close(self) -> None:
        """
        Close the WebSocket connection.

        Raises:
            TransportError: If the close handshake fails
        """
        if self._released:
            return

        self._released = True
        self._protocol.fail()

        try:
            if not self._ws.closed:
                await self._ws.close()
        except Exception as e:
            raise TransportError(f"Error closing WebSocket: {e}") from e
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None

        logger.info(f"WebSocket connection closed for {self.channel}")

    async def _abort(self) -> None:
        """Release the transport after a failure, keeping the original error."""
        try:
            await self.close()
        except TransportError as e:
            logger.warning(f"Error closing WebSocket: {e}")

    @property
    def chatroom_id(self) -> int:
        return self._protocol.chatroom_id

    @property
    def channel(self) -> str:
        """Pusher channel name of the subscribed chatroom."""
        return self._protocol.channel

    @property
    def state(self) -> SessionState:
        return self._protocol.state

    @property
    def closed(self) -> bool:
        """Check if the session is closed."""
        return self._protocol.closed

    @property
    def stats(self) -> SessionStats:
        """Counters of consumed pings and discarded frames."""
        return self._protocol.stats
