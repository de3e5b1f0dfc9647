"""
Kick live chat client with event handlers and automatic reconnection.
"""

import inspect
import logging
from typing import Callable, Dict, Optional

from kick_api.chat.exceptions import (
    ConnectionError as KickConnectionError,
    MaxReconnectAttemptsError,
    TransportError,
)
from kick_api.chat.models import PusherEvent
from kick_api.chat.protocol import CHAT_MESSAGE_EVENT, PUSHER_URL, decode_chat_message
from kick_api.chat.reconnect import ReconnectionManager
from kick_api.chat.websocket import KickChatWebSocket

logger = logging.getLogger(__name__)


class KickChatClient:
    """
    Chat client that owns one relay session at a time and feeds
    registered handlers, reconnecting with backoff when the session ends.
    """

    def __init__(
        self,
        chatroom_id: int,
        max_reconnect_attempts: int = 10,
        max_backoff: float = 60.0,
        initial_backoff: float = 1.0,
        url: str = PUSHER_URL,
        connect_timeout: Optional[float] = None,
    ):
        """
        Initialize chat client.

        Args:
            chatroom_id: The Kick chatroom ID
            max_reconnect_attempts: Maximum consecutive reconnection attempts (0 = unlimited)
            max_backoff: Maximum backoff time in seconds
            initial_backoff: Backoff before the first reconnect in seconds
            url: Relay endpoint
            connect_timeout: Optional deadline for each connect and handshake
        """
        self._chatroom_id = chatroom_id
        self._url = url
        self._connect_timeout = connect_timeout

        self._websocket: Optional[KickChatWebSocket] = None
        self._reconnection_manager = ReconnectionManager(
            initial_backoff=initial_backoff,
            max_backoff=max_backoff,
            max_attempts=max_reconnect_attempts,
        )

        self._running = False
        self._event_handlers: Dict[str, Callable] = {}

        self._total_reconnects = 0
        self._total_errors = 0
        self._total_messages = 0

        logger.info(f"Initialized KickChatClient for chatroom {chatroom_id}")

    def event(self, func: Callable) -> Callable:
        """
        Decorator for registering event handlers by function name.

        Usage:
            @client.event
            async def on_chat(message: LiveChatMessage):
                print(f"{message.sender.username}: {message.content}")

        Supported events:
            - on_connect(): Called after each successful subscription
            - on_disconnect(): Called when a subscribed session ends
            - on_event(event: PusherEvent): Called for every channel event
            - on_chat(message: LiveChatMessage): Called for chat messages
        """
        self._event_handlers[func.__name__] = func
        logger.debug(f"Registered event handler: {func.__name__}")
        return func

    async def _dispatch_event(self, event_name: str, *args) -> None:
        handler = self._event_handlers.get(event_name)
        if handler is None:
            return
        try:
            result = handler(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error in event handler {event_name}: {e}", exc_info=True)

    async def _handle_event(self, event: PusherEvent) -> None:
        await self._dispatch_event("on_event", event)

        if event.event != CHAT_MESSAGE_EVENT:
            return

        message = decode_chat_message(event.data)
        if message is None:
            if self._websocket is not None:
                self._websocket.stats.payloads_dropped += 1
            return

        self._total_messages += 1
        await self._dispatch_event("on_chat", message)

    async def _release(self) -> None:
        if self._websocket is None:
            return
        websocket, self._websocket = self._websocket, None
        try:
            await websocket.close()
        except TransportError as e:
            logger.warning(f"Error closing session: {e}")

    async def start(self) -> None:
        """
        Run the client until stop() is called.

        Raises:
            MaxReconnectAttemptsError: If max reconnection attempts exceeded
        """
        self._running = True
        logger.info("Starting chat client...")

        try:
            await self._run()
        finally:
            # Also reached when the task running start() is cancelled
            await self._release()

        logger.info("Chat client stopped")

    async def _run(self) -> None:
        while self._running:
            subscribed = False
            try:
                self._websocket = await KickChatWebSocket.connect(
                    self._chatroom_id,
                    url=self._url,
                    timeout=self._connect_timeout,
                )
                subscribed = True
                self._reconnection_manager.reset()
                await self._dispatch_event("on_connect")

                while self._running:
                    event = await self._websocket.next_event()
                    if event is None:
                        logger.warning("Connection closed by relay")
                        break
                    await self._handle_event(event)

            except (KickConnectionError, TransportError) as e:
                logger.warning(f"Connection lost: {e}")
                self._total_errors += 1

            await self._release()

            if subscribed:
                await self._dispatch_event("on_disconnect")

            if not self._running:
                break

            if not await self._reconnection_manager.wait_before_reconnect():
                raise MaxReconnectAttemptsError(
                    f"Failed to reconnect after {self._reconnection_manager.attempts} attempts"
                )
            self._total_reconnects += 1

    async def stop(self) -> None:
        """Stop the chat client."""
        logger.info("Stopping chat client...")
        self._running = False
        await self._release()

    async def close(self) -> None:
        """Alias for stop()."""
        await self.stop()

    @property
    def is_connected(self) -> bool:
        return self._websocket is not None and not self._websocket.closed

    @property
    def total_reconnects(self) -> int:
        return self._total_reconnects

    @property
    def total_errors(self) -> int:
        return self._total_errors

    @property
    def total_messages(self) -> int:
        """Chat messages delivered to on_chat."""
        return self._total_messages
