"""
Exponential backoff between relay reconnects.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class ReconnectionManager:
    """
    Tracks consecutive reconnect attempts and how long to wait before each.

    Delays double from ``initial_backoff`` up to ``max_backoff``
    (1s, 2s, 4s, ... 60s) and start over after ``reset()``.
    """

    def __init__(
        self,
        initial_backoff: float = 1.0,
        max_backoff: float = 60.0,
        max_attempts: int = 10,
    ):
        """
        Args:
            initial_backoff: Delay before the first reconnect, in seconds
            max_backoff: Upper bound on the delay, in seconds
            max_attempts: Consecutive attempts allowed (0 = unlimited)
        """
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._max_attempts = max_attempts
        self._attempts = 0

    def next_delay(self) -> float:
        """Delay that the next attempt would wait."""
        return min(self._initial_backoff * (2.0 ** self._attempts), self._max_backoff)

    @property
    def exhausted(self) -> bool:
        return self._max_attempts > 0 and self._attempts >= self._max_attempts

    async def wait_before_reconnect(self) -> bool:
        """
        Sleep for the current backoff and count the attempt.

        Returns:
            True if a reconnect should be attempted, False once attempts are exhausted
        """
        if self.exhausted:
            logger.error(f"Max reconnection attempts ({self._max_attempts}) exceeded")
            return False

        delay = self.next_delay()
        self._attempts += 1

        limit = f"/{self._max_attempts}" if self._max_attempts > 0 else ""
        logger.info(f"Reconnection attempt {self._attempts}{limit} in {delay:.1f}s")

        await asyncio.sleep(delay)
        return True

    def reset(self) -> None:
        """Forget previous attempts after a successful subscription."""
        if self._attempts > 0:
            logger.info(f"Subscribed again after {self._attempts} attempts")
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts
