"""Chat message collector writing events.jsonl for a Kick chatroom."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from kick_api.chat import KickChatClient, LiveChatMessage
from kick_api.models import ChatRecord

logger = logging.getLogger(__name__)


class Collector:
    """Collects chat messages from one chatroom into a JSONL file."""

    def __init__(
        self,
        chatroom_id: int,
        output_dir: Path,
        client: Optional[KickChatClient] = None,
    ):
        self.chatroom_id = chatroom_id
        self.output_dir = output_dir
        self.client = client or KickChatClient(chatroom_id)
        self.events_file = output_dir / "events.jsonl"
        self.event_count = 0
        self.start_time: Optional[datetime] = None
        self.last_event_time: Optional[datetime] = None

        @self.client.event
        async def on_chat(message: LiveChatMessage):
            self.save_message(message)

        @self.client.event
        async def on_connect():
            logger.info(f"Collecting chatroom {self.chatroom_id} into {self.events_file}")

    async def start(self):
        """Run the client and collect until stopped."""
        self.start_time = datetime.now(timezone.utc)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        try:
            await self.client.start()
        finally:
            logger.info(
                f"Collection stopped. Total events: {self.event_count}, "
                f"Duration: {datetime.now(timezone.utc) - self.start_time}"
            )

    async def stop(self):
        """Stop collecting messages."""
        await self.client.stop()

    def save_message(self, message: LiveChatMessage) -> ChatRecord:
        """Append a message to events.jsonl."""
        self.last_event_time = datetime.now(timezone.utc)
        record = ChatRecord.from_message(self.chatroom_id, message, self.last_event_time)

        with open(self.events_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n")

        self.event_count += 1
        if self.event_count % 100 == 0:
            logger.info(f"Collected {self.event_count} events")

        return record

    def generate_report(self) -> dict:
        """Generate collection report."""
        return {
            "chatroom_id": self.chatroom_id,
            "event_count": self.event_count,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": datetime.now(timezone.utc).isoformat(),
            "events_file": str(self.events_file),
            "reconnect_count": self.client.total_reconnects,
            "error_count": self.client.total_errors,
        }
