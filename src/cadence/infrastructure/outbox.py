"""
Outbox adapters for the SnapshotSink port.

Snapshots are enqueued and the call returns immediately; an external sync
worker drains the queue. Every message carries a complete record, so a
later message for the same record simply replaces the earlier one.
"""

import logging
import time
from collections import deque
from pathlib import Path
from typing import Any

from cadence.domain.ports import SnapshotSink
from cadence.infrastructure.records import OutboxMessage

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryOutbox(SnapshotSink):
    """In-process queue. Used by tests and dry runs."""

    def __init__(self):
        self.messages: deque[OutboxMessage] = deque()

    def push(self, message_type: str, payload: dict[str, Any]) -> str:
        message = OutboxMessage(type=message_type, created_at=_now_ms(), payload=payload)
        self.messages.append(message)
        logger.debug(f"Queued {message.type} {message.id}")
        return message.id

    def drain(self) -> list[OutboxMessage]:
        """Remove and return every pending message, oldest first."""
        drained = list(self.messages)
        self.messages.clear()
        return drained

    def __len__(self) -> int:
        return len(self.messages)


class JsonlOutbox(SnapshotSink):
    """Appends one JSON message per line to a local file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def push(self, message_type: str, payload: dict[str, Any]) -> str:
        message = OutboxMessage(type=message_type, created_at=_now_ms(), payload=payload)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(message.model_dump_json(by_alias=True) + "\n")
        logger.debug(f"Queued {message.type} {message.id} -> {self.path}")
        return message.id

    def pending(self) -> list[OutboxMessage]:
        """Messages written so far, oldest first. Blank lines are skipped."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [OutboxMessage.model_validate_json(line) for line in f if line.strip()]
