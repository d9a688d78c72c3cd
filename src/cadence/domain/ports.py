"""
Ports (interfaces) for the scheduling engine.

These define the contract that infrastructure adapters and pluggable
policies must implement. Schedulers depend on these abstractions, not
concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol

from .models import AnkiConfig, Card


class Clock(Protocol):
    """Wall-clock source. Read once per scheduling operation."""

    def now_ms(self) -> int: ...

    def today_start_ms(self) -> int: ...


class SnapshotSink(ABC):
    """
    Port for handing scheduler snapshots to the persistence collaborator.

    Implementations:
        - MemoryOutbox: keeps messages in process (tests, dry runs).
        - JsonlOutbox: appends messages to a JSON-lines file.
    """

    @abstractmethod
    def push(self, message_type: str, payload: dict[str, Any]) -> str:
        """
        Enqueue one complete snapshot and return immediately.

        Args:
            message_type: Outbox action type (e.g. UPSERT_STUDY_SET).
            payload: JSON-ready snapshot; replaces the stored record wholesale.

        Returns:
            The id of the enqueued message.
        """
        pass


class GradingStrategy(ABC):
    """
    Port for the review-due rating transition.

    Given a card and a quality, produce the card's next state, interval,
    ease factor, due timestamp, step and lapse count.
    """

    @abstractmethod
    def grade(
        self,
        card: Card,
        quality: int,
        config: AnkiConfig,
        now_ms: int,
        today_start_ms: int,
    ) -> Card:
        """Return a new Card; the input card is left untouched."""
        pass
