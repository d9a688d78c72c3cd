"""
Two-pass mastery drill.

Every item must be answered correctly twice in a row before it leaves the
active queue:
1. A first correct answer sends the item to the back of the queue.
2. A second consecutive correct answer masters it (removed for the session).
3. A wrong answer resets it and re-inserts it a few slots ahead.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from cadence.application.clock import SystemClock
from cadence.application.results import SessionResultRecorder
from cadence.domain.constants import (
    DEFAULT_REINSERT_DISTANCE,
    MS_PER_SECOND,
    XP_PER_MASTERED_ITEM,
)
from cadence.domain.models import SessionItemState, SessionWordResult
from cadence.domain.ports import Clock

logger = logging.getLogger(__name__)


@dataclass
class MasterySnapshot:
    """Complete drill state at session end (or quit)."""

    remaining_queue: list[str]
    item_states: dict[str, SessionItemState]
    mastered: list[str]
    results: list[SessionWordResult]
    xp: int
    started_at: int
    duration_seconds: int
    finished: bool = False


class MasteryQueueScheduler:
    """
    Live drill state for one study session.

    The front of `active_queue` is always the item being asked.
    """

    def __init__(
        self,
        item_ids: Sequence[str],
        start_index: int = 0,
        reinsert_distance: int = DEFAULT_REINSERT_DISTANCE,
        clock: Clock | None = None,
        recorder: SessionResultRecorder | None = None,
        on_finished: Callable[[MasterySnapshot], None] | None = None,
    ):
        """
        Args:
            item_ids: The session's items in presentation order.
            start_index: Resume point; items before it are not asked again.
            reinsert_distance: Slots ahead a missed item is put back
                (0 = immediately, 2 = soon, 5 = later).
            clock: Time source for result timestamps.
            recorder: Shared result log; a fresh one is created if omitted.
            on_finished: Called once with the final snapshot when the last
                item is mastered.
        """
        if reinsert_distance < 0:
            raise ValueError(f"reinsert_distance must be >= 0, got {reinsert_distance}")

        self.original_items = list(item_ids)
        self.reinsert_distance = reinsert_distance
        self.active_queue: list[str] = self.original_items[max(0, start_index):]
        self.mastered: set[str] = set()
        self.item_states: dict[str, SessionItemState] = {
            item_id: SessionItemState.UNSEEN for item_id in self.original_items
        }
        self.xp = 0
        self._clock = clock or SystemClock()
        self.recorder = recorder or SessionResultRecorder()
        self.on_finished = on_finished
        self.started_at = self._clock.now_ms()

    @property
    def current(self) -> str | None:
        return self.active_queue[0] if self.active_queue else None

    @property
    def mastered_count(self) -> int:
        return len(self.mastered)

    @property
    def is_finished(self) -> bool:
        return not self.active_queue and len(self.original_items) > 0

    def apply_rating(self, correct: bool, hint_used: bool = False) -> SessionItemState | None:
        """
        Grade the front item and reorder the queue.

        Returns the item's new state, or None when the queue is empty.
        """
        if not self.active_queue:
            return None

        item_id = self.active_queue.pop(0)
        self.recorder.record(item_id, correct, self._clock.now_ms(), hint_used)
        previous = self.item_states.get(item_id, SessionItemState.UNSEEN)

        if correct:
            if previous in (SessionItemState.UNSEEN, SessionItemState.FAIL):
                state = SessionItemState.PASS1
                self.active_queue.append(item_id)
            else:
                state = SessionItemState.PASS2
                if item_id not in self.mastered:
                    self.mastered.add(item_id)
                    self.xp += XP_PER_MASTERED_ITEM
        else:
            state = SessionItemState.FAIL
            position = min(self.reinsert_distance, len(self.active_queue))
            self.active_queue.insert(position, item_id)

        self.item_states[item_id] = state
        logger.debug(f"{item_id}: {previous.value} -> {state.value}")

        if self.is_finished:
            logger.info(
                f"Drill complete: {self.mastered_count} mastered in {len(self.recorder)} answers"
            )
            if self.on_finished is not None:
                self.on_finished(self.to_snapshot())
        return state

    def tracker(self) -> list[str]:
        """Active queue followed by mastered items, for the progress strip."""
        active = set(self.active_queue)
        done = [i for i in self.original_items if i in self.mastered and i not in active]
        return [*self.active_queue, *done]

    def to_snapshot(self) -> MasterySnapshot:
        now = self._clock.now_ms()
        return MasterySnapshot(
            remaining_queue=list(self.active_queue),
            item_states=dict(self.item_states),
            mastered=[i for i in self.original_items if i in self.mastered],
            results=list(self.recorder.results),
            xp=self.xp,
            started_at=self.started_at,
            duration_seconds=round((now - self.started_at) / MS_PER_SECOND),
            finished=self.is_finished,
        )
