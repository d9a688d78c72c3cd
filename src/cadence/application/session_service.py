"""
Session orchestration.

Builds a scheduler from a saved progress record, and on finish or quit
hands one complete snapshot to the outbox. Both exits produce the same
snapshot shape; the push is never awaited.
"""

import logging
import random
from collections.abc import Sequence

from cadence.application.clock import SystemClock
from cadence.application.confidence import ConfidenceIntervalScheduler
from cadence.application.grading import Sm2GradingStrategy
from cadence.application.mastery_queue import MasteryQueueScheduler
from cadence.application.review_due import ReviewDueScheduler
from cadence.domain.constants import (
    DEFAULT_REINSERT_DISTANCE,
    UPSERT_MASTERY,
    UPSERT_ROWS,
    UPSERT_STUDY_SET,
)
from cadence.domain.intervals import IntervalConfig
from cadence.domain.models import AnkiProgress, Catalog, ConfidenceProgress
from cadence.domain.ports import Clock, GradingStrategy, SnapshotSink
from cadence.infrastructure.records import (
    ConfidenceProgressRecord,
    MasterySessionRecord,
    ReviewSessionRecord,
)

logger = logging.getLogger(__name__)

Scheduler = MasteryQueueScheduler | ConfidenceIntervalScheduler | ReviewDueScheduler


class SessionService:
    def __init__(
        self,
        sink: SnapshotSink,
        clock: Clock | None = None,
        grading: GradingStrategy | None = None,
        rng: random.Random | None = None,
        reinsert_distance: int = DEFAULT_REINSERT_DISTANCE,
        interval_config: IntervalConfig | None = None,
    ):
        self.sink = sink
        self.clock = clock or SystemClock()
        self.grading = grading or Sm2GradingStrategy()
        self.rng = rng or random.Random()
        self.reinsert_distance = reinsert_distance
        self.interval_config = interval_config

    # ------------------------------------------------------------------
    # Session start
    # ------------------------------------------------------------------

    def start_mastery(
        self, item_ids: Sequence[str], start_index: int = 0
    ) -> MasteryQueueScheduler | None:
        scheduler = MasteryQueueScheduler(
            item_ids,
            start_index=start_index,
            reinsert_distance=self.reinsert_distance,
            clock=self.clock,
        )
        if not scheduler.active_queue:
            logger.info("Nothing to study: mastery queue is empty")
            return None
        return scheduler

    def start_confidence(
        self, progress: ConfidenceProgress, catalog: Catalog
    ) -> ConfidenceIntervalScheduler | None:
        """
        Resume a confidence set, healing its queue against the catalog first.

        The "new words" badge is cleared once the set is opened.
        """
        # Records without their own config use the configured preset
        interval_config = None if progress.interval_config else self.interval_config
        scheduler = ConfidenceIntervalScheduler(progress, interval_config, clock=self.clock)
        scheduler.heal(catalog.ids())
        scheduler.new_word_count = None

        if scheduler.is_finished:
            logger.info(f"Nothing to study in {progress.id}: queue is empty")
            return None
        return scheduler

    def start_review(self, progress: AnkiProgress, catalog: Catalog) -> ReviewDueScheduler | None:
        return ReviewDueScheduler.build(
            progress, catalog, clock=self.clock, rng=self.rng, grading=self.grading
        )

    # ------------------------------------------------------------------
    # Session end
    # ------------------------------------------------------------------

    def finish(self, scheduler: Scheduler) -> str | None:
        return self.sync(scheduler)

    def quit(self, scheduler: Scheduler) -> str | None:
        """Abandon the session; the state at this moment is what gets saved."""
        logger.info(f"Session quit; saving {type(scheduler).__name__} state")
        return self.sync(scheduler)

    def sync(self, scheduler: Scheduler) -> str | None:
        """
        Push a complete snapshot of `scheduler` to the outbox.

        Returns:
            The outbox message id, or None if the push failed.
        """
        message_type, payload = self.snapshot(scheduler)
        try:
            return self.sink.push(message_type, payload)
        except OSError as e:
            logger.error(f"Failed to queue {message_type}: {e}")
            return None

    @staticmethod
    def snapshot(scheduler: Scheduler) -> tuple[str, dict]:
        """(message type, wire payload) for a scheduler's current state."""
        if isinstance(scheduler, ConfidenceIntervalScheduler):
            record = ConfidenceProgressRecord.from_domain(scheduler.to_snapshot())
            return UPSERT_STUDY_SET, record.to_wire()
        if isinstance(scheduler, ReviewDueScheduler):
            record = ReviewSessionRecord.from_snapshot(scheduler.to_snapshot())
            return UPSERT_ROWS, record.to_wire()
        if isinstance(scheduler, MasteryQueueScheduler):
            record = MasterySessionRecord.from_snapshot(scheduler.to_snapshot())
            return UPSERT_MASTERY, record.to_wire()
        raise TypeError(f"Unsupported scheduler: {type(scheduler).__name__}")
