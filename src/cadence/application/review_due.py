"""
Review-due scheduler.

Classifies every card of a deck into the New / Learning / Review tiers,
applies the per-day caps, and picks the card to present:

    learning (soonest due) > review > new

Learning cards are compared to `now`; review cards to the start of today,
so a review due at any hour today counts.
"""

import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass, field

from cadence.application.clock import SystemClock
from cadence.application.confidence import filter_tags
from cadence.application.grading import Sm2GradingStrategy
from cadence.domain.constants import DEFAULT_EASE_FACTOR, XP_PER_REVIEW
from cadence.domain.models import (
    AnkiConfig,
    AnkiProgress,
    Card,
    CardState,
    Catalog,
    LearningItem,
    ReviewHistoryEntry,
)
from cadence.domain.ports import Clock, GradingStrategy

logger = logging.getLogger(__name__)


def _as_int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def card_from_item(item: LearningItem, relation_id: str = "") -> Card | None:
    """
    Read a card's scheduling state from an item's stats.

    Items saved before `ankiState` existed are inferred as Review when they
    have repetitions. An unrecognised `ankiState` yields None.
    """
    stats = item.stats
    repetitions = _as_int(stats.get("ankiRepetitions"))
    raw_state = stats.get("ankiState")
    if raw_state:
        try:
            state = CardState(raw_state)
        except ValueError:
            logger.debug(f"Skipping {item.id}: unknown ankiState {raw_state!r}")
            return None
    elif repetitions > 0:
        state = CardState.REVIEW
    else:
        state = CardState.NEW

    due = stats.get("ankiDueDate")
    return Card(
        item_id=item.id,
        container_id=item.container_id,
        relation_id=relation_id,
        state=state,
        step=_as_int(stats.get("ankiStep")),
        due=_as_int(due) if due is not None else None,
        interval=_as_int(stats.get("ankiInterval")),
        ease_factor=float(stats.get("ankiEaseFactor") or DEFAULT_EASE_FACTOR),
        lapses=_as_int(stats.get("ankiLapses")),
        repetitions=repetitions,
    )


def card_to_stats(card: Card) -> dict:
    """Inverse of `card_from_item`: the stats fields to write back on the item."""
    return {
        "ankiState": card.state.value,
        "ankiStep": card.step,
        "ankiDueDate": card.due,
        "ankiInterval": card.interval,
        "ankiEaseFactor": card.ease_factor,
        "ankiRepetitions": card.repetitions,
        "ankiLapses": card.lapses,
    }


def collect_cards(progress: AnkiProgress, catalog: Catalog) -> list[Card]:
    """
    One card per (eligible item, selected relation).

    Relations the item's container does not offer are ignored. A deck with
    no relations selected yields one card per item. Items whose stored state
    cannot be read are left out.
    """
    items = catalog.select(progress.table_ids, filter_tags(progress.tag_ids))
    cards = []
    for item in items:
        if not progress.relation_ids:
            relation_ids = [""]
        else:
            container = catalog.containers.get(item.container_id)
            offered = set(container.relation_ids) if container else set()
            relation_ids = [r for r in progress.relation_ids if r in offered]
        for relation_id in relation_ids:
            card = card_from_item(item, relation_id)
            if card is not None:
                cards.append(card)
    return cards


def _is_set(due: int | None) -> bool:
    return bool(due)


@dataclass
class TierClassification:
    new: list[Card] = field(default_factory=list)
    learning: list[Card] = field(default_factory=list)
    review: list[Card] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.new) + len(self.learning) + len(self.review)


def classify(cards: Iterable[Card], now_ms: int, today_start_ms: int) -> TierClassification:
    """
    Split cards into tiers. Cards that are not yet due land in no tier.

    Learning tier is sorted soonest-due first; the other tiers keep input order.
    """
    tiers = TierClassification()
    for card in cards:
        if card.state == CardState.NEW:
            tiers.new.append(card)
        elif card.state in (CardState.LEARNING, CardState.RELEARNING):
            if _is_set(card.due) and card.due <= now_ms:
                tiers.learning.append(card)
        elif card.state == CardState.REVIEW:
            if _is_set(card.due) and card.due <= today_start_ms:
                tiers.review.append(card)
    tiers.learning.sort(key=lambda c: c.due)
    return tiers


@dataclass
class ReviewSessionSnapshot:
    """Full review session, saved on finish or quit."""

    progress_id: str
    new_queue: list[Card]
    learning_queue: list[Card]
    review_queue: list[Card]
    current: Card | None
    history: list[ReviewHistoryEntry]
    updated_cards: list[Card]
    config: AnkiConfig
    started_at: int
    xp: int
    finished: bool


class ReviewDueScheduler:
    """Working queues and current card for one review session."""

    def __init__(
        self,
        progress: AnkiProgress,
        new_queue: list[Card],
        learning_queue: list[Card],
        review_queue: list[Card],
        clock: Clock | None = None,
        grading: GradingStrategy | None = None,
    ):
        self.progress = progress
        self.config = progress.anki_config
        self.new_queue = new_queue
        self.learning_queue = learning_queue
        self.review_queue = review_queue
        self.history: list[ReviewHistoryEntry] = []
        self.updated_cards: dict[tuple[str, str], Card] = {}
        self._clock = clock or SystemClock()
        self._grading = grading or Sm2GradingStrategy()
        self.started_at = self._clock.now_ms()
        self.current: Card | None = self._pick(self.started_at, initial=True)

    @classmethod
    def build(
        cls,
        progress: AnkiProgress,
        catalog: Catalog,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        grading: GradingStrategy | None = None,
    ) -> "ReviewDueScheduler | None":
        """
        Classify the deck and build a session.

        Returns:
            The scheduler, or None when nothing is due.
        """
        clock = clock or SystemClock()
        rng = rng or random.Random()
        config = progress.anki_config

        tiers = classify(
            collect_cards(progress, catalog), clock.now_ms(), clock.today_start_ms()
        )
        selected_new = tiers.new[: max(0, config.new_cards_per_day)]
        rng.shuffle(selected_new)
        selected_review = tiers.review[: max(0, config.max_reviews_per_day)]

        if not (tiers.learning or selected_review or selected_new):
            logger.info(f"Nothing due for deck {progress.id}")
            return None

        logger.info(
            f"Deck {progress.id}: {len(tiers.learning)} learning, "
            f"{len(selected_review)}/{len(tiers.review)} review, "
            f"{len(selected_new)}/{len(tiers.new)} new"
        )
        return cls(
            progress,
            new_queue=selected_new,
            learning_queue=tiers.learning,
            review_queue=selected_review,
            clock=clock,
            grading=grading,
        )

    @property
    def is_finished(self) -> bool:
        return self.current is None

    @property
    def counts(self) -> dict[str, int]:
        return {
            "new": len(self.new_queue),
            "learning": len(self.learning_queue),
            "review": len(self.review_queue),
        }

    @property
    def xp(self) -> int:
        return len(self.history) * XP_PER_REVIEW

    def apply_rating(self, quality: int) -> Card | None:
        """
        Grade the current card and move on.

        Cards still in (re)learning go back into the learning queue by due
        time. Returns the graded card, or None when the session is over.
        """
        if self.current is None:
            return None

        now = self._clock.now_ms()
        graded = self._grading.grade(
            self.current, quality, self.config, now, self._clock.today_start_ms()
        )
        self.history.append(ReviewHistoryEntry(graded.item_id, quality, now, graded))
        self.updated_cards[graded.key] = graded

        if graded.state in (CardState.LEARNING, CardState.RELEARNING):
            self.learning_queue.append(graded)
            self.learning_queue.sort(key=lambda c: c.due or 0)

        self.current = self._pick(now)
        if self.current is None:
            logger.info(f"Review session {self.progress.id} complete ({len(self.history)} cards)")
        return graded

    def _pick(self, now_ms: int, initial: bool = False) -> Card | None:
        if self.learning_queue and (initial or (self.learning_queue[0].due or 0) <= now_ms):
            return self.learning_queue.pop(0)
        if self.review_queue:
            return self.review_queue.pop(0)
        if self.new_queue:
            return self.new_queue.pop(0)
        if self.learning_queue:
            return self.learning_queue.pop(0)
        return None

    def to_snapshot(self) -> ReviewSessionSnapshot:
        return ReviewSessionSnapshot(
            progress_id=self.progress.id,
            new_queue=list(self.new_queue),
            learning_queue=list(self.learning_queue),
            review_queue=list(self.review_queue),
            current=self.current,
            history=list(self.history),
            updated_cards=list(self.updated_cards.values()),
            config=self.config,
            started_at=self.started_at,
            xp=self.xp,
            finished=self.is_finished,
        )
