"""
Confidence-interval queue.

A single ordered queue where each rating pushes the current item forward by
a rating-specific number of slots. The insert position is measured from the
item's original index and clamped to the end of the shortened queue, so an
item never wraps and the queue never grows or shrinks.
"""

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import replace

from cadence.application.clock import SystemClock
from cadence.domain.constants import EXCLUDED_TAG_PREFIX, XP_PER_CONFIDENCE_RATING
from cadence.domain.intervals import IntervalConfig, normalize_interval_config
from cadence.domain.models import Catalog, ConfidenceProgress, Rating, RatingHistoryEntry
from cadence.domain.ports import Clock

logger = logging.getLogger(__name__)


def reinsert(queue: Sequence[str], current_index: int, interval: int) -> tuple[list[str], int]:
    """
    Move `queue[current_index]` forward by `interval` slots.

    Returns:
        (new_queue, insert_index). A single-item queue comes back unchanged.
    """
    card_id = queue[current_index]
    rest = [*queue[:current_index], *queue[current_index + 1 :]]
    insert_index = min(current_index + interval, len(rest))
    return [*rest[:insert_index], card_id, *rest[insert_index:]], insert_index


def filter_tags(tag_ids: Iterable[str]) -> list[str]:
    """Drop empty ids and flashcard system tags from a tag filter."""
    return [t for t in tag_ids if t and not t.startswith(EXCLUDED_TAG_PREFIX)]


def build_queue(
    catalog: Catalog, container_ids: Iterable[str], tag_ids: Iterable[str] = ()
) -> list[str]:
    """Initial queue for a new study set. An empty list means nothing to study."""
    items = catalog.select(container_ids, filter_tags(tag_ids))
    return [item.id for item in items]


def _coerce_rating(rating: Rating | str) -> Rating:
    rating = rating if isinstance(rating, Rating) else Rating(rating)
    if rating is Rating.NEW:
        raise ValueError("'New' is the unrated default and cannot be given as a rating")
    return rating


class ConfidenceIntervalScheduler:
    """
    Live state of one confidence study set.

    The scheduler works on a copy of the progress record; `to_snapshot()`
    returns the complete record to persist (queue, index and card states
    always together).
    """

    def __init__(
        self,
        progress: ConfidenceProgress,
        interval_config: IntervalConfig | None = None,
        clock: Clock | None = None,
    ):
        self.progress = progress
        self.queue: list[str] = list(progress.queue)
        self.card_states: dict[str, Rating] = dict(progress.card_states)
        self.interval_config = normalize_interval_config(
            interval_config if interval_config is not None else progress.interval_config
        )
        self.history: list[RatingHistoryEntry] = []
        self.new_word_count = progress.new_word_count
        self._clock = clock or SystemClock()
        self.current_index = progress.current_index
        self._clamp_index()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def current(self) -> str | None:
        if not self.queue:
            return None
        return self.queue[self.current_index]

    @property
    def is_finished(self) -> bool:
        return not self.queue

    @property
    def learned_count(self) -> int:
        """Queued items whose latest rating is anything but New."""
        latest = dict(self.card_states)
        for entry in self.history:
            latest[entry.item_id] = entry.rating
        return sum(
            1 for item_id in self.queue if latest.get(item_id, Rating.NEW) is not Rating.NEW
        )

    @property
    def xp(self) -> int:
        return len(self.history) * XP_PER_CONFIDENCE_RATING

    @property
    def tag_filter(self) -> list[str]:
        """The set's tag ids plus its legacy tags, without system tags."""
        combined = [*self.progress.tag_ids, *self.progress.tags]
        return filter_tags(dict.fromkeys(combined))

    def rating_of(self, item_id: str) -> Rating:
        return self.card_states.get(item_id, Rating.NEW)

    def preview(self, rating: Rating | str) -> tuple[int, int] | None:
        """(interval, insert_index) the current item would get, without moving it."""
        if not self.queue:
            return None
        interval = self.interval_config[_coerce_rating(rating)]
        _, insert_index = reinsert(self.queue, self.current_index, interval)
        return interval, insert_index

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def apply_rating(self, rating: Rating | str) -> int | None:
        """
        Rate the current item and reinsert it.

        `current_index` is left unchanged: the item that slides into the
        vacated slot becomes current.

        Returns:
            The item's new position, or None when the queue is empty.
        """
        rating = _coerce_rating(rating)
        if not self.queue:
            return None

        card_id = self.queue[self.current_index]
        interval = self.interval_config[rating]
        self.queue, insert_index = reinsert(self.queue, self.current_index, interval)
        self.card_states[card_id] = rating
        self.history.append(RatingHistoryEntry(card_id, rating, self._clock.now_ms()))

        logger.debug(
            f"{card_id} rated {rating.value}: {self.current_index} -> {insert_index} "
            f"(interval {interval})"
        )
        return insert_index

    def heal(self, valid_ids: Collection[str]) -> list[str]:
        """
        Drop queued ids that no longer resolve to an item.

        Stale ids are removed from the queue and the card states, then the
        index is clamped. Running it twice has the same effect as once.

        Returns:
            The ids that were removed from the queue.
        """
        valid = set(valid_ids)
        removed = [item_id for item_id in self.queue if item_id not in valid]
        if removed:
            self.queue = [item_id for item_id in self.queue if item_id in valid]
            logger.debug(f"Healed queue of {self.progress.id}: dropped {removed}")
        self.card_states = {k: v for k, v in self.card_states.items() if k in valid}
        self._clamp_index()
        return removed

    def delete_item(self, item_id: str) -> bool:
        """Remove one item from the study set. The index wraps to 0 past the end."""
        if item_id not in self.queue:
            return False
        self.queue = [i for i in self.queue if i != item_id]
        self.card_states.pop(item_id, None)
        if self.current_index >= len(self.queue):
            self.current_index = 0
        return True

    def skip_current(self) -> str | None:
        """Take the current item out of the queue without rating it."""
        if not self.queue:
            return None
        skipped = self.queue.pop(self.current_index)
        self._clamp_index()
        return skipped

    def manual_jump(self, distance: int) -> int | None:
        """
        Move the current item `distance` slots from the head of the queue.

        The item is marked Good and the session restarts from the head.
        """
        if not self.queue:
            return None
        card_id = self.queue.pop(self.current_index)
        insert_index = min(max(0, distance), len(self.queue))
        self.queue.insert(insert_index, card_id)
        self.card_states[card_id] = Rating.GOOD
        self.current_index = 0
        return insert_index

    def reset(self) -> None:
        """Forget all ratings and restart from the head; queue order is kept."""
        self.current_index = 0
        self.card_states = {}
        self.history = []

    def reconcile(
        self, catalog: Catalog, tag_ids: Iterable[str] | None = None
    ) -> tuple[list[str], list[str]]:
        """
        Re-sync the queue with the items that are currently eligible.

        Newly eligible ids are appended at the end and counted in
        `new_word_count`; ids that are no longer eligible are dropped along
        with their states. Without `tag_ids` the set's own `tag_ids` and
        legacy `tags` form the filter.

        Returns:
            (added, removed)
        """
        tags = self.tag_filter if tag_ids is None else filter_tags(tag_ids)
        eligible = build_queue(catalog, self.progress.table_ids, tags)
        eligible_set = set(eligible)
        queued = set(self.queue)

        removed = [item_id for item_id in self.queue if item_id not in eligible_set]
        added = [item_id for item_id in eligible if item_id not in queued]

        self.queue = [item_id for item_id in self.queue if item_id in eligible_set] + added
        self.card_states = {k: v for k, v in self.card_states.items() if k in eligible_set}
        if added:
            self.new_word_count = (self.new_word_count or 0) + len(added)
        self._clamp_index()

        if added or removed:
            logger.info(
                f"Reconciled {self.progress.id}: +{len(added)} new, -{len(removed)} removed"
            )
        return added, removed

    def set_interval_config(self, raw: IntervalConfig | dict[str, int]) -> IntervalConfig:
        self.interval_config = normalize_interval_config(raw)
        return self.interval_config

    def to_snapshot(self) -> ConfidenceProgress:
        return replace(
            self.progress,
            table_ids=list(self.progress.table_ids),
            relation_ids=list(self.progress.relation_ids),
            tags=list(self.progress.tags),
            tag_ids=list(self.progress.tag_ids),
            queue=list(self.queue),
            current_index=self.current_index,
            card_states=dict(self.card_states),
            interval_config=dict(self.interval_config),
            new_word_count=self.new_word_count,
        )

    def _clamp_index(self) -> None:
        self.current_index = max(0, min(self.current_index, len(self.queue) - 1))
