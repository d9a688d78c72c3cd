"""
Domain models for the review scheduling engine.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Any

from .constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_EASY_BONUS,
    DEFAULT_EASY_INTERVAL,
    DEFAULT_GRADUATING_INTERVAL,
    DEFAULT_INTERVAL_MODIFIER,
    DEFAULT_LAPSE_STEPS,
    DEFAULT_LEARNING_STEPS,
    DEFAULT_MAX_REVIEWS_PER_DAY,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_NEW_INTERVAL_PERCENT,
)


@total_ordering
class Rating(Enum):
    """
    Recall-quality judgment, ordered worst to best.

    NEW is the implicit state of an item that has never been rated; it is
    never a valid rating input.
    """

    NEW = "New"
    AGAIN = "Again"
    HARD = "Hard"
    GOOD = "Good"
    EASY = "Easy"
    PERFECT = "Perfect"
    SUPERB = "Superb"

    @property
    def rank(self) -> int:
        return list(Rating).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Rating):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def graded(cls) -> list["Rating"]:
        """The six ratings a user can actually give."""
        return [r for r in cls if r is not cls.NEW]


class SessionItemState(Enum):
    """Per-item progress inside one mastery drill session."""

    UNSEEN = "unseen"
    FAIL = "fail"
    PASS1 = "pass1"
    PASS2 = "pass2"


class CardState(Enum):
    """Review-due lifecycle state of a card."""

    NEW = "New"
    LEARNING = "Learning"
    RELEARNING = "Relearning"
    REVIEW = "Review"


@dataclass(frozen=True)
class LearningItem:
    """
    A learnable item from the catalog.

    Attributes:
        id: Stable item identifier (row id).
        container_id: The table the item belongs to.
        tag_ids: Tags attached to the item.
        content: Free-form display content, opaque to the schedulers.
        stats: Persisted progress fields (ankiState, ankiDueDate, ...).
    """

    id: str
    container_id: str = ""
    tag_ids: tuple[str, ...] = ()
    content: dict[str, Any] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)

    def has_any_tag(self, tag_ids: Iterable[str]) -> bool:
        wanted = set(tag_ids)
        return any(tag in wanted for tag in self.tag_ids)


@dataclass(frozen=True)
class Container:
    """A source table: groups items and declares which relations it offers."""

    id: str
    name: str = ""
    relation_ids: tuple[str, ...] = ()


@dataclass
class Catalog:
    """The full set of items a progress record can draw from."""

    containers: dict[str, Container] = field(default_factory=dict)
    items: list[LearningItem] = field(default_factory=list)

    def ids(self) -> set[str]:
        return {item.id for item in self.items}

    def get(self, item_id: str) -> LearningItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def select(
        self, container_ids: Iterable[str], tag_ids: Iterable[str] = ()
    ) -> list[LearningItem]:
        """
        Items of the given containers, in catalog order.

        With a non-empty tag filter an item is kept only if it carries at
        least one of the tags.
        """
        containers = list(container_ids)
        tags = [t for t in tag_ids if t]
        selected = []
        for container_id in containers:
            for item in self.items:
                if item.container_id != container_id:
                    continue
                if tags and not item.has_any_tag(tags):
                    continue
                selected.append(item)
        return selected


@dataclass(frozen=True)
class SessionWordResult:
    """One answer given during a session."""

    item_id: str
    is_correct: bool
    timestamp: int
    hint_used: bool = False


@dataclass(frozen=True)
class RatingHistoryEntry:
    item_id: str
    rating: Rating
    timestamp: int


@dataclass
class Card:
    """
    Review-due scheduling state for one (item, relation) pair.

    `due` is an epoch timestamp in milliseconds; 0 or None means unset.
    `interval` is in days.
    """

    item_id: str
    container_id: str = ""
    relation_id: str = ""
    state: CardState = CardState.NEW
    step: int = 0
    due: int | None = None
    interval: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    lapses: int = 0
    repetitions: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.item_id, self.relation_id)


@dataclass(frozen=True)
class ReviewHistoryEntry:
    item_id: str
    quality: int
    timestamp: int
    card: Card


def parse_steps(value: Any, default: tuple[float, ...]) -> list[float]:
    """
    Parse learning/lapse steps (minutes).

    Accepts the legacy space-separated string ("1 10") or a list of numbers.
    Non-positive or unparsable entries are dropped.
    """
    if value is None:
        return list(default)
    if isinstance(value, str):
        parts: Iterable[Any] = value.split()
    elif isinstance(value, int | float):
        parts = [value]
    else:
        parts = value

    steps = []
    for part in parts:
        try:
            minutes = float(part)
        except (TypeError, ValueError):
            continue
        if minutes > 0:
            steps.append(minutes)
    return steps


@dataclass
class AnkiConfig:
    """
    Per-deck review-due settings.

    Steps are minutes; intervals are days; bonus/modifier are ratios.
    """

    new_cards_per_day: int = DEFAULT_NEW_CARDS_PER_DAY
    learning_steps: list[float] = field(default_factory=lambda: list(DEFAULT_LEARNING_STEPS))
    graduating_interval: int = DEFAULT_GRADUATING_INTERVAL
    easy_interval: int = DEFAULT_EASY_INTERVAL
    max_reviews_per_day: int = DEFAULT_MAX_REVIEWS_PER_DAY
    easy_bonus: float = DEFAULT_EASY_BONUS
    interval_modifier: float = DEFAULT_INTERVAL_MODIFIER
    lapse_steps: list[float] = field(default_factory=lambda: list(DEFAULT_LAPSE_STEPS))
    new_interval_percent: int = DEFAULT_NEW_INTERVAL_PERCENT

    def __post_init__(self):
        self.learning_steps = parse_steps(self.learning_steps, DEFAULT_LEARNING_STEPS)
        self.lapse_steps = parse_steps(self.lapse_steps, DEFAULT_LAPSE_STEPS)


@dataclass
class ConfidenceProgress:
    """
    A saved confidence-queue study set.

    Saved as a complete replacement: queue, current_index and card_states
    always travel together.
    """

    id: str
    name: str = ""
    table_ids: list[str] = field(default_factory=list)
    relation_ids: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)  # legacy tag names
    tag_ids: list[str] = field(default_factory=list)
    created_at: int = 0
    queue: list[str] = field(default_factory=list)
    current_index: int = 0
    card_states: dict[str, Rating] = field(default_factory=dict)
    interval_config: dict[Rating, int] | None = None
    new_word_count: int | None = None


@dataclass
class AnkiProgress:
    """A saved review-due deck definition."""

    id: str
    name: str = ""
    table_ids: list[str] = field(default_factory=list)
    relation_ids: list[str] = field(default_factory=list)
    tag_ids: list[str] = field(default_factory=list)
    anki_config: AnkiConfig = field(default_factory=AnkiConfig)
    created_at: int = 0
