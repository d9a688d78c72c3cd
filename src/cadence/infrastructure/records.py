"""
Wire records for persisted progress and outbox payloads.

Field names are camelCase on the wire (the shape the sync backend stores)
and snake_case in Python. Every record converts to and from the plain
domain dataclasses; nothing outside this module touches the wire shape.
"""

from dataclasses import replace
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from ulid import ULID

from cadence.application.mastery_queue import MasterySnapshot
from cadence.application.review_due import ReviewSessionSnapshot, card_to_stats
from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_EASY_BONUS,
    DEFAULT_EASY_INTERVAL,
    DEFAULT_GRADUATING_INTERVAL,
    DEFAULT_INTERVAL_MODIFIER,
    DEFAULT_MAX_REVIEWS_PER_DAY,
    DEFAULT_NEW_CARDS_PER_DAY,
    DEFAULT_NEW_INTERVAL_PERCENT,
)
from cadence.domain.models import (
    AnkiConfig,
    AnkiProgress,
    Card,
    CardState,
    ConfidenceProgress,
    Rating,
    SessionItemState,
    SessionWordResult,
)


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ----------------------------------------------------------------------
# Confidence
# ----------------------------------------------------------------------


class ConfidenceProgressRecord(WireModel):
    id: str
    name: str = ""
    table_ids: list[str] = Field(default_factory=list)
    relation_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    tag_ids: list[str] = Field(default_factory=list)
    created_at: int = 0
    queue: list[str] = Field(default_factory=list)
    current_index: int = 0
    card_states: dict[str, Rating] = Field(default_factory=dict)
    interval_config: dict[Rating, int] | None = None
    new_word_count: int | None = None

    def to_domain(self) -> ConfidenceProgress:
        return ConfidenceProgress(
            id=self.id,
            name=self.name,
            table_ids=list(self.table_ids),
            relation_ids=list(self.relation_ids),
            tags=list(self.tags),
            tag_ids=list(self.tag_ids),
            created_at=self.created_at,
            queue=list(self.queue),
            current_index=self.current_index,
            card_states={k: v for k, v in self.card_states.items() if v is not Rating.NEW},
            interval_config=dict(self.interval_config) if self.interval_config else None,
            new_word_count=self.new_word_count,
        )

    @classmethod
    def from_domain(cls, progress: ConfidenceProgress) -> "ConfidenceProgressRecord":
        return cls(
            id=progress.id,
            name=progress.name,
            table_ids=progress.table_ids,
            relation_ids=progress.relation_ids,
            tags=progress.tags,
            tag_ids=progress.tag_ids,
            created_at=progress.created_at,
            queue=progress.queue,
            current_index=progress.current_index,
            card_states=progress.card_states,
            interval_config=progress.interval_config,
            new_word_count=progress.new_word_count,
        )


# ----------------------------------------------------------------------
# Review-due
# ----------------------------------------------------------------------


class AnkiConfigRecord(WireModel):
    new_cards_per_day: int = DEFAULT_NEW_CARDS_PER_DAY
    # Legacy records store steps as a space-separated string ("1 10")
    learning_steps: str | list[float] = "1 10"
    graduating_interval: int = DEFAULT_GRADUATING_INTERVAL
    easy_interval: int = DEFAULT_EASY_INTERVAL
    max_reviews_per_day: int = DEFAULT_MAX_REVIEWS_PER_DAY
    easy_bonus: float = DEFAULT_EASY_BONUS
    interval_modifier: float = DEFAULT_INTERVAL_MODIFIER
    lapse_steps: str | list[float] = "10"
    new_interval_percent: int = DEFAULT_NEW_INTERVAL_PERCENT

    def to_domain(self) -> AnkiConfig:
        return AnkiConfig(
            new_cards_per_day=self.new_cards_per_day,
            learning_steps=self.learning_steps,
            graduating_interval=self.graduating_interval,
            easy_interval=self.easy_interval,
            max_reviews_per_day=self.max_reviews_per_day,
            easy_bonus=self.easy_bonus,
            interval_modifier=self.interval_modifier,
            lapse_steps=self.lapse_steps,
            new_interval_percent=self.new_interval_percent,
        )

    @classmethod
    def from_domain(cls, config: AnkiConfig) -> "AnkiConfigRecord":
        return cls(
            new_cards_per_day=config.new_cards_per_day,
            learning_steps=list(config.learning_steps),
            graduating_interval=config.graduating_interval,
            easy_interval=config.easy_interval,
            max_reviews_per_day=config.max_reviews_per_day,
            easy_bonus=config.easy_bonus,
            interval_modifier=config.interval_modifier,
            lapse_steps=list(config.lapse_steps),
            new_interval_percent=config.new_interval_percent,
        )


class AnkiCardRecord(WireModel):
    row_id: str
    table_id: str = ""
    relation_id: str = ""
    state: CardState = CardState.NEW
    step: int = 0
    due: int | None = None
    interval: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    lapses: int = 0
    repetitions: int = 0

    def to_domain(self) -> Card:
        return Card(
            item_id=self.row_id,
            container_id=self.table_id,
            relation_id=self.relation_id,
            state=self.state,
            step=self.step,
            due=self.due,
            interval=self.interval,
            ease_factor=self.ease_factor,
            lapses=self.lapses,
            repetitions=self.repetitions,
        )

    @classmethod
    def from_domain(cls, card: Card) -> "AnkiCardRecord":
        return cls(
            row_id=card.item_id,
            table_id=card.container_id,
            relation_id=card.relation_id,
            state=card.state,
            step=card.step,
            due=card.due,
            interval=card.interval,
            ease_factor=card.ease_factor,
            lapses=card.lapses,
            repetitions=card.repetitions,
        )


class AnkiProgressRecord(WireModel):
    id: str
    name: str = ""
    table_ids: list[str] = Field(default_factory=list)
    relation_ids: list[str] = Field(default_factory=list)
    tag_ids: list[str] = Field(default_factory=list)
    anki_config: AnkiConfigRecord | None = None
    created_at: int = 0

    def to_domain(self, default_config: AnkiConfig | None = None) -> AnkiProgress:
        """Decks saved without settings fall back to `default_config`."""
        if self.anki_config is not None:
            config = self.anki_config.to_domain()
        else:
            config = replace(default_config) if default_config else AnkiConfig()
        return AnkiProgress(
            id=self.id,
            name=self.name,
            table_ids=list(self.table_ids),
            relation_ids=list(self.relation_ids),
            tag_ids=list(self.tag_ids),
            anki_config=config,
            created_at=self.created_at,
        )


class ReviewHistoryRecord(WireModel):
    row_id: str
    quality: int
    timestamp: int
    card: AnkiCardRecord


class RowUpdateRecord(WireModel):
    """Stats written back onto one catalog row."""

    row_id: str
    table_id: str
    relation_id: str = ""
    stats: dict[str, Any]


class ReviewSessionRecord(WireModel):
    progress_id: str
    new_queue: list[AnkiCardRecord]
    learning_queue: list[AnkiCardRecord]
    review_queue: list[AnkiCardRecord]
    current_card: AnkiCardRecord | None = None
    history: list[ReviewHistoryRecord] = Field(default_factory=list)
    rows: list[RowUpdateRecord] = Field(default_factory=list)
    config: AnkiConfigRecord
    started_at: int
    xp: int = 0
    finished: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: ReviewSessionSnapshot) -> "ReviewSessionRecord":
        cards = AnkiCardRecord.from_domain
        return cls(
            progress_id=snapshot.progress_id,
            new_queue=[cards(c) for c in snapshot.new_queue],
            learning_queue=[cards(c) for c in snapshot.learning_queue],
            review_queue=[cards(c) for c in snapshot.review_queue],
            current_card=cards(snapshot.current) if snapshot.current else None,
            history=[
                ReviewHistoryRecord(
                    row_id=h.item_id, quality=h.quality, timestamp=h.timestamp, card=cards(h.card)
                )
                for h in snapshot.history
            ],
            rows=[
                RowUpdateRecord(
                    row_id=c.item_id,
                    table_id=c.container_id,
                    relation_id=c.relation_id,
                    stats=card_to_stats(c),
                )
                for c in snapshot.updated_cards
            ],
            config=AnkiConfigRecord.from_domain(snapshot.config),
            started_at=snapshot.started_at,
            xp=snapshot.xp,
            finished=snapshot.finished,
        )


# ----------------------------------------------------------------------
# Mastery drill
# ----------------------------------------------------------------------


class SessionResultRecord(WireModel):
    item_id: str
    is_correct: bool
    timestamp: int
    hint_used: bool = False

    @classmethod
    def from_domain(cls, result: SessionWordResult) -> "SessionResultRecord":
        return cls(
            item_id=result.item_id,
            is_correct=result.is_correct,
            timestamp=result.timestamp,
            hint_used=result.hint_used,
        )


class MasterySessionRecord(WireModel):
    # Remaining queue doubles as resumable study progress
    study_progress: list[str]
    item_states: dict[str, SessionItemState]
    mastered: list[str]
    results: list[SessionResultRecord]
    xp: int
    started_at: int
    duration_seconds: int
    finished: bool

    @classmethod
    def from_snapshot(cls, snapshot: MasterySnapshot) -> "MasterySessionRecord":
        return cls(
            study_progress=snapshot.remaining_queue,
            item_states=snapshot.item_states,
            mastered=snapshot.mastered,
            results=[SessionResultRecord.from_domain(r) for r in snapshot.results],
            xp=snapshot.xp,
            started_at=snapshot.started_at,
            duration_seconds=snapshot.duration_seconds,
            finished=snapshot.finished,
        )


# ----------------------------------------------------------------------
# Outbox
# ----------------------------------------------------------------------

MessageType = Literal["UPSERT_STUDY_SET", "UPSERT_ROWS", "UPSERT_MASTERY"]


class OutboxMessage(WireModel):
    id: str = Field(default_factory=lambda: str(ULID()))
    type: MessageType
    created_at: int
    payload: dict[str, Any]

