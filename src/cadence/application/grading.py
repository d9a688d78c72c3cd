"""
Default SM-2 grading strategy for the review-due scheduler.

Qualities: 1 = Again, 3 = Hard, 4 = Good, 5 = Easy.

New and learning cards walk the learning steps (minutes) before graduating
to Review; review cards grow their interval by the ease factor; a failed
review lapses into Relearning and walks the lapse steps.
"""

import logging
import math
from dataclasses import replace

from cadence.domain.constants import (
    MIN_EASE_FACTOR,
    MS_PER_DAY,
    MS_PER_MINUTE,
    QUALITY_AGAIN,
    QUALITY_EASY,
    QUALITY_GOOD,
    QUALITY_HARD,
    VALID_QUALITIES,
)
from cadence.domain.models import AnkiConfig, Card, CardState
from cadence.domain.ports import GradingStrategy

logger = logging.getLogger(__name__)


def map_binary_to_quality(is_correct: bool) -> int:
    """Grade a right/wrong answer from a non-flashcard mode (Hard or Again)."""
    return QUALITY_HARD if is_correct else QUALITY_AGAIN


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """SM-2 ease update, floored at MIN_EASE_FACTOR. Unchanged on Again."""
    if quality < QUALITY_HARD:
        return ease_factor
    miss = 5 - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


class Sm2GradingStrategy(GradingStrategy):
    """SM-2 with Anki-style learning and lapse steps."""

    def grade(
        self,
        card: Card,
        quality: int,
        config: AnkiConfig,
        now_ms: int,
        today_start_ms: int,
    ) -> Card:
        if quality not in VALID_QUALITIES:
            raise ValueError(f"Quality must be one of {VALID_QUALITIES}, got {quality}")

        ease = next_ease_factor(card.ease_factor, quality)
        if quality == QUALITY_AGAIN:
            repetitions = 0
        else:
            repetitions = card.repetitions + 1
        graded = replace(card, ease_factor=ease, repetitions=repetitions)

        if card.state in (CardState.NEW, CardState.LEARNING):
            result = self._grade_learning(graded, quality, config, now_ms, today_start_ms)
        elif card.state == CardState.RELEARNING:
            result = self._grade_relearning(graded, quality, config, now_ms, today_start_ms)
        else:
            result = self._grade_review(graded, quality, config, now_ms, today_start_ms)

        logger.debug(
            f"{card.item_id}/{card.relation_id} q={quality}: {card.state.value} -> "
            f"{result.state.value} (interval {result.interval}d, ease {result.ease_factor:.2f})"
        )
        return result

    def _grade_learning(
        self, card: Card, quality: int, config: AnkiConfig, now_ms: int, today_start_ms: int
    ) -> Card:
        steps = config.learning_steps

        if quality == QUALITY_EASY:
            return _graduate(card, config.easy_interval, today_start_ms)

        if quality == QUALITY_AGAIN and not steps:
            return replace(card, state=CardState.LEARNING, step=0, due=now_ms)

        if quality == QUALITY_AGAIN:
            step = 0
        elif quality == QUALITY_HARD:
            step = card.step
        else:
            step = card.step + 1

        if step >= len(steps):
            return _graduate(card, config.graduating_interval, today_start_ms)
        return replace(
            card,
            state=CardState.LEARNING,
            step=step,
            due=now_ms + int(steps[step] * MS_PER_MINUTE),
        )

    def _grade_relearning(
        self, card: Card, quality: int, config: AnkiConfig, now_ms: int, today_start_ms: int
    ) -> Card:
        steps = config.lapse_steps

        if quality == QUALITY_EASY:
            return _graduate(card, card.interval, today_start_ms)

        if quality == QUALITY_AGAIN:
            step = 0
        elif quality == QUALITY_HARD:
            step = card.step
        else:
            step = card.step + 1

        if step >= len(steps):
            return _graduate(card, card.interval, today_start_ms)
        return replace(
            card,
            state=CardState.RELEARNING,
            step=step,
            due=now_ms + int(steps[step] * MS_PER_MINUTE),
        )

    def _grade_review(
        self, card: Card, quality: int, config: AnkiConfig, now_ms: int, today_start_ms: int
    ) -> Card:
        if quality == QUALITY_AGAIN:
            interval = max(1, math.ceil(card.interval * config.new_interval_percent / 100))
            lapsed = replace(card, lapses=card.lapses + 1, interval=interval, step=0)
            if not config.lapse_steps:
                return _graduate(lapsed, interval, today_start_ms)
            return replace(
                lapsed,
                state=CardState.RELEARNING,
                due=now_ms + int(config.lapse_steps[0] * MS_PER_MINUTE),
            )

        interval = math.ceil(card.interval * card.ease_factor * config.interval_modifier)
        if quality == QUALITY_EASY:
            interval = math.ceil(interval * config.easy_bonus)
        interval = max(interval, card.interval + 1)
        return _graduate(card, interval, today_start_ms)


def _graduate(card: Card, interval: int, today_start_ms: int) -> Card:
    interval = max(1, interval)
    return replace(
        card,
        state=CardState.REVIEW,
        step=0,
        interval=interval,
        due=today_start_ms + interval * MS_PER_DAY,
    )
