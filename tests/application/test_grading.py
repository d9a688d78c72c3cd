import math

import pytest

from cadence.application.grading import (
    Sm2GradingStrategy,
    map_binary_to_quality,
    next_ease_factor,
)
from cadence.domain.constants import MS_PER_DAY, MS_PER_MINUTE
from cadence.domain.models import AnkiConfig, Card, CardState

NOW = 1_700_000_000_000
TODAY = NOW - 3_600_000


@pytest.fixture
def strategy():
    return Sm2GradingStrategy()


@pytest.fixture
def config():
    return AnkiConfig()


def grade(strategy, card, quality, config):
    return strategy.grade(card, quality, config, NOW, TODAY)


def review_card(**kwargs) -> Card:
    fields = dict(
        item_id="a", state=CardState.REVIEW, repetitions=3, ease_factor=2.36, interval=10
    )
    fields.update(kwargs)
    return Card(**fields)


def test_binary_mapping():
    assert map_binary_to_quality(True) == 3
    assert map_binary_to_quality(False) == 1


@pytest.mark.parametrize(
    "quality, delta",
    [(1, 0.0), (3, -0.14), (4, 0.0), (5, 0.1)],
)
def test_ease_update(quality, delta):
    assert next_ease_factor(2.5, quality) == pytest.approx(2.5 + delta)


def test_ease_floor():
    assert next_ease_factor(1.3, 3) == 1.3


def test_invalid_quality(strategy, config):
    with pytest.raises(ValueError):
        grade(strategy, Card(item_id="a"), 2, config)


class TestNewCard:
    def test_again_enters_first_learning_step(self, strategy, config):
        card = grade(strategy, Card(item_id="a"), 1, config)
        assert card.state == CardState.LEARNING
        assert card.step == 0
        assert card.due == NOW + MS_PER_MINUTE
        assert card.repetitions == 0
        assert card.ease_factor == 2.5

    def test_good_walks_steps_then_graduates(self, strategy, config):
        card = grade(strategy, Card(item_id="a"), 4, config)
        assert card.state == CardState.LEARNING
        assert card.step == 1
        assert card.due == NOW + 10 * MS_PER_MINUTE

        card = grade(strategy, card, 4, config)
        assert card.state == CardState.REVIEW
        assert card.interval == config.graduating_interval
        assert card.due == TODAY + MS_PER_DAY
        assert card.repetitions == 2

    def test_hard_repeats_step(self, strategy, config):
        learning = Card(item_id="a", state=CardState.LEARNING, step=1)
        card = grade(strategy, learning, 3, config)
        assert card.state == CardState.LEARNING
        assert card.step == 1
        assert card.due == NOW + 10 * MS_PER_MINUTE

    def test_easy_graduates_with_easy_interval(self, strategy, config):
        card = grade(strategy, Card(item_id="a"), 5, config)
        assert card.state == CardState.REVIEW
        assert card.interval == config.easy_interval
        assert card.ease_factor == pytest.approx(2.6)
        assert card.due == TODAY + 4 * MS_PER_DAY
        assert card.repetitions == 1

    def test_no_learning_steps_graduates_on_good(self, strategy):
        config = AnkiConfig(learning_steps=[])
        card = grade(strategy, Card(item_id="a"), 4, config)
        assert card.state == CardState.REVIEW
        assert card.interval == 1

    def test_input_card_untouched(self, strategy, config):
        original = Card(item_id="a")
        grade(strategy, original, 5, config)
        assert original.state == CardState.NEW


class TestReviewCard:
    def test_again_lapses_into_relearning(self, strategy, config):
        card = grade(strategy, review_card(), 1, config)
        assert card.state == CardState.RELEARNING
        assert card.lapses == 1
        assert card.repetitions == 0
        assert card.interval == 1
        assert card.ease_factor == 2.36
        assert card.due == NOW + 10 * MS_PER_MINUTE

    def test_lapse_keeps_percent_of_interval(self, strategy):
        config = AnkiConfig(new_interval_percent=25)
        card = grade(strategy, review_card(), 1, config)
        assert card.interval == 3

    def test_again_without_lapse_steps_stays_in_review(self, strategy):
        config = AnkiConfig(lapse_steps=[])
        card = grade(strategy, review_card(), 1, config)
        assert card.state == CardState.REVIEW
        assert card.due == TODAY + MS_PER_DAY

    def test_hard(self, strategy, config):
        card = grade(strategy, review_card(), 3, config)
        expected = math.ceil(10 * (2.36 - 0.14))
        assert card.interval == expected
        assert card.ease_factor == pytest.approx(2.22)
        assert card.repetitions == 4
        assert card.due == TODAY + expected * MS_PER_DAY

    def test_good(self, strategy, config):
        card = grade(strategy, review_card(), 4, config)
        assert card.interval == 24
        assert card.ease_factor == pytest.approx(2.36)

    def test_easy_applies_bonus(self, strategy, config):
        card = grade(strategy, review_card(), 5, config)
        base = math.ceil(10 * 2.46)
        assert card.interval == math.ceil(base * 1.3)
        assert card.ease_factor == pytest.approx(2.46)

    def test_interval_modifier(self, strategy):
        config = AnkiConfig(interval_modifier=1.5)
        card = grade(strategy, review_card(ease_factor=2.5, interval=5), 4, config)
        assert card.interval == 19

    def test_interval_always_grows(self, strategy):
        config = AnkiConfig(interval_modifier=0.1)
        card = grade(strategy, review_card(interval=2), 3, config)
        assert card.interval == 3


class TestRelearningCard:
    @pytest.fixture
    def lapsed(self):
        return review_card(state=CardState.RELEARNING, interval=2, lapses=1, repetitions=0)

    def test_good_returns_to_review(self, strategy, config, lapsed):
        card = grade(strategy, lapsed, 4, config)
        assert card.state == CardState.REVIEW
        assert card.interval == 2
        assert card.due == TODAY + 2 * MS_PER_DAY

    def test_again_restarts_lapse_steps(self, strategy, config, lapsed):
        card = grade(strategy, lapsed, 1, config)
        assert card.state == CardState.RELEARNING
        assert card.step == 0
        assert card.due == NOW + 10 * MS_PER_MINUTE
        assert card.lapses == 1
