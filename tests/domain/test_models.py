import pytest

from cadence.domain.models import (
    AnkiConfig,
    Card,
    CardState,
    Catalog,
    Container,
    LearningItem,
    Rating,
    parse_steps,
)


class TestRating:
    def test_ordered_worst_to_best(self):
        assert Rating.NEW < Rating.AGAIN < Rating.HARD < Rating.GOOD
        assert Rating.GOOD < Rating.EASY < Rating.PERFECT < Rating.SUPERB
        assert max(Rating.HARD, Rating.SUPERB, Rating.AGAIN) is Rating.SUPERB

    def test_graded_excludes_new(self):
        graded = Rating.graded()
        assert Rating.NEW not in graded
        assert len(graded) == 6
        assert graded[0] is Rating.AGAIN

    def test_wire_values(self):
        assert Rating("Perfect") is Rating.PERFECT
        with pytest.raises(ValueError):
            Rating("perfect")


def test_parse_steps_accepts_legacy_string():
    assert parse_steps("1 10", (5.0,)) == [1.0, 10.0]


def test_parse_steps_drops_bad_entries():
    assert parse_steps(["1", "x", 0, -3, 15], (5.0,)) == [1.0, 15.0]
    assert parse_steps(10, (5.0,)) == [10.0]
    assert parse_steps(None, (5.0,)) == [5.0]


def test_anki_config_defaults():
    config = AnkiConfig()
    assert config.new_cards_per_day == 20
    assert config.max_reviews_per_day == 200
    assert config.learning_steps == [1.0, 10.0]
    assert config.lapse_steps == [10.0]
    assert config.graduating_interval == 1
    assert config.easy_interval == 4
    assert config.easy_bonus == 1.3
    assert config.new_interval_percent == 0


def test_anki_config_parses_string_steps():
    config = AnkiConfig(learning_steps="2 20 60", lapse_steps="5")
    assert config.learning_steps == [2.0, 20.0, 60.0]
    assert config.lapse_steps == [5.0]


def test_card_defaults():
    card = Card(item_id="a", relation_id="r")
    assert card.state == CardState.NEW
    assert card.ease_factor == 2.5
    assert card.due is None
    assert card.key == ("a", "r")


class TestCatalogSelect:
    @pytest.fixture
    def catalog(self):
        return Catalog(
            containers={"t1": Container(id="t1"), "t2": Container(id="t2")},
            items=[
                LearningItem(id="a", container_id="t2", tag_ids=("x",)),
                LearningItem(id="b", container_id="t1"),
                LearningItem(id="c", container_id="t1", tag_ids=("x", "y")),
                LearningItem(id="d", container_id="t2", tag_ids=("y",)),
            ],
        )

    def test_container_order_then_catalog_order(self, catalog):
        ids = [i.id for i in catalog.select(["t1", "t2"])]
        assert ids == ["b", "c", "a", "d"]

    def test_tag_filter_needs_any_match(self, catalog):
        ids = [i.id for i in catalog.select(["t1", "t2"], ["y"])]
        assert ids == ["c", "d"]

    def test_empty_tag_filter_keeps_everything(self, catalog):
        assert len(catalog.select(["t2"], [])) == 2

    def test_unknown_container(self, catalog):
        assert catalog.select(["nope"]) == []

    def test_lookup(self, catalog):
        assert catalog.ids() == {"a", "b", "c", "d"}
        assert catalog.get("c").tag_ids == ("x", "y")
        assert catalog.get("zzz") is None
