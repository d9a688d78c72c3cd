import pytest

from cadence.domain.constants import MS_PER_DAY, MS_PER_MINUTE
from cadence.domain.models import (
    AnkiConfig,
    AnkiProgress,
    Catalog,
    ConfidenceProgress,
    Container,
    LearningItem,
)

# 2023-11-14 22:13:20 UTC; "today" starts ten hours earlier
NOW = 1_700_000_000_000
TODAY_START = NOW - 10 * 60 * MS_PER_MINUTE


class FixedClock:
    """Clock that only moves when a test tells it to."""

    def __init__(self, now_ms: int = NOW, today_start_ms: int = TODAY_START):
        self.now = now_ms
        self.today_start = today_start_ms

    def now_ms(self) -> int:
        return self.now

    def today_start_ms(self) -> int:
        return self.today_start

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def catalog():
    """Two containers: five tagged verbs (two relations) and three nouns."""
    verbs = [
        LearningItem(id=f"v{i}", container_id="verbs", tag_ids=("verb",) if i % 2 else ())
        for i in range(1, 6)
    ]
    nouns = [LearningItem(id=f"n{i}", container_id="nouns") for i in range(1, 4)]
    return Catalog(
        containers={
            "verbs": Container(id="verbs", name="Verbs", relation_ids=("es-en", "en-es")),
            "nouns": Container(id="nouns", name="Nouns", relation_ids=("es-en",)),
        },
        items=verbs + nouns,
    )


@pytest.fixture
def confidence_progress():
    return ConfidenceProgress(
        id="set-1",
        name="Verbs",
        table_ids=["verbs"],
        queue=["v1", "v2", "v3", "v4", "v5"],
    )


def review_item(item_id: str, due: int, state: str = "Review", **stats) -> LearningItem:
    return LearningItem(
        id=item_id,
        container_id="deck",
        stats={"ankiState": state, "ankiDueDate": due, "ankiInterval": 3, **stats},
    )


@pytest.fixture
def review_catalog():
    """Due, not-yet-due and new cards across every tier."""
    items = [
        review_item("r-due", TODAY_START - MS_PER_DAY),
        review_item("r-today", TODAY_START),
        review_item("r-later", TODAY_START + MS_PER_DAY),
        review_item("l-due", NOW - MS_PER_MINUTE, state="Learning", ankiStep=1),
        review_item("l-soon", NOW + 5 * MS_PER_MINUTE, state="Learning"),
        review_item("rl-due", NOW - 2 * MS_PER_MINUTE, state="Relearning"),
        LearningItem(id="new-1", container_id="deck"),
        LearningItem(id="new-2", container_id="deck"),
    ]
    return Catalog(containers={"deck": Container(id="deck")}, items=items)


@pytest.fixture
def anki_progress():
    return AnkiProgress(id="deck-1", name="Deck", table_ids=["deck"], anki_config=AnkiConfig())


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/outbox
    monkeypatch.setenv("HOME", str(home))
    for var in ("CADENCE_OUTBOX_BACKEND", "CADENCE_OUTBOX_PATH", "CADENCE_REINSERT_DISTANCE"):
        monkeypatch.delenv(var, raising=False)
    return home
