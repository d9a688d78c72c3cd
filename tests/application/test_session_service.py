import random
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from cadence.application.session_service import SessionService
from cadence.domain.constants import UPSERT_MASTERY, UPSERT_ROWS, UPSERT_STUDY_SET
from cadence.domain.intervals import preset
from cadence.domain.models import Rating
from cadence.domain.ports import SnapshotSink
from cadence.infrastructure.outbox import MemoryOutbox


@pytest.fixture
def outbox():
    return MemoryOutbox()


@pytest.fixture
def service(outbox, clock):
    return SessionService(sink=outbox, clock=clock, rng=random.Random(0))


# --- Confidence ---


def test_start_confidence_heals_and_clears_badge(service, catalog, confidence_progress):
    progress = replace(
        confidence_progress,
        queue=["v1", "gone", "v2"],
        current_index=2,
        card_states={"gone": Rating.GOOD},
        new_word_count=4,
    )
    scheduler = service.start_confidence(progress, catalog)
    assert scheduler.queue == ["v1", "v2"]
    assert scheduler.current_index == 1
    assert scheduler.card_states == {}
    assert scheduler.new_word_count is None


def test_start_confidence_with_only_deleted_items(service, catalog, confidence_progress):
    progress = replace(confidence_progress, queue=["last-card"])
    assert service.start_confidence(progress, catalog) is None


def test_configured_preset_applies_to_records_without_their_own(
    outbox, clock, catalog, confidence_progress
):
    service = SessionService(sink=outbox, clock=clock, interval_config=preset("drill"))
    scheduler = service.start_confidence(confidence_progress, catalog)
    assert scheduler.interval_config[Rating.AGAIN] == 1

    own = replace(confidence_progress, interval_config=preset("leitner"))
    assert service.start_confidence(own, catalog).interval_config[Rating.AGAIN] == 5


def test_finish_pushes_complete_snapshot(service, outbox, catalog, confidence_progress):
    scheduler = service.start_confidence(confidence_progress, catalog)
    scheduler.apply_rating(Rating.AGAIN)
    message_id = service.finish(scheduler)

    (message,) = outbox.drain()
    assert message.id == message_id
    assert message.type == UPSERT_STUDY_SET
    payload = message.payload
    assert payload["queue"] == ["v2", "v3", "v4", "v1", "v5"]
    assert payload["currentIndex"] == 0
    assert payload["cardStates"] == {"v1": "Again"}
    assert payload["tableIds"] == ["verbs"]


def test_quit_snapshot_matches_finish_shape(service, outbox, catalog, confidence_progress):
    scheduler = service.start_confidence(confidence_progress, catalog)
    scheduler.apply_rating(Rating.GOOD)
    service.finish(scheduler)
    service.quit(scheduler)
    finished, quit_ = outbox.drain()
    assert finished.type == quit_.type
    assert finished.payload == quit_.payload
    assert finished.id != quit_.id


# --- Review ---


def test_start_review_nothing_due(service, anki_progress, catalog):
    progress = replace(anki_progress, table_ids=["missing"])
    assert service.start_review(progress, catalog) is None


def test_review_snapshot_carries_row_updates(service, outbox, anki_progress, review_catalog):
    scheduler = service.start_review(anki_progress, review_catalog)
    scheduler.apply_rating(4)
    service.finish(scheduler)

    (message,) = outbox.drain()
    assert message.type == UPSERT_ROWS
    rows = message.payload["rows"]
    assert [r["rowId"] for r in rows] == ["rl-due"]
    assert rows[0]["stats"]["ankiState"] == "Review"
    assert message.payload["progressId"] == anki_progress.id


# --- Mastery ---


def test_start_mastery(service):
    assert service.start_mastery([]) is None
    assert service.start_mastery(["a", "b"], start_index=2) is None
    drill = service.start_mastery(["a", "b", "c"], start_index=1)
    assert drill.active_queue == ["b", "c"]


def test_mastery_quit_saves_remaining_queue(service, outbox):
    drill = service.start_mastery(["a", "b", "c"])
    drill.apply_rating(False)
    service.quit(drill)

    (message,) = outbox.drain()
    assert message.type == UPSERT_MASTERY
    assert message.payload["studyProgress"] == ["b", "c", "a"]
    assert message.payload["itemStates"]["a"] == "fail"
    assert message.payload["finished"] is False


def test_reinsert_distance_passed_through(outbox, clock):
    service = SessionService(sink=outbox, clock=clock, reinsert_distance=0)
    drill = service.start_mastery(["a", "b", "c"])
    drill.apply_rating(False)
    assert drill.active_queue == ["a", "b", "c"]


# --- Sink failures ---


def test_push_failure_is_logged_not_raised(clock, catalog, confidence_progress, caplog):
    sink = MagicMock(spec=SnapshotSink)
    sink.push.side_effect = OSError("disk full")
    service = SessionService(sink=sink, clock=clock)
    scheduler = service.start_confidence(confidence_progress, catalog)

    assert service.finish(scheduler) is None
    assert "disk full" in caplog.text


def test_unknown_scheduler_type(service):
    with pytest.raises(TypeError):
        service.sync(object())
