import json

import pytest
from pydantic import ValidationError

from cadence.domain.constants import UPSERT_MASTERY, UPSERT_STUDY_SET
from cadence.infrastructure.outbox import JsonlOutbox, MemoryOutbox


def test_memory_outbox_fifo():
    outbox = MemoryOutbox()
    first = outbox.push(UPSERT_STUDY_SET, {"id": "p1"})
    second = outbox.push(UPSERT_MASTERY, {"xp": 10})
    assert len(outbox) == 2

    drained = outbox.drain()
    assert [m.id for m in drained] == [first, second]
    assert drained[0].payload == {"id": "p1"}
    assert len(outbox) == 0
    assert outbox.drain() == []


def test_unknown_message_type_rejected():
    with pytest.raises(ValidationError):
        MemoryOutbox().push("DELETE_EVERYTHING", {})


def test_jsonl_outbox_appends_lines(tmp_path):
    path = tmp_path / "nested" / "outbox.jsonl"
    outbox = JsonlOutbox(path)
    assert outbox.pending() == []

    message_id = outbox.push(UPSERT_STUDY_SET, {"queue": ["a"]})
    outbox.push(UPSERT_STUDY_SET, {"queue": []})

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["id"] == message_id
    assert first["type"] == UPSERT_STUDY_SET
    assert "createdAt" in first

    pending = outbox.pending()
    assert [m.payload["queue"] for m in pending] == [["a"], []]
