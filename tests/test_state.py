import json
from datetime import datetime, timedelta, timezone

import pytest

from lodestone.apply.state import STATE_FILENAME, ApplyRecord, ApplyState

NOW = datetime(2026, 5, 20, 12, 0, 0, tzinfo=timezone.utc)


def test_append_and_list(tmp_path):
    state = ApplyState(tmp_path)
    record = ApplyRecord(
        rec_id="rec-1",
        branch="lodestone/apply-x-2026-05-20",
        status="draft_open",
        applied_at=NOW,
    )
    state.append(record)
    got = state.list()
    assert len(got) == 1
    assert got[0].rec_id == "rec-1"
    assert got[0].applied_at == NOW
    assert got[0] == record


def test_list_missing_file_is_empty(tmp_path):
    assert ApplyState(tmp_path / "store").list() == []
    assert (tmp_path / "store").is_dir()


def test_path_is_under_root(tmp_path):
    assert ApplyState(tmp_path).path() == tmp_path / STATE_FILENAME


def test_find_by(tmp_path):
    state = ApplyState(tmp_path)
    state.append(ApplyRecord(rec_id="r", branch="b", status="draft_open"))
    assert state.find_by("b").rec_id == "r"
    assert state.find_by("r").branch == "b"
    assert state.find_by("missing") is None


def test_append_stamps_time(tmp_path):
    state = ApplyState(tmp_path)
    before = datetime.now(timezone.utc)
    state.append(ApplyRecord(rec_id="r", branch="b"))
    stamped = state.list()[0].applied_at
    assert before - timedelta(seconds=1) <= stamped <= datetime.now(timezone.utc)


def test_replace_updates_matching_branch(tmp_path):
    state = ApplyState(tmp_path)
    state.append(ApplyRecord(rec_id="r1", branch="b1", status="draft_open", applied_at=NOW))
    state.append(ApplyRecord(rec_id="r2", branch="b2", status="draft_open", applied_at=NOW))
    state.replace(ApplyRecord(rec_id="r1", branch="b1", status="undone", applied_at=NOW))
    statuses = [(a.branch, a.status) for a in state.list()]
    assert statuses == [("b1", "undone"), ("b2", "draft_open")]
    assert [p.name for p in tmp_path.iterdir()] == [STATE_FILENAME]


def test_to_dict_omits_empty_pr_fields():
    data = ApplyRecord(rec_id="r", branch="b", status="s", applied_at=NOW).to_dict()
    assert data == {
        "rec_id": "r",
        "branch": "b",
        "status": "s",
        "applied_at": "2026-05-20T12:00:00Z",
    }


def test_dict_round_trip_with_pr():
    record = ApplyRecord(
        rec_id="r",
        branch="b",
        status="draft_open",
        pr_number=42,
        pr_url="https://github.com/x/y/pull/42",
        applied_at=NOW,
    )
    data = record.to_dict()
    assert data["pr_number"] == 42
    assert ApplyRecord.from_dict(json.loads(json.dumps(data))) == record


def test_list_rejects_garbage(tmp_path):
    (tmp_path / STATE_FILENAME).write_text("not json\n", encoding="utf-8")
    with pytest.raises(ValueError, match="decode apply"):
        ApplyState(tmp_path).list()