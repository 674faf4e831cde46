"""Tests for the JSON state store."""

import json
import logging
from datetime import datetime
from pathlib import Path

import pytest

from contrib_finder.errors import StateSaveError
from contrib_finder.models import Match, State
from contrib_finder.state import StateStore


def _sample_state() -> State:
    return State(
        processed_issues={"x/y/1", "x/y/2", "foo/bar/42"},
        all_matches=[
            Match(
                repo="x/y", issue_number=2, title="Add retries", url="https://github.com/x/y/issues/2",
                match_reason="Uses Go", estimated_effort="small", labels=["good first issue"],
                created_at="2025-01-02", found_at="2025-01-03 10:00",
            ),
            Match(repo="foo/bar", issue_number=42, estimated_effort="weird"),
        ],
    )


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "state.json")


class TestLoad:
    def test_missing_file_is_empty_state(self, store):
        state = store.load()
        assert state.processed_issues == set()
        assert state.all_matches == []
        assert state.last_run == ""

    @pytest.mark.parametrize("content", [
        "",
        "not json at all",
        '{"processed_issues": {"a/b/1": true',
        "[1, 2, 3]",
        '{"processed_issues": ["a/b/1"]}',
        '{"all_matches": {"repo": "a/b"}}',
        '{"all_matches": [{"repo": "a/b", "issue_number": "abc"}]}',
        '{"all_matches": [{"repo": "a/b", "labels": "bug"}]}',
        '{"all_matches": [{"repo": "a/b", "issue_number": 1e999}]}',
        pytest.param("[" * 100000 + "]" * 100000, id="deeply-nested"),
    ])
    def test_corrupt_file_is_empty_state(self, store, content):
        store.path.write_text(content)
        state = store.load()
        assert state.processed_issues == set()
        assert state.all_matches == []

    def test_binary_garbage_is_empty_state(self, store):
        store.path.write_bytes(b"\xff\xfe\x00garbage")
        assert store.load() == State()

    def test_directory_instead_of_file_is_empty_state(self, store):
        store.path.mkdir()
        assert store.load() == State()

    def test_corruption_logged_to_injected_logger(self, tmp_path, caplog):
        path = tmp_path / "state.json"
        path.write_text("{broken")
        store = StateStore(path, logger=logging.getLogger("tests.state_observer"))
        with caplog.at_level(logging.WARNING, logger="tests.state_observer"):
            store.load()
        assert any(
            r.name == "tests.state_observer" and r.levelno == logging.WARNING
            for r in caplog.records
        )

    def test_reads_utc_timestamps_and_matches(self, store):
        store.path.write_text(json.dumps({
            "last_run": "2025-01-01T10:00:00Z",
            "processed_issues": {"a/b/1": True},
            "all_matches": [{"repo": "a/b", "issue_number": 1, "found_at": "2025-01-01 10:00"}],
        }))
        state = store.load()
        assert state.last_run == "2025-01-01T10:00:00Z"
        assert state.processed_issues == {"a/b/1"}
        assert state.all_matches[0].found_at == "2025-01-01 10:00"


class TestSave:
    def test_round_trip(self, store):
        state = _sample_state()
        store.save(state)
        assert store.load() == state

    def test_stamps_last_run(self, store):
        state = State()
        before = datetime.now().astimezone().replace(microsecond=0)
        store.save(state)
        stamped = datetime.fromisoformat(state.last_run)
        assert stamped.tzinfo is not None
        assert stamped >= before
        assert store.load().last_run == state.last_run

    def test_file_shape(self, store):
        store.save(_sample_state())
        data = json.loads(store.path.read_text())
        assert set(data) == {"last_run", "processed_issues", "all_matches"}
        assert data["processed_issues"] == {"foo/bar/42": True, "x/y/1": True, "x/y/2": True}
        assert data["all_matches"][0]["estimated_effort"] == "small"

    def test_creates_parent_directories(self, tmp_path):
        store = StateStore(tmp_path / "a" / "b" / "state.json")
        store.save(State())
        assert store.path.exists()

    def test_no_temp_file_left(self, store):
        store.save(_sample_state())
        assert [p.name for p in store.path.parent.iterdir()] == ["state.json"]

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("I am a file")
        store = StateStore(blocker / "state.json")
        with pytest.raises(StateSaveError):
            store.save(State())

    def test_failed_save_keeps_last_run(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        state = State(last_run="2025-01-01T10:00:00+00:00")
        with pytest.raises(StateSaveError):
            StateStore(blocker / "state.json").save(state)
        assert state.last_run == "2025-01-01T10:00:00+00:00"

    def test_cleanup_failure_still_raises_save_error(self, store, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError("disk gone")

        monkeypatch.setattr("contrib_finder.state.os.replace", fail)
        monkeypatch.setattr(Path, "unlink", fail)
        state = State()
        with pytest.raises(StateSaveError, match="disk gone"):
            store.save(state)
        assert state.last_run == ""

    def test_overwrites_previous_save(self, store):
        store.save(_sample_state())
        store.save(State(processed_issues={"only/one/1"}))
        assert store.load().processed_issues == {"only/one/1"}


class TestClearAndStats:
    def test_clear_discards_history(self, store):
        store.save(_sample_state())
        store.clear()
        state = store.load()
        assert state.processed_issues == set()
        assert state.all_matches == []
        assert state.last_run != ""

    def test_clear_unwritable_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(StateSaveError):
            StateStore(blocker / "state.json").clear()

    def test_stats(self, store):
        store.save(_sample_state())
        assert store.stats() == (3, 2)

    def test_stats_does_not_write(self, store):
        store.save(_sample_state())
        before = store.path.read_bytes()
        store.stats()
        assert store.path.read_bytes() == before

    def test_stats_missing_file(self, store):
        assert store.stats() == (0, 0)
        assert not store.exists()
