"""
Tests for the JSON session store
"""

import json
from datetime import timedelta

from interview_proctor.proctor.events import create_event
from interview_proctor.proctor.models import EventType, SessionData
from interview_proctor.proctor.store import SessionStore

from .conftest import START_TIME


def finished_session(name="Alice"):
    return SessionData(
        candidate_name=name,
        start_time=START_TIME,
        end_time=START_TIME + timedelta(minutes=3),
        events=[create_event(EventType.NO_FACE, "gone", START_TIME + timedelta(seconds=10))]
    )


class TestSessionStore:
    """Tests for SessionStore"""

    def test_empty_store(self, store):
        assert store.get_current() is None
        assert store.list_completed() == []

    def test_save_current(self, store):
        session = SessionData("Alice", START_TIME)

        assert store.save_current(session)

        assert store.get_current() == session
        assert store.list_completed() == []

    def test_archive(self, store):
        store.save_current(SessionData("Alice", START_TIME))
        session = finished_session()

        assert store.archive(session)

        assert store.get_current() is None
        assert store.list_completed() == [session]

    def test_archive_keeps_order(self, store):
        store.archive(finished_session("Alice"))
        store.archive(finished_session("Bob"))

        assert [s.candidate_name for s in store.list_completed()] == ["Alice", "Bob"]

    def test_refuses_recording_session(self, store):
        assert not store.archive(SessionData("Alice", START_TIME))
        assert store.list_completed() == []

    def test_clear_current(self, store):
        store.save_current(SessionData("Alice", START_TIME))

        assert store.clear_current()
        assert store.get_current() is None

    def test_record_shape(self, store):
        store.archive(finished_session())

        with open(store.path, encoding="utf-8") as f:
            record = json.load(f)

        assert set(record) == {"completed_sessions", "current_session"}
        assert record["current_session"] is None
        assert record["completed_sessions"][0]["candidate_name"] == "Alice"
        assert record["completed_sessions"][0]["events"][0]["type"] == "no_face"

    def test_corrupt_file_treated_as_empty(self, tmp_path):
        path = tmp_path / "sessions.json"
        path.write_text("{not json", encoding="utf-8")
        store = SessionStore(str(path))

        assert store.list_completed() == []
        assert store.archive(finished_session())
        assert len(store.list_completed()) == 1

    def test_creates_parent_directories(self, tmp_path):
        store = SessionStore(str(tmp_path / "nested" / "dir" / "sessions.json"))

        assert store.save_current(SessionData("Alice", START_TIME))
        assert store.path.exists()
