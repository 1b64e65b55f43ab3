"""Unit tests for SessionStore."""

import os

import pytest
from pubsub import pub

from sleeptracker.models.session import SessionRecord, UNRATED
from sleeptracker.storage.session_store import SessionStore, StoreError


@pytest.fixture
def inline_store():
    """Store that publishes live query results on the writing thread."""
    session_store = SessionStore(":memory:")
    yield session_store
    session_store.close()


@pytest.mark.unit
class TestSessionStore:
    """Test cases for SessionStore."""

    def test_empty_store(self, inline_store):
        assert inline_store.get_latest() is None
        assert inline_store.get(1) is None
        assert inline_store.list_sessions() == []

    def test_insert_assigns_monotonic_ids(self, inline_store):
        first = SessionRecord.new(1000)
        second = SessionRecord.new(2000)

        first_id = inline_store.insert(first)
        second_id = inline_store.insert(second)

        assert first.session_id == first_id
        assert second.session_id == second_id
        assert second_id > first_id

    def test_get_returns_stored_copy(self, inline_store):
        record = SessionRecord.new(1000)
        inline_store.insert(record)

        loaded = inline_store.get(record.session_id)

        assert loaded == record
        assert loaded is not record
        assert loaded.quality == UNRATED

    def test_get_latest_returns_newest(self, inline_store):
        inline_store.insert(SessionRecord.new(1000))
        newest = SessionRecord.new(500)
        inline_store.insert(newest)

        assert inline_store.get_latest().session_id == newest.session_id

    def test_update_matches_by_id(self, inline_store):
        record = SessionRecord.new(1000)
        other = SessionRecord.new(3000)
        inline_store.insert(record)
        inline_store.insert(other)

        record.end_time_ms = 9000
        record.quality = 4
        inline_store.update(record)

        assert inline_store.get(record.session_id).end_time_ms == 9000
        assert inline_store.get(record.session_id).quality == 4
        assert inline_store.get(other.session_id) == other

    def test_update_requires_id(self, inline_store):
        with pytest.raises(StoreError):
            inline_store.update(SessionRecord.new(1000))

    def test_clear_removes_everything(self, inline_store):
        for start in (1000, 2000, 3000):
            inline_store.insert(SessionRecord.new(start))

        inline_store.clear()

        assert inline_store.list_sessions() == []
        assert inline_store.get_latest() is None

    def test_list_sessions_newest_first(self, inline_store):
        ids = [inline_store.insert(SessionRecord.new(start)) for start in (1000, 2000, 3000)]

        listed = [session.session_id for session in inline_store.list_sessions()]

        assert listed == list(reversed(ids))

    def test_closed_store_raises_store_error(self):
        session_store = SessionStore(":memory:")
        session_store.close()

        with pytest.raises(StoreError):
            session_store.get_latest()

    def test_persists_across_reopen(self, temp_data_dir):
        db_path = os.path.join(temp_data_dir, "nested", "sleep.db")
        session_store = SessionStore(db_path)
        record = SessionRecord.new(1000)
        session_store.insert(record)
        session_store.close()

        reopened = SessionStore(db_path)
        try:
            assert reopened.get(record.session_id) == record
        finally:
            reopened.close()


@pytest.mark.unit
class TestLiveQuery:
    """Test cases for the live session list."""

    def test_initial_value_is_loaded(self, inline_store):
        inline_store.insert(SessionRecord.new(1000))

        live = inline_store.get_all()

        assert len(live.value) == 1

    def test_refreshed_after_each_write(self, inline_store):
        live = inline_store.get_all()
        sizes = []
        live.observe(lambda sessions: sizes.append(len(sessions)))

        record = SessionRecord.new(1000)
        inline_store.insert(record)
        inline_store.insert(SessionRecord.new(2000))
        record.quality = 2
        inline_store.update(record)
        inline_store.clear()

        assert sizes == [0, 1, 2, 2, 0]

    def test_deferred_load(self, inline_store):
        inline_store.insert(SessionRecord.new(1000))

        live = inline_store.get_all(preload=False)
        assert not live.has_value

        inline_store.load(live)

        assert len(live.value) == 1

    def test_closed_query_is_not_refreshed(self, inline_store):
        live = inline_store.get_all()
        live.close()

        inline_store.insert(SessionRecord.new(1000))

        assert live.value == []

    def test_results_go_through_dispatcher(self):
        dispatched = []
        session_store = SessionStore(":memory:", dispatcher=lambda fn, *args: dispatched.append((fn, args)))
        try:
            live = session_store.get_all()
            seen = []
            live.observe(seen.append)

            session_store.insert(SessionRecord.new(1000))
            assert seen == [[]]
            assert len(dispatched) == 1

            fn, args = dispatched[0]
            fn(*args)
            assert len(seen[-1]) == 1
        finally:
            session_store.close()


@pytest.mark.unit
def test_store_events_are_published(inline_store):
    events = []

    def on_event(event):
        events.append(event)

    pub.subscribe(on_event, inline_store.topic)
    try:
        record = SessionRecord.new(1000)
        inline_store.insert(record)
        inline_store.update(record)
        inline_store.clear()
    finally:
        pub.unsubscribe(on_event, inline_store.topic)

    assert [event.action for event in events] == ["inserted", "updated", "cleared"]
    assert events[0].session_id == record.session_id
    assert events[1].session_id == record.session_id
