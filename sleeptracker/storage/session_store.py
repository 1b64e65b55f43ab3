"""SQLite storage for sleep sessions."""

import logging
import sqlite3
import threading
import weakref
from pathlib import Path
from typing import Any, Callable, List, Optional

from pubsub import pub

from ..models.events import SessionStoreEvent
from ..models.session import SessionRecord, UNRATED
from ..observable.live_value import LiveValue, ensure_topic

logger = logging.getLogger(__name__)

Dispatcher = Callable[..., None]

_COLUMNS = "session_id, start_time_ms, end_time_ms, quality"


class StoreError(Exception):
    """Raised when the underlying database fails."""


def _store_event_proto(event):
    """Prototype listener: store topics carry a single `event` argument."""


class LiveQuery(LiveValue):
    """Observable result of a store query.

    The store calls ``refresh`` after every write. The new result is handed
    to the dispatcher (e.g. ``ForegroundLoop.post``) so observers run on the
    foreground thread; without a dispatcher it is published inline.
    With ``preload=False`` the query has no value until its first refresh.
    """

    def __init__(self, query: Callable[[], Any], dispatcher: Optional[Dispatcher] = None,
                 name: str = "query", preload: bool = True):
        if preload:
            super().__init__(name, initial=query())
        else:
            super().__init__(name)
        self._query = query
        self._dispatcher = dispatcher

    def refresh(self) -> None:
        if self.is_closed:
            return
        result = self._query()
        if self._dispatcher is None:
            self._publish(result)
        else:
            self._dispatcher(self._publish, result)


class SessionStore:
    """Single-table session store.

    One shared connection guarded by a lock, so every call is atomic with
    respect to the others regardless of the calling thread.
    """

    def __init__(self,
                 db_path: str = ":memory:",
                 dispatcher: Optional[Dispatcher] = None,
                 topic: str = "sleeptracker_store"):
        """Open (and create if needed) the session database.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
            dispatcher: Delivers live query results, see LiveQuery
            topic: Pub/sub topic for SessionStoreEvent notifications
        """
        self.db_path = db_path
        self.dispatcher = dispatcher
        self.topic = topic
        self._lock = threading.RLock()
        self._live_queries: "weakref.WeakSet[LiveQuery]" = weakref.WeakSet()

        if db_path != ":memory:":
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(path)

        try:
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self._create_tables()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open session store at {self.db_path}: {e}") from e

        ensure_topic(self.topic, _store_event_proto)
        logger.info(f"SessionStore initialized at {self.db_path}")

    def _create_tables(self) -> None:
        self.conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS sleep_sessions (
                session_id INTEGER PRIMARY KEY AUTOINCREMENT,
                start_time_ms INTEGER NOT NULL,
                end_time_ms INTEGER NOT NULL,
                quality INTEGER NOT NULL DEFAULT {UNRATED}
            )
            """
        )
        self.conn.commit()

    @staticmethod
    def _to_record(row: Optional[sqlite3.Row]) -> Optional[SessionRecord]:
        if row is None:
            return None
        return SessionRecord(
            session_id=row["session_id"],
            start_time_ms=row["start_time_ms"],
            end_time_ms=row["end_time_ms"],
            quality=row["quality"],
        )

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Query failed: {e}")
                raise StoreError(str(e)) from e

    def _write(self, sql: str, params: tuple, event: SessionStoreEvent) -> sqlite3.Cursor:
        with self._lock:
            try:
                cursor = self.conn.execute(sql, params)
                self.conn.commit()
            except sqlite3.Error as e:
                logger.error(f"Write failed ({event.action}): {e}")
                self.conn.rollback()
                raise StoreError(str(e)) from e

            if event.action == "inserted":
                event.session_id = cursor.lastrowid
            # Refresh under the lock so results are delivered in write order
            for live_query in list(self._live_queries):
                live_query.refresh()

        pub.sendMessage(self.topic, event=event)
        return cursor

    def get(self, session_id: int) -> Optional[SessionRecord]:
        rows = self._query(f"SELECT {_COLUMNS} FROM sleep_sessions WHERE session_id = ?", (session_id,))
        return self._to_record(rows[0]) if rows else None

    def get_latest(self) -> Optional[SessionRecord]:
        """Most recently created session, or None if the store is empty."""
        rows = self._query(f"SELECT {_COLUMNS} FROM sleep_sessions ORDER BY session_id DESC LIMIT 1")
        return self._to_record(rows[0]) if rows else None

    def list_sessions(self) -> List[SessionRecord]:
        """All sessions, newest first."""
        rows = self._query(f"SELECT {_COLUMNS} FROM sleep_sessions ORDER BY session_id DESC")
        return [self._to_record(row) for row in rows]

    def get_all(self, preload: bool = True) -> LiveQuery:
        """Live list of all sessions (newest first), refreshed on every write.

        Pass ``preload=False`` to get an empty query without touching the
        database, then fill it with ``load`` from a background thread.
        """
        with self._lock:
            live_query = LiveQuery(self.list_sessions, self.dispatcher, name="all_sessions", preload=preload)
            self._live_queries.add(live_query)
        return live_query

    def load(self, live_query: LiveQuery) -> None:
        """Refresh ``live_query`` in order with concurrent writes."""
        with self._lock:
            live_query.refresh()

    def insert(self, record: SessionRecord) -> int:
        """Insert ``record`` and assign its ``session_id``."""
        cursor = self._write(
            "INSERT INTO sleep_sessions (start_time_ms, end_time_ms, quality) VALUES (?, ?, ?)",
            (record.start_time_ms, record.end_time_ms, record.quality),
            SessionStoreEvent(action="inserted"),
        )
        record.session_id = cursor.lastrowid
        logger.debug(f"Inserted session {record.session_id}")
        return record.session_id

    def update(self, record: SessionRecord) -> None:
        if record.session_id is None:
            raise StoreError("Cannot update a session that was never inserted")
        self._write(
            "UPDATE sleep_sessions SET start_time_ms = ?, end_time_ms = ?, quality = ? WHERE session_id = ?",
            (record.start_time_ms, record.end_time_ms, record.quality, record.session_id),
            SessionStoreEvent(action="updated", session_id=record.session_id),
        )
        logger.debug(f"Updated session {record.session_id}")

    def clear(self) -> None:
        """Delete every session."""
        self._write("DELETE FROM sleep_sessions", (), SessionStoreEvent(action="cleared"))
        logger.info("Cleared all sessions")

    def close(self) -> None:
        with self._lock:
            self.conn.close()
        logger.info(f"SessionStore closed: {self.db_path}")
