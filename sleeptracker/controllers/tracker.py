"""Controller for the sleep tracking screen."""

import concurrent.futures
import dataclasses
import logging
from typing import Callable, Iterable, Optional

from ..concurrency.scope import LifecycleScope
from ..formatting import format_sessions
from ..models.session import SessionRecord, now_ms
from ..observable.live_value import LiveValue, map_live
from ..observable.signal import Signal
from ..storage.session_store import SessionStore
from .base import BaseController

logger = logging.getLogger(__name__)


class SessionTrackingController(BaseController):
    """Start, stop and clear sleep sessions.

    Published state:
        current: the in-progress session, or None
        all_sessions: live list of every stored session, newest first
        start_visible / stop_visible: derived from ``current``
        clear_visible / display_text: derived from ``all_sessions``
        snackbar_signal: True once after all data was cleared
        proceed_to_rating_signal: the session that was just stopped
    """

    def __init__(self,
                 store: SessionStore,
                 scope: LifecycleScope,
                 formatter: Callable[[Iterable[SessionRecord]], str] = format_sessions,
                 clock: Callable[[], int] = now_ms):
        super().__init__(store, scope)
        self.formatter = formatter
        self.clock = clock

        self._current = self._live("current")
        # Filled on the IO executor by the initial fetch
        self._all_sessions = self._own(store.get_all(preload=False))

        self._start_visible = self._own(map_live(self._current, lambda session: session is None, "start_visible"))
        self._stop_visible = self._own(map_live(self._current, lambda session: session is not None, "stop_visible"))
        self._clear_visible = self._own(map_live(self._all_sessions, lambda sessions: bool(sessions), "clear_visible"))
        self._display_text = self._own(map_live(self._all_sessions, self.formatter, "display_text"))

        self._snackbar = self._signal("snackbar", rest=False)
        self._proceed_to_rating = self._signal("proceed_to_rating", rest=None)

        self.scope.launch(self._initialize_current)

    @property
    def current(self) -> LiveValue:
        return self._current

    @property
    def all_sessions(self) -> LiveValue:
        return self._all_sessions

    @property
    def start_visible(self) -> LiveValue:
        return self._start_visible

    @property
    def stop_visible(self) -> LiveValue:
        return self._stop_visible

    @property
    def clear_visible(self) -> LiveValue:
        return self._clear_visible

    @property
    def display_text(self) -> LiveValue:
        return self._display_text

    @property
    def snackbar_signal(self) -> Signal:
        return self._snackbar

    @property
    def proceed_to_rating_signal(self) -> Signal:
        return self._proceed_to_rating

    async def _initialize_current(self) -> None:
        await self.scope.io(self.store.load, self._all_sessions)
        self._current.set_value(await self._fetch_current())

    async def _fetch_current(self) -> Optional[SessionRecord]:
        """Latest stored session if it is still in progress, else None."""
        session = await self.scope.io(self.store.get_latest)
        if session is not None and not session.is_in_progress:
            session = None
        return session

    def start(self) -> Optional[concurrent.futures.Future]:
        return self.scope.launch(self._start)

    async def _start(self) -> None:
        session = SessionRecord.new(self.clock())
        await self.scope.io(self.store.insert, session)
        logger.info(f"Started session {session.session_id}")
        # Re-read so current reflects what was actually stored
        self._current.set_value(await self._fetch_current())

    def stop(self) -> Optional[concurrent.futures.Future]:
        return self.scope.launch(self._stop)

    async def _stop(self) -> None:
        session = self._current.value
        if session is None:
            logger.debug("Stop requested with no session in progress")
            return
        stopped = dataclasses.replace(session, end_time_ms=self.clock())
        await self.scope.io(self.store.update, stopped)
        session.end_time_ms = stopped.end_time_ms
        logger.info(f"Stopped session {session.session_id}")
        # current is intentionally left populated until the next refresh
        self._proceed_to_rating.emit(session)

    def clear(self) -> Optional[concurrent.futures.Future]:
        return self.scope.launch(self._clear)

    async def _clear(self) -> None:
        await self.scope.io(self.store.clear)
        self._current.set_value(None)
        self._snackbar.emit(True)

    def acknowledge_snackbar(self) -> None:
        self.scope.run_on_foreground(self._snackbar.acknowledge)

    def acknowledge_proceed_to_rating(self) -> None:
        self.scope.run_on_foreground(self._proceed_to_rating.acknowledge)
