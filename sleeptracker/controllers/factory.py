"""Builds controllers with their dependencies and a fresh lifecycle scope."""

import concurrent.futures
import itertools
import logging
from typing import Callable, Iterable

from ..concurrency.dispatchers import ForegroundLoop
from ..concurrency.scope import LifecycleScope
from ..formatting import format_sessions
from ..models.session import SessionRecord, now_ms
from ..storage.session_store import SessionStore
from .quality import SessionQualityController
from .tracker import SessionTrackingController

logger = logging.getLogger(__name__)


class ControllerFactory:
    """Shares one store, foreground loop and IO pool between controllers."""

    def __init__(self,
                 store: SessionStore,
                 foreground: ForegroundLoop,
                 io_executor: concurrent.futures.Executor,
                 formatter: Callable[[Iterable[SessionRecord]], str] = format_sessions,
                 clock: Callable[[], int] = now_ms):
        self.store = store
        self.foreground = foreground
        self.io_executor = io_executor
        self.formatter = formatter
        self.clock = clock
        self._scope_ids = itertools.count(1)

    def new_scope(self, prefix: str) -> LifecycleScope:
        return LifecycleScope(self.foreground, self.io_executor, name=f"{prefix}{next(self._scope_ids)}")

    def tracker(self) -> SessionTrackingController:
        return SessionTrackingController(self.store, self.new_scope("tracker"), formatter=self.formatter, clock=self.clock)

    def quality(self, session_id: int) -> SessionQualityController:
        return SessionQualityController(session_id, self.store, self.new_scope("quality"))
