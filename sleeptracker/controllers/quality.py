"""Controller for rating a finished sleep session."""

import concurrent.futures
import logging
from typing import Optional

from ..concurrency.scope import LifecycleScope
from ..models.session import MIN_QUALITY, MAX_QUALITY
from ..observable.signal import Signal
from ..storage.session_store import SessionStore
from .base import BaseController

logger = logging.getLogger(__name__)


class SessionQualityController(BaseController):
    """Applies a quality rating to one stored session.

    ``proceed_signal`` becomes True once the rating was persisted; the
    observer acts on it and then calls ``acknowledge_proceed``.
    """

    def __init__(self, session_id: int, store: SessionStore, scope: LifecycleScope):
        super().__init__(store, scope)
        self.session_id = session_id
        self._proceed = self._signal("proceed", rest=None)
        logger.info(f"SessionQualityController created for session {session_id}")

    @property
    def proceed_signal(self) -> Signal:
        return self._proceed

    def set_quality(self, rating: int) -> Optional[concurrent.futures.Future]:
        """Rate the session; silently does nothing if it no longer exists."""
        if not MIN_QUALITY <= rating <= MAX_QUALITY:
            raise ValueError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {rating}")
        return self.scope.launch(self._set_quality, rating)

    async def _set_quality(self, rating: int) -> None:
        session = await self.scope.io(self._rate_stored_session, rating)
        if session is None:
            return
        logger.info(f"Session {self.session_id} rated {rating}")
        self._proceed.emit(True)

    def _rate_stored_session(self, rating: int):
        # Background phase: read-modify-write in one IO call
        session = self.store.get(self.session_id)
        if session is None:
            logger.debug(f"Session {self.session_id} not found, rating dropped")
            return None
        session.quality = rating
        self.store.update(session)
        return session

    def acknowledge_proceed(self) -> None:
        self.scope.run_on_foreground(self._proceed.acknowledge)
