"""Common plumbing for controllers: lifecycle scope, published state, teardown."""

import logging
from typing import Any, List, TypeVar

from ..concurrency.scope import LifecycleScope
from ..observable.live_value import LiveValue, MutableLiveValue
from ..observable.signal import Signal
from ..storage.session_store import SessionStore

logger = logging.getLogger(__name__)

V = TypeVar("V", bound=LiveValue)


class BaseController:
    """Owns a LifecycleScope and the observable state it publishes.

    Published values may only be mutated on the scope's foreground thread.
    Every owned value is closed on teardown, which also deletes its topic.
    """

    def __init__(self, store: SessionStore, scope: LifecycleScope):
        self.store = store
        self.scope = scope
        self._torn_down = False
        self._owned: List[LiveValue] = []

    def _own(self, value: V) -> V:
        self._owned.append(value)
        return value

    def _live(self, name: str) -> MutableLiveValue:
        return self._own(MutableLiveValue(f"{self.scope.name}_{name}", guard=self.scope.foreground.assert_current))

    def _signal(self, name: str, rest: Any = None) -> Signal:
        return self._own(Signal(f"{self.scope.name}_{name}", rest=rest, guard=self.scope.foreground.assert_current))

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def teardown(self) -> None:
        """Cancel all work launched by this controller. Safe to call repeatedly."""
        if self._torn_down:
            return
        self._torn_down = True
        self.scope.cancel()
        self.scope.run_on_foreground(self._close_owned)
        logger.info(f"{type(self).__name__} torn down")

    def _close_owned(self) -> None:
        # Derived values go first so they stop following their sources
        for value in reversed(self._owned):
            value.close()
        self._owned.clear()
