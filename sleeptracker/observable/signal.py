"""One-shot signals with explicit acknowledgment."""

from typing import Any, Callable, Optional

from .live_value import MutableLiveValue


class Signal(MutableLiveValue):
    """Observable event that must be acknowledged after it was acted upon.

    The signal rests at ``rest`` (``None`` or ``False``). ``emit`` publishes
    a value, the observer reacts to it and then calls ``acknowledge`` which
    puts the signal back at rest. Acknowledging a signal that is already at
    rest publishes nothing.
    """

    def __init__(self, name: str = "signal", rest: Any = None,
                 guard: Optional[Callable[[], None]] = None):
        super().__init__(name, initial=rest, guard=guard)
        self.rest = rest

    @property
    def pending(self) -> bool:
        return self._value != self.rest

    def emit(self, value: Any = True) -> None:
        self.set_value(value)

    def acknowledge(self) -> None:
        if not self.pending:
            return
        self.set_value(self.rest)

    def consume(self) -> Any:
        """Return the pending value (or ``rest``) and acknowledge it."""
        if not self.pending:
            return self.rest
        value = self._value
        self.acknowledge()
        return value
