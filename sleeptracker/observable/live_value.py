"""Observable values delivered through pypubsub topics."""

import itertools
import logging
import re
from typing import Any, Callable, Dict, Optional

from pubsub import pub

logger = logging.getLogger(__name__)

Observer = Callable[[Any], None]

_UNSET = object()
_topic_ids = itertools.count(1)


def _value_proto(value):
    """Prototype listener: value topics carry a single `value` argument."""


def ensure_topic(topic: str, proto_listener: Callable) -> None:
    """Create a pub/sub topic whose message data matches ``proto_listener``."""
    pub.getDefaultTopicMgr().getOrCreateTopic(topic, proto_listener)


def _topic_name(name: str) -> str:
    safe = re.sub(r"\W", "_", name)
    return f"live_v{next(_topic_ids)}_{safe}"


class LiveValue:
    """Read-only observable value.

    Each instance owns a private pub/sub topic. Observers are called
    synchronously on the thread that publishes, and a new observer receives
    the current value right away if one was ever published.
    """

    def __init__(self, name: str = "value", initial: Any = _UNSET):
        self.name = name
        self.topic = _topic_name(name)
        self._value: Any = None
        self._has_value = False
        self._closed = False
        # pypubsub keeps weak references, the adapters live here
        self._listeners: Dict[Observer, Callable] = {}

        if initial is not _UNSET:
            self._value = initial
            self._has_value = True

        ensure_topic(self.topic, _value_proto)

    @property
    def value(self) -> Any:
        return self._value

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def observer_count(self) -> int:
        return len(self._listeners)

    def observe(self, callback: Observer) -> Observer:
        """Register ``callback`` and return it (handy for later removal).

        A closed value only delivers its last value to new observers.
        """
        if callback in self._listeners:
            return callback
        if self._closed:
            if self._has_value:
                callback(self._value)
            return callback

        def deliver(value):
            callback(value)

        self._listeners[callback] = deliver
        pub.subscribe(deliver, self.topic)
        if self._has_value:
            callback(self._value)
        return callback

    def remove_observer(self, callback: Observer) -> None:
        deliver = self._listeners.pop(callback, None)
        if deliver is not None:
            pub.unsubscribe(deliver, self.topic)

    def close(self) -> None:
        """Drop every observer and delete the topic. The last value is kept."""
        if self._closed:
            return
        self._closed = True
        pub.getDefaultTopicMgr().delTopic(self.topic)
        self._listeners.clear()

    def _publish(self, value: Any) -> None:
        if self._closed:
            return
        self._value = value
        self._has_value = True
        pub.sendMessage(self.topic, value=value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name}={self._value!r})"


class MutableLiveValue(LiveValue):
    """Observable value with a public setter.

    Args:
        name: Label used in the topic name and logs
        initial: Optional initial value (not broadcast)
        guard: Called before every mutation, raises when the caller is not
               allowed to publish (e.g. off the foreground thread)
    """

    def __init__(self, name: str = "value", initial: Any = _UNSET,
                 guard: Optional[Callable[[], None]] = None):
        super().__init__(name, initial)
        self._guard = guard

    def set_value(self, value: Any) -> None:
        if self._guard is not None:
            self._guard()
        self._publish(value)


class DerivedLiveValue(LiveValue):
    """Value recomputed from a source every time the source publishes."""

    def __init__(self, source: LiveValue, transform: Callable[[Any], Any], name: str = "derived"):
        super().__init__(name)
        self._source = source
        self._transform = transform
        self._attached = True
        source.observe(self._on_source_changed)

    def _on_source_changed(self, value: Any) -> None:
        self._publish(self._transform(value))

    def detach(self) -> None:
        """Stop following the source; the last value is kept."""
        if self._attached:
            self._source.remove_observer(self._on_source_changed)
            self._attached = False

    def close(self) -> None:
        self.detach()
        super().close()


def map_live(source: LiveValue, transform: Callable[[Any], Any], name: Optional[str] = None) -> DerivedLiveValue:
    """Derive an observable from ``source`` through ``transform``."""
    return DerivedLiveValue(source, transform, name or f"{source.name}_mapped")
