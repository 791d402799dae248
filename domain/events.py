import logging
from typing import Any, Callable, TypeAlias


logger = logging.getLogger(__name__)


Listener: TypeAlias = Callable[[Any], None]
Unsubscribe: TypeAlias = Callable[[], None]


class EventBus:
    """Synchronous publish/subscribe register.

    Callbacks are kept per event name in insertion order and behave as a set:
    subscribing the same callback twice registers it once.
    """

    def __init__(self) -> None:
        self._events: dict[str, dict[Listener, None]] = {}

    def subscribe(self, event: str, callback: Listener) -> Unsubscribe:
        self._events.setdefault(event, {})[callback] = None

        def unsubscribe() -> None:
            callbacks = self._events.get(event)
            if callbacks is None:
                return
            callbacks.pop(callback, None)
            if not callbacks:
                del self._events[event]

        return unsubscribe

    def emit(self, event: str, data: Any = None) -> None:
        callbacks = self._events.get(event)
        if not callbacks:
            return
        for callback in list(callbacks):
            # Skip anything unsubscribed earlier in this same emit.
            if callback not in self._events.get(event, {}):
                continue
            try:
                callback(data)
            except Exception:
                logger.exception("Error in event callback for %r", event)

    def off(self, event: str) -> None:
        self._events.pop(event, None)

    def clear(self) -> None:
        self._events.clear()

    def listener_count(self, event: str) -> int:
        return len(self._events.get(event, {}))
