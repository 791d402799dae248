"""Centralised application state with per-key subscriptions."""

from collections import deque
import logging
import time
from typing import Any, Callable, Iterable, TypeAlias

from domain.events import EventBus, Unsubscribe
from domain.models import Preferences


logger = logging.getLogger(__name__)


StateListener: TypeAlias = Callable[[Any, Any], None]


# Keys cleared when a new game starts; the account keys survive.
SESSION_KEYS = (
    "vibe_profile",
    "ingredients_at_home",
    "current_vibe_round",
    "is_loading",
    "error",
)


def default_state() -> dict[str, Any]:
    return {
        "username": "",
        "vibe_profile": [],
        "ingredients_at_home": "",
        "favorites": [],
        "preferences": Preferences(),
        "current_vibe_round": 0,
        "is_loading": False,
        "error": None,
    }


class HistoryEntry:
    def __init__(
        self,
        *,
        prev_state: dict[str, Any],
        next_state: dict[str, Any],
        updates: dict[str, Any],
    ) -> None:
        self.timestamp = time.time()
        self.prev_state = prev_state
        self.next_state = next_state
        self.updates = updates


class StateManager:
    """Owns the one mutable `ApplicationState` of a session.

    Only `set_state` mutates. Per-key subscribers get `(new, old)` for every
    key in the update, then a single `state:changed` event carries the delta.
    """

    def __init__(self, bus: EventBus, *, history_size: int = 50) -> None:
        self.bus = bus
        self._state = default_state()
        self._subscribers: dict[str, dict[StateListener, None]] = {}
        self._history: deque[HistoryEntry] = deque(maxlen=history_size)

    def get_state(self) -> dict[str, Any]:
        return dict(self._state)

    def get(self, key: str, default: Any = None) -> Any:
        return self._state.get(key, default)

    def set_state(self, updates: dict[str, Any], silent: bool = False) -> None:
        prev_state = dict(self._state)
        self._state.update(updates)
        next_state = dict(self._state)
        self._history.append(
            HistoryEntry(
                prev_state=prev_state, next_state=next_state, updates=dict(updates)
            )
        )

        if silent:
            return

        for key in updates:
            for callback in list(self._subscribers.get(key, {})):
                try:
                    callback(self._state[key], prev_state.get(key))
                except Exception:
                    logger.exception("Error in state subscriber for %r", key)

        self.bus.emit(
            "state:changed",
            {"updates": dict(updates), "prev_state": prev_state, "next_state": next_state},
        )

    def subscribe(self, key: str, callback: StateListener) -> Unsubscribe:
        self._subscribers.setdefault(key, {})[callback] = None

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key)
            if callbacks is None:
                return
            callbacks.pop(callback, None)
            if not callbacks:
                del self._subscribers[key]

        return unsubscribe

    def reset(self, keys: Iterable[str] | None = None) -> None:
        defaults = default_state()
        keys = SESSION_KEYS if keys is None else keys
        self.set_state({key: defaults.get(key) for key in keys})

    def history(self, limit: int = 10) -> list[HistoryEntry]:
        return list(self._history)[-limit:]
