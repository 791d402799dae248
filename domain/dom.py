"""A headless stand-in for the bits of the DOM the client uses.

Containers hold rendered markup, carry inline style and dispatch events to
listeners. There is no tree and no selector engine.
"""

import itertools
import time
from typing import Any, Callable, TypeAlias


Handler: TypeAlias = Callable[["Event"], None]
Disposer: TypeAlias = Callable[[], None]


_ids = itertools.count(1)


class Touch:
    def __init__(self, client_x: float, client_y: float) -> None:
        self.client_x = client_x
        self.client_y = client_y


class Event:
    def __init__(
        self,
        type: str,
        *,
        client_x: float = 0.0,
        client_y: float = 0.0,
        touches: list[Touch] | None = None,
        detail: Any = None,
    ) -> None:
        self.type = type
        self.client_x = client_x
        self.client_y = client_y
        self.touches = [] if touches is None else touches
        self.detail = detail
        self.target: "Element | None" = None
        self.timestamp = time.monotonic()
        self.default_prevented = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class Element:
    def __init__(self, tag: str = "div", *, id: str | None = None) -> None:
        self.tag = tag
        self.id = f"el-{next(_ids)}" if id is None else id
        self.inner_html = ""
        self.style: dict[str, str] = {}
        self._listeners: dict[str, list[tuple[Handler, dict[str, Any]]]] = {}

    def __repr__(self) -> str:
        return f"<Element({self.tag}#{self.id})>"

    def add_event_listener(self, event: str, handler: Handler, **options: Any) -> None:
        listeners = self._listeners.setdefault(event, [])
        if any(h is handler for h, _ in listeners):
            return
        listeners.append((handler, options))

    def remove_event_listener(self, event: str, handler: Handler) -> None:
        listeners = self._listeners.get(event, [])
        self._listeners[event] = [(h, o) for h, o in listeners if h is not handler]
        if not self._listeners[event]:
            del self._listeners[event]

    def dispatch_event(self, event: Event) -> Event:
        event.target = self
        for handler, options in list(self._listeners.get(event.type, [])):
            if options.get("once"):
                self.remove_event_listener(event.type, handler)
            handler(event)
        return event

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())


class Document(Element):
    def __init__(self) -> None:
        super().__init__("document", id="document")


def add_listener(
    element: Element, event: str, handler: Handler, **options: Any
) -> Disposer:
    """Attach `handler` and return a disposer that is safe to call twice."""
    element.add_event_listener(event, handler, **options)
    disposed = False

    def dispose() -> None:
        nonlocal disposed
        if disposed:
            return
        disposed = True
        element.remove_event_listener(event, handler)

    return dispose
