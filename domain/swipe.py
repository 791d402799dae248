"""Swipe gesture capture and classification.

A gesture goes idle -> dragging -> right | left | cancel. Mouse and touch
input feed the same handler logic; only the event wiring differs. Every phase
is published on the event bus as `swipe:<phase>` with a `SwipeEvent`.
"""

import logging
import time
from typing import Any, Callable, TypeAlias

from config import Config
from domain.context import AppContext
from domain.dom import Disposer, Document, Element, Event, Handler, add_listener
from domain.events import EventBus, Unsubscribe


logger = logging.getLogger(__name__)


Clock: TypeAlias = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class SwipeOptions:
    def __init__(
        self,
        *,
        threshold: float = 120,
        velocity_threshold: float = 0.5,
        velocity_floor: float = 50,
        dead_zone: float = 8,
        rotation_factor: float = 0.05,
        min_scale: float = 0.95,
        off_screen: float = 500,
    ) -> None:
        self.threshold = threshold
        self.velocity_threshold = velocity_threshold
        self.velocity_floor = velocity_floor
        self.dead_zone = dead_zone
        self.rotation_factor = rotation_factor
        self.min_scale = min_scale
        self.off_screen = off_screen

    @classmethod
    def from_config(cls, config: Config) -> "SwipeOptions":
        return cls(
            threshold=config.swipe_threshold,
            velocity_threshold=config.swipe_velocity_threshold,
            velocity_floor=config.swipe_velocity_floor,
            dead_zone=config.gesture_dead_zone,
        )


class SwipeResult:
    def __init__(
        self,
        *,
        is_swipe: bool,
        direction: str | None,
        distance: float,
        velocity: float,
        delta_x: float,
        delta_y: float,
        rotation: float,
        scale: float,
    ) -> None:
        self.is_swipe = is_swipe
        self.direction = direction
        self.distance = distance
        self.velocity = velocity
        self.delta_x = delta_x
        self.delta_y = delta_y
        self.rotation = rotation
        self.scale = scale

    def __repr__(self) -> str:
        return (
            f"<SwipeResult(direction={self.direction}, distance={self.distance:.0f}, "
            f"velocity={self.velocity:.2f})>"
        )

    @property
    def decision(self) -> str:
        match self.direction:
            case "right":
                return "liked"
            case "left":
                return "disliked"
            case _:
                return "cancelled"


def calculate_swipe(
    delta_x: float, delta_y: float, elapsed_ms: float, options: SwipeOptions
) -> SwipeResult:
    """Far enough, or a quick flick past the floor, counts as a swipe."""
    distance = abs(delta_x)
    velocity = distance / max(elapsed_ms, 1.0)
    is_swipe = distance > options.threshold or (
        distance > options.velocity_floor and velocity > options.velocity_threshold
    )
    direction = None
    if is_swipe:
        direction = "right" if delta_x > 0 else "left"
    return SwipeResult(
        is_swipe=is_swipe,
        direction=direction,
        distance=distance,
        velocity=velocity,
        delta_x=delta_x,
        delta_y=delta_y,
        rotation=delta_x * options.rotation_factor,
        scale=max(options.min_scale, 1 - distance / 1000),
    )


def glow_opacity(offset: float, max_distance: float) -> float:
    if max_distance <= 0:
        return 1.0
    return max(0.0, min(1.0, abs(offset) / max_distance))


class SwipeGestureState:
    def __init__(self, *, origin_x: float, origin_y: float, started_at: float) -> None:
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.started_at = started_at
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.locked = False
        self.horizontal = True


class SwipeEvent:
    """Bus payload. `result` is set for the end phases, `delta_*` always."""

    def __init__(
        self,
        phase: str,
        *,
        element: Element,
        delta_x: float = 0.0,
        delta_y: float = 0.0,
        rotation: float = 0.0,
        scale: float = 1.0,
        result: SwipeResult | None = None,
    ) -> None:
        self.phase = phase
        self.element = element
        self.delta_x = delta_x
        self.delta_y = delta_y
        self.rotation = rotation
        self.scale = scale
        self.result = result

    def __repr__(self) -> str:
        return f"<SwipeEvent({self.phase}, dx={self.delta_x:.0f})>"


class BaseSwipeHandler:
    def __init__(
        self,
        element: Element,
        *,
        document: Document,
        bus: EventBus,
        options: SwipeOptions,
        clock: Clock = monotonic_ms,
    ) -> None:
        self.element = element
        self.document = document
        self.bus = bus
        self.options = options
        self.clock = clock
        self.gesture: SwipeGestureState | None = None
        self._disposers: list[Disposer] = []

    @property
    def is_dragging(self) -> bool:
        return self.gesture is not None

    def bindings(self) -> list[tuple[Element, str, Handler]]:
        raise NotImplementedError

    def init(self) -> None:
        for target, event, handler in self.bindings():
            self._disposers.append(add_listener(target, event, handler))

    def destroy(self) -> None:
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()
        self.gesture = None

    def start(self, x: float, y: float) -> None:
        self.gesture = SwipeGestureState(origin_x=x, origin_y=y, started_at=self.clock())
        # Track the pointer exactly while dragging.
        self.element.style["transition"] = "none"
        self._emit("start")

    def move(self, x: float, y: float, event: Event | None = None) -> None:
        gesture = self.gesture
        if gesture is None:
            return

        gesture.offset_x = x - gesture.origin_x
        gesture.offset_y = y - gesture.origin_y
        dx, dy = gesture.offset_x, gesture.offset_y

        if not gesture.locked:
            if abs(dx) <= self.options.dead_zone and abs(dy) <= self.options.dead_zone:
                return
            gesture.locked = True
            gesture.horizontal = abs(dx) >= abs(dy)

        if not gesture.horizontal:
            logger.debug("Vertical gesture on %r, treating as scroll", self.element)
            self.gesture = None
            self.reset_transform()
            return

        if event is not None:
            event.prevent_default()

        swipe = calculate_swipe(dx, dy, self.clock() - gesture.started_at, self.options)
        self.apply_transform(dx, dy, swipe.rotation, swipe.scale)
        self._emit(
            "move", delta_x=dx, delta_y=dy, rotation=swipe.rotation, scale=swipe.scale
        )

    def end(self) -> SwipeResult | None:
        gesture = self.gesture
        if gesture is None:
            return None
        self.gesture = None

        swipe = calculate_swipe(
            gesture.offset_x,
            gesture.offset_y,
            self.clock() - gesture.started_at,
            self.options,
        )
        if swipe.direction is not None:
            self.animate_out(swipe.direction)
            self._emit(swipe.direction, result=swipe)
        else:
            self.reset_transform()
            self._emit("cancel", result=swipe)
        self._emit("end", result=swipe)
        return swipe

    def apply_transform(
        self, delta_x: float, delta_y: float, rotation: float, scale: float
    ) -> None:
        self.element.style["transform"] = (
            f"translateX({delta_x}px) translateY({delta_y * 0.1}px) "
            f"rotate({rotation}deg) scale({scale})"
        )

    def reset_transform(self) -> None:
        self.element.style["transition"] = "transform 0.3s ease"
        self.element.style["transform"] = "translateX(0) translateY(0) rotate(0) scale(1)"

    def animate_out(self, direction: str) -> None:
        distance = self.options.off_screen if direction == "right" else -self.options.off_screen
        rotation = distance * self.options.rotation_factor
        self.element.style["transition"] = "all 0.3s ease-out"
        self.element.style["transform"] = (
            f"translateX({distance}px) translateY(-50px) rotate({rotation}deg) scale(0.8)"
        )
        self.element.style["opacity"] = "0"

    def _emit(self, phase: str, **data: Any) -> None:
        if "result" in data and data["result"] is not None:
            result: SwipeResult = data["result"]
            data.update(
                delta_x=result.delta_x,
                delta_y=result.delta_y,
                rotation=result.rotation,
                scale=result.scale,
            )
        self.bus.emit(f"swipe:{phase}", SwipeEvent(phase, element=self.element, **data))


class MouseSwipeHandler(BaseSwipeHandler):
    def bindings(self) -> list[tuple[Element, str, Handler]]:
        return [
            (self.element, "mousedown", self.handle_mouse_down),
            (self.document, "mousemove", self.handle_mouse_move),
            (self.document, "mouseup", self.handle_mouse_up),
        ]

    def handle_mouse_down(self, event: Event) -> None:
        self.start(event.client_x, event.client_y)

    def handle_mouse_move(self, event: Event) -> None:
        self.move(event.client_x, event.client_y, event)

    def handle_mouse_up(self, event: Event) -> None:
        self.end()


class TouchSwipeHandler(BaseSwipeHandler):
    def bindings(self) -> list[tuple[Element, str, Handler]]:
        return [
            (self.element, "touchstart", self.handle_touch_start),
            (self.element, "touchmove", self.handle_touch_move),
            (self.element, "touchend", self.handle_touch_end),
        ]

    def handle_touch_start(self, event: Event) -> None:
        if not event.touches:
            return
        touch = event.touches[0]
        self.start(touch.client_x, touch.client_y)

    def handle_touch_move(self, event: Event) -> None:
        if not event.touches:
            return
        touch = event.touches[0]
        self.move(touch.client_x, touch.client_y, event)

    def handle_touch_end(self, event: Event) -> None:
        self.end()


class SwipeEngine:
    """Picks the input handler once, from the context's touch capability."""

    def __init__(
        self,
        element: Element,
        *,
        context: AppContext,
        options: SwipeOptions | None = None,
        touch: bool | None = None,
        clock: Clock = monotonic_ms,
    ) -> None:
        self.element = element
        self.bus = context.bus
        self.touch = context.touch if touch is None else touch
        handler_cls = TouchSwipeHandler if self.touch else MouseSwipeHandler
        self.handler = handler_cls(
            element,
            document=context.document,
            bus=context.bus,
            options=SwipeOptions.from_config(context.config) if options is None else options,
            clock=clock,
        )
        self._subscriptions: list[Unsubscribe] = []
        self.handler.init()

    def on(self, phase: str, callback: Callable[[SwipeEvent], None]) -> Unsubscribe:
        """Subscribe to `swipe:<phase>` for this engine's element only."""

        def listener(event: SwipeEvent) -> None:
            if event.element is self.element:
                callback(event)

        unsubscribe = self.bus.subscribe(f"swipe:{phase}", listener)
        self._subscriptions.append(unsubscribe)
        return unsubscribe

    def destroy(self) -> None:
        self.handler.destroy()
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

    def get_state(self) -> dict[str, Any]:
        gesture = self.handler.gesture
        if gesture is None:
            return {"is_dragging": False}
        return {
            "is_dragging": True,
            "start_x": gesture.origin_x,
            "start_y": gesture.origin_y,
            "current_x": gesture.offset_x,
            "current_y": gesture.offset_y,
            "start_time": gesture.started_at,
            "locked": gesture.locked,
        }
