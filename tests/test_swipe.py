import pytest

from conftest import FakeClock

from domain.context import AppContext
from domain.device import is_touch_device
from domain.dom import Element, Event, Touch
from domain.swipe import (
    MouseSwipeHandler,
    SwipeEngine,
    SwipeEvent,
    SwipeOptions,
    TouchSwipeHandler,
    calculate_swipe,
    glow_opacity,
)


OPTIONS = SwipeOptions()


@pytest.mark.parametrize(
    "dx,elapsed,direction",
    (
        (150, 1000, "right"),
        (-150, 1000, "left"),
        (121, 5000, "right"),
        # Quick flicks past the floor count.
        (60, 100, "right"),
        (-60, 100, "left"),
        # Slow and short does not.
        (60, 1000, None),
        # Fast but under the floor does not either.
        (40, 10, None),
        (120, 1000, None),
        (0, 0, None),
    ),
)
def test_calculate_swipe(dx: float, elapsed: float, direction: str | None) -> None:
    got = calculate_swipe(dx, 0, elapsed, OPTIONS)
    assert got.direction == direction
    assert got.is_swipe is (direction is not None)
    assert got.distance == abs(dx)


def test_calculate_swipe_transform_values() -> None:
    got = calculate_swipe(100, 20, 0, OPTIONS)
    # Zero elapsed time is clamped to one millisecond.
    assert got.velocity == 100
    assert got.rotation == pytest.approx(5.0)
    assert got.scale == pytest.approx(0.95)
    assert calculate_swipe(20, 0, 100, OPTIONS).scale == pytest.approx(0.98)


def test_decision() -> None:
    assert calculate_swipe(200, 0, 100, OPTIONS).decision == "liked"
    assert calculate_swipe(-200, 0, 100, OPTIONS).decision == "disliked"
    assert calculate_swipe(10, 0, 100, OPTIONS).decision == "cancelled"


@pytest.mark.parametrize(
    "offset,expected",
    ((0, 0.0), (75, 0.5), (-75, 0.5), (150, 1.0), (400, 1.0)),
)
def test_glow_opacity(offset: float, expected: float) -> None:
    assert glow_opacity(offset, 150) == pytest.approx(expected)


@pytest.mark.parametrize(
    "user_agent,touch_points,expected",
    (
        ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)", 0, True),
        ("Mozilla/5.0 (Linux; Android 14)", 0, True),
        ("Mozilla/5.0 (X11; Linux x86_64)", 0, False),
        ("Mozilla/5.0 (X11; Linux x86_64)", 5, True),
        ("", 0, False),
    ),
)
def test_is_touch_device(user_agent: str, touch_points: int, expected: bool) -> None:
    assert is_touch_device(user_agent, touch_points) is expected


class Recorder:
    def __init__(self, engine: SwipeEngine) -> None:
        self.events: list[SwipeEvent] = []
        for phase in ("start", "move", "right", "left", "cancel", "end"):
            engine.on(phase, self.events.append)

    @property
    def phases(self) -> list[str]:
        return [e.phase for e in self.events]


@pytest.fixture
def card() -> Element:
    return Element(id="card")


@pytest.fixture
def engine(card: Element, context: AppContext, clock: FakeClock) -> SwipeEngine:
    return SwipeEngine(card, context=context, clock=clock)


def drag(
    card: Element,
    context: AppContext,
    clock: FakeClock,
    points: list[tuple[float, float]],
    ms_per_step: float = 100,
) -> None:
    card.dispatch_event(Event("mousedown", client_x=0, client_y=0))
    for x, y in points:
        clock.advance(ms_per_step)
        context.document.dispatch_event(Event("mousemove", client_x=x, client_y=y))
    context.document.dispatch_event(Event("mouseup"))


def test_engine_picks_handler_from_context(card: Element, context: AppContext) -> None:
    assert isinstance(SwipeEngine(card, context=context).handler, MouseSwipeHandler)
    context.touch = True
    assert isinstance(SwipeEngine(card, context=context).handler, TouchSwipeHandler)
    assert isinstance(
        SwipeEngine(card, context=context, touch=False).handler, MouseSwipeHandler
    )


def test_mouse_swipe_right(
    engine: SwipeEngine, card: Element, context: AppContext, clock: FakeClock
) -> None:
    recorder = Recorder(engine)

    drag(card, context, clock, [(50, 2), (100, 4), (160, 5)])

    assert recorder.phases == ["start", "move", "move", "move", "right", "end"]
    right = recorder.events[-2]
    assert right.result is not None
    assert right.result.decision == "liked"
    assert right.delta_x == 160
    assert card.style["opacity"] == "0"
    assert "translateX(500px)" in card.style["transform"]
    assert engine.get_state() == {"is_dragging": False}


def test_mouse_swipe_left(
    engine: SwipeEngine, card: Element, context: AppContext, clock: FakeClock
) -> None:
    recorder = Recorder(engine)
    drag(card, context, clock, [(-80, 0), (-200, 0)])
    assert recorder.phases[-2:] == ["left", "end"]
    assert "translateX(-500px)" in card.style["transform"]


def test_short_slow_drag_cancels(
    engine: SwipeEngine, card: Element, context: AppContext, clock: FakeClock
) -> None:
    recorder = Recorder(engine)

    drag(card, context, clock, [(20, 0), (40, 0)], ms_per_step=500)

    assert recorder.phases == ["start", "move", "move", "cancel", "end"]
    assert card.style["transform"] == "translateX(0) translateY(0) rotate(0) scale(1)"
    assert "opacity" not in card.style


def test_moves_update_transform(
    engine: SwipeEngine, card: Element, context: AppContext
) -> None:
    card.dispatch_event(Event("mousedown", client_x=10, client_y=10))
    assert card.style["transition"] == "none"

    move = context.document.dispatch_event(Event("mousemove", client_x=70, client_y=10))

    assert move.default_prevented
    assert card.style["transform"].startswith("translateX(60px)")
    state = engine.get_state()
    assert state["is_dragging"] is True
    assert state["current_x"] == 60
    assert state["locked"] is True


def test_dead_zone_moves_do_nothing(
    engine: SwipeEngine, card: Element, context: AppContext
) -> None:
    recorder = Recorder(engine)
    card.dispatch_event(Event("mousedown", client_x=0, client_y=0))

    move = context.document.dispatch_event(Event("mousemove", client_x=5, client_y=3))

    assert recorder.phases == ["start"]
    assert not move.default_prevented
    assert "transform" not in card.style
    assert engine.get_state()["locked"] is False


def test_vertical_gesture_is_left_alone(
    engine: SwipeEngine, card: Element, context: AppContext, clock: FakeClock
) -> None:
    recorder = Recorder(engine)

    drag(card, context, clock, [(2, 30), (200, 40)])

    assert recorder.phases == ["start"]
    assert engine.get_state() == {"is_dragging": False}


def test_moves_without_a_press_are_ignored(
    engine: SwipeEngine, context: AppContext
) -> None:
    recorder = Recorder(engine)
    context.document.dispatch_event(Event("mousemove", client_x=300))
    context.document.dispatch_event(Event("mouseup"))
    assert recorder.events == []


def test_touch_swipe(card: Element, context: AppContext, clock: FakeClock) -> None:
    context.touch = True
    engine = SwipeEngine(card, context=context, clock=clock)
    recorder = Recorder(engine)

    card.dispatch_event(Event("touchstart", touches=[Touch(100, 100)]))
    clock.advance(50)
    move = card.dispatch_event(Event("touchmove", touches=[Touch(-50, 104)]))
    clock.advance(50)
    card.dispatch_event(Event("touchend"))

    assert move.default_prevented
    assert recorder.phases == ["start", "move", "left", "end"]


def test_touch_without_touches_is_ignored(card: Element, context: AppContext) -> None:
    engine = SwipeEngine(card, context=context, touch=True)
    recorder = Recorder(engine)
    card.dispatch_event(Event("touchstart"))
    assert recorder.events == []


def test_on_filters_to_own_element(
    engine: SwipeEngine, card: Element, context: AppContext, clock: FakeClock
) -> None:
    other = SwipeEngine(Element(id="other"), context=context, clock=clock)
    got = []
    other.on("right", got.append)

    drag(card, context, clock, [(200, 0)])

    assert got == []


def test_destroy_detaches_everything(
    engine: SwipeEngine, card: Element, context: AppContext, clock: FakeClock
) -> None:
    recorder = Recorder(engine)
    assert card.listener_count() == 1
    assert context.document.listener_count() == 2

    engine.destroy()
    engine.destroy()
    drag(card, context, clock, [(200, 0)])

    assert recorder.events == []
    assert card.listener_count() == 0
    assert context.document.listener_count() == 0
    assert context.bus.listener_count("swipe:right") == 0
