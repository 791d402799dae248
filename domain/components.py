"""Component base class and the concrete views of the swipe flow.

A component renders markup into its container. `set_state` re-renders the
whole thing, there is no diffing. Listeners and bus subscriptions taken while
mounted are torn down on `unmount`.
"""

import itertools
import logging
from typing import Any, Callable

from markupsafe import Markup

from domain.context import AppContext
from domain.dom import Disposer, Element, Handler, add_listener
from domain.events import Listener
from domain.models import Favorite, FormattedRecipe, RecipeSuggestion, Vibe
from domain.swipe import SwipeEngine, SwipeEvent, glow_opacity
from domain.templates import render


logger = logging.getLogger(__name__)


_ids = itertools.count(1)


class ComponentError(RuntimeError):
    pass


def _once(fn: Callable[[], None]) -> Disposer:
    called = False

    def dispose() -> None:
        nonlocal called
        if called:
            return
        called = True
        fn()

    return dispose


class Component:
    def __init__(
        self,
        container: Element | None,
        *,
        context: AppContext,
        props: dict[str, Any] | None = None,
        id: str | None = None,
    ) -> None:
        self.container = container
        self.context = context
        self.bus = context.bus
        self.props = {} if props is None else dict(props)
        self.state: dict[str, Any] = {}
        self.children: list[Component] = []
        self.is_mounted = False
        self.id = f"component-{next(_ids)}" if id is None else id
        self._teardown: list[Disposer] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, mounted={self.is_mounted})>"

    def render(self) -> str:
        raise NotImplementedError(
            f"{type(self).__name__} must implement render()"
        )

    def _paint(self) -> None:
        assert self.container is not None
        html = self.render()
        if not isinstance(html, str):
            raise ComponentError(
                f"Component {self.id}: render() must return markup, got {type(html).__name__}"
            )
        self.container.inner_html = html

    def mount(self) -> None:
        if self.container is None:
            raise ComponentError(f"Component {self.id}: container not found")
        if self.is_mounted:
            raise ComponentError(f"Component {self.id}: already mounted")

        self._paint()
        self.is_mounted = True

        try:
            for child in self.children:
                child.mount()
            self.on_mount()
        except Exception:
            self.unmount()
            raise

        self.bus.emit("component:mounted", {"component": self, "id": self.id})

    def unmount(self) -> None:
        if not self.is_mounted:
            return

        self.on_unmount()

        for child in self.children:
            child.unmount()

        for dispose in self._teardown:
            dispose()
        self._teardown.clear()

        if self.container is not None:
            self.container.inner_html = ""
        self.is_mounted = False

        self.bus.emit("component:unmounted", {"component": self, "id": self.id})

    def set_state(
        self,
        updates: dict[str, Any],
        callback: Callable[["Component"], None] | None = None,
    ) -> None:
        if not self.is_mounted:
            logger.warning("Component %s: cannot set_state while unmounted", self.id)
            return

        prev_state = dict(self.state)
        self.state.update(updates)
        self.on_update(updates, prev_state)

        self._paint()
        for child in self.children:
            child.unmount()
            child.mount()

        if callback is not None:
            callback(self)

        self.bus.emit(
            "component:state-changed",
            {
                "component": self,
                "id": self.id,
                "updates": dict(updates),
                "prev_state": prev_state,
                "next_state": dict(self.state),
            },
        )

    def force_update(self) -> None:
        if self.is_mounted:
            self.set_state({})

    def add_child(self, child: "Component") -> None:
        self.children.append(child)
        if self.is_mounted:
            child.mount()

    def remove_child(self, child: "Component") -> None:
        child.unmount()
        if child in self.children:
            self.children.remove(child)

    def own(self, dispose: Callable[[], None]) -> Disposer:
        """Run `dispose` on unmount. The returned disposer is idempotent."""
        disposer = _once(dispose)
        self._teardown.append(disposer)
        return disposer

    def add_event_listener(
        self, element: Element, event: str, handler: Handler, **options: Any
    ) -> Disposer | None:
        if not self.is_mounted:
            logger.warning("Component %s: cannot listen while unmounted", self.id)
            return None
        return self.own(add_listener(element, event, handler, **options))

    def subscribe(self, event: str, callback: Listener) -> Disposer | None:
        if not self.is_mounted:
            logger.warning("Component %s: cannot subscribe while unmounted", self.id)
            return None
        return self.own(self.bus.subscribe(event, callback))

    def on_mount(self) -> None:
        pass

    def on_unmount(self) -> None:
        pass

    def on_update(self, updates: dict[str, Any], prev_state: dict[str, Any]) -> None:
        pass


class VibeCard(Component):
    """One vibe, swipeable. Right is a like, left a nope."""

    LIKE_GLOW = "76, 175, 80"
    NOPE_GLOW = "244, 67, 54"

    def __init__(
        self,
        container: Element | None,
        *,
        context: AppContext,
        vibe: Vibe,
        round: int = 1,
        card_class: str = "vibe-card",
        on_like: Callable[[Vibe], None] | None = None,
        on_dislike: Callable[[Vibe], None] | None = None,
    ) -> None:
        super().__init__(container, context=context, props={"vibe": vibe, "round": round})
        self.vibe = vibe
        self.round = round
        self.card_class = card_class
        self.on_like = on_like
        self.on_dislike = on_dislike
        self.swipe: SwipeEngine | None = None

    def render(self) -> str:
        return render(
            "vibe-card.html",
            id=self.id,
            vibe=self.vibe,
            round=self.round,
            max_rounds=self.context.config.max_vibe_rounds,
            card_class=self.card_class,
        )

    def on_mount(self) -> None:
        assert self.container is not None
        # The container outlives cards; drop the previous card's fly-out.
        self.container.style.clear()
        self.swipe = SwipeEngine(self.container, context=self.context)
        self.own(self.swipe.destroy)
        self.swipe.on("move", self._glow)
        self.swipe.on("cancel", self._clear_glow)
        self.swipe.on("right", self._liked)
        self.swipe.on("left", self._disliked)

    def on_unmount(self) -> None:
        self.swipe = None

    def _glow(self, event: SwipeEvent) -> None:
        assert self.container is not None
        opacity = glow_opacity(event.delta_x, self.context.config.glow_max_distance)
        rgb = self.LIKE_GLOW if event.delta_x > 0 else self.NOPE_GLOW
        self.container.style["box-shadow"] = f"0 10px 40px rgba({rgb}, {opacity:.2f})"

    def _clear_glow(self, event: SwipeEvent) -> None:
        assert self.container is not None
        self.container.style.pop("box-shadow", None)

    def _liked(self, event: SwipeEvent) -> None:
        if self.on_like is not None:
            self.on_like(self.vibe)

    def _disliked(self, event: SwipeEvent) -> None:
        if self.on_dislike is not None:
            self.on_dislike(self.vibe)


class SuggestionsView(Component):
    def __init__(
        self,
        container: Element | None,
        *,
        context: AppContext,
        suggestions: list[RecipeSuggestion],
    ) -> None:
        super().__init__(container, context=context)
        self.suggestions = suggestions
        self.state = {"busy": False, "selected_id": None}

    def render(self) -> str:
        return render(
            "suggestions.html",
            suggestions=self.suggestions,
            busy=self.state["busy"],
            selected_id=self.state["selected_id"],
        )

    def mark_busy(self, suggestion_id: str | None) -> None:
        """Disable the buttons while a suggestion is being cooked."""
        self.set_state({"busy": suggestion_id is not None, "selected_id": suggestion_id})


class RecipeCard(Component):
    """Shows a formatted recipe with an ingredients/instructions toggle."""

    def __init__(
        self,
        container: Element | None,
        *,
        context: AppContext,
        formatted: FormattedRecipe,
        title: str | None = None,
    ) -> None:
        super().__init__(container, context=context)
        self.formatted = formatted
        self.title = formatted.title if title is None else title
        toggle = formatted.has_ingredients and formatted.has_instructions
        self.state = {"active": "ingredients" if toggle else None, "saved": False}

    @property
    def has_toggle(self) -> bool:
        return self.formatted.has_ingredients and self.formatted.has_instructions

    def render(self) -> str:
        return render(
            "recipe-card.html",
            id=self.id,
            title=self.title,
            toggle=self.has_toggle,
            active=self.state["active"],
            saved=self.state["saved"],
            body=Markup(self.formatted.html),
        )

    def show_section(self, section: str) -> None:
        if not self.has_toggle:
            return
        if section not in ("ingredients", "instructions"):
            raise ValueError(f"Unknown recipe section: {section}")
        self.set_state({"active": section})

    def mark_saved(self) -> None:
        self.set_state({"saved": True})


class FavoritesView(Component):
    def __init__(self, container: Element | None, *, context: AppContext) -> None:
        super().__init__(container, context=context)

    @property
    def favorites(self) -> list[Favorite]:
        return self.context.state.get("favorites") or []

    def render(self) -> str:
        return render("favorites.html", favorites=self.favorites)

    def on_mount(self) -> None:
        self.own(self.context.state.subscribe("favorites", self._favorites_changed))

    def _favorites_changed(self, new: list[Favorite], old: list[Favorite]) -> None:
        self.force_update()


class LoadingView(Component):
    def __init__(
        self,
        container: Element | None,
        *,
        context: AppContext,
        message: str = "Cooking up ideas...",
    ) -> None:
        super().__init__(container, context=context)
        self.message = message

    def render(self) -> str:
        return render("loading.html", message=self.message)


class ErrorFallback(Component):
    """Either a retryable error or the full screen "something went wrong"."""

    def __init__(
        self,
        container: Element | None,
        *,
        context: AppContext,
        message: str,
        fatal: bool = False,
        on_action: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(container, context=context)
        self.message = message
        self.fatal = fatal
        self.on_action = on_action

    def render(self) -> str:
        return render("error.html", message=self.message, fatal=self.fatal)

    def on_mount(self) -> None:
        assert self.container is not None
        self.add_event_listener(self.container, "click", self._clicked)

    def _clicked(self, event: Any) -> None:
        if self.on_action is not None:
            self.on_action()
