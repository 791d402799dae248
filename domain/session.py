"""The swipe -> ingredients -> ideas -> recipe flow, once, for every device.

Device differences live in a `Presenter`: which input the cards listen to and
how they are styled. The session mounts components into the presenter's
containers and turns network faults into screen state.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Coroutine, TypeVar

from domain.api import ApiError, ApiService
from domain.components import (
    Component,
    ErrorFallback,
    FavoritesView,
    LoadingView,
    RecipeCard,
    SuggestionsView,
    VibeCard,
)
from domain.context import AppContext
from domain.device import is_touch_device
from domain.dom import Element
from domain.models import Favorite, FullRecipe, RecipeSuggestion, Vibe
from domain.suggestions import RecipeGenerator, RecipeSuggestionService, SuggestionNotFound
from domain.user_services import AccountService, FavoritesService, PreferencesService
from domain.vibes import VIBES, VibeEngine


logger = logging.getLogger(__name__)
T = TypeVar("T")


def normalize_ingredients(text: str) -> str:
    """'Rice, garlic,rice\\n basil' -> 'Rice, garlic, basil'."""
    seen: set[str] = set()
    tokens: list[str] = []
    for token in text.replace("\n", ",").split(","):
        token = token.strip()
        if token and token.lower() not in seen:
            seen.add(token.lower())
            tokens.append(token)
    return ", ".join(tokens)


class Presenter:
    """Where the session puts things. Subclass to paint them somewhere real."""

    touch = False
    card_class = "vibe-card"

    def __init__(self) -> None:
        self.containers = {
            "card": Element(id="card-container"),
            "content": Element(id="content"),
            "overlay": Element(id="overlay"),
        }

    def screen_changed(self, screen: str, component: Component | None) -> None:
        pass


class PointerPresenter(Presenter):
    touch = False
    card_class = "vibe-card"


class TouchPresenter(Presenter):
    touch = True
    card_class = "mobile-vibe-card"


def detect_presenter(user_agent: str = "", max_touch_points: int = 0) -> type[Presenter]:
    if is_touch_device(user_agent, max_touch_points):
        return TouchPresenter
    return PointerPresenter


class RecipeSession:
    def __init__(
        self,
        *,
        context: AppContext,
        presenter: Presenter,
        api: ApiService,
        generator: RecipeGenerator | None = None,
        vibes: tuple[Vibe, ...] = VIBES,
        rng: random.Random | None = None,
    ) -> None:
        context.touch = presenter.touch
        self.context = context
        self.state = context.state
        self.presenter = presenter
        config = context.config

        self.vibe_engine = VibeEngine(
            vibes, max_rounds=config.max_vibe_rounds, bus=context.bus, rng=rng
        )
        self.suggestions = RecipeSuggestionService(
            self.state,
            api if generator is None else generator,
            count=config.suggestion_count,
            suggestion_timeout=config.suggestion_timeout,
            recipe_timeout=config.recipe_timeout,
        )
        self.account = AccountService(self.state, api)
        self.favorites = FavoritesService(
            self.state, api, max_favorites=config.max_favorites
        )
        self.preferences = PreferencesService(self.state, api)

        self.phase = "idle"
        self.current_vibe: Vibe | None = None
        self.current_recipe: FullRecipe | None = None
        self._mounted: dict[str, Component] = {}
        self._navigation = 0
        self._retry: Callable[[], Awaitable[Any]] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # Screens

    def view(self, slot: str) -> Component | None:
        return self._mounted.get(slot)

    def _show(self, slot: str, screen: str, component: Component) -> Component:
        self._clear(slot)
        self._mounted[slot] = component
        component.mount()
        self.presenter.screen_changed(screen, component)
        return component

    def _clear(self, slot: str) -> None:
        component = self._mounted.pop(slot, None)
        if component is not None:
            component.unmount()

    def _navigate(self, phase: str) -> int:
        self.phase = phase
        self._navigation += 1
        return self._navigation

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(self.guard(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _show_error(self, message: str, retry: Callable[[], Awaitable[Any]]) -> None:
        self._retry = retry
        self.state.set_state({"error": message})
        self._show(
            "content",
            "error",
            ErrorFallback(
                self.presenter.containers["content"],
                context=self.context,
                message=message,
                on_action=lambda: self._spawn(self.retry()),
            ),
        )

    def show_fatal(self, message: str = "Please reload and try again.") -> None:
        for slot in list(self._mounted):
            self._clear(slot)
        self._navigate("crashed")
        self._show(
            "overlay",
            "fatal",
            ErrorFallback(
                self.presenter.containers["overlay"],
                context=self.context,
                message=message,
                fatal=True,
                on_action=self.reload,
            ),
        )

    async def guard(self, coro: Awaitable[T]) -> T | None:
        """Last line of defence: anything unexpected gets the fallback screen."""
        try:
            return await coro
        except Exception:
            logger.exception("Unhandled error in recipe session")
            self.show_fatal()
            return None

    # Account

    async def start(self) -> Vibe | None:
        try:
            await self.account.load_profile()
        except ApiError as e:
            logger.info("Continuing as guest: %s", e)
        return self.start_game()

    # Swiping

    def start_game(self) -> Vibe | None:
        self.state.reset()
        self.vibe_engine.reset()
        self.suggestions.clear_suggestions()
        self.current_recipe = None
        self._retry = None
        for slot in ("content", "overlay"):
            self._clear(slot)
        self._navigate("swiping")
        return self.next_card()

    def next_card(self) -> Vibe | None:
        self._clear("card")
        vibe = self.vibe_engine.get_next_vibe()
        self.current_vibe = vibe
        self.state.set_state({"current_vibe_round": self.vibe_engine.current_round})

        if vibe is None:
            self._navigate("ingredients")
            self.presenter.screen_changed("ingredients", None)
            return None

        self._show(
            "card",
            "vibe",
            VibeCard(
                self.presenter.containers["card"],
                context=self.context,
                vibe=vibe,
                round=self.vibe_engine.current_round,
                card_class=self.presenter.card_class,
                on_like=self._liked,
                on_dislike=self._disliked,
            ),
        )
        return vibe

    def like(self) -> Vibe | None:
        if self.current_vibe is None:
            return None
        return self._liked(self.current_vibe)

    def dislike(self) -> Vibe | None:
        if self.current_vibe is None:
            return None
        return self._disliked(self.current_vibe)

    def _liked(self, vibe: Vibe) -> Vibe | None:
        profile = list(self.state.get("vibe_profile") or [])
        self.state.set_state({"vibe_profile": profile + [vibe]})
        self.context.bus.emit("vibe:added-to-profile", {"vibe": vibe})
        return self.next_card()

    def _disliked(self, vibe: Vibe) -> Vibe | None:
        return self.next_card()

    # Ingredients

    def set_ingredients(self, text: str) -> bool:
        ingredients = normalize_ingredients(text)
        if not ingredients:
            self.state.set_state({"error": "Add at least one ingredient, or skip."})
            return False
        self.state.set_state({"ingredients_at_home": ingredients, "error": None})
        return True

    def skip_ingredients(self) -> None:
        self.state.set_state({"ingredients_at_home": "", "error": None})

    # Ideas and recipes

    async def request_suggestions(self) -> list[RecipeSuggestion]:
        navigation = self._navigate("suggestions")
        self.state.set_state({"is_loading": True, "error": None})
        self._show(
            "content",
            "loading",
            LoadingView(self.presenter.containers["content"], context=self.context),
        )
        try:
            suggestions = await self.suggestions.generate_suggestions()
        finally:
            self.state.set_state({"is_loading": False})

        if navigation != self._navigation:
            logger.info("Ideas arrived after the user moved on, not showing them")
            return suggestions

        self._show(
            "content",
            "suggestions",
            SuggestionsView(
                self.presenter.containers["content"],
                context=self.context,
                suggestions=suggestions,
            ),
        )
        return suggestions

    async def regenerate(self) -> list[RecipeSuggestion]:
        return await self.request_suggestions()

    async def choose_suggestion(self, suggestion_id: str) -> FullRecipe | None:
        navigation = self._navigation
        view = self.view("content")
        if isinstance(view, SuggestionsView):
            view.mark_busy(suggestion_id)
        self.state.set_state({"is_loading": True, "error": None})

        try:
            full_recipe = await self.suggestions.generate_full_recipe(suggestion_id)
        except SuggestionNotFound as e:
            logger.warning("%s", e)
            if navigation == self._navigation:
                self._show_error(
                    "That idea has gone stale, let's get some fresh ones.",
                    self.request_suggestions,
                )
            return None
        except ApiError as e:
            if navigation != self._navigation:
                logger.info("Recipe failed after the user moved on: %s", e)
                return None
            self._show_error(
                f"Could not cook that recipe: {e}",
                lambda: self.choose_suggestion(suggestion_id),
            )
            return None
        finally:
            self.state.set_state({"is_loading": False})

        if navigation != self._navigation:
            logger.info("Recipe arrived after the user moved on, not showing it")
            return full_recipe

        self._navigate("recipe")
        self.current_recipe = full_recipe
        self._show(
            "content",
            "recipe",
            RecipeCard(
                self.presenter.containers["content"],
                context=self.context,
                formatted=full_recipe.formatted,
                title=full_recipe.title,
            ),
        )
        return full_recipe

    async def retry(self) -> Any:
        if self._retry is None:
            return None
        retry, self._retry = self._retry, None
        return await retry()

    # Favourites

    async def save_current_recipe(
        self, *, rating: int | None = None, note: str | None = None
    ) -> Favorite | None:
        recipe = self.current_recipe
        if recipe is None:
            self.state.set_state({"error": "There is no recipe to save yet."})
            return None
        try:
            favorite = await self.favorites.add(
                recipe.recipe_text, recipe.title, rating=rating, note=note
            )
        except ApiError as e:
            self.state.set_state({"error": f"Could not save favorite: {e}"})
            return None

        card = self.view("content")
        if favorite is not None and isinstance(card, RecipeCard):
            card.mark_saved()
        return favorite

    async def show_favorites(self) -> list[Favorite]:
        try:
            favorites = await self.favorites.load()
        except ApiError as e:
            self.state.set_state({"error": f"Could not load favorites: {e}"})
            favorites = self.favorites.favorites
        self._show(
            "overlay",
            "favorites",
            FavoritesView(self.presenter.containers["overlay"], context=self.context),
        )
        return favorites

    def close_overlay(self) -> None:
        self._clear("overlay")

    def reload(self) -> None:
        self.start_game()

    def close(self) -> None:
        for slot in list(self._mounted):
            self._clear(slot)
