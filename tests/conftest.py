import asyncio
from typing import Any

import pytest

from config import Config
from domain.api import ApiError
from domain.context import AppContext
from domain.models import Vibe


RECIPE_TEXT = """Garlic Rice
===

Ingredients:
• 1 cup rice
• 2 cloves garlic
• 1 tbsp olive oil

Instructions:
1. Rinse the rice until the water runs clear.
2. Fry the **garlic** in the oil.
3. Add rice and water, simmer for 15 minutes."""


SUGGESTIONS = {
    "suggestions": [
        {"title": "Garlic Fried Rice", "description": "Crispy, quick, smoky"},
        {"title": "Rice Congee", "description": "Slow and soothing"},
        {"title": "Stuffed Peppers", "description": "Rice and herbs baked in peppers"},
        {"title": "Arancini", "description": "Golden fried rice balls"},
        {"title": "Rice Pudding", "description": "Creamy and nostalgic"},
    ]
}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeGenerator:
    """Replies are consumed in order. Exceptions are raised, futures awaited."""

    def __init__(self) -> None:
        self.suggestion_replies: list[Any] = []
        self.recipe_replies: list[Any] = []
        self.calls: list[tuple[str, str]] = []

    async def _next(self, replies: list[Any], default: Any) -> Any:
        if not replies:
            return default
        reply = replies.pop(0)
        if isinstance(reply, asyncio.Future):
            reply = await reply
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def generate_suggestions(
        self, prompt: str, count: int = 5, *, timeout: float | None = None
    ) -> Any:
        self.calls.append(("suggestions", prompt))
        return await self._next(self.suggestion_replies, SUGGESTIONS)

    async def generate_recipe(self, prompt: str, *, timeout: float | None = None) -> Any:
        self.calls.append(("recipe", prompt))
        return await self._next(self.recipe_replies, {"recipe": RECIPE_TEXT})


class FakeApi:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.profile: dict[str, Any] | Exception = {"username": "sam"}
        self.favorites: list[dict[str, Any]] = []
        self.fail: Exception | None = None
        self._ids = 0

    def _call(self, *call: Any) -> None:
        self.calls.append(call)
        if self.fail is not None:
            raise self.fail

    async def me(self) -> dict[str, Any]:
        self._call("me")
        if isinstance(self.profile, Exception):
            raise self.profile
        return self.profile

    async def login(self, username: str, password: str) -> dict[str, Any]:
        self._call("login", username)
        return {"ok": True}

    async def logout(self) -> dict[str, Any]:
        self._call("logout")
        return {"ok": True}

    async def get_favorites(self) -> dict[str, Any]:
        self._call("get_favorites")
        return {"favorites": self.favorites}

    async def save_favorite(self, favorite: dict[str, Any]) -> dict[str, Any]:
        self._call("save_favorite", favorite)
        self._ids += 1
        return {"favorite": {"id": f"fav-{self._ids}", **favorite}}

    async def update_favorite(self, id: str, updates: dict[str, Any]) -> dict[str, Any]:
        self._call("update_favorite", id, updates)
        current = next(f for f in self.favorites if f["id"] == id)
        return {"favorite": {**current, **updates}}

    async def delete_favorite(self, id: str) -> dict[str, Any]:
        self._call("delete_favorite", id)
        return {"ok": True}

    async def get_preferences(self) -> dict[str, Any]:
        self._call("get_preferences")
        return {"preferences": {"diet": "Vegetarian", "budget": "Yes"}}

    async def update_preferences(self, preferences: dict[str, Any]) -> dict[str, Any]:
        self._call("update_preferences", preferences)
        return {"preferences": preferences}


def make_vibe(name: str, prompt: str | None = None) -> Vibe:
    return Vibe(
        name=name,
        emoji="🍽️",
        description=f"{name} description",
        prompt=prompt or f"{name.lower()} food",
        color="#123456",
        image=f"/images/{name.lower()}.jpg",
    )


@pytest.fixture
def config() -> Config:
    return Config(max_vibe_rounds=2, suggestion_count=5)


@pytest.fixture
def context(config: Config) -> AppContext:
    return AppContext(config=config)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def api_error() -> ApiError:
    return ApiError("Service unavailable", status_code=503)
