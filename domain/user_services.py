"""Account, favourites and preferences, kept in sync with the server.

The server is the source of truth. Local state mirrors what it said last.
"""

import logging
from typing import Any

from pydantic import ValidationError

from domain.api import ApiService
from domain.models import Favorite, FavoriteUpdate, Preferences, UserProfile
from domain.state import StateManager


logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, state: StateManager, api: ApiService) -> None:
        self.state = state
        self.api = api

    async def login(self, username: str, password: str) -> UserProfile:
        await self.api.login(username, password)
        return await self.load_profile()

    async def logout(self) -> None:
        await self.api.logout()
        self.state.set_state({"username": "", "favorites": [], "preferences": Preferences()})

    async def load_profile(self) -> UserProfile:
        profile = UserProfile.model_validate(await self.api.me())
        self.state.set_state(
            {
                "username": profile.username,
                "favorites": profile.favorites,
                "preferences": profile.preferences,
            }
        )
        return profile


class FavoritesService:
    def __init__(
        self, state: StateManager, api: ApiService, *, max_favorites: int = 20
    ) -> None:
        self.state = state
        self.api = api
        self.max_favorites = max_favorites

    @property
    def favorites(self) -> list[Favorite]:
        return list(self.state.get("favorites") or [])

    def is_favorite(self, id: str) -> bool:
        return any(f.id == id for f in self.favorites)

    async def load(self) -> list[Favorite]:
        data = await self.api.get_favorites()
        favorites = [Favorite.model_validate(f) for f in data.get("favorites", [])]
        self.state.set_state({"favorites": favorites})
        return favorites

    async def add(
        self,
        recipe_text: str,
        title: str,
        *,
        rating: int | None = None,
        note: str | None = None,
    ) -> Favorite | None:
        if not recipe_text.strip() or not title.strip():
            self.state.set_state({"error": "A recipe needs a title and some text to be saved."})
            return None

        payload: dict[str, Any] = {"recipeText": recipe_text, "title": title.strip()}
        try:
            payload.update(FavoriteUpdate(rating=rating, note=note).to_api())
        except ValidationError:
            self.state.set_state({"error": "Ratings go from 1 to 5."})
            return None

        data = await self.api.save_favorite(payload)
        favorite = Favorite.model_validate(data["favorite"])
        # Newest first, oldest falls off, same as the server.
        favorites = [favorite] + [f for f in self.favorites if f.id != favorite.id]
        self.state.set_state({"favorites": favorites[: self.max_favorites]})
        logger.info("Saved favorite %s", favorite.id)
        return favorite

    async def update(self, id: str, **changes: Any) -> Favorite | None:
        try:
            updates = FavoriteUpdate(**changes).to_api()
        except ValidationError:
            self.state.set_state({"error": "Ratings go from 1 to 5."})
            return None

        data = await self.api.update_favorite(id, updates)
        favorite = Favorite.model_validate(data["favorite"])
        self.state.set_state(
            {"favorites": [favorite if f.id == id else f for f in self.favorites]}
        )
        return favorite

    async def rate(self, id: str, rating: int) -> Favorite | None:
        return await self.update(id, rating=rating)

    async def annotate(self, id: str, note: str) -> Favorite | None:
        return await self.update(id, note=note)

    async def remove(self, id: str) -> None:
        await self.api.delete_favorite(id)
        self.state.set_state({"favorites": [f for f in self.favorites if f.id != id]})


class PreferencesService:
    def __init__(self, state: StateManager, api: ApiService) -> None:
        self.state = state
        self.api = api

    @property
    def preferences(self) -> Preferences:
        return self.state.get("preferences") or Preferences()

    async def load(self) -> Preferences:
        data = await self.api.get_preferences()
        preferences = Preferences.model_validate(data.get("preferences") or {})
        self.state.set_state({"preferences": preferences})
        return preferences

    async def save(self, preferences: Preferences) -> Preferences:
        data = await self.api.update_preferences(preferences.to_api())
        saved = Preferences.model_validate(data.get("preferences") or preferences.to_api())
        self.state.set_state({"preferences": saved})
        return saved

    async def update(self, **changes: Any) -> Preferences:
        merged = self.preferences.model_dump() | changes
        return await self.save(Preferences.model_validate(merged))
