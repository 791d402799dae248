"""Thin client for the favourites/preferences/generation server.

Every call races a timeout. Whatever loses is dropped; a late answer never
reaches the caller. Failures surface as `ApiError`.
"""

import asyncio
import logging
from typing import Any, Self

import httpx

from config import Config
from domain.events import EventBus


logger = logging.getLogger(__name__)


CONFIG = Config()


ENDPOINTS = {
    "generate_recipe": "/api/generateRecipe",
    "favorites": "/api/favorites",
    "me": "/api/me",
    "preferences": "/api/preferences",
    "login": "/login",
    "logout": "/logout",
}


class ApiError(Exception):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class RequestTimeout(ApiError):
    pass


class ApiService:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        bus: EventBus | None = None,
        timeout: float | None = None,
        recipe_timeout: float | None = None,
        suggestion_timeout: float | None = None,
    ) -> None:
        self.base_url = CONFIG.api_base_url if base_url is None else base_url
        self.timeout = CONFIG.api_timeout if timeout is None else timeout
        self.recipe_timeout = (
            CONFIG.recipe_timeout if recipe_timeout is None else recipe_timeout
        )
        self.suggestion_timeout = (
            CONFIG.suggestion_timeout if suggestion_timeout is None else suggestion_timeout
        )
        self.client = (
            httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=None,
            )
            if client is None
            else client
        )
        self.bus = EventBus() if bus is None else bus

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        timeout: float | None = None,
    ) -> Any:
        timeout = self.timeout if timeout is None else timeout
        self.bus.emit("api:request:start", {"endpoint": endpoint, "method": method})
        try:
            try:
                resp = await asyncio.wait_for(
                    self.client.request(method, endpoint, json=json), timeout
                )
            except TimeoutError as e:
                raise RequestTimeout(
                    f"Request timeout after {timeout:g}s: {method} {endpoint}"
                ) from e
            except httpx.HTTPError as e:
                raise ApiError(f"Request failed: {method} {endpoint}: {e}") from e

            self.bus.emit(
                "api:response", {"endpoint": endpoint, "status": resp.status_code}
            )

            if resp.is_error:
                try:
                    data = resp.json()
                except ValueError:
                    data = {}
                data = data if isinstance(data, dict) else {}
                raise ApiError(
                    data.get("error")
                    or f"HTTP {resp.status_code}: {resp.reason_phrase}",
                    status_code=resp.status_code,
                    details=data.get("details"),
                )

            try:
                return resp.json()
            except ValueError as e:
                raise ApiError(
                    f"Invalid JSON from {endpoint}", status_code=resp.status_code
                ) from e
        except ApiError as e:
            logger.error("%s %s failed: %s", method, endpoint, e)
            self.bus.emit("api:error", {"endpoint": endpoint, "error": e})
            raise

    async def get(self, endpoint: str, *, timeout: float | None = None) -> Any:
        return await self.request("GET", endpoint, timeout=timeout)

    async def post(
        self, endpoint: str, data: Any = None, *, timeout: float | None = None
    ) -> Any:
        return await self.request("POST", endpoint, json=data, timeout=timeout)

    async def patch(
        self, endpoint: str, data: Any = None, *, timeout: float | None = None
    ) -> Any:
        return await self.request("PATCH", endpoint, json=data, timeout=timeout)

    async def delete(self, endpoint: str, *, timeout: float | None = None) -> Any:
        return await self.request("DELETE", endpoint, timeout=timeout)

    async def generate_recipe(self, prompt: str, *, timeout: float | None = None) -> Any:
        return await self.post(
            ENDPOINTS["generate_recipe"],
            {"prompt": prompt},
            timeout=self.recipe_timeout if timeout is None else timeout,
        )

    async def generate_suggestions(
        self, prompt: str, count: int = 5, *, timeout: float | None = None
    ) -> Any:
        return await self.post(
            ENDPOINTS["generate_recipe"],
            {"prompt": prompt, "count": count, "suggestions": True},
            timeout=self.suggestion_timeout if timeout is None else timeout,
        )

    async def login(self, username: str, password: str) -> Any:
        return await self.post(
            ENDPOINTS["login"], {"username": username, "password": password}
        )

    async def logout(self) -> Any:
        return await self.post(ENDPOINTS["logout"])

    async def me(self) -> dict[str, Any]:
        return await self.get(ENDPOINTS["me"])

    async def get_favorites(self) -> dict[str, Any]:
        return await self.get(ENDPOINTS["favorites"])

    async def save_favorite(self, favorite: dict[str, Any]) -> dict[str, Any]:
        return await self.post(ENDPOINTS["favorites"], favorite)

    async def update_favorite(
        self, id: str, updates: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.patch(f"{ENDPOINTS['favorites']}/{id}", updates)

    async def delete_favorite(self, id: str) -> dict[str, Any]:
        return await self.delete(f"{ENDPOINTS['favorites']}/{id}")

    async def get_preferences(self) -> dict[str, Any]:
        return await self.get(ENDPOINTS["preferences"])

    async def update_preferences(self, preferences: dict[str, Any]) -> dict[str, Any]:
        return await self.patch(ENDPOINTS["preferences"], preferences)
