"""Talk to OpenAI directly instead of going through the server's proxy."""

import asyncio
import logging
from typing import Any

import openai

from config import Config
from domain.api import ApiError, RequestTimeout


logger = logging.getLogger(__name__)


CONFIG = Config()


async def quick_chat(
    msg: str,
    *,
    openai_client: openai.AsyncClient,
    model: str,
) -> str:
    resp = await openai_client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": msg}],
    )
    ans = resp.choices[0].message.content or ""
    return ans.strip()


class LLMService:
    """Same replies as `/api/generateRecipe`: `{"recipe": text}`."""

    def __init__(
        self,
        openai_client: openai.AsyncClient | None = None,
        *,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.openai_client = (
            openai.AsyncClient() if openai_client is None else openai_client
        )
        self.model = CONFIG.core_model if model is None else model
        self.timeout = CONFIG.recipe_timeout if timeout is None else timeout

    async def _chat(self, prompt: str, timeout: float | None) -> dict[str, Any]:
        timeout = self.timeout if timeout is None else timeout
        try:
            text = await asyncio.wait_for(
                quick_chat(prompt, openai_client=self.openai_client, model=self.model),
                timeout,
            )
        except TimeoutError as e:
            raise RequestTimeout(f"Generation timeout after {timeout:g}s") from e
        except openai.OpenAIError as e:
            logger.error("OpenAI generation failed: %r", e)
            raise ApiError("Something went wrong", details=str(e)) from e
        return {"recipe": text}

    async def generate_recipe(
        self, prompt: str, *, timeout: float | None = None
    ) -> dict[str, Any]:
        return await self._chat(prompt, timeout)

    async def generate_suggestions(
        self, prompt: str, count: int = 5, *, timeout: float | None = None
    ) -> dict[str, Any]:
        return await self._chat(prompt, timeout)

    async def close(self) -> None:
        await self.openai_client.close()
