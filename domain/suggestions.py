"""Two-stage recipe generation.

Stage one asks for a handful of short title + description ideas. Stage two
turns the one the user picked into a full recipe and caches it on the
suggestion, so picking it again costs nothing.
"""

from enum import Enum
import json
import logging
import re
from typing import Any, Protocol
import uuid

from domain.api import ApiError
from domain.formatter import UNTITLED, format_recipe
from domain.models import FullRecipe, RecipeSuggestion
from domain.prompts import full_recipe_prompt, suggestions_prompt
from domain.state import StateManager


logger = logging.getLogger(__name__)


DEFAULT_DESCRIPTION = "Personalized recipe based on your preferences"

FALLBACK_SUGGESTIONS = (
    ("Fresh Garden Salad", "Light, healthy salad with seasonal vegetables"),
    ("Comforting Vegetable Soup", "Warm, hearty soup for cozy nights"),
)

FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class RecipeGenerator(Protocol):
    async def generate_suggestions(
        self, prompt: str, count: int = 5, *, timeout: float | None = None
    ) -> Any: ...

    async def generate_recipe(
        self, prompt: str, *, timeout: float | None = None
    ) -> Any: ...


class SuggestionNotFound(LookupError):
    pass


class ReplyKind(Enum):
    suggestions = "suggestions"
    recipe = "recipe"
    title = "title"
    text = "text"
    fallback = "fallback"


class SuggestionDraft:
    def __init__(
        self, title: str, description: str = DEFAULT_DESCRIPTION, recipe_text: str | None = None
    ) -> None:
        self.title = title
        self.description = description
        self.recipe_text = recipe_text


class SuggestionList:
    """Every upstream reply shape ends up as one of these."""

    def __init__(self, kind: ReplyKind, drafts: list[SuggestionDraft]) -> None:
        self.kind = kind
        self.drafts = drafts

    def __repr__(self) -> str:
        return f"<SuggestionList({self.kind.value}, n={len(self.drafts)})>"

    @classmethod
    def fallback(cls) -> "SuggestionList":
        return cls(
            ReplyKind.fallback,
            [SuggestionDraft(t, d) for t, d in FALLBACK_SUGGESTIONS],
        )


def _draft(item: Any, index: int) -> SuggestionDraft | None:
    match item:
        case {"title": str(title), **rest} if title.strip():
            description = rest.get("description")
            recipe_text = rest.get("fullRecipe") or rest.get("recipeText")
            return SuggestionDraft(
                title.strip(),
                description.strip()
                if isinstance(description, str) and description.strip()
                else DEFAULT_DESCRIPTION,
                recipe_text if isinstance(recipe_text, str) else None,
            )
        case str(title) if title.strip():
            return SuggestionDraft(title.strip())
        case {**rest} if rest:
            return SuggestionDraft(f"Recipe {index}")
        case _:
            return None


def _drafts(items: list[Any], count: int) -> list[SuggestionDraft]:
    drafts = [_draft(item, i) for i, item in enumerate(items, start=1)]
    return [d for d in drafts if d is not None][:count]


def _json_in(text: str) -> Any:
    """Pull a JSON document out of model text, fences and chatter included."""
    text = FENCE.sub("", text.strip())
    # Whichever bracket opens first is the outermost document.
    spans = sorted((text.find(opener), text.rfind(closer)) for opener, closer in ("{}", "[]"))
    for start, end in spans:
        if start == -1 or end <= start:
            continue
        try:
            return json.loads(text[start : end + 1])
        except ValueError:
            continue
    return None


def _from_text(text: str, kind: ReplyKind, count: int) -> SuggestionList:
    match _json_in(text):
        case {"suggestions": list(items)} | list(items) if _drafts(items, count):
            return SuggestionList(ReplyKind.suggestions, _drafts(items, count))
        case _:
            pass

    formatted = format_recipe(text)
    if formatted.has_ingredients and formatted.has_instructions:
        # A whole recipe came back; offer it as the only idea, already cooked.
        description = " ".join(formatted.intro_lines) or DEFAULT_DESCRIPTION
        return SuggestionList(
            ReplyKind.recipe, [SuggestionDraft(formatted.title, description, text)]
        )

    if kind is ReplyKind.text and text.strip():
        return SuggestionList(ReplyKind.text, [SuggestionDraft(text.strip())])

    return SuggestionList.fallback()


def parse_suggestion_reply(payload: Any, *, count: int = 5) -> SuggestionList:
    match payload:
        case {"suggestions": list(items)} | list(items) if _drafts(items, count):
            return SuggestionList(ReplyKind.suggestions, _drafts(items, count))
        case {"recipe": str(text)} if text.strip():
            return _from_text(text, ReplyKind.recipe, count)
        case {"recipe": {"suggestions": list(items)}} if _drafts(items, count):
            return SuggestionList(ReplyKind.suggestions, _drafts(items, count))
        case {"title": str(title)} if title.strip():
            draft = _draft(payload, 1)
            assert draft is not None
            return SuggestionList(ReplyKind.title, [draft])
        case str(text) if text.strip():
            return _from_text(text, ReplyKind.text, count)
        case _:
            return SuggestionList.fallback()


def recipe_text_from(payload: Any) -> str:
    match payload:
        case str(text):
            return text
        case {"recipe": str(text)} | {"recipeText": str(text)} | {"text": str(text)}:
            return text
        case _:
            return ""


class RecipeSuggestionService:
    def __init__(
        self,
        state: StateManager,
        generator: RecipeGenerator,
        *,
        count: int = 5,
        suggestion_timeout: float | None = None,
        recipe_timeout: float | None = None,
    ) -> None:
        self.state = state
        self.generator = generator
        self.count = count
        self.suggestion_timeout = suggestion_timeout
        self.recipe_timeout = recipe_timeout
        self._suggestions: list[RecipeSuggestion] = []
        self._generation = 0

    @property
    def current_suggestions(self) -> list[RecipeSuggestion]:
        return list(self._suggestions)

    def _context(self) -> tuple[list[Any], Any, str]:
        return (
            self.state.get("vibe_profile") or [],
            self.state.get("preferences"),
            self.state.get("ingredients_at_home") or "",
        )

    def build_suggestions_prompt(self) -> str:
        return suggestions_prompt(*self._context(), count=self.count)

    def build_full_recipe_prompt(self, title: str) -> str:
        return full_recipe_prompt(title, *self._context())

    async def generate_suggestions(self) -> list[RecipeSuggestion]:
        """Stage one. Never fails; anything odd falls back to canned ideas."""
        self._generation += 1
        generation = self._generation
        self._suggestions = []

        prompt = self.build_suggestions_prompt()
        try:
            payload = await self.generator.generate_suggestions(
                prompt, self.count, timeout=self.suggestion_timeout
            )
        except ApiError as e:
            logger.warning("Suggestion generation failed, using fallback: %s", e)
            parsed = SuggestionList.fallback()
        except Exception:
            logger.exception("Suggestion generator crashed, using fallback")
            parsed = SuggestionList.fallback()
        else:
            parsed = parse_suggestion_reply(payload, count=self.count)
            if parsed.kind is ReplyKind.fallback:
                logger.warning("Unrecognised suggestion reply, using fallback")

        if generation != self._generation:
            logger.info("Dropping stale suggestions from generation %d", generation)
            return self.current_suggestions

        self._suggestions = [
            self._record(draft, i) for i, draft in enumerate(parsed.drafts, start=1)
        ]
        return self.current_suggestions

    def _record(self, draft: SuggestionDraft, index: int) -> RecipeSuggestion:
        suggestion = RecipeSuggestion(
            id=uuid.uuid4().hex,
            index=index,
            title=draft.title,
            description=draft.description,
        )
        if draft.recipe_text:
            suggestion.full_recipe = self._full_recipe(draft.recipe_text, draft.title)
        return suggestion

    def _full_recipe(self, recipe_text: str, fallback_title: str) -> FullRecipe:
        formatted = format_recipe(recipe_text, hide_title=True)
        title = formatted.title if formatted.title != UNTITLED else fallback_title
        return FullRecipe(recipe_text=recipe_text, title=title, formatted=formatted)

    def select_suggestion(self, suggestion_id: str) -> RecipeSuggestion | None:
        return next((s for s in self._suggestions if s.id == suggestion_id), None)

    async def generate_full_recipe(
        self, suggestion_id: str, *, timeout: float | None = None
    ) -> FullRecipe:
        """Stage two. Errors propagate so the caller can offer a retry."""
        suggestion = self.select_suggestion(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFound(f"Suggestion not found: {suggestion_id}")

        if suggestion.full_recipe is not None:
            return suggestion.full_recipe

        prompt = self.build_full_recipe_prompt(suggestion.title)
        payload = await self.generator.generate_recipe(
            prompt, timeout=self.recipe_timeout if timeout is None else timeout
        )
        recipe_text = recipe_text_from(payload)
        if not recipe_text.strip():
            raise ApiError("Empty recipe from generator", details=payload)

        full_recipe = self._full_recipe(recipe_text, suggestion.title)
        if isinstance(payload, dict) and isinstance(payload.get("title"), str):
            full_recipe.title = payload["title"]
        suggestion.full_recipe = full_recipe
        return full_recipe

    def clear_suggestions(self) -> None:
        # Replies still in flight belong to the cleared set.
        self._generation += 1
        self._suggestions = []
