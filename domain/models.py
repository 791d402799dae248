from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Shapes exchanged with the favourites server, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Vibe(ApiModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    name: str
    emoji: str
    description: str
    prompt: str
    color: str
    image: str


class Diet(Enum):
    none = "None"
    vegetarian = "Vegetarian"
    vegan = "Vegan"
    gluten_free = "Gluten-Free"


class YesNo(Enum):
    no = "No"
    yes = "Yes"


class Preferences(ApiModel):
    diet: Diet = Diet.none
    budget: YesNo = YesNo.no
    seasonal_king: YesNo = YesNo.no


class Favorite(ApiModel):
    id: str
    recipe_text: str
    title: str
    rating: int | None = Field(default=None, ge=1, le=5)
    note: str | None = None
    created_at: datetime | None = None


class FavoriteUpdate(ApiModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    note: str | None = None


class UserProfile(ApiModel):
    username: str
    vibe_profile: list[Vibe | str] = []
    ingredients_at_home: str = ""
    favorites: list[Favorite] = []
    preferences: Preferences = Preferences()
    created_at: datetime | None = None
    last_login: datetime | None = None


class FormattedRecipe:
    """Derived view of raw recipe text. The raw text is what gets saved."""

    def __init__(
        self,
        *,
        html: str,
        title: str,
        intro_lines: list[str],
        ingredient_lines: list[str],
        instruction_lines: list[str],
    ) -> None:
        self.html = html
        self.title = title
        self.intro_lines = intro_lines
        self.ingredient_lines = ingredient_lines
        self.instruction_lines = instruction_lines

    def __repr__(self) -> str:
        return f"<FormattedRecipe(title={self.title!r})>"

    @property
    def has_ingredients(self) -> bool:
        return bool(self.ingredient_lines)

    @property
    def has_instructions(self) -> bool:
        return bool(self.instruction_lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "html": self.html,
            "title": self.title,
            "intro_lines": self.intro_lines,
            "ingredient_lines": self.ingredient_lines,
            "instruction_lines": self.instruction_lines,
            "has_ingredients": self.has_ingredients,
            "has_instructions": self.has_instructions,
        }


class FullRecipe:
    def __init__(
        self, *, recipe_text: str, title: str, formatted: FormattedRecipe
    ) -> None:
        self.recipe_text = recipe_text
        self.title = title
        self.formatted = formatted

    def __repr__(self) -> str:
        return f"<FullRecipe(title={self.title!r})>"


class RecipeSuggestion:
    def __init__(
        self,
        *,
        id: str,
        index: int,
        title: str,
        description: str,
        full_recipe: FullRecipe | None = None,
    ) -> None:
        self.id = id
        self.index = index
        self.title = title
        self.description = description
        self.full_recipe = full_recipe

    def __repr__(self) -> str:
        return f"<RecipeSuggestion(id={self.id}, title={self.title!r})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "title": self.title,
            "description": self.description,
            "has_full_recipe": self.full_recipe is not None,
        }
