"""Turns loosely structured model output into a title and recipe sections.

The parser is tuned to the reply template in `domain.prompts.RECIPE_FORMAT`:
a title line, a `===` separator, an `Ingredients:` header with bullets and an
`Instructions:` header with numbered steps. Change both together.
"""

from enum import Enum
import re

from markupsafe import Markup, escape

from domain.models import FormattedRecipe
from domain.templates import render


UNTITLED = "Untitled Recipe"

SEPARATOR = re.compile(r"^={3,}$")
NUMBERED = re.compile(r"^\d+[.)]\s")
TITLE_LABEL = re.compile(r"^(recipe\s+name|recipe|name)\s*:\s*", re.IGNORECASE)
BULLET = re.compile(r"^[-•*]\s*")
ORDINAL = re.compile(r"^(\d+[.)]|[-•*])\s*")
BOLD = re.compile(r"\*\*(.+?)\*\*")
# Markdown noise a model likes to wrap headers and titles in.
DECORATION = re.compile(r"^[#*_\s]+|[*_\s]+$")


class Mode(Enum):
    intro = "intro"
    ingredients = "ingredients"
    instructions = "instructions"


def _header(line: str) -> Mode | None:
    text = DECORATION.sub("", line).lower()
    for mode, words in (
        (Mode.ingredients, ("ingredients",)),
        (Mode.instructions, ("instructions", "directions")),
    ):
        for word in words:
            if text == word or text.startswith(f"{word}:"):
                return mode
    return None


def _clean_title(line: str) -> str:
    title = DECORATION.sub("", line)
    title = TITLE_LABEL.sub("", title)
    return BOLD.sub(r"\1", title).strip() or UNTITLED


def inline(text: str) -> Markup:
    """Escape, then turn `**bold**` into `<strong>`. Nothing else is markdown."""
    return Markup(BOLD.sub(r"<strong>\1</strong>", str(escape(text))))


def format_recipe(raw_text: str | None, *, hide_title: bool = False) -> FormattedRecipe:
    if not raw_text or not isinstance(raw_text, str) or not raw_text.strip():
        return FormattedRecipe(
            html="<p>No recipe available</p>",
            title=UNTITLED,
            intro_lines=[],
            ingredient_lines=[],
            instruction_lines=[],
        )

    mode = Mode.intro
    title: str | None = None
    intro: list[str] = []
    ingredients: list[str] = []
    instructions: list[str] = []

    for raw_line in raw_text.splitlines():
        line = raw_line.strip()
        if not line or SEPARATOR.match(line):
            continue

        header = _header(line)
        if header is not None:
            mode = header
            continue

        # A numbered line under ingredients means the steps started unannounced.
        if mode is Mode.ingredients and NUMBERED.match(line):
            mode = Mode.instructions

        match mode:
            case Mode.intro:
                lower = line.lower()
                if (
                    title is None
                    and "ingredients" not in lower
                    and "instructions" not in lower
                ):
                    title = _clean_title(line)
                else:
                    intro.append(line)
            case Mode.ingredients:
                ingredients.append(BULLET.sub("", line))
            case Mode.instructions:
                instructions.append(ORDINAL.sub("", line))

    title = UNTITLED if title is None else title

    if not (ingredients or instructions):
        return FormattedRecipe(
            html=f"<p>{inline(raw_text.strip())}</p>",
            title=title,
            intro_lines=intro,
            ingredient_lines=[],
            instruction_lines=[],
        )

    html = render(
        "recipe.html",
        title=None if hide_title else title,
        intro=[inline(line) for line in intro],
        ingredients=[inline(line) for line in ingredients],
        instructions=[inline(line) for line in instructions],
    )
    return FormattedRecipe(
        html=html,
        title=title,
        intro_lines=intro,
        ingredient_lines=ingredients,
        instruction_lines=instructions,
    )


def extract_title(raw_text: str | None) -> str:
    return format_recipe(raw_text).title


def is_complete_recipe(raw_text: str | None) -> bool:
    formatted = format_recipe(raw_text)
    return formatted.has_ingredients and formatted.has_instructions
