import pytest

from conftest import RECIPE_TEXT

from domain.formatter import (
    UNTITLED,
    extract_title,
    format_recipe,
    inline,
    is_complete_recipe,
)


def test_canonical_recipe() -> None:
    got = format_recipe(RECIPE_TEXT)

    assert got.title == "Garlic Rice"
    assert got.intro_lines == []
    assert got.ingredient_lines == ["1 cup rice", "2 cloves garlic", "1 tbsp olive oil"]
    assert got.instruction_lines == [
        "Rinse the rice until the water runs clear.",
        "Fry the **garlic** in the oil.",
        "Add rice and water, simmer for 15 minutes.",
    ]
    assert got.has_ingredients and got.has_instructions
    assert '<h2 class="recipe-title">Garlic Rice</h2>' in got.html
    assert "<li>1 cup rice</li>" in got.html
    assert "<strong>garlic</strong>" in got.html
    assert "===" not in got.html


def test_hide_title() -> None:
    got = format_recipe(RECIPE_TEXT, hide_title=True)
    assert got.title == "Garlic Rice"
    assert "recipe-title" not in got.html


@pytest.mark.parametrize("raw", ("", "   \n  ", None))
def test_empty_input(raw: str | None) -> None:
    got = format_recipe(raw)
    assert got.html == "<p>No recipe available</p>"
    assert got.title == UNTITLED
    assert not got.has_ingredients


def test_intro_lines_follow_the_title() -> None:
    raw = (
        "Sunday Roast\n"
        "A proper roast for a slow afternoon.\n"
        "Serves 4.\n"
        "Ingredients:\n"
        "- 1 chicken\n"
        "Instructions:\n"
        "1. Roast it."
    )
    got = format_recipe(raw)
    assert got.title == "Sunday Roast"
    assert got.intro_lines == ["A proper roast for a slow afternoon.", "Serves 4."]
    assert '<p class="recipe-intro">Serves 4.</p>' in got.html


def test_numbered_line_under_ingredients_starts_the_steps() -> None:
    raw = "Ingredients:\n- rice\n- water\n1. Boil the water.\n2) Add the rice."
    got = format_recipe(raw)
    assert got.title == UNTITLED
    assert got.ingredient_lines == ["rice", "water"]
    assert got.instruction_lines == ["Boil the water.", "Add the rice."]


@pytest.mark.parametrize(
    "header",
    ("Ingredients:", "INGREDIENTS", "## Ingredients", "**Ingredients:**", "Ingredients: (serves 2)"),
)
def test_ingredient_headers(header: str) -> None:
    got = format_recipe(f"Toast\n{header}\n* bread\nInstructions:\n1. Toast it.")
    assert got.ingredient_lines == ["bread"]


@pytest.mark.parametrize("header", ("Instructions:", "Directions:", "### Directions"))
def test_instruction_headers(header: str) -> None:
    got = format_recipe(f"Toast\nIngredients:\n• bread\n{header}\nToast it.")
    assert got.instruction_lines == ["Toast it."]


@pytest.mark.parametrize(
    "line,title",
    (
        ("Recipe Name: Pasta Bake", "Pasta Bake"),
        ("**Pasta Bake**", "Pasta Bake"),
        ("# Pasta Bake", "Pasta Bake"),
        ("Name: **Pasta** Bake", "Pasta Bake"),
    ),
)
def test_title_cleanup(line: str, title: str) -> None:
    assert extract_title(f"{line}\nIngredients:\n- pasta") == title


def test_unstructured_text_is_one_paragraph() -> None:
    got = format_recipe("Just boil some <pasta> & eat it.")
    assert got.html == "<p>Just boil some &lt;pasta&gt; &amp; eat it.</p>"
    assert not got.has_ingredients
    assert not got.has_instructions


def test_markup_in_lines_is_escaped() -> None:
    got = format_recipe("Toast\nIngredients:\n- <script>alert(1)</script>\nInstructions:\n1. Eat.")
    assert "<script>" not in got.html
    assert "&lt;script&gt;" in got.html


def test_inline() -> None:
    assert inline("a **b** <c>") == "a <strong>b</strong> &lt;c&gt;"


def test_is_complete_recipe() -> None:
    assert is_complete_recipe(RECIPE_TEXT)
    assert not is_complete_recipe("Garlic Rice\nIngredients:\n- rice")
    assert not is_complete_recipe("")


def test_to_dict() -> None:
    got = format_recipe(RECIPE_TEXT).to_dict()
    assert got["title"] == "Garlic Rice"
    assert got["has_ingredients"] is True
    assert len(got["instruction_lines"]) == 3
