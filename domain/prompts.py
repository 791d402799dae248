from typing import Sequence

from domain.models import Diet, Preferences, Vibe, YesNo


FALLBACK_OPENING = "Write me a delicious recipe that would be perfect for any occasion."


# The formatter's section and numbering heuristics follow this template.
RECIPE_FORMAT = """
Please write me a clear, well-formatted recipe that matches these preferences.

Structure it exactly like this (follow the formatting rules strictly):

Recipe Name
===

Ingredients:
• [ingredient 1]
• [ingredient 2]
• [ingredient 3]

Instructions:
1. [step 1]
2. [step 2]
3. [step 3]

Formatting rules:
- Use the exact header text "Ingredients:" on its own line.
- Use the exact header text "Instructions:" on its own line.
- Put each ingredient on its own line (prefer starting with "• ").
- Put each instruction on its own line starting with "1.", "2.", etc.
- Do not merge ingredients and instructions into the same paragraph.
- Do not omit the Instructions header.

Keep it concise but complete."""


SUGGESTIONS_FORMAT = """
Suggest exactly {count} recipe titles with brief descriptions that match these preferences.

Please respond with only JSON in this format:
{{
  "suggestions": [
    {{ "title": "Recipe Title 1", "description": "Brief explanation" }},
    {{ "title": "Recipe Title 2", "description": "Brief explanation" }}
  ]
}}

Keep titles appealing, descriptions concise (50 words or fewer), and match preferences."""


def preference_clauses(
    preferences: Preferences | None, ingredients_at_home: str = ""
) -> str:
    """Diet, budget, seasonal and on-hand ingredient clauses, always in that order."""
    preferences = Preferences() if preferences is None else preferences
    s = ""
    if preferences.diet is not Diet.none:
        s += f" Please make this recipe {preferences.diet.value.lower()}."
    if preferences.budget is YesNo.yes:
        s += " Focus on affordable, budget-friendly ingredients."
    if preferences.seasonal_king is YesNo.yes:
        s += (
            " Prioritize seasonal, fresh ingredients that are currently "
            "in their peak season."
        )
    if ingredients_at_home.strip():
        s += (
            " Try to incorporate these ingredients they already have: "
            f"{ingredients_at_home.strip()}."
        )
    return s


def describe_request(
    vibe_profile: Sequence[Vibe],
    preferences: Preferences | None,
    ingredients_at_home: str = "",
) -> str:
    if not vibe_profile:
        opening = FALLBACK_OPENING
    else:
        combined = ", ".join(vibe.prompt for vibe in vibe_profile)
        opening = f"Can you make a recipe for someone that has this vibe:\n\n{combined}."
    return opening + preference_clauses(preferences, ingredients_at_home)


def generate_personalized_prompt(
    vibe_profile: Sequence[Vibe],
    preferences: Preferences | None = None,
    ingredients_at_home: str = "",
) -> str:
    return (
        describe_request(vibe_profile, preferences, ingredients_at_home)
        + "\n"
        + RECIPE_FORMAT
    )


def suggestions_prompt(
    vibe_profile: Sequence[Vibe],
    preferences: Preferences | None = None,
    ingredients_at_home: str = "",
    *,
    count: int = 5,
) -> str:
    return (
        describe_request(vibe_profile, preferences, ingredients_at_home)
        + "\n"
        + SUGGESTIONS_FORMAT.format(count=count)
    )


def full_recipe_prompt(
    title: str,
    vibe_profile: Sequence[Vibe],
    preferences: Preferences | None = None,
    ingredients_at_home: str = "",
) -> str:
    context = describe_request(vibe_profile, preferences, ingredients_at_home)
    return (
        f'Generate a complete recipe for "{title}".\n\n'
        f"{context}\n"
        f"Use {title} as the recipe name.\n"
        + RECIPE_FORMAT
    )
