"""
Ingredient Classifier
Pure functions that categorize ingredients and evaluate them against
user preferences.

Features:
- Fixed category taxonomy (sweeteners, colors, fats, preservatives, sugars, additives, allergens)
- Case-insensitive substring matching against the avoid list
- Independent calorie-limit check, additive to ingredient flags
- Binary verdict: good iff nothing was flagged
"""

from typing import Optional, Sequence

from foodscan.core.constants import NATURAL_CATEGORY
from foodscan.schemas.preferences import UserPreferences
from foodscan.schemas.product import (
    FlaggedIngredient,
    IngredientAnalysis,
    ProductEvaluation,
    Verdict,
)


# Category key -> match substrings (lowercase). Order is the output order.
CATEGORY_TAXONOMY: dict[str, list[str]] = {
    "artificialSweeteners": [
        "aspartame", "sucralose", "saccharin", "acesulfame", "neotame",
        "advantame", "cyclamate", "artificial sweetener",
    ],
    "artificialColors": [
        "red 40", "red 3", "yellow 5", "yellow 6", "blue 1", "blue 2",
        "green 3", "tartrazine", "caramel color", "artificial color",
    ],
    "unhealthyFats": [
        "partially hydrogenated", "hydrogenated", "shortening", "palm oil",
        "interesterified", "trans fat", "cottonseed oil", "soybean oil",
    ],
    "preservatives": [
        "sodium benzoate", "potassium sorbate", "sodium nitrite", "sodium nitrate",
        "calcium propionate", "sulfite", "bha", "bht", "tbhq", "preservative",
    ],
    "addedSugars": [
        "high-fructose corn syrup", "corn syrup", "sugar", "dextrose", "glucose",
        "fructose", "sucrose", "maltodextrin", "molasses", "honey", "syrup",
    ],
    "additives": [
        "monosodium glutamate", "msg", "carrageenan", "xanthan gum", "guar gum",
        "polysorbate", "lecithin", "sodium phosphate", "modified starch",
        "artificial flavor",
    ],
    "allergens": [
        "milk", "wheat", "soy", "peanut", "egg", "almond", "cashew", "walnut",
        "hazelnut", "tree nut", "fish", "shellfish", "sesame", "gluten",
    ],
}


def analyze_ingredient(ingredient: str) -> IngredientAnalysis:
    """Return every taxonomy category the ingredient matches (possibly none)."""
    lowered = ingredient.lower()
    categories = [
        category
        for category, terms in CATEGORY_TAXONOMY.items()
        if any(term in lowered for term in terms)
    ]
    return IngredientAnalysis(ingredient=ingredient, categories=categories)


def categorize_product(ingredients: Sequence[str]) -> list[str]:
    """
    Union of the categories of all ingredients, in taxonomy order.

    Falls back to ["natural"] when nothing matched, so the result is
    never empty.
    """
    matched = set()
    for ingredient in ingredients:
        matched.update(analyze_ingredient(ingredient).categories)

    categories = [category for category in CATEGORY_TAXONOMY if category in matched]
    return categories or [NATURAL_CATEGORY]


def _format_number(value: float) -> str:
    return f"{value:g}"


def evaluate_product(
    ingredients: Sequence[str],
    calories: Optional[float],
    prefs: UserPreferences
) -> ProductEvaluation:
    """
    Evaluate ingredients (and calories) against the user's preferences.

    Every avoid term is matched as a case-insensitive substring of every
    ingredient. An ingredient is flagged at most once; the first matching
    term (predefined terms before custom ones) provides the reason.
    A calorie entry is appended when max_calories is set and exceeded.
    """
    terms = prefs.all_avoided_terms
    flagged: list[FlaggedIngredient] = []

    for ingredient in ingredients:
        lowered = ingredient.lower()
        for term in terms:
            if term in lowered:
                flagged.append(FlaggedIngredient(
                    ingredient=ingredient,
                    reason=f'Contains "{term}", which is on your avoid list',
                ))
                break

    if prefs.max_calories is not None and calories is not None and calories > prefs.max_calories:
        excess = calories - prefs.max_calories
        flagged.append(FlaggedIngredient(
            ingredient=f"Calories ({_format_number(calories)})",
            reason=(
                f"Exceeds your limit of {_format_number(prefs.max_calories)} calories "
                f"by {_format_number(excess)}"
            ),
        ))

    verdict = Verdict.GOOD if not flagged else Verdict.BAD
    return ProductEvaluation(verdict=verdict, flagged_ingredients=flagged)
