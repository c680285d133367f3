"""
Pydantic Schemas
Data shapes passed between the pipeline components.
"""

from foodscan.schemas.preferences import Goal, UserPreferences, DEFAULT_AVOIDED_INGREDIENTS
from foodscan.schemas.product import (
    Verdict,
    ProductSource,
    PartialProduct,
    FlaggedIngredient,
    ProductEvaluation,
    IngredientAnalysis,
    ProductDraft,
    Product,
)

__all__ = [
    "Goal",
    "UserPreferences",
    "DEFAULT_AVOIDED_INGREDIENTS",
    "Verdict",
    "ProductSource",
    "PartialProduct",
    "FlaggedIngredient",
    "ProductEvaluation",
    "IngredientAnalysis",
    "ProductDraft",
    "Product",
]
