"""
Preferences Schemas
Dietary preferences used by the ingredient classifier.
"""

import enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Goal(str, enum.Enum):
    """User goal; informs downstream scoring, not the classifier"""
    STRICTLY_NATURAL = "strictlyNatural"
    AVOID_CHEMICALS = "avoidChemicals"
    CALORIE_COUNT = "calorieCount"


DEFAULT_AVOIDED_INGREDIENTS = [
    "aspartame",
    "sucralose",
    "red 40",
    "yellow 5",
    "high-fructose corn syrup",
    "partially hydrogenated",
]


class UserPreferences(BaseModel):
    """Schema for a user's avoid lists and calorie limit"""
    avoided_ingredients: list[str] = Field(default_factory=lambda: list(DEFAULT_AVOIDED_INGREDIENTS))
    custom_avoided_ingredients: list[str] = Field(default_factory=list)
    max_calories: Optional[float] = Field(200, ge=0, description="Per-product calorie ceiling")
    daily_calorie_target: float = Field(2000, gt=0)
    goal: Goal = Goal.AVOID_CHEMICALS

    @field_validator("avoided_ingredients", "custom_avoided_ingredients")
    @classmethod
    def normalize_terms(cls, terms: list[str]) -> list[str]:
        """Lowercase, trim and drop blank terms (a blank term would match everything)."""
        return [t.strip().lower() for t in terms if t and t.strip()]

    @property
    def all_avoided_terms(self) -> list[str]:
        """Predefined terms first, then the user's custom terms."""
        return self.avoided_ingredients + self.custom_avoided_ingredients
