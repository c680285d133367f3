"""
Product Schemas
Pydantic models for partial inputs, evaluation results and stored products.

A PartialProduct comes out of a lookup adapter or the OCR extraction.
The ProductManager turns it into a ProductDraft (evaluated, no identity),
and the persistence facade turns the draft into a Product (id + scan_date).
"""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from foodscan.core.constants import UNKNOWN_BRAND, UNKNOWN_PRODUCT


class Verdict(str, enum.Enum):
    """Binary evaluation outcome"""
    GOOD = "good"
    BAD = "bad"


class ProductSource(str, enum.Enum):
    """Where a product record came from"""
    SCAN = "scan"
    OCR = "ocr"
    MANUAL = "manual"
    AI_SUGGESTION = "ai_suggestion"


class PartialProduct(BaseModel):
    """Raw, unevaluated product fields from a lookup adapter or OCR extraction"""
    name: Optional[str] = Field(None, description="Product name")
    brand: Optional[str] = Field(None, description="Brand")
    barcode: Optional[str] = Field(None, max_length=100, description="Barcode")
    ingredients: list[str] = Field(default_factory=list, description="Ingredients in label order")
    calories: Optional[float] = Field(None, ge=0, description="Energy in kcal")
    image: Optional[str] = Field(None, description="Image URL")
    ocr_text: Optional[str] = Field(None, description="Raw OCR text")
    source: ProductSource = ProductSource.MANUAL


class FlaggedIngredient(BaseModel):
    """An ingredient (or the calorie entry) that violated a preference"""
    ingredient: str
    reason: str


class ProductEvaluation(BaseModel):
    """Classifier output for one set of ingredients"""
    verdict: Verdict
    flagged_ingredients: list[FlaggedIngredient] = Field(default_factory=list)

    @property
    def flagged_names(self) -> list[str]:
        return [f.ingredient for f in self.flagged_ingredients]


class IngredientAnalysis(BaseModel):
    """Taxonomy categories matched by a single ingredient"""
    ingredient: str
    categories: list[str] = Field(default_factory=list)


class ProductDraft(BaseModel):
    """
    Fully evaluated product that has not been persisted yet.

    Invariants checked on validation:
    - ingredients and categories are never empty
    - verdict is GOOD iff flagged_ingredients is empty, except for
      avoided records, which are always BAD
    """
    name: str = UNKNOWN_PRODUCT
    brand: str = UNKNOWN_BRAND
    barcode: Optional[str] = None
    ingredients: list[str] = Field(..., min_length=1)
    calories: Optional[float] = None
    image: str
    categories: list[str] = Field(..., min_length=1)
    verdict: Verdict
    flagged_ingredients: list[str] = Field(default_factory=list)
    ocr_text: Optional[str] = None
    source: ProductSource = ProductSource.MANUAL
    avoided: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_verdict(self):
        if self.avoided:
            if self.verdict != Verdict.BAD:
                raise ValueError("avoided products must have verdict 'bad'")
            return self
        expected = Verdict.GOOD if not self.flagged_ingredients else Verdict.BAD
        if self.verdict != expected:
            raise ValueError(
                f"verdict '{self.verdict.value}' disagrees with "
                f"{len(self.flagged_ingredients)} flagged ingredient(s)"
            )
        return self


class Product(ProductDraft):
    """Stored product record"""
    id: str = Field(..., min_length=1)
    scan_date: datetime

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', verdict={self.verdict.value})>"
