"""
Product Manager

The single entry point for creating a product from any partial input
(barcode lookup, OCR extraction, manual entry, AI suggestion).

process_and_add_product() runs in strict order:
1. Resolve ingredients (sentinel when empty)
2. Snapshot the user's preferences
3. Evaluate and categorize, once each
4. Merge into a full draft with defaults
5. Persist through the facade (which assigns id and scan_date)
6. Notify and publish, or return None on persistence failure
"""

import logging
from typing import Optional

from foodscan.core.cancellation import CancellationToken, check_cancelled
from foodscan.core.config import Settings, settings as default_settings
from foodscan.core.constants import (
    INGREDIENTS_NOT_AVAILABLE,
    NOTIFY_ERROR,
    NOTIFY_SUCCESS,
    TOPIC_PRODUCT_ADDED,
    UNKNOWN_BRAND,
    UNKNOWN_PRODUCT,
)
from foodscan.core.exceptions import PersistenceFailure
from foodscan.schemas.product import PartialProduct, Product, ProductDraft, ProductEvaluation, ProductSource
from foodscan.services.error_logging import error_logger
from foodscan.services.events import LoggingNotificationSink, NotificationSink, safe_notify
from foodscan.services.ingredient_classifier import categorize_product, evaluate_product
from foodscan.services.preferences_service import PreferencesService
from foodscan.services.product_db import ProductDbService

logger = logging.getLogger(__name__)


def resolve_ingredients(ingredients: list[str]) -> list[str]:
    """Trimmed, exact duplicates removed, never empty."""
    resolved = []
    for ingredient in ingredients or []:
        ingredient = (ingredient or "").strip()
        if ingredient and ingredient not in resolved:
            resolved.append(ingredient)
    return resolved or [INGREDIENTS_NOT_AVAILABLE]


class ProductManager:

    def __init__(
        self,
        product_db: ProductDbService,
        preferences: PreferencesService,
        notifier: Optional[NotificationSink] = None,
        config: Optional[Settings] = None
    ):
        self.product_db = product_db
        self.preferences = preferences
        self.notifier = notifier or LoggingNotificationSink()
        self.config = config or default_settings

    def _default_image(self, source: ProductSource) -> str:
        if source == ProductSource.OCR:
            return self.config.OCR_PLACEHOLDER_IMAGE_URL
        return self.config.PLACEHOLDER_IMAGE_URL

    def build_draft(self, partial: PartialProduct) -> ProductDraft:
        """Steps 1-4: evaluate the partial product into a draft (no I/O)."""
        ingredients = resolve_ingredients(partial.ingredients)
        prefs = self.preferences.get_preferences()

        evaluation = evaluate_product(ingredients, partial.calories, prefs)
        categories = categorize_product(ingredients)

        return ProductDraft(
            name=(partial.name or "").strip() or UNKNOWN_PRODUCT,
            brand=(partial.brand or "").strip() or UNKNOWN_BRAND,
            barcode=partial.barcode,
            ingredients=ingredients,
            calories=partial.calories,
            image=partial.image or self._default_image(partial.source),
            categories=categories,
            verdict=evaluation.verdict,
            flagged_ingredients=evaluation.flagged_names,
            ocr_text=partial.ocr_text,
            source=partial.source,
        )

    async def process_and_add_product(
        self,
        partial: PartialProduct,
        cancel_token: Optional[CancellationToken] = None
    ) -> Optional[Product]:
        """
        Evaluate and persist a partial product.

        Returns the saved product, or None if the record store rejected the
        write (no automatic retry). Raises ScanAborted, without writing
        anything, if the token was cancelled before persistence.
        """
        draft = self.build_draft(partial)
        check_cancelled(cancel_token)

        try:
            saved = await self.product_db.add_product(draft)
        except Exception as e:
            failure = e if isinstance(e, PersistenceFailure) else PersistenceFailure(str(e))
            error_logger.log_error(
                failure,
                stage="persistence",
                partition=self.product_db.partition,
                barcode=draft.barcode,
                context={"name": draft.name, "source": draft.source.value},
            )
            safe_notify(self.notifier, NOTIFY_ERROR, "Failed to save the product.")
            return None

        safe_notify(self.notifier, NOTIFY_SUCCESS, f'Saved "{saved.name}"!')
        self.product_db.set_last_viewed_product(saved)
        self.product_db.events.publish(TOPIC_PRODUCT_ADDED, saved)
        logger.info(f"[ProductManager] Added {saved.id} '{saved.name}' verdict={saved.verdict.value}")
        return saved

    def reevaluate(self, product: Product) -> ProductEvaluation:
        """
        Evaluate a stored product against the current preferences.

        Returns a new evaluation; the stored record is left untouched.
        """
        return evaluate_product(product.ingredients, product.calories, self.preferences.get_preferences())
