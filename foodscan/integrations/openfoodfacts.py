"""
Open Food Facts API HTTP Client

Fallback barcode provider. Open Food Facts is a free, open, collaborative
database of food products from around the world - no API key required.

API Documentation: https://wiki.openfoodfacts.org/API
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from foodscan.integrations.barcode_client import LookupAdapter, split_ingredients
from foodscan.schemas.product import PartialProduct, ProductSource

logger = logging.getLogger(__name__)


PRODUCT_FIELDS = (
    "code,product_name,product_name_en,brands,ingredients_text,"
    "ingredients_text_en,image_url,image_front_url,nutriments"
)


def parse_off_product(product: Dict[str, Any], barcode: Optional[str]) -> PartialProduct:
    """Map an Open Food Facts product object to raw product fields."""
    nutriments = product.get("nutriments") or {}
    calories = nutriments.get("energy-kcal_100g")
    if calories is None:
        calories = nutriments.get("energy-kcal")

    try:
        calories = float(calories) if calories is not None else None
    except (TypeError, ValueError):
        calories = None

    ingredients_text = product.get("ingredients_text") or product.get("ingredients_text_en")

    return PartialProduct(
        barcode=product.get("code") or barcode,
        name=product.get("product_name") or product.get("product_name_en") or None,
        brand=(product.get("brands") or "").split(",")[0].strip() or None,
        ingredients=split_ingredients(ingredients_text),
        calories=calories,
        image=product.get("image_url") or product.get("image_front_url"),
        source=ProductSource.SCAN,
    )


class OpenFoodFactsClient(LookupAdapter):
    """
    HTTP client for Open Food Facts API integration.

    Methods:
        get_product_by_barcode: Look up a product by barcode (adapter contract)
        search_products: Free-text product search
    """

    code = "openfoodfacts"
    name = "Open Food Facts"

    @property
    def base_url(self) -> str:
        return self.config.OPENFOODFACTS_URL.rstrip("/")

    async def _request(self, client: httpx.AsyncClient, barcode: str) -> httpx.Response:
        return await client.get(
            f"{self.base_url}/api/v2/product/{barcode}.json",
            params={"fields": PRODUCT_FIELDS},
        )

    def _parse(self, data: Dict[str, Any], barcode: str) -> Optional[PartialProduct]:
        if data.get("status") == 1 and data.get("product"):
            return parse_off_product(data["product"], barcode)
        return None

    async def search_products(self, query: str, page_size: int = 20) -> List[PartialProduct]:
        """
        Search products by free text.

        Returns an empty list on any error; search is a convenience for
        manual entry, not part of the scan chain.
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/cgi/search.pl",
                    params={
                        "search_terms": query,
                        "json": 1,
                        "page_size": page_size,
                        "fields": PRODUCT_FIELDS,
                    },
                )

            if response.status_code != 200:
                logger.warning(f"[OpenFoodFacts] Search '{query}' failed: HTTP {response.status_code}")
                return []

            products = response.json().get("products") or []
            results = []
            for product in products:
                fields = parse_off_product(product, product.get("code"))
                fields = fields.model_copy(update={"source": ProductSource.MANUAL})
                results.append(fields)
            return results

        except httpx.TimeoutException:
            logger.warning(f"[OpenFoodFacts] Search '{query}' timed out")
            return []
        except Exception as e:
            logger.warning(f"[OpenFoodFacts] Search '{query}' failed: {e}")
            return []
