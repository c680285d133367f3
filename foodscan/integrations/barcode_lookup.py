"""
Barcode Lookup API HTTP Client

Primary barcode provider: commercial database at barcodelookup.com.
Requires an API key (BARCODE_LOOKUP_API_KEY). Without a key the adapter
reports an error immediately so the chain moves on to the fallback.

API Documentation: https://www.barcodelookup.com/api
"""

from typing import Any, Dict, Optional

import httpx

from foodscan.integrations.barcode_client import LookupAdapter, parse_calories, split_ingredients
from foodscan.schemas.product import PartialProduct, ProductSource


class BarcodeLookupClient(LookupAdapter):
    """
    HTTP client for the Barcode Lookup v3 products endpoint.

    Response shape: {"products": [{"barcode_number", "title", "brand",
    "ingredients", "nutrition_facts", "images": [...]}, ...]}
    """

    code = "barcodelookup"
    name = "Barcode Lookup"

    def _precondition_error(self) -> Optional[str]:
        if not self.config.BARCODE_LOOKUP_API_KEY:
            return "Barcode Lookup API key not configured"
        return None

    async def _request(self, client: httpx.AsyncClient, barcode: str) -> httpx.Response:
        return await client.get(
            self.config.BARCODE_LOOKUP_URL,
            params={"barcode": barcode, "key": self.config.BARCODE_LOOKUP_API_KEY},
        )

    def _parse(self, data: Dict[str, Any], barcode: str) -> Optional[PartialProduct]:
        products = data.get("products") or []
        if not products:
            return None

        p = products[0]
        images = p.get("images") or []

        return PartialProduct(
            barcode=p.get("barcode_number") or barcode,
            name=p.get("title") or None,
            brand=p.get("brand") or None,
            ingredients=split_ingredients(p.get("ingredients")),
            calories=parse_calories(p.get("nutrition_facts")),
            image=images[0] if images else None,
            source=ProductSource.SCAN,
        )
