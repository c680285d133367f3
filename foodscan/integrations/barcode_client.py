"""
Barcode Lookup Client Base

Shared pieces for the barcode provider adapters:
- LookupResult: tagged result (found / not found / error)
- LookupAdapter: base class with the async HTTP call and error conversion
- split_ingredients / parse_calories: provider-independent field parsing

Adapters return raw, unevaluated fields only. Classification happens in
the ProductManager.
"""

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from foodscan.core.cancellation import CancellationToken, check_cancelled
from foodscan.core.config import Settings, settings as default_settings
from foodscan.core.exceptions import ScanAborted
from foodscan.schemas.product import PartialProduct

logger = logging.getLogger(__name__)


class LookupStatus(str, enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class LookupResult:
    """Outcome of one provider lookup"""
    status: LookupStatus
    barcode: str
    source: str
    fields: Optional[PartialProduct] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.FOUND

    @classmethod
    def found_result(cls, source: str, barcode: str, fields: PartialProduct) -> "LookupResult":
        return cls(LookupStatus.FOUND, barcode, source, fields=fields)

    @classmethod
    def not_found(cls, source: str, barcode: str) -> "LookupResult":
        return cls(LookupStatus.NOT_FOUND, barcode, source)

    @classmethod
    def failed(cls, source: str, barcode: str, error: str) -> "LookupResult":
        return cls(LookupStatus.ERROR, barcode, source, error=error)


def split_ingredients(text: Optional[str]) -> list[str]:
    """
    Split a provider ingredient string into a clean list.

    "Sugar, Cocoa Butter, Milk." -> ["Sugar", "Cocoa Butter", "Milk"]
    Underscores (Open Food Facts allergen highlighting) and trailing
    punctuation are removed; blank entries are dropped.
    """
    if not text:
        return []

    ingredients = []
    for part in text.split(","):
        part = part.replace("_", "").strip().rstrip(".;:*").strip()
        if part:
            ingredients.append(part)
    return ingredients


def parse_calories(nutrition_facts: Optional[str]) -> Optional[float]:
    """Parse kcal from a free-text nutrition string ("Energy 250 KCAL", "Calories 120")."""
    if not nutrition_facts:
        return None
    match = (
        re.search(r"Energy\s+(\d+(?:\.\d+)?)\s*KCAL", nutrition_facts, re.IGNORECASE)
        or re.search(r"Calories\s+(\d+(?:\.\d+)?)", nutrition_facts, re.IGNORECASE)
    )
    return float(match.group(1)) if match else None


class LookupAdapter:
    """
    Base class for barcode providers.

    Subclasses implement _request() and _parse(); this class owns the
    HTTP client, cancellation checks and the conversion of every failure
    into a LookupResult. Only ScanAborted escapes.
    """

    code = "generic"
    name = "Generic provider"

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or default_settings
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.config.HTTP_TIMEOUT,
            headers={"User-Agent": self.config.USER_AGENT},
            transport=self._transport,
        )

    async def _request(self, client: httpx.AsyncClient, barcode: str) -> httpx.Response:
        raise NotImplementedError

    def _parse(self, data: Dict[str, Any], barcode: str) -> Optional[PartialProduct]:
        raise NotImplementedError

    def _precondition_error(self) -> Optional[str]:
        """Return an error message if the adapter can't be used at all."""
        return None

    async def get_product_by_barcode(
        self,
        barcode: str,
        cancel_token: Optional[CancellationToken] = None
    ) -> LookupResult:
        """
        Look up a barcode.

        Returns FOUND with raw fields, NOT_FOUND when the provider has no
        such product, ERROR for transport or payload problems.
        Raises ScanAborted if the token was cancelled during the request.
        """
        problem = self._precondition_error()
        if problem:
            return LookupResult.failed(self.code, barcode, problem)

        try:
            async with self._client() as client:
                response = await self._request(client, barcode)
            check_cancelled(cancel_token)

            if response.status_code == 404:
                return LookupResult.not_found(self.code, barcode)
            if response.status_code != 200:
                return LookupResult.failed(self.code, barcode, f"HTTP {response.status_code}")

            fields = self._parse(response.json(), barcode)
            if fields is None:
                return LookupResult.not_found(self.code, barcode)

            return LookupResult.found_result(self.code, barcode, fields)

        except ScanAborted:
            raise
        except httpx.ConnectError:
            return LookupResult.failed(self.code, barcode, f"Cannot reach {self.name}")
        except httpx.TimeoutException:
            return LookupResult.failed(self.code, barcode, "Connection timeout")
        except Exception as e:
            return LookupResult.failed(self.code, barcode, str(e) or type(e).__name__)
