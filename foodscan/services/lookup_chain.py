"""
Barcode Lookup Chain

Resolves a barcode by trying the configured providers in priority order.
Stops at the first provider that finds the product. The next provider is
only tried after the previous one has definitively failed, never in
parallel, to respect provider rate limits.
"""

import logging
from typing import Optional, Sequence

from foodscan.core.cancellation import CancellationToken, check_cancelled
from foodscan.core.config import Settings, settings as default_settings
from foodscan.core.exceptions import ProviderError
from foodscan.integrations.barcode_client import LookupAdapter, LookupResult, LookupStatus
from foodscan.integrations.barcode_lookup import BarcodeLookupClient
from foodscan.integrations.openfoodfacts import OpenFoodFactsClient
from foodscan.services.error_logging import error_logger

logger = logging.getLogger(__name__)


def build_default_adapters(config: Optional[Settings] = None) -> list[LookupAdapter]:
    """Primary commercial database first, community database as fallback."""
    config = config or default_settings
    return [
        BarcodeLookupClient(config),
        OpenFoodFactsClient(config),
    ]


def reduce_lookup_results(results: Sequence[LookupResult], barcode: str) -> LookupResult:
    """First FOUND result wins; anything else collapses to NOT_FOUND."""
    for result in results:
        if result.found:
            return result
    return LookupResult.not_found("chain", barcode)


async def lookup_barcode_chain(
    adapters: Sequence[LookupAdapter],
    barcode: str,
    cancel_token: Optional[CancellationToken] = None,
    partition: Optional[str] = None
) -> LookupResult:
    """
    Search the barcode on every adapter in order, stopping at the first hit.

    Provider errors are logged as such and treated like not-found for the
    purpose of the fallback. Raises ScanAborted if the token is cancelled.
    """
    attempts: list[LookupResult] = []

    for adapter in adapters:
        check_cancelled(cancel_token)
        logger.info(f"[BarcodeChain] Trying {adapter.name} for barcode {barcode}")

        result = await adapter.get_product_by_barcode(barcode, cancel_token)
        check_cancelled(cancel_token)
        attempts.append(result)

        if result.status == LookupStatus.FOUND:
            logger.info(f"[BarcodeChain] Found on {adapter.name}")
            break

        if result.status == LookupStatus.ERROR:
            error_logger.log_error(
                ProviderError(adapter.code, result.error or "unknown error"),
                severity="warning",
                stage="lookup",
                partition=partition,
                barcode=barcode,
            )
        else:
            logger.info(f"[BarcodeChain] {adapter.name} has no product for {barcode}")

    final = reduce_lookup_results(attempts, barcode)
    if not final.found:
        logger.info(f"[BarcodeChain] Barcode {barcode} not found on any source")
    return final
