"""
External Service Integrations

This package contains HTTP clients for external services:
- Barcode Lookup (primary barcode provider)
- Open Food Facts (fallback barcode provider)
- OCR microservice (label text recognition)
"""

from foodscan.integrations.barcode_client import (
    LookupAdapter,
    LookupResult,
    LookupStatus,
    split_ingredients,
    parse_calories,
)
from foodscan.integrations.barcode_lookup import BarcodeLookupClient
from foodscan.integrations.openfoodfacts import OpenFoodFactsClient
from foodscan.integrations.ocr_client import OcrEngine, OcrServiceClient

__all__ = [
    "LookupAdapter",
    "LookupResult",
    "LookupStatus",
    "split_ingredients",
    "parse_calories",
    "BarcodeLookupClient",
    "OpenFoodFactsClient",
    "OcrEngine",
    "OcrServiceClient",
]
