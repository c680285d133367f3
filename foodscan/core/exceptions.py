"""Exceptions raised inside the ingestion pipeline."""


class FoodScanError(Exception):
    """Base class for pipeline errors."""


class ScanAborted(FoodScanError):
    """The scan was cancelled. Not a failure: callers suppress error messaging."""

    def __init__(self, message: str = "Operation aborted"):
        super().__init__(message)


class PersistenceFailure(FoodScanError):
    """The record store rejected a write."""


class ProviderError(FoodScanError):
    """A lookup provider failed in an unexpected way (not a clean not-found)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class OcrEngineError(FoodScanError):
    """The OCR engine could not process the image."""
