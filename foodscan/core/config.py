"""
Application Configuration
Manages environment variables and pipeline settings using Pydantic Settings.

This module loads configuration from .env file and provides type-safe access
to the record store, the barcode providers, the OCR service and logging.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Pipeline settings loaded from environment variables.

    Every setting has a default so the pipeline can run anonymously
    with the local record store and no API keys.
    """

    # Record store (used for authenticated identities)
    DATABASE_URL: str = "sqlite:///./foodscan.db"
    USE_REMOTE_STORE: bool = True  # False keeps every identity on the local store

    # Barcode provider A - Barcode Lookup (commercial, requires key)
    BARCODE_LOOKUP_URL: str = "https://api.barcodelookup.com/v3/products"
    BARCODE_LOOKUP_API_KEY: str = ""

    # Barcode provider B - Open Food Facts (community, no key)
    OPENFOODFACTS_URL: str = "https://world.openfoodfacts.org"

    # OCR microservice
    OCR_SERVICE_URL: str = "http://localhost:8001"

    # HTTP
    HTTP_TIMEOUT: float = 10.0
    OCR_TIMEOUT: float = 60.0  # Recognition on CPU can be slow
    USER_AGENT: str = "FoodScan/1.0"

    # Product defaults
    PLACEHOLDER_IMAGE_URL: str = "https://via.placeholder.com/150"
    OCR_PLACEHOLDER_IMAGE_URL: str = "https://via.placeholder.com/150?text=OCR+Scan"

    # Preferences persistence (empty = memory only)
    PREFERENCES_DIR: str = ""

    # Logging (empty LOG_DIR = console only)
    LOG_DIR: str = ""
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
