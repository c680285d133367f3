"""
Application Wiring
Entry point for embedding the FoodScan pipeline.

FoodScanApp builds every collaborator from the settings:
- Logging and the database error log
- Local (in-memory) and remote (SQLAlchemy) record stores
- Event bus, persistence facade and preferences service
- Barcode provider chain and OCR service client
- ProductManager and ScanProcessor

Usage:
    app = create_app()
    app.set_identity("user-123")
    result = await app.scanner.handle_barcode_scan("737628064502")
"""

import logging
from typing import Optional, Sequence

from foodscan.core.config import Settings, settings as default_settings
from foodscan.db.session import create_db_engine, create_session_factory, init_db
from foodscan.integrations.barcode_client import LookupAdapter
from foodscan.integrations.ocr_client import OcrEngine, OcrServiceClient
from foodscan.services.error_logging import configure_logging, error_logger
from foodscan.services.events import EventBus, LoggingNotificationSink, NotificationSink
from foodscan.services.identity import IdentityProvider
from foodscan.services.lookup_chain import build_default_adapters
from foodscan.services.preferences_service import PreferencesService
from foodscan.services.product_db import ProductDbService
from foodscan.services.product_manager import ProductManager
from foodscan.services.record_store import InMemoryRecordStore, SqlRecordStore
from foodscan.services.scan_processor import BarcodeProcessor, OcrProcessor, ScanProcessor

logger = logging.getLogger(__name__)


class FoodScanApp:

    def __init__(
        self,
        config: Optional[Settings] = None,
        adapters: Optional[Sequence[LookupAdapter]] = None,
        ocr_engine: Optional[OcrEngine] = None,
        notifier: Optional[NotificationSink] = None
    ):
        self.config = config or default_settings
        configure_logging(self.config)

        # Remote store and the error log table share one database
        self.engine = None
        self.session_factory = None
        remote_store = None
        if self.config.USE_REMOTE_STORE:
            self.engine = create_db_engine(self.config.DATABASE_URL)
            init_db(self.engine)
            self.session_factory = create_session_factory(self.engine)
            error_logger.set_db_session_factory(self.session_factory)
            remote_store = SqlRecordStore(self.session_factory)

        self.events = EventBus()
        self.notifier = notifier or LoggingNotificationSink()
        self.product_db = ProductDbService(InMemoryRecordStore(), remote_store, self.events)
        self.preferences = PreferencesService(self.config.PREFERENCES_DIR or None, self.events)

        self.manager = ProductManager(self.product_db, self.preferences, self.notifier, self.config)
        self.scanner = ScanProcessor(
            self.manager,
            BarcodeProcessor(adapters if adapters is not None else build_default_adapters(self.config)),
            OcrProcessor(ocr_engine or OcrServiceClient(self.config), self.config),
        )

        logger.info(
            f"[FoodScan] Ready (remote store: {'on' if remote_store else 'off'}, "
            f"providers: {[a.code for a in self.scanner.barcode_processor.adapters]})"
        )

    def set_identity(self, user_id: Optional[str]) -> None:
        """Apply an identity change: pick the backend and partition, reload preferences."""
        self.scanner.cancel()
        self.product_db.set_identity(user_id)
        self.preferences.set_identity(user_id)
        logger.info(f"[FoodScan] Identity set to {user_id or 'anonymous'}")

    def sync_identity(self, provider: IdentityProvider) -> None:
        self.set_identity(provider.current_user_id())

    def close(self) -> None:
        if self.engine is not None:
            error_logger.set_db_session_factory(None)
            self.engine.dispose()


def create_app(config: Optional[Settings] = None, **kwargs) -> FoodScanApp:
    """Create the pipeline with the given settings (defaults to the environment)."""
    app = FoodScanApp(config, **kwargs)
    app.set_identity(None)
    return app
