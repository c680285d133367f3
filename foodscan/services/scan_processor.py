"""
Scan Processor

Drives one scan from the camera/upload trigger to a ScanResult:
- Barcode path: lookup chain (primary provider, then fallback) -> ProductManager
- Image path: OCR engine -> text enhancement -> ProductManager

Only one scan runs at a time; triggers arriving while a scan is in flight
are answered with BUSY. cancel() aborts the in-flight scan; an aborted scan
never writes a record.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from foodscan.core.cancellation import CancellationToken, check_cancelled
from foodscan.core.config import Settings, settings as default_settings
from foodscan.core.constants import NOTIFY_ERROR, NOTIFY_INFO, NOTIFY_WARNING
from foodscan.core.exceptions import ScanAborted
from foodscan.integrations.barcode_client import LookupAdapter
from foodscan.integrations.ocr_client import OcrEngine
from foodscan.schemas.product import PartialProduct, Product, ProductSource
from foodscan.services.error_logging import error_logger
from foodscan.services.events import safe_notify
from foodscan.services.lookup_chain import lookup_barcode_chain
from foodscan.services.ocr_enhancer import (
    detect_brand,
    detect_product_name,
    enhance_ingredient_detection,
    preprocess_text,
)
from foodscan.services.product_manager import ProductManager

logger = logging.getLogger(__name__)


class ScanStatus(str, enum.Enum):
    SAVED = "saved"
    NOT_FOUND = "not_found"
    ABORTED = "aborted"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class ScanResult:
    status: ScanStatus
    product: Optional[Product] = None
    message: Optional[str] = None


class BarcodeProcessor:

    def __init__(self, adapters: Sequence[LookupAdapter]):
        self.adapters = list(adapters)

    async def process_barcode(
        self,
        code: str,
        cancel_token: Optional[CancellationToken] = None,
        partition: Optional[str] = None
    ) -> Optional[PartialProduct]:
        """Resolve a barcode to partial product fields, or None if no provider knows it."""
        code = (code or "").strip()
        if not code:
            return None

        result = await lookup_barcode_chain(self.adapters, code, cancel_token, partition=partition)
        if not result.found or result.fields is None:
            return None

        return result.fields.model_copy(update={"barcode": result.fields.barcode or code, "source": ProductSource.SCAN})


class OcrProcessor:

    def __init__(self, engine: OcrEngine, config: Optional[Settings] = None):
        self.engine = engine
        self.config = config or default_settings

    async def process_image(
        self,
        image: bytes,
        filename: str = "label.png",
        cancel_token: Optional[CancellationToken] = None
    ) -> Optional[PartialProduct]:
        """
        Recognize a label image and extract product fields from its text.

        Returns None when the engine found no text. Raises OcrEngineError
        when the engine fails and ScanAborted when cancelled.
        """
        raw_text = await self.engine.recognize(image, filename, cancel_token)
        check_cancelled(cancel_token)

        if not raw_text or not raw_text.strip():
            logger.info("[OCR] No text detected in image")
            return None

        cleaned = preprocess_text(raw_text)
        ingredients = enhance_ingredient_detection(cleaned)
        logger.info(f"[OCR] Extracted {len(ingredients)} ingredients from {len(cleaned)} chars")

        return PartialProduct(
            name=detect_product_name(cleaned),
            brand=detect_brand(cleaned),
            ingredients=ingredients,
            ocr_text=raw_text,
            image=self.config.OCR_PLACEHOLDER_IMAGE_URL,
            source=ProductSource.OCR,
        )


class ScanProcessor:

    def __init__(
        self,
        manager: ProductManager,
        barcode_processor: BarcodeProcessor,
        ocr_processor: Optional[OcrProcessor] = None
    ):
        self.manager = manager
        self.barcode_processor = barcode_processor
        self.ocr_processor = ocr_processor
        self._token: Optional[CancellationToken] = None

    @property
    def is_processing(self) -> bool:
        return self._token is not None

    @property
    def notifier(self):
        return self.manager.notifier

    def cancel(self) -> None:
        """Abort the scan in flight, if any."""
        if self._token is not None:
            logger.info("[Scan] Cancelling in-flight scan")
            self._token.cancel()

    async def handle_barcode_scan(self, code: str) -> ScanResult:
        if self.is_processing:
            return ScanResult(ScanStatus.BUSY, message="A scan is already in progress")

        self._token = token = CancellationToken()
        try:
            safe_notify(self.notifier, NOTIFY_INFO, "Barcode detected! Looking up product...")
            partial = await self.barcode_processor.process_barcode(
                code, token, partition=self.manager.product_db.partition
            )
            check_cancelled(token)

            if partial is None:
                message = "Product not found. Try scanning the ingredients label instead."
                safe_notify(self.notifier, NOTIFY_WARNING, message)
                return ScanResult(ScanStatus.NOT_FOUND, message=message)

            return await self._save(partial, token)

        except ScanAborted:
            return self._aborted()
        except Exception as e:
            return self._failed(e, stage="barcode", barcode=code)
        finally:
            self._token = None

    async def handle_image(self, image: bytes, filename: str = "label.png") -> ScanResult:
        if self.is_processing:
            return ScanResult(ScanStatus.BUSY, message="A scan is already in progress")
        if self.ocr_processor is None:
            return ScanResult(ScanStatus.FAILED, message="No OCR engine configured")

        self._token = token = CancellationToken()
        try:
            safe_notify(self.notifier, NOTIFY_INFO, "Reading ingredients label...")
            partial = await self.ocr_processor.process_image(image, filename, token)

            if partial is None:
                message = "No text detected in the image. Try again with better lighting."
                safe_notify(self.notifier, NOTIFY_WARNING, message)
                return ScanResult(ScanStatus.NOT_FOUND, message=message)

            return await self._save(partial, token)

        except ScanAborted:
            return self._aborted()
        except Exception as e:
            return self._failed(e, stage="ocr")
        finally:
            self._token = None

    async def _save(self, partial: PartialProduct, token: CancellationToken) -> ScanResult:
        product = await self.manager.process_and_add_product(partial, token)
        if product is None:
            return ScanResult(ScanStatus.FAILED, message="Failed to save the product")
        return ScanResult(ScanStatus.SAVED, product=product)

    def _aborted(self) -> ScanResult:
        logger.info("[Scan] Scan aborted")
        safe_notify(self.notifier, NOTIFY_INFO, "Scan cancelled")
        return ScanResult(ScanStatus.ABORTED, message="Scan cancelled")

    def _failed(self, error: Exception, stage: str, barcode: Optional[str] = None) -> ScanResult:
        error_logger.log_error(
            error,
            stage=stage,
            partition=self.manager.product_db.partition,
            barcode=barcode,
        )
        message = "Could not read the label." if stage == "ocr" else "Could not look up the product."
        safe_notify(self.notifier, NOTIFY_ERROR, message)
        return ScanResult(ScanStatus.FAILED, message=str(error) or message)
