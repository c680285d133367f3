import asyncio
from unittest.mock import AsyncMock

import pytest

from foodscan.core.exceptions import OcrEngineError
from foodscan.schemas.product import ProductSource, Verdict
from foodscan.services.product_db import ProductDbService
from foodscan.services.product_manager import ProductManager
from foodscan.services.scan_processor import (
    BarcodeProcessor,
    OcrProcessor,
    ScanProcessor,
    ScanStatus,
)
from tests.conftest import FailingStore, FakeAdapter, failed, found, not_found

LABEL = """Crunchy Granola
ACME FOODS
Ingredients:
Rolled Oats, Honey, Aspartame.
Nutrition Facts"""


@pytest.fixture
def manager(product_db, preferences, sink, test_settings):
    return ProductManager(product_db, preferences, sink, test_settings)


def make_scanner(manager, adapters, engine=None, config=None):
    ocr = OcrProcessor(engine, config) if engine is not None else None
    return ScanProcessor(manager, BarcodeProcessor(adapters), ocr)


@pytest.mark.asyncio
async def test_barcode_scan_saves_product(manager, product_db):
    scanner = make_scanner(manager, [FakeAdapter("a", found("Granola", ["oats", "honey"]))])

    result = await scanner.handle_barcode_scan("0001")

    assert result.status == ScanStatus.SAVED
    assert result.product.barcode == "0001"
    assert result.product.source == ProductSource.SCAN
    assert [p.id for p in await product_db.get_products()] == [result.product.id]
    assert scanner.is_processing is False


@pytest.mark.asyncio
async def test_not_found_on_every_source_writes_nothing(manager, product_db, sink):
    manager.process_and_add_product = AsyncMock()
    scanner = make_scanner(manager, [FakeAdapter("a", failed), FakeAdapter("b", not_found)])

    result = await scanner.handle_barcode_scan("0001")

    assert result.status == ScanStatus.NOT_FOUND
    manager.process_and_add_product.assert_not_called()
    assert await product_db.get_products() == []
    assert sink.kinds()[-1] == "warning"


@pytest.mark.asyncio
async def test_cancel_after_first_adapter_aborts(manager, product_db, sink):
    scanner = make_scanner(manager, [])
    primary = FakeAdapter("a", found("Granola", ["oats"]), on_call=scanner.cancel)
    scanner.barcode_processor.adapters = [primary]

    result = await scanner.handle_barcode_scan("0001")

    assert result.status == ScanStatus.ABORTED
    assert primary.calls == ["0001"]
    assert await product_db.get_products() == []
    assert "success" not in sink.kinds()
    assert "error" not in sink.kinds()


@pytest.mark.asyncio
async def test_concurrent_trigger_is_busy(manager, product_db):
    gate = asyncio.Event()

    class GatedAdapter(FakeAdapter):
        async def get_product_by_barcode(self, barcode, cancel_token=None):
            await gate.wait()
            return await super().get_product_by_barcode(barcode, cancel_token)

    scanner = make_scanner(manager, [GatedAdapter("a", found("Granola", ["oats"]))])

    first = asyncio.create_task(scanner.handle_barcode_scan("0001"))
    while not scanner.is_processing:
        await asyncio.sleep(0)

    busy = await scanner.handle_barcode_scan("0002")
    gate.set()
    result = await first

    assert busy.status == ScanStatus.BUSY
    assert result.status == ScanStatus.SAVED
    assert len(await product_db.get_products()) == 1


@pytest.mark.asyncio
async def test_persistence_failure_is_reported_as_failed(preferences, sink, test_settings):
    manager = ProductManager(ProductDbService(FailingStore()), preferences, sink, test_settings)
    scanner = make_scanner(manager, [FakeAdapter("a", found("Granola", ["oats"]))])

    result = await scanner.handle_barcode_scan("0001")

    assert result.status == ScanStatus.FAILED
    assert scanner.is_processing is False


@pytest.mark.asyncio
async def test_image_scan_uses_engine_once(manager, test_settings):
    engine = AsyncMock()
    engine.recognize.return_value = LABEL
    scanner = make_scanner(manager, [], engine, test_settings)

    result = await scanner.handle_image(b"image-bytes", "label.jpg")

    assert result.status == ScanStatus.SAVED
    engine.recognize.assert_awaited_once()
    product = result.product
    assert product.source == ProductSource.OCR
    assert product.name == "Crunchy Granola"
    assert product.brand == "ACME FOODS"
    assert product.ingredients == ["Rolled Oats", "Honey", "Aspartame"]
    assert product.ocr_text == LABEL
    assert product.image == test_settings.OCR_PLACEHOLDER_IMAGE_URL
    assert product.verdict == Verdict.BAD
    assert product.flagged_ingredients == ["Aspartame"]


@pytest.mark.asyncio
async def test_image_without_text_is_not_found(manager, product_db, test_settings):
    engine = AsyncMock()
    engine.recognize.return_value = "   "
    scanner = make_scanner(manager, [], engine, test_settings)

    result = await scanner.handle_image(b"image-bytes")

    assert result.status == ScanStatus.NOT_FOUND
    assert await product_db.get_products() == []


@pytest.mark.asyncio
async def test_engine_error_is_failed(manager, sink, test_settings):
    engine = AsyncMock()
    engine.recognize.side_effect = OcrEngineError("OCR service unreachable")
    scanner = make_scanner(manager, [], engine, test_settings)

    result = await scanner.handle_image(b"image-bytes")

    assert result.status == ScanStatus.FAILED
    assert sink.kinds()[-1] == "error"


@pytest.mark.asyncio
async def test_cancel_during_ocr_aborts(manager, product_db, test_settings):
    scanner = make_scanner(manager, [], AsyncMock(), test_settings)

    async def recognize(image, filename, cancel_token=None):
        scanner.cancel()
        return LABEL

    scanner.ocr_processor.engine.recognize.side_effect = recognize

    result = await scanner.handle_image(b"image-bytes")

    assert result.status == ScanStatus.ABORTED
    assert await product_db.get_products() == []


@pytest.mark.asyncio
async def test_image_without_engine_fails(manager):
    scanner = make_scanner(manager, [])
    result = await scanner.handle_image(b"image-bytes")
    assert result.status == ScanStatus.FAILED


def test_cancel_without_scan_is_noop(manager):
    scanner = make_scanner(manager, [])
    scanner.cancel()
    assert scanner.is_processing is False
