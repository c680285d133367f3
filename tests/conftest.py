import httpx
import pytest

from foodscan.core.config import Settings
from foodscan.core.exceptions import PersistenceFailure
from foodscan.db.session import create_db_engine, create_session_factory, init_db
from foodscan.integrations.barcode_client import LookupResult
from foodscan.schemas.product import PartialProduct, ProductSource
from foodscan.services.error_logging import error_logger
from foodscan.services.events import EventBus
from foodscan.services.preferences_service import PreferencesService
from foodscan.services.product_db import ProductDbService
from foodscan.services.record_store import InMemoryRecordStore, SqlRecordStore


class RecordingSink:
    """Notification sink that keeps every (kind, message) pair."""

    def __init__(self):
        self.messages = []

    def notify(self, kind, message):
        self.messages.append((kind, message))

    def kinds(self):
        return [kind for kind, _ in self.messages]


def json_response(payload, status_code=200):
    return httpx.Response(status_code, json=payload)


@pytest.fixture(autouse=True)
def no_db_error_log():
    """Keep the global error logger away from any database between tests."""
    error_logger.set_db_session_factory(None)
    yield
    error_logger.set_db_session_factory(None)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        BARCODE_LOOKUP_API_KEY="test-key",
        BARCODE_LOOKUP_URL="https://barcode.test/v3/products",
        OPENFOODFACTS_URL="https://off.test",
        OCR_SERVICE_URL="http://ocr.test",
        PREFERENCES_DIR="",
        LOG_DIR="",
    )


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def local_store():
    return InMemoryRecordStore()


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite://", echo=False)
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlRecordStore(session_factory)


@pytest.fixture
def product_db(local_store, events):
    return ProductDbService(local_store, events=events)


@pytest.fixture
def preferences(events):
    return PreferencesService(events=events)


@pytest.fixture
def sink():
    return RecordingSink()


class FakeAdapter:
    """Lookup adapter returning a canned result and recording its calls."""

    def __init__(self, code, result_factory, on_call=None):
        self.code = code
        self.name = code
        self.result_factory = result_factory
        self.on_call = on_call
        self.calls = []

    async def get_product_by_barcode(self, barcode, cancel_token=None):
        self.calls.append(barcode)
        if self.on_call:
            self.on_call()
        return self.result_factory(self.code, barcode)


def found(name, ingredients=None, calories=None):
    return lambda code, barcode: LookupResult.found_result(
        code,
        barcode,
        PartialProduct(name=name, barcode=barcode, ingredients=ingredients or [], calories=calories, source=ProductSource.SCAN),
    )


def not_found(code, barcode):
    return LookupResult.not_found(code, barcode)


def failed(code, barcode):
    return LookupResult.failed(code, barcode, "HTTP 500")


class FailingStore(InMemoryRecordStore):
    """Local store whose writes are always rejected."""

    async def insert(self, partition, record):
        raise PersistenceFailure("store offline")
