import httpx
import pytest

from foodscan.core.cancellation import CancellationToken
from foodscan.core.exceptions import OcrEngineError, ScanAborted
from foodscan.integrations import (
    BarcodeLookupClient,
    LookupStatus,
    OcrServiceClient,
    OpenFoodFactsClient,
    parse_calories,
    split_ingredients,
)
from foodscan.schemas.product import ProductSource
from tests.conftest import json_response

BARCODE_LOOKUP_PAYLOAD = {
    "products": [{
        "barcode_number": "0001",
        "title": "Granola",
        "brand": "Acme",
        "ingredients": "Oats, Honey.",
        "nutrition_facts": "Energy 450 KCAL, Fat 10 g",
        "images": ["https://img.test/granola.jpg"],
    }]
}

OFF_PAYLOAD = {
    "status": 1,
    "product": {
        "code": "0002",
        "product_name": "Hazelnut Spread",
        "brands": "Ferrero, Nutella",
        "ingredients_text": "Sugar, _palm oil_, hazelnuts 13%",
        "nutriments": {"energy-kcal_100g": 539},
        "image_url": "https://img.test/spread.jpg",
    },
}


def test_split_ingredients():
    assert split_ingredients("Sugar, Cocoa Butter, Milk.") == ["Sugar", "Cocoa Butter", "Milk"]
    assert split_ingredients("_milk_*, , salt;") == ["milk", "salt"]
    assert split_ingredients(None) == []


def test_parse_calories():
    assert parse_calories("Energy 250 KCAL") == 250.0
    assert parse_calories("Protein 3 g, Calories 120") == 120.0
    assert parse_calories("Fat 5 g") is None
    assert parse_calories(None) is None


@pytest.mark.asyncio
async def test_barcode_lookup_found(test_settings):
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(BARCODE_LOOKUP_PAYLOAD)

    client = BarcodeLookupClient(test_settings, transport=httpx.MockTransport(handler))
    result = await client.get_product_by_barcode("0001")

    assert result.status == LookupStatus.FOUND
    assert result.source == "barcodelookup"
    assert result.fields.name == "Granola"
    assert result.fields.brand == "Acme"
    assert result.fields.ingredients == ["Oats", "Honey"]
    assert result.fields.calories == 450.0
    assert result.fields.image == "https://img.test/granola.jpg"
    assert result.fields.source == ProductSource.SCAN

    assert seen[0].url.params["barcode"] == "0001"
    assert seen[0].url.params["key"] == "test-key"
    assert seen[0].headers["User-Agent"] == test_settings.USER_AGENT


@pytest.mark.asyncio
async def test_barcode_lookup_without_key_skips_request(test_settings):
    calls = []
    config = test_settings.model_copy(update={"BARCODE_LOOKUP_API_KEY": ""})

    def handler(request):
        calls.append(request)
        return json_response(BARCODE_LOOKUP_PAYLOAD)

    client = BarcodeLookupClient(config, transport=httpx.MockTransport(handler))
    result = await client.get_product_by_barcode("0001")

    assert result.status == LookupStatus.ERROR
    assert "API key" in result.error
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("response, expected", [
    (httpx.Response(404), LookupStatus.NOT_FOUND),
    (httpx.Response(200, json={"products": []}), LookupStatus.NOT_FOUND),
    (httpx.Response(500), LookupStatus.ERROR),
    (httpx.Response(200, content=b"<html>not json</html>"), LookupStatus.ERROR),
])
async def test_barcode_lookup_statuses(test_settings, response, expected):
    client = BarcodeLookupClient(test_settings, transport=httpx.MockTransport(lambda request: response))
    result = await client.get_product_by_barcode("0001")
    assert result.status == expected


@pytest.mark.asyncio
async def test_transport_errors_become_error_results(test_settings):
    def timeout(request):
        raise httpx.ReadTimeout("too slow", request=request)

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    slow = BarcodeLookupClient(test_settings, transport=httpx.MockTransport(timeout))
    down = OpenFoodFactsClient(test_settings, transport=httpx.MockTransport(refused))

    slow_result = await slow.get_product_by_barcode("0001")
    down_result = await down.get_product_by_barcode("0001")

    assert slow_result.status == LookupStatus.ERROR
    assert slow_result.error == "Connection timeout"
    assert down_result.status == LookupStatus.ERROR
    assert down_result.error == "Cannot reach Open Food Facts"


@pytest.mark.asyncio
async def test_cancelled_during_request_raises(test_settings):
    token = CancellationToken()

    def handler(request):
        token.cancel()
        return json_response(BARCODE_LOOKUP_PAYLOAD)

    client = BarcodeLookupClient(test_settings, transport=httpx.MockTransport(handler))
    with pytest.raises(ScanAborted):
        await client.get_product_by_barcode("0001", token)


@pytest.mark.asyncio
async def test_openfoodfacts_found(test_settings):
    def handler(request):
        assert request.url.path == "/api/v2/product/0002.json"
        return json_response(OFF_PAYLOAD)

    client = OpenFoodFactsClient(test_settings, transport=httpx.MockTransport(handler))
    result = await client.get_product_by_barcode("0002")

    assert result.found
    assert result.fields.barcode == "0002"
    assert result.fields.brand == "Ferrero"
    assert result.fields.ingredients == ["Sugar", "palm oil", "hazelnuts 13%"]
    assert result.fields.calories == 539.0


@pytest.mark.asyncio
async def test_openfoodfacts_status_zero_is_not_found(test_settings):
    client = OpenFoodFactsClient(
        test_settings,
        transport=httpx.MockTransport(lambda request: json_response({"status": 0, "status_verbose": "product not found"})),
    )
    result = await client.get_product_by_barcode("9999")
    assert result.status == LookupStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_openfoodfacts_search(test_settings):
    def handler(request):
        assert request.url.path == "/cgi/search.pl"
        assert request.url.params["search_terms"] == "spread"
        return json_response({"products": [OFF_PAYLOAD["product"]]})

    client = OpenFoodFactsClient(test_settings, transport=httpx.MockTransport(handler))
    results = await client.search_products("spread")

    assert len(results) == 1
    assert results[0].name == "Hazelnut Spread"
    assert results[0].source == ProductSource.MANUAL


@pytest.mark.asyncio
async def test_openfoodfacts_search_error_returns_empty(test_settings):
    client = OpenFoodFactsClient(test_settings, transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    assert await client.search_products("spread") == []


@pytest.mark.asyncio
async def test_ocr_client_returns_raw_text(test_settings):
    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/process"
        assert b'name="file"' in request.content
        return json_response({"raw_text": "Ingredients: sugar, salt", "processing_time": 0.4})

    client = OcrServiceClient(test_settings, transport=httpx.MockTransport(handler))
    assert await client.recognize(b"\x89PNG...", "label.png") == "Ingredients: sugar, salt"


@pytest.mark.asyncio
async def test_ocr_client_failures(test_settings):
    failing = OcrServiceClient(test_settings, transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")))
    with pytest.raises(OcrEngineError):
        await failing.recognize(b"image-bytes")

    with pytest.raises(OcrEngineError):
        await failing.recognize(b"")

    def timeout(request):
        raise httpx.ReadTimeout("too slow", request=request)

    slow = OcrServiceClient(test_settings, transport=httpx.MockTransport(timeout))
    with pytest.raises(OcrEngineError):
        await slow.recognize(b"image-bytes")
