import asyncio
import json

import httpx

from jetrent.memory.models import SearchSlots
from jetrent.tools.base import ToolContext
from jetrent.tools.scraper import (
    BareList,
    ListingsScraperTool,
    Unrecognized,
    Wrapped,
    build_scraper_params,
    classify_payload,
    parse_price,
)

SLOTS = SearchSlots(location="Brooklyn", state="NY", bedrooms=1, budget=3000)
URL = "https://scraper.test/api/search"


def run_tool(handler, slots=SLOTS):
    tool = ListingsScraperTool(URL, transport=httpx.MockTransport(handler))
    return asyncio.run(tool.run(ToolContext(slots=slots)))


def test_request_body_uses_fixed_filters():
    params = build_scraper_params(SLOTS).model_dump()

    assert params == {
        "isApartment": True,
        "isCondo": False,
        "isLotLand": False,
        "isManufactured": False,
        "isMultiFamily": False,
        "isSingleFamily": False,
        "isTownhouse": False,
        "maxPrice": 3000,
        "search": "Brooklyn",
        "status": "isForRent",
    }


def test_missing_budget_uses_default_ceiling():
    params = build_scraper_params(SearchSlots(location="Boston"))

    assert params.maxPrice == 10000
    assert params.search == "Boston"


def test_classify_payload_shapes():
    assert classify_payload([{"zpid": 1}]) == BareList(items=[{"zpid": 1}])
    assert classify_payload({"properties": []}) == Wrapped(key="properties", items=[])
    assert classify_payload({"results": [1]}) == Wrapped(key="results", items=[1])
    assert isinstance(classify_payload({"listings": []}), Unrecognized)
    assert isinstance(classify_payload("nope"), Unrecognized)


def test_wrapped_response_is_normalised(scraper_payload):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=scraper_payload)

    response = run_tool(handler)

    assert seen["method"] == "POST"
    assert seen["body"]["search"] == "Brooklyn"
    assert response.success
    assert [listing.id for listing in response.listings] == ["2063518392", "1894420", "30553372"]

    first, building, studio = response.listings
    assert first.rent == 2450
    assert first.bedrooms == 1
    assert first.external_url == "https://www.zillow.com/homedetails/123-Bedford-Ave-Brooklyn-NY-11211/2063518392_zpid/"
    assert first.source == "remote"
    assert building.title == "The Greenpoint"
    assert building.description == "Updated 2 hours ago"
    assert building.external_url.startswith("https://www.zillow.com/apartments/")
    assert studio.bedrooms == 0
    assert studio.external_url == "https://www.zillow.com/homedetails/30553372_zpid/"


def test_bare_list_response():
    def handler(request):
        return httpx.Response(200, json=[{"address": "1 Main St", "price": "$1,500/mo"}])

    response = run_tool(handler)

    assert response.success
    assert response.listings[0].id == "remote-0"
    assert response.listings[0].title == "1 Main St"
    assert response.listings[0].rent == 1500


def test_unrecognised_shape_is_a_failure():
    def handler(request):
        return httpx.Response(200, json={"message": "ok"})

    response = run_tool(handler)

    assert not response.success
    assert response.listings == []
    assert response.error == "Received invalid data format from the listings service."


def test_non_json_body_is_a_failure():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    response = run_tool(handler)

    assert not response.success
    assert "invalid data format" in response.error


def test_http_error_status_is_reported():
    def handler(request):
        return httpx.Response(500, json={"error": "down"})

    response = run_tool(handler)

    assert not response.success
    assert response.error == "The listings service returned an error (status 500)."


def test_connection_failure_is_reported():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    response = run_tool(handler)

    assert not response.success
    assert "unreachable" in response.error


def test_missing_location_skips_request():
    def handler(request):  # pragma: no cover
        raise AssertionError("no request expected")

    response = run_tool(handler, slots=SearchSlots(bedrooms=1))

    assert not response.success


def test_parse_price_variants():
    assert parse_price("$2,995+ 1 bd") == 2995
    assert parse_price("$1,250.50/mo") == 1250.5
    assert parse_price("Contact for price") is None
