import httpx
import pytest

from skailink.amadeus.client import AmadeusClient
from skailink.errors import ErrorKind, VendorPermanentError, VendorTransientError, VendorError


def make_client(handler, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AmadeusClient("id", "secret", hostname="test", http=http,
                         transient_statuses=[429, 502, 503, 504], **kwargs)


def token_or(handler):
    def wrapped(request: httpx.Request):
        if request.url.path == "/v1/security/oauth2/token":
            return httpx.Response(200, json={"access_token": "TEST_TOKEN", "expires_in": 1799})
        return handler(request)
    return wrapped


async def test_builds_expected_query_and_headers():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": [{"id": "1"}], "dictionaries": {"carriers": {"AI": "AIR INDIA"}}})

    client = make_client(token_or(handler))
    offers, dictionaries = await client.search_flights_with_dictionaries(
        origin=" del", destination="bom", dep_date="2025-11-15", ret_date=None, adults=2, max_results=5
    )

    assert offers == [{"id": "1"}]
    assert dictionaries["carriers"]["AI"] == "AIR INDIA"
    req = seen[0]
    assert req.url.host == "test.api.amadeus.com"
    assert req.url.path == "/v2/shopping/flight-offers"
    assert req.headers["Authorization"] == "Bearer TEST_TOKEN"
    params = req.url.params
    assert params["originLocationCode"] == "DEL"
    assert params["destinationLocationCode"] == "BOM"
    assert params["departureDate"] == "2025-11-15"
    assert params["adults"] == "2"
    assert params["max"] == "5"
    assert params["currencyCode"] == "INR"
    assert "returnDate" not in params


async def test_includes_return_date_when_provided():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": []})

    client = make_client(token_or(handler))
    await client.search_flights("DEL", "BOM", "2025-11-15", ret_date="2025-11-20")
    assert seen[0].url.params["returnDate"] == "2025-11-20"


async def test_token_is_cached_between_calls():
    token_calls = []

    def handler(request):
        if request.url.path == "/v1/security/oauth2/token":
            token_calls.append(request)
            return httpx.Response(200, json={"access_token": "T", "expires_in": 1799})
        return httpx.Response(200, json={"data": []})

    client = make_client(handler)
    await client.search_flights("DEL", "BOM", "2025-11-15")
    await client.search_flights("DEL", "BOM", "2025-11-16")
    assert len(token_calls) == 1
    assert b"grant_type=client_credentials" in token_calls[0].content


async def test_retryable_status_becomes_transient_error():
    def handler(request):
        return httpx.Response(503, json={"errors": [{"status": 503, "detail": "Service busy"}]})

    client = make_client(token_or(handler))
    with pytest.raises(VendorTransientError) as exc_info:
        await client.search_flights("DEL", "BOM", "2025-11-15")
    assert exc_info.value.status_code == 503
    assert exc_info.value.kind == ErrorKind.TRANSIENT
    assert exc_info.value.detail == "Service busy"


async def test_client_error_is_permanent_with_vendor_detail():
    def handler(request):
        return httpx.Response(400, json={"errors": [{"code": 477, "title": "INVALID FORMAT",
                                                     "detail": "departureDate is in the past"}]})

    client = make_client(token_or(handler))
    with pytest.raises(VendorPermanentError) as exc_info:
        await client.search_flights("DEL", "BOM", "2020-01-01")
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "departureDate is in the past"


async def test_bad_credentials_fail_permanently():
    def handler(request):
        return httpx.Response(401, json={"error": "invalid_client",
                                         "error_description": "Client credentials are invalid"})

    client = make_client(handler)
    with pytest.raises(VendorPermanentError) as exc_info:
        await client.search_flights("DEL", "BOM", "2025-11-15")
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Client credentials are invalid"


async def test_timeout_maps_to_etimedout():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    client = make_client(token_or(handler))
    with pytest.raises(VendorTransientError) as exc_info:
        await client.search_flights("DEL", "BOM", "2025-11-15")
    assert exc_info.value.code == "ETIMEDOUT"


async def test_connect_error_maps_to_econnrefused():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = make_client(handler)
    with pytest.raises(VendorTransientError) as exc_info:
        await client.search_airports("del")
    assert exc_info.value.code == "ECONNREFUSED"


async def test_missing_credentials_raise_without_network():
    def handler(request):
        raise AssertionError("no request expected")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = AmadeusClient("", "", http=http)
    assert client.configured is False
    with pytest.raises(VendorError) as exc_info:
        await client.search_flights("DEL", "BOM", "2025-11-15")
    assert exc_info.value.kind == ErrorKind.PERMANENT


async def test_airport_search_and_lookup():
    locations = [
        {"iataCode": "DEL", "name": "INDIRA GANDHI INTL", "subType": "AIRPORT",
         "address": {"cityName": "DELHI", "countryName": "INDIA"}},
        {"iataCode": "DEX", "name": "OTHER", "subType": "AIRPORT", "address": {}},
    ]

    def handler(request):
        assert request.url.path == "/v1/reference-data/locations"
        return httpx.Response(200, json={"data": locations})

    client = make_client(token_or(handler))
    found = await client.search_airports("del")
    assert [loc["iataCode"] for loc in found] == ["DEL", "DEX"]
    assert (await client.get_airport("dex"))["iataCode"] == "DEX"
    assert await client.get_airport("XXX") is None


async def test_price_offer_posts_pricing_envelope():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": {"type": "flight-offers-pricing"}})

    client = make_client(token_or(handler))
    result = await client.price_offer({"id": "1"})
    assert result["data"]["type"] == "flight-offers-pricing"
    req = seen[0]
    assert req.method == "POST"
    assert req.url.path == "/v1/shopping/flight-offers/pricing"
    assert req.headers["X-HTTP-Method-Override"] == "GET"


def test_production_hostname_selects_live_api():
    client = AmadeusClient("id", "secret", hostname="production",
                           http=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
    assert client.base_url == "https://api.amadeus.com"
