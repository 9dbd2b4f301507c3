import httpx
import pytest

from app.services.geocoding_service import GeocodingClient


def _client(handler):
    return GeocodingClient(base_url="https://geo.test", user_agent="sos-tests", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_parses_results_and_skips_malformed_ones():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["agent"] = request.headers["user-agent"]
        return httpx.Response(200, json=[
            {"display_name": "Park Street, Kolkata", "lat": "22.5530", "lon": "88.3520"},
            {"display_name": "broken"},
        ])

    results = await _client(handler).search("park street", limit=3)

    assert [(r.display_name, r.lat, r.lon) for r in results] == [("Park Street, Kolkata", 22.553, 88.352)]
    assert seen["path"] == "/search"
    assert seen["params"] == {"format": "json", "q": "park street", "limit": "3"}
    assert seen["agent"] == "sos-tests"


@pytest.mark.asyncio
async def test_search_degrades_to_empty():
    def server_error(request):
        return httpx.Response(500)

    def offline(request):
        raise httpx.ConnectError("offline")

    def not_json(request):
        return httpx.Response(200, text="<html>")

    for handler in (server_error, offline, not_json):
        assert await _client(handler).search("anything") == []
    assert await _client(server_error).search("  ") == []


@pytest.mark.asyncio
async def test_reverse():
    def handler(request):
        assert request.url.params["lat"] == "22.5"
        return httpx.Response(200, json={"display_name": "Esplanade, Kolkata"})

    assert await _client(handler).reverse(22.5, 88.35) == "Esplanade, Kolkata"
    assert await _client(lambda request: httpx.Response(404)).reverse(0, 0) is None
    assert await _client(lambda request: httpx.Response(200, json={"error": "Unable to geocode"})).reverse(0, 0) is None
