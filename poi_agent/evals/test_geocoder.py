"""
Unit tests for the Geocoder - every failure mode must come back as a
GeocodeResult, never as an exception.
"""

import httpx
import pytest

from poi_agent.tools.geocoder import Geocoder


def _geocoder(settings, handler) -> Geocoder:
    return Geocoder(settings, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_resolve_ok_uses_first_result(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={
            "status": "OK",
            "results": [
                {"formatted_address": "Herzl St 1, Haifa, Israel",
                 "geometry": {"location": {"lat": 32.8, "lng": 35.0}}},
                {"formatted_address": "Herzl St 1, Tel Aviv, Israel",
                 "geometry": {"location": {"lat": 32.06, "lng": 34.77}}},
            ],
        })

    result = await _geocoder(settings, handler).resolve("Herzl 1, Haifa")

    assert result.ok
    assert result.status == "OK"
    assert (result.latitude, result.longitude) == (32.8, 35.0)
    assert result.formatted_address == "Herzl St 1, Haifa, Israel"
    assert result.error is None
    assert seen[0].url.params["address"] == "Herzl 1, Haifa"
    assert seen[0].url.params["key"] == "test-key"
    assert seen[0].headers["User-Agent"] == settings.user_agent


@pytest.mark.asyncio
async def test_resolve_zero_results(settings):
    result = await _geocoder(
        settings, lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
    ).resolve("Nowhere 0")

    assert not result.ok
    assert result.status == "ZERO_RESULTS"
    assert result.error == "No results found"
    assert result.latitude is None and result.longitude is None
    assert result.formatted_address is None


@pytest.mark.asyncio
async def test_resolve_provider_error_message_is_kept(settings):
    result = await _geocoder(settings, lambda r: httpx.Response(200, json={
        "status": "REQUEST_DENIED", "error_message": "The provided API key is invalid.", "results": [],
    })).resolve("Herzl 1, Haifa")

    assert result.status == "REQUEST_DENIED"
    assert result.error == "The provided API key is invalid."


@pytest.mark.asyncio
async def test_resolve_ok_status_without_results_is_failure(settings):
    result = await _geocoder(
        settings, lambda r: httpx.Response(200, json={"status": "OK", "results": []})
    ).resolve("Herzl 1, Haifa")
    assert not result.ok
    assert result.status == "OK"
    assert result.error == "No results found"


@pytest.mark.asyncio
async def test_resolve_transport_error_is_error_status(settings):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    result = await _geocoder(settings, handler).resolve("Herzl 1, Haifa")

    assert not result.ok
    assert result.status == "ERROR"
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_resolve_http_500_is_error_status(settings):
    result = await _geocoder(settings, lambda r: httpx.Response(500, text="upstream broke")).resolve("x")
    assert result.status == "ERROR"
    assert not result.ok


@pytest.mark.asyncio
async def test_resolve_non_json_body_is_error_status(settings):
    result = await _geocoder(settings, lambda r: httpx.Response(200, text="<html>nope</html>")).resolve("x")
    assert result.status == "ERROR"
    assert result.input == "x"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"[]", b"null", b"\"OK\"", b"42"])
async def test_resolve_json_that_is_not_an_object_is_error_status(settings, body):
    result = await _geocoder(settings, lambda r: httpx.Response(200, content=body)).resolve("Herzl 1, Haifa")

    assert not result.ok
    assert result.status == "ERROR"
    assert result.error == "Malformed response"
    assert result.input == "Herzl 1, Haifa"
