"""Integration tests for API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
import respx
import httpx

from vpn_monitor.main import app
from vpn_monitor.services.lookup_service import LookupServiceError
from vpn_monitor.settings import get_settings
from tests.conftest import IFCONFIG_URL, IPAPI_URL, make_settings


@respx.mock
async def test_health_check(test_client):
    """Test liveness endpoint."""
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@respx.mock
async def test_check_allowed_asn(test_client, mock_ifconfig_data):
    respx.get(IFCONFIG_URL).mock(return_value=httpx.Response(200, json=mock_ifconfig_data))

    response = await test_client.get("/check")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert "reason" not in data
    assert data["ip"] == "185.1.2.3"
    assert data["asn"] == "AS12345"
    assert "error" not in data


@respx.mock
async def test_check_asn_not_allowed(test_client, mock_ifconfig_data):
    mock_ifconfig_data["asn"] = "AS99999"
    respx.get(IFCONFIG_URL).mock(return_value=httpx.Response(200, json=mock_ifconfig_data))

    response = await test_client.get("/check")
    assert response.status_code == 503
    data = response.json()
    assert data["ok"] is False
    assert data["reason"] == "ASN not allowed"
    assert data["asn"] == "AS99999"


@respx.mock
async def test_check_lookup_failure(test_client):
    respx.get(IFCONFIG_URL).mock(side_effect=httpx.ConnectError)
    respx.get(IPAPI_URL).mock(return_value=httpx.Response(500))

    response = await test_client.get("/check")
    assert response.status_code == 503
    data = response.json()
    assert data == {"ok": False, "error": "ASN lookup failed"}


@respx.mock
@pytest.mark.parametrize("test_settings", [make_settings()])
async def test_check_without_allow_list(test_client, mock_ifconfig_data):
    respx.get(IFCONFIG_URL).mock(return_value=httpx.Response(200, json=mock_ifconfig_data))

    response = await test_client.get("/check")
    assert response.status_code == 503
    assert response.json()["reason"] == "no allow-list configured"


@respx.mock
async def test_status_reports_configuration(test_client, mock_ifconfig_data):
    app.dependency_overrides[get_settings] = lambda: make_settings(vpn_allowed_asns="as67890,AS12345")
    respx.get(IFCONFIG_URL).mock(return_value=httpx.Response(200, json=mock_ifconfig_data))

    response = await test_client.get("/status")
    assert response.status_code == 200
    data = response.json()
    assert data["allowed_asns"] == ["AS12345", "AS67890"]
    assert data["configured"] is True
    assert data["ip"] == "185.1.2.3"
    assert data["org"] == "Test Provider B.V."
    assert "port_forwarded" not in data


@respx.mock
async def test_status_unconfigured_and_failing(test_client):
    app.dependency_overrides[get_settings] = lambda: make_settings()
    respx.get(IFCONFIG_URL).mock(side_effect=httpx.ConnectError)
    respx.get(IPAPI_URL).mock(side_effect=httpx.ConnectError)

    response = await test_client.get("/status")
    assert response.status_code == 200
    assert response.json() == {
        "error": "ASN lookup failed",
        "allowed_asns": [],
        "configured": False,
    }


@respx.mock
async def test_lookup_is_cached_between_requests(test_client, mock_ifconfig_data):
    route = respx.get(IFCONFIG_URL).mock(return_value=httpx.Response(200, json=mock_ifconfig_data))

    assert (await test_client.get("/check")).status_code == 200
    assert (await test_client.get("/status")).status_code == 200
    assert route.call_count == 1


@respx.mock
@pytest.mark.parametrize("test_settings", [make_settings(vpn_allowed_asns="AS12345", lookup_cache_ttl=0)])
async def test_lookup_cache_disabled(test_client, mock_ifconfig_data):
    route = respx.get(IFCONFIG_URL).mock(return_value=httpx.Response(200, json=mock_ifconfig_data))

    await test_client.get("/check")
    await test_client.get("/check")
    assert route.call_count == 2


@respx.mock
async def test_failed_lookups_are_not_cached(test_client, mock_ifconfig_data):
    route = respx.get(IFCONFIG_URL).mock(
        side_effect=[httpx.ConnectError, httpx.Response(200, json=mock_ifconfig_data)]
    )
    respx.get(IPAPI_URL).mock(return_value=httpx.Response(500))

    assert (await test_client.get("/check")).status_code == 503
    assert (await test_client.get("/check")).status_code == 200
    assert route.call_count == 2


@respx.mock
async def test_security_headers(test_client):
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"


async def test_lookup_service_error_returns_503(test_client):
    with patch(
        "vpn_monitor.routers.health.lookup_identity",
        new=AsyncMock(side_effect=LookupServiceError("upstream unavailable")),
    ):
        response = await test_client.get("/status")

    assert response.status_code == 503
    assert response.json() == {
        "error": "Service Unavailable",
        "message": "VPN status temporarily unavailable.",
    }
    assert "upstream unavailable" not in response.text
