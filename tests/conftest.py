"""Pytest configuration and shared fixtures."""

import pytest
import httpx

from vpn_monitor.main import app
from vpn_monitor.routers.health import clear_lookup_cache
from vpn_monitor.services.lookup_service import create_http_client, close_http_client
from vpn_monitor.settings import Settings, get_settings, settings

IFCONFIG_URL = settings.ifconfig_url
IPAPI_URL = settings.ipapi_url
GLUETUN_URL = "http://gluetun:8000"
NTFY_URL = "https://ntfy.sh/vpn-test"


def make_settings(**overrides) -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture(autouse=True)
async def clear_cache():
    """Clear the lookup cache between tests to prevent stale identities."""
    await clear_lookup_cache()
    yield
    await clear_lookup_cache()


@pytest.fixture
async def setup_http_client():
    """Setup and teardown the shared HTTP client."""
    await create_http_client()
    yield
    await close_http_client()


@pytest.fixture
def test_settings():
    """Settings used by the endpoint tests: one allowed ASN, public sources only."""
    return make_settings(vpn_allowed_asns="AS12345")


@pytest.fixture
async def test_client(test_settings):
    """Create a test client for the FastAPI app with overridden settings."""
    app.dependency_overrides[get_settings] = lambda: test_settings

    await create_http_client()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await close_http_client()

    app.dependency_overrides.clear()


@pytest.fixture
def mock_ifconfig_data():
    """Mock data for the ifconfig.co API response."""
    return {
        "ip": "185.1.2.3",
        "asn": "AS12345",
        "asn_org": "Test Provider B.V.",
        "country": "Netherlands",
        "country_iso": "NL",
        "city": "Amsterdam",
    }


@pytest.fixture
def mock_ipapi_data():
    """Mock data for the ipapi.co API response (numeric ASN)."""
    return {
        "ip": "203.0.113.7",
        "asn": 15169,
        "organization": "Example Networks",
        "country_name": "Germany",
        "city": "Frankfurt",
    }


@pytest.fixture
def mock_gluetun_data():
    """Mock data for the Gluetun public IP endpoint."""
    return {
        "public_ip": "146.70.1.2",
        "region": "North Holland",
        "country": "Netherlands",
        "city": "Amsterdam",
        "hostname": "nl-free-01",
        "organization": "AS212238 Datacamp Limited",
        "timezone": "Europe/Amsterdam",
    }
