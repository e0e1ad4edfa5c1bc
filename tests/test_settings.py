"""Tests for environment-based configuration."""

import pytest
from pydantic import ValidationError

from tests.conftest import make_settings

ENV_VARS = (
    "VPN_ALLOWED_ASNS",
    "NTFY_URL",
    "GLUETUN_API_URL",
    "GLUETUN_API_KEY",
    "NTFY_INTERVAL_HOURS",
    "VPN_CHECK_INTERVAL_MINUTES",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = make_settings()

    assert config.vpn_allowed_asns == frozenset()
    assert config.ntfy_url is None
    assert config.gluetun_api_url is None
    assert config.gluetun_api_key is None
    assert config.ntfy_interval_hours == 2
    assert config.vpn_check_interval_minutes == 5


def test_values_from_env(monkeypatch):
    monkeypatch.setenv("VPN_ALLOWED_ASNS", "AS12345,AS67890,as99999")
    monkeypatch.setenv("NTFY_URL", "https://ntfy.sh/test")
    monkeypatch.setenv("GLUETUN_API_URL", "http://localhost:8000")
    monkeypatch.setenv("GLUETUN_API_KEY", "test-key")
    monkeypatch.setenv("NTFY_INTERVAL_HOURS", "3")
    monkeypatch.setenv("VPN_CHECK_INTERVAL_MINUTES", "10")

    config = make_settings()

    assert config.vpn_allowed_asns == frozenset({"AS12345", "AS67890", "AS99999"})
    assert config.ntfy_url == "https://ntfy.sh/test"
    assert config.gluetun_api_url == "http://localhost:8000"
    assert config.gluetun_api_key == "test-key"
    assert config.ntfy_interval_hours == 3
    assert config.vpn_check_interval_minutes == 10


def test_allowed_asns_parsing(monkeypatch):
    monkeypatch.setenv("VPN_ALLOWED_ASNS", "  AS12345  ,  , AS67890 , as12345 ,  ")

    config = make_settings()

    assert config.vpn_allowed_asns == frozenset({"AS12345", "AS67890"})


def test_minimum_intervals(monkeypatch):
    monkeypatch.setenv("NTFY_INTERVAL_HOURS", "0")
    monkeypatch.setenv("VPN_CHECK_INTERVAL_MINUTES", "0")

    config = make_settings()

    assert config.ntfy_interval_hours == 1
    assert config.vpn_check_interval_minutes == 1


@pytest.mark.parametrize("value", ["invalid", "", "1.5", "-4"])
def test_invalid_intervals_fall_back_to_defaults(monkeypatch, value):
    monkeypatch.setenv("NTFY_INTERVAL_HOURS", value)
    monkeypatch.setenv("VPN_CHECK_INTERVAL_MINUTES", value)

    config = make_settings()

    assert config.ntfy_interval_hours == 2
    assert config.vpn_check_interval_minutes == 5


def test_empty_urls_are_unset(monkeypatch):
    monkeypatch.setenv("NTFY_URL", "")
    monkeypatch.setenv("GLUETUN_API_URL", "  ")

    config = make_settings()

    assert config.ntfy_url is None
    assert config.gluetun_api_url is None


def test_settings_are_immutable():
    config = make_settings()
    with pytest.raises(ValidationError):
        config.ntfy_url = "https://ntfy.sh/other"


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError):
        make_settings()


@pytest.mark.parametrize("value", [" 5 ", "1_000", "+3"])
def test_loosely_formatted_intervals_fall_back_to_defaults(monkeypatch, value):
    monkeypatch.setenv("NTFY_INTERVAL_HOURS", value)
    monkeypatch.setenv("VPN_CHECK_INTERVAL_MINUTES", value)

    config = make_settings()

    assert config.ntfy_interval_hours == 2
    assert config.vpn_check_interval_minutes == 5


def test_integer_intervals_accepted_directly():
    config = make_settings(ntfy_interval_hours=4, vpn_check_interval_minutes=0)

    assert config.ntfy_interval_hours == 4
    assert config.vpn_check_interval_minutes == 1
