# vpn_monitor/settings.py
from functools import lru_cache
from typing import Annotated, Any, FrozenSet, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support and validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,  # Shared read-only by the request path and both monitors
    )

    # Allow-list of ASNs (comma-separated, case-insensitive)
    vpn_allowed_asns: Annotated[FrozenSet[str], NoDecode] = frozenset()

    # Notification sink
    ntfy_url: Optional[str] = None
    vpn_provider_name: str = "Proton VPN"

    # Gluetun control API (primary lookup source)
    gluetun_api_url: Optional[str] = None
    gluetun_api_key: Optional[str] = None

    # Public lookup sources (fallbacks, in order)
    ifconfig_url: str = "https://ifconfig.co/json"
    ipapi_url: str = "https://ipapi.co/json/"

    # Monitoring intervals
    ntfy_interval_hours: int = 2
    vpn_check_interval_minutes: int = 5
    notifier_startup_delay: Annotated[float, Field(ge=0.0)] = 30.0
    detector_startup_delay: Annotated[float, Field(ge=0.0)] = 35.0

    # HTTP Client settings
    http_timeout: Annotated[float, Field(ge=5.0, le=120.0)] = 30.0

    # Request-path lookup cache (0 = disabled)
    lookup_cache_ttl: Annotated[int, Field(ge=0, le=300)] = 15

    # Security headers
    enable_security_headers: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    # Application settings
    app_name: str = "VPN Monitor"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: Annotated[int, Field(ge=1, le=65535)] = 3010

    @field_validator("vpn_allowed_asns", mode="before")
    @classmethod
    def parse_allowed_asns(cls, v: Any) -> FrozenSet[str]:
        """Split, trim and uppercase the ASN allow-list."""
        if v is None:
            return frozenset()
        items = v.split(",") if isinstance(v, str) else v
        return frozenset(item.strip().upper() for item in items if item.strip())

    @field_validator("ntfy_url", "gluetun_api_url", "gluetun_api_key", mode="before")
    @classmethod
    def empty_as_unset(cls, v: Any) -> Any:
        """Treat empty strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("ntfy_interval_hours", "vpn_check_interval_minutes", mode="before")
    @classmethod
    def parse_interval(cls, v: Any, info: ValidationInfo) -> int:
        """Fall back to the default on unparsable input and enforce a minimum of 1."""
        default = cls.model_fields[info.field_name].default
        if isinstance(v, int) and not isinstance(v, bool):
            value = v
        elif isinstance(v, str) and v.isascii() and v.isdigit():
            # Plain unsigned digits only: no sign, whitespace or underscores
            value = int(v)
        else:
            return default
        if value < 0:
            return default
        return max(1, value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in {"json", "text"}:
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v.lower()


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance for performance."""
    return Settings()


settings = get_settings()
