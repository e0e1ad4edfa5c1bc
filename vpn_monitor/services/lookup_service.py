# vpn_monitor/services/lookup_service.py
"""HTTP client management, identity source abstraction and the lookup chain."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type, TypeVar

import httpx
import logging
from pydantic import BaseModel

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.settings import settings

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

# HTTP client singleton - managed by application lifespan
_http_client: Optional[httpx.AsyncClient] = None

LOOKUP_FAILED = "ASN lookup failed"


class LookupServiceError(Exception):
    """Base exception for lookup and notification service errors."""

    pass


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client instance."""
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized. Ensure app lifespan is active.")
    return _http_client


async def create_http_client() -> httpx.AsyncClient:
    """Create the shared HTTP client with a single client-wide timeout."""
    global _http_client

    _http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout),
        http2=True,
        verify=True,
        follow_redirects=True,
        headers={
            "User-Agent": f"{settings.app_name}/{settings.app_version}",
            "Accept": "application/json",
        },
    )
    logger.info(f"HTTP client initialized (timeout={settings.http_timeout}s)")
    return _http_client


async def close_http_client() -> None:
    """Close the HTTP client and release resources."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
        logger.info("HTTP client closed")


class AbstractIdentitySource(ABC):
    """
    Abstract base class for public IP / ASN lookup sources.

    Implementations absorb every failure (transport errors, non-2xx
    responses, malformed payloads, missing mandatory fields) and report it
    as ``None`` so the chain can move on to the next source.
    """

    name: str = "source"

    @abstractmethod
    async def fetch(self) -> Optional[NetworkIdentity]:
        """
        Resolve the current network identity from this source.

        Returns:
            A NetworkIdentity on success, None if the source produced
            nothing usable.
        """
        pass

    async def _get_payload(
        self,
        url: str,
        model: Type[PayloadT],
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[PayloadT]:
        """GET ``url`` and decode the JSON body into ``model``; None on any failure."""
        try:
            client = get_http_client()
            response = await client.get(url, headers=headers)
            response.raise_for_status()
            return model.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.warning(f"{self.name} HTTP error: {e.response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"{self.name} request error: {e!r}")
        except ValueError as e:
            # Invalid JSON or a payload that does not fit the model
            logger.warning(f"{self.name} returned malformed data: {e}")
        return None


def build_sources(
    gluetun_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> List[AbstractIdentitySource]:
    """Build the ordered list of sources to try."""
    # Imported here: the source modules depend on this module's client helpers
    from vpn_monitor.services.gluetun_source import GluetunSource
    from vpn_monitor.services.ifconfig_source import IfConfigSource
    from vpn_monitor.services.ipapi_source import IpApiSource

    sources: List[AbstractIdentitySource] = []
    if gluetun_url:
        sources.append(GluetunSource(gluetun_url, api_key))
    sources.append(IfConfigSource())
    sources.append(IpApiSource())
    return sources


async def lookup_identity(
    gluetun_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> NetworkIdentity:
    """
    Resolve the public network identity with ordered fallback.

    Tries the Gluetun control API first (if configured), then ifconfig.co,
    then ipapi.co. The first usable result wins; later sources are not
    consulted.

    Args:
        gluetun_url: Base URL of the Gluetun control API.
        api_key: Optional Gluetun API key for the port forwarding endpoint.

    Returns:
        The resolved NetworkIdentity, or a failure record with ``error`` set
        when every source failed. Never raises for source failures.
    """
    for source in build_sources(gluetun_url, api_key):
        result = await source.fetch()
        if result is not None:
            logger.debug(f"Resolved identity via {source.name}: ip={result.ip} asn={result.asn}")
            return result

    logger.error("All IP lookup services failed")
    return NetworkIdentity.failure(LOOKUP_FAILED)
