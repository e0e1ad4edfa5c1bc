# vpn_monitor/services/ipapi_source.py
from typing import Optional
import logging

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.models.sources import IpApiPayload
from vpn_monitor.services.ifconfig_source import normalize_asn
from vpn_monitor.services.lookup_service import AbstractIdentitySource
from vpn_monitor.settings import settings

logger = logging.getLogger(__name__)


class IpApiSource(AbstractIdentitySource):
    """
    Last fallback: ipapi.co, with richer geolocation data.

    Its ASN field may be a string ("AS15169") or a bare number (15169).
    """

    name = "ipapi.co"

    def __init__(self, url: Optional[str] = None):
        self._url = url or settings.ipapi_url

    async def fetch(self) -> Optional[NetworkIdentity]:
        """Fetch IP and ASN from ipapi.co; both are mandatory."""
        logger.debug(f"Querying {self.name}: {self._url}")

        data = await self._get_payload(self._url, IpApiPayload)
        if data is None or not data.ip or data.asn in (None, ""):
            return None

        return NetworkIdentity(
            ip=data.ip,
            asn=normalize_asn(data.asn),
            org=data.org or data.organization,
            country=data.country_name,
        )
