# vpn_monitor/services/ifconfig_source.py
from typing import Optional, Union
import logging

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.models.sources import IfConfigPayload
from vpn_monitor.services.lookup_service import AbstractIdentitySource
from vpn_monitor.settings import settings

logger = logging.getLogger(__name__)


def normalize_asn(value: Union[int, str]) -> str:
    """Uppercase an ASN and make sure it carries the ``AS`` prefix."""
    asn = str(value).strip().upper()
    if asn.startswith("AS"):
        return asn
    return f"AS{asn}"


class IfConfigSource(AbstractIdentitySource):
    """
    First public fallback: ifconfig.co, a fast and minimal JSON API.
    """

    name = "ifconfig.co"

    def __init__(self, url: Optional[str] = None):
        self._url = url or settings.ifconfig_url

    async def fetch(self) -> Optional[NetworkIdentity]:
        """Fetch IP and ASN from ifconfig.co; both are mandatory."""
        logger.debug(f"Querying {self.name}: {self._url}")

        data = await self._get_payload(self._url, IfConfigPayload)
        if data is None or not data.ip or not data.asn:
            return None

        return NetworkIdentity(
            ip=data.ip,
            asn=normalize_asn(data.asn),
            org=data.asn_org or data.org,
            country=data.country,
        )
