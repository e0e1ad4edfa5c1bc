# vpn_monitor/services/gluetun_source.py
from typing import Optional, Tuple
import logging

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.models.sources import GluetunPortForward, GluetunPublicIP
from vpn_monitor.services.lookup_service import AbstractIdentitySource

logger = logging.getLogger(__name__)


def parse_organization(org: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split Gluetun's combined organization string into (asn, org).

    "AS212238 Datacamp Limited" -> ("AS212238", "Datacamp Limited"). The
    first space-separated token is always taken as the ASN, so a plain
    company name with spaces yields a bogus ASN token. A string without any
    space is returned whole as the organization name.
    """
    if org is None:
        return None, None

    asn_part, sep, org_part = org.partition(" ")
    if not sep:
        return None, org
    return asn_part.upper(), org_part.strip()


class GluetunSource(AbstractIdentitySource):
    """
    Primary source: the Gluetun VPN client's local control API.

    Also reports the forwarded port when the VPN provider supports it.
    """

    name = "gluetun"

    def __init__(self, base_url: str, api_key: Optional[str] = None):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def fetch(self) -> Optional[NetworkIdentity]:
        """
        Fetch the public IP, location and organization from Gluetun.

        Only ``public_ip`` is mandatory. The port forwarding sub-query never
        fails the whole record.
        """
        url = f"{self._base_url}/v1/publicip/ip"
        logger.debug(f"Querying Gluetun public IP: {url}")

        data = await self._get_payload(url, GluetunPublicIP)
        if data is None or not data.public_ip:
            return None

        asn, org = parse_organization(data.organization)
        port_forwarded = await self._fetch_port_forwarded()

        return NetworkIdentity(
            ip=data.public_ip,
            asn=asn,
            org=org,
            country=data.country,
            city=data.city,
            region=data.region,
            port_forwarded=port_forwarded,
        )

    async def _fetch_port_forwarded(self) -> Optional[int]:
        """Query the forwarded port, with the API key first, then without auth."""
        url = f"{self._base_url}/v1/openvpn/portforwarded"

        if self._api_key:
            data = await self._get_payload(url, GluetunPortForward, headers={"X-API-Key": self._api_key})
            if data is not None:
                return data.port

        data = await self._get_payload(url, GluetunPortForward)
        if data is not None:
            return data.port

        logger.debug("Port forwarding information unavailable")
        return None
