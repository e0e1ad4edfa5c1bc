# vpn_monitor/models/sources.py
"""Raw response shapes of the identity sources.

Each model decodes one provider's JSON payload. Unknown fields are ignored and
every field is optional; mandatory-ness is decided by the source service that
turns the payload into a NetworkIdentity.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _SourcePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GluetunPublicIP(_SourcePayload):
    """Gluetun ``GET /v1/publicip/ip``."""

    public_ip: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    # e.g. "AS212238 Datacamp Limited"
    organization: Optional[str] = None


class GluetunPortForward(_SourcePayload):
    """Gluetun ``GET /v1/openvpn/portforwarded``."""

    port: Optional[int] = Field(None, ge=0, le=65535)


class IfConfigPayload(_SourcePayload):
    """ifconfig.co ``GET /json``."""

    ip: Optional[str] = None
    asn: Optional[str] = None
    asn_org: Optional[str] = None
    org: Optional[str] = None
    country: Optional[str] = None


class IpApiPayload(_SourcePayload):
    """ipapi.co ``GET /json/``. The ASN arrives as a string or a number."""

    ip: Optional[str] = None
    asn: Optional[Union[int, str]] = None
    org: Optional[str] = None
    organization: Optional[str] = None
    country_name: Optional[str] = None
