# vpn_monitor/models/identity.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class NetworkIdentity(BaseModel):
    """
    The canonical resolved network identity, whichever source produced it.

    A record is either a (possibly partial) success carrying at least one of
    ip/asn/country, or a pure failure carrying only ``error``.
    """

    ip: Optional[str] = Field(
        None,
        description="The public IP address."
    )
    asn: Optional[str] = Field(
        None,
        description="Uppercase ASN, always prefixed with 'AS'."
    )
    org: Optional[str] = Field(
        None,
        description="Name of the organization owning the ASN."
    )
    country: Optional[str] = Field(
        None,
        description="Country of the public IP."
    )
    city: Optional[str] = Field(
        None,
        description="City of the public IP, if the source provides it."
    )
    region: Optional[str] = Field(
        None,
        description="Region of the public IP, if the source provides it."
    )
    port_forwarded: Optional[int] = Field(
        None,
        ge=0,
        le=65535,
        description="Forwarded port reported by the VPN client, if any."
    )
    error: Optional[str] = Field(
        None,
        description="Set only when no source produced a usable result."
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_success_or_failure(self) -> "NetworkIdentity":
        has_data = any(v is not None for v in (self.ip, self.asn, self.country))
        if self.error is not None and has_data:
            raise ValueError("A failed lookup must not carry identity fields")
        if self.error is None and not has_data:
            raise ValueError("A lookup result needs ip, asn or country")
        return self

    @classmethod
    def failure(cls, message: str) -> "NetworkIdentity":
        """Build the record returned when every source failed."""
        return cls(error=message)

    def public_dict(self) -> Dict[str, Any]:
        """JSON-ready mapping with absent fields omitted."""
        return self.model_dump(exclude_none=True)
