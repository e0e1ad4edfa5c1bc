# vpn_monitor/services/allowlist.py
"""ASN allow-list evaluation."""

from typing import AbstractSet, NamedTuple, Optional

from vpn_monitor.models.identity import NetworkIdentity

REASON_NOT_CONFIGURED = "no allow-list configured"
REASON_NOT_ALLOWED = "ASN not allowed"


class AllowListDecision(NamedTuple):
    """Outcome of an allow-list check."""

    allowed: bool
    reason: Optional[str] = None


def is_allowed(identity: NetworkIdentity, allowed_asns: AbstractSet[str]) -> bool:
    """Plain membership test of the identity's ASN."""
    return identity.asn is not None and identity.asn in allowed_asns


def evaluate(identity: NetworkIdentity, allowed_asns: AbstractSet[str]) -> AllowListDecision:
    """
    Decide whether the resolved identity belongs to an allowed ASN.

    A failed lookup carries no reason; its ``error`` already explains it.
    """
    if identity.error is not None:
        return AllowListDecision(False)
    if not allowed_asns:
        return AllowListDecision(False, REASON_NOT_CONFIGURED)
    if is_allowed(identity, allowed_asns):
        return AllowListDecision(True)
    return AllowListDecision(False, REASON_NOT_ALLOWED)
