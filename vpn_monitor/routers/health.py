# vpn_monitor/routers/health.py
import logging
from typing import List, Optional

from aiocache import SimpleMemoryCache
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.services.allowlist import evaluate
from vpn_monitor.services.lookup_service import lookup_identity
from vpn_monitor.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["VPN Health"])

# Short-lived cache for request-triggered lookups; the monitors bypass it
_lookup_cache = SimpleMemoryCache()
_CACHE_KEY = "identity"


# Response models
class CheckResponse(NetworkIdentity):
    """Response for the /check endpoint."""

    ok: bool
    reason: Optional[str] = None


class StatusResponse(NetworkIdentity):
    """Response for the /status endpoint."""

    allowed_asns: List[str]
    configured: bool


async def clear_lookup_cache() -> None:
    await _lookup_cache.clear()


async def get_current_identity(
    settings: Settings = Depends(get_settings),
) -> NetworkIdentity:
    """
    Dependency resolving the current network identity.

    Successful lookups are cached for ``lookup_cache_ttl`` seconds so that
    frequent health probes do not exhaust the public lookup services.
    """
    ttl = settings.lookup_cache_ttl
    if ttl > 0:
        cached = await _lookup_cache.get(_CACHE_KEY)
        if cached is not None:
            return cached

    identity = await lookup_identity(settings.gluetun_api_url, settings.gluetun_api_key)

    if ttl > 0 and identity.error is None:
        await _lookup_cache.set(_CACHE_KEY, identity, ttl=ttl)
    return identity


@router.get(
    "/check",
    response_model=CheckResponse,
    response_model_exclude_none=True,
    summary="VPN health check",
    description="Returns 200 if traffic leaves through an allowed ASN, 503 otherwise.",
    responses={503: {"description": "VPN down, lookup failed, or ASN not allowed"}},
)
async def check(
    identity: NetworkIdentity = Depends(get_current_identity),
    settings: Settings = Depends(get_settings),
):
    """
    Health check for Uptime Kuma and similar monitors.

    - **200**: the public IP belongs to an allowed ASN.
    - **503**: the lookup failed, no allow-list is configured, or the ASN is
      not on the allow-list (see `reason`).
    """
    decision = evaluate(identity, settings.vpn_allowed_asns)

    if not decision.allowed:
        logger.warning(
            f"VPN check failed: asn={identity.asn} "
            f"reason={decision.reason or identity.error}"
        )

    body = CheckResponse(
        ok=decision.allowed,
        reason=decision.reason,
        **identity.model_dump(),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if decision.allowed else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(exclude_none=True),
    )


@router.get(
    "/status",
    response_model=StatusResponse,
    response_model_exclude_none=True,
    summary="VPN status",
    description="Current public IP details and the configured allow-list. Always 200.",
)
async def vpn_status(
    identity: NetworkIdentity = Depends(get_current_identity),
    settings: Settings = Depends(get_settings),
):
    """
    Informational status: resolved identity plus configuration.
    """
    return StatusResponse(
        allowed_asns=sorted(settings.vpn_allowed_asns),
        configured=bool(settings.vpn_allowed_asns),
        **identity.model_dump(),
    )
