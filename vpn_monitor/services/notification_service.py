# vpn_monitor/services/notification_service.py
"""ntfy notifications with VPN status details, priority classification and retry."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AbstractSet, Optional

import httpx

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.services.allowlist import is_allowed
from vpn_monitor.services.lookup_service import LookupServiceError, get_http_client

logger = logging.getLogger(__name__)

# Retry configuration
MAX_ATTEMPTS = 3

NOTIFICATION_TAGS = "vpn,network"

TITLE_CHANGED = "VPN Server Changed!"
TITLE_OK = "VPN Health: OK"
TITLE_WARNING = "VPN Health: Warning"

PRIORITY_DEFAULT = "default"
PRIORITY_HIGH = "high"


class NotificationDeliveryError(LookupServiceError):
    """Exception raised when a notification could not be delivered."""

    pass


@dataclass(frozen=True)
class NotificationIntent:
    """A fully formatted notification, ready to be posted."""

    title: str
    priority: str
    message: str


def format_location(identity: NetworkIdentity) -> str:
    """Build the most precise location string the record allows."""
    city, region, country = identity.city, identity.region, identity.country
    if city and region and country:
        return f"{city}, {region} ({country})"
    if city and not region and country:
        return f"{city}, {country}"
    if not city and not region and country:
        return country
    return "Unknown"


def build_message(
    identity: NetworkIdentity,
    allowed_asns: AbstractSet[str],
    change_details: Optional[str] = None,
    provider_label: str = "Proton VPN",
    now: Optional[datetime] = None,
) -> str:
    """Build the notification body."""
    allowed = is_allowed(identity, allowed_asns)
    status_emoji = "✅" if allowed else "⚠️"
    status_text = "Allowed" if allowed else "Not Allowed"
    provider_badge = f"🔒 {provider_label}" if allowed else "⚡ Unknown Provider"

    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S UTC")

    change_info = f"🔄 Changes Detected:\n{change_details}\n\n" if change_details else ""
    org_info = f"🏢 Provider: {identity.org}\n" if identity.org else ""
    port_info = f"🔌 Port: {identity.port_forwarded}\n" if identity.port_forwarded is not None else ""

    return (
        f"{status_emoji} VPN Status Report\n\n"
        f"{change_info}"
        f"📍 IP: {identity.ip or 'Unknown'}\n"
        f"🌐 Location: {format_location(identity)}\n"
        f"🔢 ASN: {identity.asn or 'Unknown'} ({provider_badge})\n"
        f"{org_info}"
        f"{port_info}"
        f"{status_emoji} Status: {status_text}\n"
        f"⏰ Time: {timestamp}"
    )


def determine_title(
    identity: NetworkIdentity,
    allowed_asns: AbstractSet[str],
    change_details: Optional[str] = None,
) -> str:
    """A server change overrides the health title."""
    if change_details:
        return TITLE_CHANGED
    return TITLE_OK if is_allowed(identity, allowed_asns) else TITLE_WARNING


def determine_priority(
    identity: NetworkIdentity,
    allowed_asns: AbstractSet[str],
    change_details: Optional[str] = None,
) -> str:
    """Changes and non-allowed ASNs are high priority."""
    if change_details:
        return PRIORITY_HIGH
    return PRIORITY_DEFAULT if is_allowed(identity, allowed_asns) else PRIORITY_HIGH


def build_intent(
    identity: NetworkIdentity,
    allowed_asns: AbstractSet[str],
    change_details: Optional[str] = None,
    provider_label: str = "Proton VPN",
) -> NotificationIntent:
    """Derive title, priority and body from a resolved identity."""
    return NotificationIntent(
        title=determine_title(identity, allowed_asns, change_details),
        priority=determine_priority(identity, allowed_asns, change_details),
        message=build_message(identity, allowed_asns, change_details, provider_label),
    )


class NtfyNotifier:
    """
    Sends VPN status notifications to an ntfy topic URL.

    Delivery is attempted up to three times with exponential backoff
    (2s, then 4s) between attempts.
    """

    def __init__(self, url: str, provider_label: str = "Proton VPN"):
        self._url = url
        self._provider_label = provider_label

    @property
    def url(self) -> str:
        """The ntfy topic URL."""
        return self._url

    async def send(
        self,
        identity: NetworkIdentity,
        allowed_asns: AbstractSet[str],
        change_details: Optional[str] = None,
    ) -> None:
        """
        Build and deliver a notification for ``identity``.

        Args:
            identity: The resolved network identity.
            allowed_asns: The configured ASN allow-list.
            change_details: Newline-separated change lines, if this is a
                server change notification.

        Raises:
            NotificationDeliveryError: If all attempts failed.
        """
        intent = build_intent(identity, allowed_asns, change_details, self._provider_label)
        await self.deliver(intent)

    async def deliver(self, intent: NotificationIntent) -> None:
        """
        Post a prepared notification with retry.

        Raises:
            NotificationDeliveryError: If all attempts failed.
        """
        headers = {
            "Title": intent.title,
            "Priority": intent.priority,
            "Tags": NOTIFICATION_TAGS,
            "Content-Type": "text/plain; charset=utf-8",
        }
        body = intent.message.encode("utf-8")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                client = get_http_client()
                response = await client.post(self._url, content=body, headers=headers)
                if response.is_success:
                    logger.info("Notification sent successfully")
                    return
                error = f"Notification failed with status: {response.status_code}"
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                error = f"Failed to send notification: {e!r}"

            if attempt == MAX_ATTEMPTS:
                logger.error(error)
                raise NotificationDeliveryError(error)

            logger.warning(f"{error}, retrying ({attempt}/{MAX_ATTEMPTS})")
            await asyncio.sleep(2 ** attempt)
