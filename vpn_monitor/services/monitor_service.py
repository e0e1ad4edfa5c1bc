# vpn_monitor/services/monitor_service.py
"""
Background monitoring tasks.

Two independent loops run alongside the HTTP server:
1. Periodic notifier - sends a status report every few hours
2. Change detector - checks every few minutes and notifies on IP/country/ASN changes

Both are inert when no ntfy URL is configured.
"""

import asyncio
import logging
from typing import Optional

from vpn_monitor.models.identity import NetworkIdentity
from vpn_monitor.services.change_tracker import VpnState
from vpn_monitor.services.lookup_service import lookup_identity
from vpn_monitor.services.notification_service import (
    NotificationDeliveryError,
    NtfyNotifier,
)
from vpn_monitor.settings import Settings

logger = logging.getLogger(__name__)


async def resolve(settings: Settings) -> NetworkIdentity:
    """Run the lookup chain with the configured Gluetun endpoint."""
    return await lookup_identity(settings.gluetun_api_url, settings.gluetun_api_key)


class PeriodicNotifier:
    """Sends a VPN status report at a fixed interval."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._notifier: Optional[NtfyNotifier] = None
        if settings.ntfy_url:
            self._notifier = NtfyNotifier(settings.ntfy_url, settings.vpn_provider_name)

    @property
    def enabled(self) -> bool:
        return self._notifier is not None

    async def notify_once(self) -> None:
        """Resolve the current identity and send a status report."""
        identity = await resolve(self._settings)
        try:
            await self._notifier.send(identity, self._settings.vpn_allowed_asns)
        except NotificationDeliveryError as e:
            logger.error(f"Failed to send notification: {e}")

    async def run(self) -> None:
        if not self.enabled:
            logger.warning("NTFY_URL not configured, notifications disabled")
            return

        interval = self._settings.ntfy_interval_hours * 60 * 60
        logger.info(f"Starting periodic notifier (every {self._settings.ntfy_interval_hours} hours)")
        logger.info(f"Sending notifications to: {self._notifier.url}")

        # Give Gluetun time to bring the tunnel up before the first report
        if self._settings.gluetun_api_url:
            delay = self._settings.notifier_startup_delay
            logger.info(f"Waiting {delay:g} seconds for Gluetun to establish VPN connection")
            await asyncio.sleep(delay)

        while True:
            await self.notify_once()
            await asyncio.sleep(interval)


class ChangeDetector:
    """
    Watches for VPN server changes (IP, country, ASN) and notifies on them.

    The first successful lookup only establishes the baseline.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._state = VpnState()
        self._notifier: Optional[NtfyNotifier] = None
        if settings.ntfy_url:
            self._notifier = NtfyNotifier(settings.ntfy_url, settings.vpn_provider_name)

    @property
    def enabled(self) -> bool:
        return self._notifier is not None

    @property
    def state(self) -> VpnState:
        return self._state

    async def establish_baseline(self) -> None:
        identity = await resolve(self._settings)
        if identity.error is not None:
            logger.warning(f"Baseline lookup failed: {identity.error}")
            return

        self._state.detect_changes(identity.ip, identity.country, identity.asn)
        logger.info(
            f"Baseline established: IP={self._state.ip}, "
            f"Country={self._state.country}, ASN={self._state.asn}"
        )

    async def check_once(self) -> Optional[str]:
        """
        Perform one check and notify if the VPN identity changed.

        Returns:
            The change description, or None if nothing changed or the
            lookup failed.
        """
        logger.debug("Change detector: performing check")
        identity = await resolve(self._settings)

        if identity.error is not None:
            logger.warning(f"Change detector lookup failed: {identity.error}")
            return None

        changes = self._state.detect_changes(identity.ip, identity.country, identity.asn)
        if changes is None:
            return None

        summary = changes.replace("\n", ", ")
        logger.info(f"VPN server change detected: {summary}")
        try:
            await self._notifier.send(identity, self._settings.vpn_allowed_asns, changes)
        except NotificationDeliveryError as e:
            logger.warning(f"Failed to send change notification: {e}")
        return changes

    async def run(self) -> None:
        if not self.enabled:
            logger.warning("NTFY_URL not configured, change detection disabled")
            return

        interval = self._settings.vpn_check_interval_minutes * 60
        logger.info(
            f"Starting change detector (checking every "
            f"{self._settings.vpn_check_interval_minutes} minutes)"
        )

        # Wait for the initial VPN connection
        await asyncio.sleep(self._settings.detector_startup_delay)
        await self.establish_baseline()

        # First check follows the baseline immediately
        while True:
            await self.check_once()
            await asyncio.sleep(interval)


def log_task_failure(task: asyncio.Task) -> None:
    """Done callback reporting a background task that ended with an exception."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} crashed: {exc!r}", exc_info=exc)


async def start_periodic_notifier(settings: Settings) -> None:
    """Entry point for the periodic notification task."""
    await PeriodicNotifier(settings).run()


async def start_change_detector(settings: Settings) -> None:
    """Entry point for the change detection task."""
    await ChangeDetector(settings).run()
