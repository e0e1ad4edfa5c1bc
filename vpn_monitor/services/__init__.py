"""Lookup, evaluation, change detection and notification services."""

from vpn_monitor.services.allowlist import AllowListDecision, evaluate
from vpn_monitor.services.change_tracker import VpnState
from vpn_monitor.services.lookup_service import (
    AbstractIdentitySource,
    LookupServiceError,
    lookup_identity,
)
from vpn_monitor.services.notification_service import NotificationDeliveryError, NtfyNotifier

__all__ = [
    "AbstractIdentitySource",
    "AllowListDecision",
    "LookupServiceError",
    "NotificationDeliveryError",
    "NtfyNotifier",
    "VpnState",
    "evaluate",
    "lookup_identity",
]
