"""Data models."""

from vpn_monitor.models.identity import NetworkIdentity

__all__ = ["NetworkIdentity"]
