# vpn_monitor/services/change_tracker.py
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class VpnState:
    """Last observed VPN identity, owned by the change detector."""

    ip: Optional[str] = None
    country: Optional[str] = None
    asn: Optional[str] = None

    def detect_changes(
        self,
        ip: Optional[str],
        country: Optional[str],
        asn: Optional[str],
    ) -> Optional[str]:
        """
        Compare a new observation against the stored state and update it.

        Fields seen for the first time are stored silently. Absent values
        leave the stored value untouched.

        Returns:
            None if nothing changed, else one "Label: old → new" line per
            changed field (IP, Country, ASN order), newline-joined.
        """
        changes: List[str] = []
        for label, field, current in (
            ("IP", "ip", ip),
            ("Country", "country", country),
            ("ASN", "asn", asn),
        ):
            if current is None:
                continue
            previous = getattr(self, field)
            if previous is None:
                setattr(self, field, current)
            elif current != previous:
                changes.append(f"{label}: {previous} → {current}")
                setattr(self, field, current)

        if not changes:
            return None
        return "\n".join(changes)
