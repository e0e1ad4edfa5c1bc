"""VPN egress monitor: ASN allow-list checks and change notifications."""
