"""LAN address discovery for the URL handed to mobile clients."""

from cellstatus.net.address import resolve_local_address

__all__ = ["resolve_local_address"]
