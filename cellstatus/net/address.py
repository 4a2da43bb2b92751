"""Pick a LAN-reachable IPv4 address from the host's interface table."""

import ipaddress
import logging
import socket

import psutil

logger = logging.getLogger(__name__)

FALLBACK_ADDRESS = "localhost"


def _is_internal(address: str) -> bool:
    try:
        return ipaddress.IPv4Address(address).is_loopback
    except ipaddress.AddressValueError:
        return True


def resolve_local_address() -> str:
    """First non-loopback IPv4 address in interface enumeration order, else "localhost".

    Read fresh on every call: interfaces may change between starts.
    """
    try:
        interfaces = psutil.net_if_addrs()
    except OSError as e:
        logger.warning("Could not enumerate network interfaces: %s", e)
        return FALLBACK_ADDRESS
    for name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if _is_internal(addr.address):
                continue
            logger.debug("Using %s from interface %s", addr.address, name)
            return addr.address
    return FALLBACK_ADDRESS
