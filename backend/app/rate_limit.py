"""Per-client rate limiting for the marketplace API.

Requests are keyed by client IP. Behind the load balancer every request
arrives from a proxy, so the original client is read from X-Forwarded-For,
but only when the direct peer sits in ``Settings.trusted_proxy_cidrs``.
"""

import ipaddress
from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings
from .logging_config import get_logger

logger = get_logger("medequip.rate_limit")

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


@lru_cache
def parse_networks(cidrs: tuple[str, ...]) -> tuple[Network, ...]:
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr.strip(), strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr}")
    return tuple(networks)


def is_trusted_proxy(ip_str: str, networks: tuple[Network, ...] | None = None) -> bool:
    if networks is None:
        networks = parse_networks(tuple(get_settings().trusted_proxy_cidrs))
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in network for network in networks)


def get_client_ip(request) -> str:
    """Rate limit key: the leftmost forwarded address from a trusted proxy, else the peer."""
    peer = get_remote_address(request)
    if not is_trusted_proxy(peer):
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    client_ip = forwarded.split(",")[0].strip()
    return client_ip or peer


limiter = Limiter(key_func=get_client_ip, enabled=get_settings().rate_limit_enabled)
