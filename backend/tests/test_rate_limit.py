"""Tests for rate limit client IP resolution."""

from unittest.mock import MagicMock

from app.rate_limit import get_client_ip, is_trusted_proxy, parse_networks


def _request(peer: str, forwarded: str | None = None):
    request = MagicMock()
    request.client.host = peer
    request.headers = {"x-forwarded-for": forwarded} if forwarded else {}
    return request


def test_direct_connection_uses_peer():
    assert get_client_ip(_request("203.0.113.9")) == "203.0.113.9"


def test_trusted_proxy_uses_forwarded_client():
    request = _request("10.1.2.3", "198.51.100.7, 10.1.2.3")
    assert get_client_ip(request) == "198.51.100.7"


def test_untrusted_peer_cannot_spoof():
    request = _request("203.0.113.9", "198.51.100.7")
    assert get_client_ip(request) == "203.0.113.9"


def test_missing_forwarded_header_uses_peer():
    assert get_client_ip(_request("10.1.2.3")) == "10.1.2.3"


def test_custom_trusted_networks():
    networks = parse_networks(("203.0.113.0/24",))

    assert is_trusted_proxy("203.0.113.9", networks)
    assert not is_trusted_proxy("10.1.2.3", networks)


def test_invalid_cidrs_are_skipped():
    networks = parse_networks(("not-a-cidr", "198.51.100.0/24"))

    assert len(networks) == 1
    assert is_trusted_proxy("198.51.100.20", networks)
    assert not is_trusted_proxy("garbage", networks)
