"""Tests for client address resolution."""
from unittest.mock import Mock

import pytest

from elections.core import config
from elections.core.rate_limit import get_client_ip


def _request(peer, forwarded=None):
    headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    return Mock(client=Mock(host=peer), headers=headers)


@pytest.mark.unit
class TestGetClientIp:

    @pytest.fixture(autouse=True)
    def proxies(self, monkeypatch):
        monkeypatch.setattr(config.settings, "TRUSTED_PROXIES", ["10.0.0.1", "10.0.0.2"])

    def test_direct_connection(self):
        assert get_client_ip(_request("203.0.113.5")) == "203.0.113.5"

    def test_header_from_untrusted_peer_ignored(self):
        assert get_client_ip(_request("203.0.113.5", "198.51.100.9")) == "203.0.113.5"

    def test_header_from_trusted_proxy_used(self):
        assert get_client_ip(_request("10.0.0.1", "198.51.100.9")) == "198.51.100.9"

    def test_client_supplied_hops_skipped(self):
        # The client prepended a fake address; the proxy appended the real one
        assert get_client_ip(_request("10.0.0.1", "1.2.3.4, 198.51.100.9")) == "198.51.100.9"

    def test_chained_trusted_proxies(self):
        assert get_client_ip(_request("10.0.0.1", "198.51.100.9, 10.0.0.2")) == "198.51.100.9"

    def test_only_proxies_in_header(self):
        assert get_client_ip(_request("10.0.0.1", "10.0.0.2")) == "10.0.0.1"
