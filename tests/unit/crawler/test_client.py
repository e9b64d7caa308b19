"""
Unit tests for harvester/crawler/client.py
"""

import asyncio
import random

import pytest
import requests

from config.settings import RealtySettings
from harvester.crawler.client import RealtyClient
from harvester.exceptions import UpstreamError


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, body, status_code=200):
        self._body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._body


class FakeSession:
    """Records calls and returns a canned response."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response

    def close(self):
        pass


@pytest.fixture
def realty_settings() -> RealtySettings:
    return RealtySettings(
        auth_token="secret",
        card_url="https://api.example.net/1.0/cardWithViews.json",
    )


def make_client(realty_settings, body, status_code=200, proxies=()):
    client = RealtyClient(realty_settings, proxies=proxies, rng=random.Random(0))
    client._session = FakeSession(FakeResponse(body, status_code))
    return client


# ============================================================
# Headers and proxies
# ============================================================


class TestClientSetup:
    """Tests for headers and proxy rotation."""

    def test_headers(self, realty_settings):
        headers = RealtyClient(realty_settings).headers
        assert headers["X-Authorization"] == "secret"
        assert headers["Accept-Encoding"] == "gzip"
        assert headers["User-Agent"] == realty_settings.user_agent

    def test_no_proxies(self, realty_settings):
        assert RealtyClient(realty_settings).pick_proxy() is None

    def test_proxy_from_pool(self, realty_settings):
        pool = ["http://p1:8080", "http://p2:8080"]
        client = RealtyClient(realty_settings, proxies=pool, rng=random.Random(0))
        assert {client.pick_proxy() for _ in range(20)} <= set(pool)

    def test_proxy_passed_to_request(self, realty_settings):
        client = make_client(realty_settings, {"response": {}}, proxies=["http://p1:8080"])
        asyncio.run(client.fetch_offers("https://api.example.net/search"))

        _, kwargs = client._session.calls[0]
        assert kwargs["proxies"] == {"http": "http://p1:8080", "https": "http://p1:8080"}
        assert kwargs["timeout"] == (realty_settings.connect_timeout, realty_settings.request_timeout)


# ============================================================
# fetch_offers / fetch_price_history
# ============================================================


class TestFetch:
    """Tests for response parsing."""

    def test_offers(self, realty_settings):
        body = {"response": {"offers": {"items": [{"offerId": "1"}, {"offerId": "2"}]}}}
        client = make_client(realty_settings, body)
        offers = asyncio.run(client.fetch_offers("https://api.example.net/search"))
        assert [o["offerId"] for o in offers] == ["1", "2"]

    def test_empty_response(self, realty_settings):
        client = make_client(realty_settings, {"response": {"offers": {}}})
        assert asyncio.run(client.fetch_offers("https://api.example.net/search")) == []

    def test_non_object_body(self, realty_settings):
        client = make_client(realty_settings, ["unexpected"])
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_offers("https://api.example.net/search"))

    def test_http_error(self, realty_settings):
        client = make_client(realty_settings, {}, status_code=403)
        with pytest.raises(requests.HTTPError):
            asyncio.run(client.fetch_offers("https://api.example.net/search"))

    def test_price_history(self, realty_settings):
        body = {"response": {"history": {"prices": [{"value": 1}, {"value": 2}]}}}
        client = make_client(realty_settings, body)
        prices = asyncio.run(client.fetch_price_history("42"))

        url, _ = client._session.calls[0]
        assert url == "https://api.example.net/1.0/cardWithViews.json?id=42"
        assert prices == [{"value": 1}, {"value": 2}]
