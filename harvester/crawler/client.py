"""
Realty mobile API client.

Thin requests wrapper that impersonates the mobile app and rotates proxies.
"""

import random
from collections.abc import Sequence
from urllib.parse import urlencode

import requests
from loguru import logger

from config.settings import RealtySettings
from harvester.crawler.types import OfferRaw, PriceEntryRaw
from harvester.exceptions import UpstreamError

client_log = logger.bind(module="RealtyAPI")


class RealtyClient:
    """
    Client for the search and card endpoints.

    One instance per worker; the session and the proxy pick are never shared.
    """

    def __init__(
        self,
        settings: RealtySettings,
        proxies: Sequence[str] = (),
        rng: random.Random | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Upstream settings (URLs, token, user agent, timeouts)
            proxies: Proxy pool; empty means direct connection
            rng: Random source for proxy rotation
        """
        self._settings = settings
        self._proxies = list(proxies)
        self._rng = rng or random.Random()
        self._session: requests.Session | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Fixed headers expected from the mobile app."""
        return {
            "User-Agent": self._settings.user_agent,
            "X-Authorization": self._settings.auth_token,
            "Accept-Encoding": "gzip",
        }

    async def start(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.headers)
            client_log.debug(f"RealtyClient started ({len(self._proxies)} proxies)")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def pick_proxy(self) -> str | None:
        """Random proxy from the pool, or None when the pool is empty."""
        if not self._proxies:
            return None
        return self._rng.choice(self._proxies)

    async def _get_json(self, url: str) -> dict:
        if self._session is None:
            await self.start()

        proxy = self.pick_proxy()
        resp = self._session.get(
            url,
            proxies={"http": proxy, "https": proxy} if proxy else None,
            timeout=(self._settings.connect_timeout, self._settings.request_timeout),
        )
        resp.raise_for_status()

        data = resp.json()
        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected response body: {type(data).__name__}")
        return data

    async def fetch_offers(self, url: str) -> list[OfferRaw]:
        """
        Run one search request.

        Args:
            url: Full search URL

        Returns:
            Offers from ``response.offers.items`` (may be empty)

        Raises:
            requests.RequestException: Transport or HTTP status error
            ValueError: Body is not JSON
            UpstreamError: Body is JSON but not an object
        """
        data = await self._get_json(url)
        response = data.get("response") or {}
        return (response.get("offers") or {}).get("items") or []

    async def fetch_price_history(self, offer_id: str) -> list[PriceEntryRaw]:
        """
        Fetch the price timeline of one offer from the card endpoint.

        Args:
            offer_id: Upstream offer ID

        Returns:
            Price entries, oldest first
        """
        url = f"{self._settings.card_url}?{urlencode({'id': offer_id})}"
        data = await self._get_json(url)
        response = data.get("response") or {}
        return (response.get("history") or {}).get("prices") or []
