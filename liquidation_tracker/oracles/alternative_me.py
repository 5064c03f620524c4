"""alternative.me ticker price oracle."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import MarketDataConfig
from ..errors import PriceFetchError
from ..models import TickerEntry
from .cache import TickerCache

logger = logging.getLogger(__name__)

_UNRANKED = 999999


def _parse_entry(item: dict[str, Any]) -> TickerEntry | None:
    """Build a ticker entry; ``None`` when the item has no usable USD quote."""
    usd = (item.get("quotes") or {}).get("USD")
    if not usd or usd.get("price") is None or not item.get("symbol"):
        return None
    return TickerEntry(
        symbol=str(item["symbol"]).upper(),
        name=str(item.get("name", "")),
        rank=int(item.get("rank") or _UNRANKED),
        price=float(usd["price"]),
        volume_24h=usd.get("volume_24h"),
        market_cap=usd.get("market_cap"),
        percentage_change_24h=usd.get("percentage_change_24h"),
    )


class AlternativeMeOracle:
    """Fetch USD prices from the alternative.me public ticker."""

    def __init__(self, config: MarketDataConfig, cache: TickerCache) -> None:
        self.ticker_url = config.ticker_url
        self.request_timeout = config.request_timeout_seconds
        self._cache = cache
        self._lock = asyncio.Lock()

    async def _download(self) -> list[TickerEntry]:
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(self.ticker_url, timeout=timeout) as response:
                if response.status != 200:
                    raise PriceFetchError(f"HTTP {response.status}")
                data = await response.json()

        raw = (data or {}).get("data") or {}
        items = raw.values() if isinstance(raw, dict) else raw
        entries = [e for e in (_parse_entry(item) for item in items) if e]
        entries.sort(key=lambda e: e.rank)
        return entries

    async def fetch_ticker(self) -> list[TickerEntry]:
        """Return the ranked ticker, from cache while it is fresh.

        Raises:
            PriceFetchError: the download failed and nothing is cached.
        """
        cached = self._cache.get()
        if cached is not None:
            return cached

        async with self._lock:
            # Another caller may have refilled the cache while we waited.
            cached = self._cache.get()
            if cached is not None:
                return cached

            try:
                entries = await self._download()
            except Exception as e:
                stale = self._cache.get_stale()
                if stale is not None:
                    logger.warning("Ticker fetch failed (%s), using stale cached data", e)
                    return stale
                logger.error("Error fetching ticker from %s: %s", self.ticker_url, e)
                if isinstance(e, PriceFetchError):
                    raise
                raise PriceFetchError(str(e)) from e

            self._cache.set(entries)
            logger.debug("Fetched %d ticker entries", len(entries))
            return entries

    async def get_price(self, symbol: str) -> float | None:
        """Current USD price for *symbol*, or ``None`` if unavailable."""
        try:
            entries = await self.fetch_ticker()
        except PriceFetchError:
            return None

        wanted = symbol.strip().upper()
        for entry in entries:
            if entry.symbol == wanted:
                return entry.price
        logger.debug("Symbol %s not found in ticker", wanted)
        return None

    async def search(self, query: str, limit: int = 50) -> list[TickerEntry]:
        """Coins whose name or symbol contains *query* (case-insensitive)."""
        try:
            entries = await self.fetch_ticker()
        except PriceFetchError:
            return []

        needle = query.strip().lower()
        if not needle:
            return entries[:limit]
        matches = [
            e for e in entries
            if needle in e.name.lower() or needle in e.symbol.lower()
        ]
        return matches[:limit]

    def clear_cache(self) -> None:
        self._cache.clear()
