"""Unit tests for the alternative.me oracle — parsing, caching and failures."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from liquidation_tracker.config import MarketDataConfig
from liquidation_tracker.errors import PriceFetchError
from liquidation_tracker.oracles.alternative_me import AlternativeMeOracle
from liquidation_tracker.oracles.cache import TickerCache


class _Clock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


@pytest.fixture()
def clock() -> _Clock:
    return _Clock()


@pytest.fixture()
def oracle(clock: _Clock) -> AlternativeMeOracle:
    return AlternativeMeOracle(
        MarketDataConfig(ticker_url="https://ticker.example.com/v2/ticker/"),
        TickerCache(120, clock=clock),
    )


def _mock_session(status: int = 200, payload: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestFetchTicker:
    @pytest.mark.asyncio
    async def test_parses_and_ranks(self, oracle, sample_ticker_payload) -> None:
        session = _mock_session(payload=sample_ticker_payload)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                entries = await oracle.fetch_ticker()

        assert [e.symbol for e in entries] == ["BTC", "ETH", "SOL"]
        assert entries[0].price == pytest.approx(47500.0)
        assert entries[0].market_cap == pytest.approx(9.4e11)

    @pytest.mark.asyncio
    async def test_uses_cache_within_ttl(self, oracle, clock, sample_ticker_payload) -> None:
        session = _mock_session(payload=sample_ticker_payload)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session) as cs:
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                await oracle.fetch_ticker()
                clock.t += 60
                await oracle.fetch_ticker()
                assert cs.call_count == 1

                clock.t += 61
                await oracle.fetch_ticker()
                assert cs.call_count == 2

    @pytest.mark.asyncio
    async def test_http_error_without_cache_raises(self, oracle) -> None:
        session = _mock_session(status=500)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                with pytest.raises(PriceFetchError, match="HTTP 500"):
                    await oracle.fetch_ticker()

    @pytest.mark.asyncio
    async def test_falls_back_to_stale_cache(self, oracle, clock, sample_ticker_payload) -> None:
        good = _mock_session(payload=sample_ticker_payload)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=good):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                await oracle.fetch_ticker()

        clock.t += 500
        broken = AsyncMock()
        broken.get = MagicMock(side_effect=ConnectionError("down"))
        broken.__aenter__ = AsyncMock(return_value=broken)
        broken.__aexit__ = AsyncMock(return_value=None)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=broken):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                entries = await oracle.fetch_ticker()

        assert [e.symbol for e in entries] == ["BTC", "ETH", "SOL"]


class TestGetPrice:
    @pytest.mark.asyncio
    async def test_case_insensitive_lookup(self, oracle, sample_ticker_payload) -> None:
        session = _mock_session(payload=sample_ticker_payload)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                assert await oracle.get_price("eth") == pytest.approx(3100.0)
                assert await oracle.get_price("UNKNOWN") is None
                assert await oracle.get_price("BRK") is None

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self, oracle) -> None:
        session = AsyncMock()
        session.get = MagicMock(side_effect=ConnectionError("timeout"))
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=None)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                assert await oracle.get_price("BTC") is None


class TestSearch:
    @pytest.mark.asyncio
    async def test_matches_name_and_symbol(self, oracle, sample_ticker_payload) -> None:
        session = _mock_session(payload=sample_ticker_payload)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                assert [e.symbol for e in await oracle.search("sol")] == ["SOL"]
                assert [e.symbol for e in await oracle.search("ether")] == ["ETH"]
                assert [e.symbol for e in await oracle.search("", limit=2)] == ["BTC", "ETH"]

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, oracle) -> None:
        session = _mock_session(status=503)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session):
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                assert await oracle.search("btc") == []


class TestClearCache:
    @pytest.mark.asyncio
    async def test_forces_download_within_ttl(self, oracle, sample_ticker_payload) -> None:
        session = _mock_session(payload=sample_ticker_payload)
        with patch("liquidation_tracker.oracles.alternative_me.aiohttp.ClientSession", return_value=session) as cs:
            with patch("liquidation_tracker.oracles.alternative_me.aiohttp.TCPConnector"):
                await oracle.fetch_ticker()
                oracle.clear_cache()
                await oracle.fetch_ticker()
                assert cs.call_count == 2
