"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pytest

from liquidation_tracker.config import (
    AppConfig,
    EmailConfig,
    MarketDataConfig,
    NotificationsConfig,
    RefreshConfig,
    StorageConfig,
    TelegramConfig,
)
from liquidation_tracker.models import PortfolioPosition, PositionType
from liquidation_tracker.positions import create_position, promote_to_portfolio_position
from liquidation_tracker.valuation import calculate

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class MemoryStorage:
    """In-memory PositionStorage."""

    def __init__(self, records: Optional[list[dict[str, Any]]] = None) -> None:
        self.records: list[dict[str, Any]] = list(records or [])
        self.saves = 0

    def load_positions(self) -> list[dict[str, Any]]:
        return list(self.records)

    def save_positions(self, records: list[dict[str, Any]]) -> None:
        self.records = list(records)
        self.saves += 1


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_position(
    symbol: str = "BTC",
    entry_price: float = 50000.0,
    leverage: float = 10.0,
    position_type: PositionType = PositionType.LONG,
    position_size: float = 1000.0,
    position_id: Optional[str] = None,
    now: datetime = FIXED_NOW,
) -> PortfolioPosition:
    position = create_position(symbol, entry_price, leverage, position_type, position_size)
    return promote_to_portfolio_position(
        position, calculate(position), now=now, position_id=position_id
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def btc_long() -> PortfolioPosition:
    return make_position(position_id="pos_btc")


@pytest.fixture()
def eth_short() -> PortfolioPosition:
    return make_position(
        symbol="ETH",
        entry_price=3000.0,
        leverage=20.0,
        position_type=PositionType.SHORT,
        position_size=2000.0,
        position_id="pos_eth",
    )


@pytest.fixture()
def sample_app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        tracker=RefreshConfig(refresh_interval_seconds=60, fetch_timeout_seconds=2),
        market_data=MarketDataConfig(
            ticker_url="https://ticker.example.com/v2/ticker/",
            cache_ttl_seconds=120,
            request_timeout_seconds=5,
        ),
        storage=StorageConfig(path=str(tmp_path / "portfolio.json")),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    tracker:
      refresh_interval_seconds: 60
      fetch_timeout_seconds: 5
    market_data:
      ticker_url: "https://ticker.example.com/v2/ticker/"
      cache_ttl_seconds: 90
      request_timeout_seconds: 20
    storage:
      path: "data/portfolio.json"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample market data
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_ticker_payload() -> dict:
    return {
        "data": {
            "1027": {
                "id": 1027,
                "name": "Ethereum",
                "symbol": "ETH",
                "rank": 2,
                "quotes": {"USD": {"price": 3100.0, "volume_24h": 1.5e10,
                                   "market_cap": 3.7e11,
                                   "percentage_change_24h": 1.2}},
            },
            "1": {
                "id": 1,
                "name": "Bitcoin",
                "symbol": "BTC",
                "rank": 1,
                "quotes": {"USD": {"price": 47500.0, "volume_24h": 3.0e10,
                                   "market_cap": 9.4e11,
                                   "percentage_change_24h": -2.5}},
            },
            "5426": {
                "id": 5426,
                "name": "Solana",
                "symbol": "SOL",
                "rank": 5,
                "quotes": {"USD": {"price": 150.0}},
            },
            "9999": {
                "id": 9999,
                "name": "Broken",
                "symbol": "BRK",
                "rank": 4,
                "quotes": {},
            },
        }
    }


@pytest.fixture()
def position_factory():
    return make_position
