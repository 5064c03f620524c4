"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefreshConfig:
    refresh_interval_seconds: float = 120.0
    fetch_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class MarketDataConfig:
    ticker_url: str = "https://api.alternative.me/v2/ticker/"
    cache_ttl_seconds: float = 120.0
    request_timeout_seconds: float = 15.0


@dataclass(frozen=True)
class StorageConfig:
    path: str = "portfolio.json"


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    tracker: RefreshConfig = field(default_factory=RefreshConfig)
    market_data: MarketDataConfig = field(default_factory=MarketDataConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_tracker(raw: dict[str, Any]) -> RefreshConfig:
    return RefreshConfig(
        refresh_interval_seconds=float(raw.get("refresh_interval_seconds", 120.0)),
        fetch_timeout_seconds=float(raw.get("fetch_timeout_seconds", 10.0)),
    )


def _build_market_data(raw: dict[str, Any]) -> MarketDataConfig:
    return MarketDataConfig(
        ticker_url=raw.get("ticker_url", MarketDataConfig.ticker_url),
        cache_ttl_seconds=float(raw.get("cache_ttl_seconds", 120.0)),
        request_timeout_seconds=float(raw.get("request_timeout_seconds", 15.0)),
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(path=str(raw.get("path", StorageConfig.path)))


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram") or {}
    em = raw.get("email") or {}
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        tracker=_build_tracker(raw.get("tracker") or {}),
        market_data=_build_market_data(raw.get("market_data") or {}),
        storage=_build_storage(raw.get("storage") or {}),
        notifications=_build_notifications(raw.get("notifications") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.tracker.refresh_interval_seconds <= 0:
        raise ValueError("tracker.refresh_interval_seconds must be positive")
    if cfg.tracker.fetch_timeout_seconds <= 0:
        raise ValueError("tracker.fetch_timeout_seconds must be positive")
    if not cfg.market_data.ticker_url:
        raise ValueError("market_data.ticker_url must not be empty")
    if cfg.market_data.cache_ttl_seconds <= 0:
        raise ValueError("market_data.cache_ttl_seconds must be positive")
    if cfg.market_data.request_timeout_seconds <= 0:
        raise ValueError("market_data.request_timeout_seconds must be positive")
    if not cfg.storage.path:
        raise ValueError("storage.path must not be empty")
