"""PortfolioPosition <-> flat record conversion for storage."""
from __future__ import annotations

import math
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .models import (
    CloseReason,
    PortfolioPosition,
    PositionStatus,
    PositionType,
    RiskLevel,
)
from .valuation import initial_risk_level, liquidation_price, round_price

_REQUIRED_FIELDS = ("id", "symbol", "entry_price", "leverage", "position_size")


def position_to_record(position: PortfolioPosition) -> dict[str, Any]:
    """Flatten *position* into JSON-compatible primitives."""
    record: dict[str, Any] = {}
    for key, value in asdict(position).items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = value.isoformat()
        record[key] = value
    record["margin_used"] = position.margin_used
    return record


def _parse_datetime(value: Any, default: datetime) -> datetime:
    if not value:
        return default
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return default
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def _float_or(value: Any, default: float) -> float:
    return default if value is None else float(value)


def position_from_record(
    record: dict[str, Any], *, now: datetime | None = None
) -> PortfolioPosition:
    """Rebuild a position from a stored record.

    Tracking fields that are missing or null in older records get defaults
    derived from the entry parameters.

    Raises:
        ValueError: a trade field is missing or malformed.
    """
    missing = [f for f in _REQUIRED_FIELDS if record.get(f) in (None, "")]
    if missing:
        raise ValueError(f"Position record missing fields: {', '.join(missing)}")

    now = now or datetime.now(timezone.utc)
    entry_price = float(record["entry_price"])
    leverage = float(record["leverage"])
    position_size = float(record["position_size"])
    if not math.isfinite(entry_price) or entry_price <= 0:
        raise ValueError(f"Position record has invalid entry_price: {entry_price}")
    if not math.isfinite(leverage) or leverage <= 1:
        raise ValueError(f"Position record has invalid leverage: {leverage}")
    if not math.isfinite(position_size) or position_size <= 0:
        raise ValueError(f"Position record has invalid position_size: {position_size}")

    position_type = PositionType(record.get("position_type") or PositionType.LONG.value)

    liq = record.get("liquidation_price")
    if liq is None:
        liq = round_price(liquidation_price(entry_price, leverage, position_type))

    risk = record.get("risk_level")
    close_reason = record.get("close_reason")
    added_at = _parse_datetime(record.get("added_at"), now)

    return PortfolioPosition(
        id=str(record["id"]),
        symbol=str(record["symbol"]).upper(),
        entry_price=entry_price,
        leverage=leverage,
        position_type=position_type,
        position_size=position_size,
        liquidation_price=float(liq),
        current_price=_float_or(record.get("current_price"), entry_price),
        unrealized_pnl=_float_or(record.get("unrealized_pnl"), 0.0),
        unrealized_pnl_percentage=_float_or(record.get("unrealized_pnl_percentage"), 0.0),
        risk_level=RiskLevel(risk) if risk else initial_risk_level(leverage),
        distance_to_liquidation=_float_or(
            record.get("distance_to_liquidation"), 100 / leverage
        ),
        last_updated=_parse_datetime(record.get("last_updated"), added_at),
        added_at=added_at,
        status=PositionStatus(record.get("status") or PositionStatus.OPEN.value),
        exit_price=_optional_float(record.get("exit_price")),
        exit_date=(
            _parse_datetime(record["exit_date"], now)
            if record.get("exit_date")
            else None
        ),
        realized_pnl=_optional_float(record.get("realized_pnl")),
        close_reason=CloseReason(close_reason) if close_reason else None,
        notes=record.get("notes"),
    )
