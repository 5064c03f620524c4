"""Position factory — validates raw input and builds tracked positions."""
from __future__ import annotations

import math
import uuid
from datetime import datetime
from typing import Any

from .errors import ValidationError
from .models import (
    CalculationResult,
    PortfolioPosition,
    Position,
    PositionStatus,
    PositionType,
)
from .valuation import initial_risk_level

DUPLICATE_PRICE_TOLERANCE = 0.01


def parse_number(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    return number


def parse_position_type(value: PositionType | str) -> PositionType:
    if isinstance(value, PositionType):
        return value
    try:
        return PositionType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Position type must be 'long' or 'short', got {value!r}"
        ) from None


def create_position(
    symbol: str,
    entry_price: Any,
    leverage: Any,
    position_type: PositionType | str,
    position_size: Any,
) -> Position:
    """Validate user input and build a :class:`Position`.

    Raises:
        ValidationError: empty symbol, non-numeric values, ``entry_price <= 0``,
            ``leverage <= 1`` or ``position_size <= 0``.
    """
    symbol = (symbol or "").strip().upper()
    if not symbol:
        raise ValidationError("Symbol must not be empty")

    entry = parse_number("Entry price", entry_price)
    lev = parse_number("Leverage", leverage)
    size = parse_number("Position size", position_size)

    if entry <= 0:
        raise ValidationError(f"Entry price must be positive, got {entry}")
    if lev <= 1:
        raise ValidationError(f"Leverage must be greater than 1, got {lev}")
    if size <= 0:
        raise ValidationError(f"Position size must be positive, got {size}")

    return Position(
        symbol=symbol,
        entry_price=entry,
        leverage=lev,
        position_type=parse_position_type(position_type),
        position_size=size,
    )


def new_position_id() -> str:
    return f"pos_{uuid.uuid4().hex[:16]}"


def promote_to_portfolio_position(
    position: Position,
    calculation: CalculationResult,
    *,
    now: datetime,
    position_id: str | None = None,
) -> PortfolioPosition:
    """Start tracking *position* as an open portfolio entry."""
    return PortfolioPosition(
        id=position_id or new_position_id(),
        symbol=position.symbol,
        entry_price=position.entry_price,
        leverage=position.leverage,
        position_type=position.position_type,
        position_size=position.position_size,
        liquidation_price=calculation.liquidation_price,
        current_price=position.entry_price,
        unrealized_pnl=0.0,
        unrealized_pnl_percentage=0.0,
        risk_level=initial_risk_level(position.leverage),
        distance_to_liquidation=100 / position.leverage,
        last_updated=now,
        added_at=now,
        status=PositionStatus.OPEN,
    )


def is_duplicate(candidate: PortfolioPosition, existing: PortfolioPosition) -> bool:
    """True when *existing* is an open position matching *candidate*."""
    return (
        existing.is_open
        and existing.symbol == candidate.symbol
        and existing.position_type is candidate.position_type
        and existing.leverage == candidate.leverage
        and abs(existing.entry_price - candidate.entry_price)
        < DUPLICATE_PRICE_TOLERANCE
    )
