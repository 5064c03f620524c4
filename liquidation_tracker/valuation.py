"""Pure valuation and risk-classification functions.

Nothing here reads a clock or touches I/O: identical inputs always give
identical outputs.
"""
from __future__ import annotations

import math
from typing import Union

from .errors import ValidationError
from .models import (
    CalculationResult,
    PnL,
    PortfolioPosition,
    Position,
    PositionType,
    ProfitLossProjection,
    RiskLevel,
)

PRICE_DECIMALS = 8

# Upper bounds (inclusive) of each live risk tier, in % distance to liquidation.
CRITICAL_DISTANCE = 5.0
HIGH_DISTANCE = 15.0
MEDIUM_DISTANCE = 30.0

# Upper bounds (inclusive) of the creation-time tiers, by leverage.
LOW_LEVERAGE = 5.0
MEDIUM_LEVERAGE = 15.0

QUICK_EXIT_PERCENTAGES = (-20, -10, -5, 5, 10, 20)

AnyPosition = Union[Position, PortfolioPosition]


def round_price(value: float) -> float:
    return round(value, PRICE_DECIMALS)


def liquidation_price(
    entry_price: float, leverage: float, position_type: PositionType
) -> float:
    """Price at which the margin is fully consumed.

    Long: ``entry * (1 - 1/leverage)``; short: ``entry * (1 + 1/leverage)``.
    The value is not rounded; see :func:`calculate`.
    """
    if leverage <= 1:
        raise ValidationError(f"Leverage must be greater than 1, got {leverage}")
    if entry_price <= 0:
        raise ValidationError(f"Entry price must be positive, got {entry_price}")

    if position_type is PositionType.LONG:
        return entry_price * (1 - 1 / leverage)
    return entry_price * (1 + 1 / leverage)


def calculate(position: Position) -> CalculationResult:
    """Entry-time figures for *position*, rounded for storage."""
    liq = liquidation_price(
        position.entry_price, position.leverage, position.position_type
    )
    return CalculationResult(
        liquidation_price=round_price(liq),
        margin_required=position.margin_used,
        risk_percentage=100 / position.leverage,
        profit_loss_ratio=position.leverage,
        position_size=position.position_size,
    )


def unrealized_pnl(position: AnyPosition, current_price: float) -> PnL:
    """Leverage-linear P&L at *current_price*.

    Losses are not clamped at the margin: past the liquidation price this
    reports more than ``margin_used`` lost.
    """
    price_change_pct = (
        (current_price - position.entry_price) / position.entry_price * 100
    )
    if position.position_type is PositionType.LONG:
        effective_pct = price_change_pct
    else:
        effective_pct = -price_change_pct
    leveraged_pct = effective_pct * position.leverage
    pnl = position.position_size * leveraged_pct / 100
    return PnL(pnl=pnl, pnl_percentage=leveraged_pct)


def distance_to_liquidation(
    position_type: PositionType, liq_price: float, current_price: float
) -> float:
    """Signed % move left before liquidation; negative once crossed."""
    if position_type is PositionType.LONG:
        return (current_price - liq_price) / current_price * 100
    return (liq_price - current_price) / current_price * 100


def risk_level_for_distance(distance_pct: float) -> RiskLevel:
    if distance_pct <= CRITICAL_DISTANCE:
        return RiskLevel.CRITICAL
    if distance_pct <= HIGH_DISTANCE:
        return RiskLevel.HIGH
    if distance_pct <= MEDIUM_DISTANCE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def risk_level(position: PortfolioPosition, current_price: float) -> RiskLevel:
    """Live tier from the unclamped distance to liquidation."""
    distance = distance_to_liquidation(
        position.position_type, position.liquidation_price, current_price
    )
    return risk_level_for_distance(distance)


def initial_risk_level(leverage: float) -> RiskLevel:
    """Creation-time tier, from leverage alone. Never CRITICAL."""
    if leverage <= LOW_LEVERAGE:
        return RiskLevel.LOW
    if leverage <= MEDIUM_LEVERAGE:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def is_liquidated(
    position_type: PositionType, liq_price: float, price: float
) -> bool:
    if position_type is PositionType.LONG:
        return price <= liq_price
    return price >= liq_price


def project_exit(
    position: AnyPosition, liq_price: float, exit_price: float
) -> ProfitLossProjection:
    """Profit/loss figures for closing *position* at *exit_price*."""
    if not math.isfinite(exit_price) or exit_price <= 0:
        raise ValidationError(
            f"Exit price must be a positive finite number, got {exit_price}"
        )

    result = unrealized_pnl(position, exit_price)
    margin = position.position_size / position.leverage
    return ProfitLossProjection(
        exit_price=exit_price,
        profit_loss=result.pnl,
        profit_loss_percentage=result.pnl_percentage,
        roi=result.pnl / margin * 100,
        total_return=position.position_size + result.pnl,
        liquidated=is_liquidated(position.position_type, liq_price, exit_price),
    )


def quick_exit_prices(entry_price: float) -> list[tuple[str, float]]:
    """Exit prices at fixed % moves from entry, e.g. ``("-5%", 47500.0)``."""
    return [
        (f"{pct:+d}%", round_price(entry_price * (1 + pct / 100)))
        for pct in QUICK_EXIT_PERCENTAGES
    ]


def leverage_risk_score(leverage: float) -> float:
    """0-100 gauge that grows 5 points per unit of leverage above 1x."""
    return min(max((leverage - 1) * 5, 0.0), 100.0)
