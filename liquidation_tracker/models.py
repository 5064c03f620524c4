"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PositionType(str, Enum):
    LONG = "long"
    SHORT = "short"


class PositionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CloseReason(str, Enum):
    MANUAL = "manual"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    LIQUIDATED = "liquidated"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Position:
    """Entry parameters of a leveraged trade."""

    symbol: str
    entry_price: float
    leverage: float
    position_type: PositionType
    position_size: float

    @property
    def margin_used(self) -> float:
        return self.position_size / self.leverage


@dataclass(frozen=True)
class CalculationResult:
    """Derived figures for a position at entry time."""

    liquidation_price: float
    margin_required: float
    risk_percentage: float
    profit_loss_ratio: float
    position_size: float


@dataclass(frozen=True)
class PnL:
    pnl: float
    pnl_percentage: float


@dataclass(frozen=True)
class PortfolioPosition:
    """A tracked position and its lifecycle state.

    Transitions (price refresh, close) produce a new record through
    ``dataclasses.replace``; ``liquidation_price`` and ``added_at`` are never
    changed after creation.
    """

    id: str
    symbol: str
    entry_price: float
    leverage: float
    position_type: PositionType
    position_size: float
    liquidation_price: float
    current_price: float
    unrealized_pnl: float
    unrealized_pnl_percentage: float
    risk_level: RiskLevel
    distance_to_liquidation: float
    last_updated: datetime
    added_at: datetime
    status: PositionStatus = PositionStatus.OPEN
    exit_price: float | None = None
    exit_date: datetime | None = None
    realized_pnl: float | None = None
    close_reason: CloseReason | None = None
    notes: str | None = None

    @property
    def margin_used(self) -> float:
        return self.position_size / self.leverage

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN


@dataclass(frozen=True)
class ProfitLossProjection:
    """Outcome of exiting a position at a hypothetical price."""

    exit_price: float
    profit_loss: float
    profit_loss_percentage: float
    roi: float
    total_return: float
    liquidated: bool


@dataclass(frozen=True)
class PortfolioStats:
    open_count: int = 0
    closed_count: int = 0
    total_value: float = 0.0
    total_unrealized_pnl: float = 0.0
    total_margin: float = 0.0
    critical_positions: int = 0
    high_risk_positions: int = 0
    profitable_positions: int = 0
    losing_positions: int = 0
    total_realized_pnl: float = 0.0
    win_rate: float = 0.0


@dataclass(frozen=True)
class CriticalRiskAlert:
    """One alert per refresh batch, however many positions are critical."""

    count: int
    symbols: tuple[str, ...] = ()


@dataclass(frozen=True)
class TickerEntry:
    """Single coin from the market-data ticker."""

    symbol: str
    name: str
    rank: int
    price: float
    volume_24h: float | None = None
    market_cap: float | None = None
    percentage_change_24h: float | None = None
