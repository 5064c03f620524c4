"""Portfolio store — owns the tracked positions and their transitions."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping, Optional

from ..errors import (
    DuplicateError,
    NotFoundError,
    PositionClosedError,
    TrackerError,
    ValidationError,
)
from ..interfaces.storage import PositionStorage
from ..models import (
    CloseReason,
    PortfolioPosition,
    PortfolioStats,
    PositionStatus,
    RiskLevel,
)
from ..positions import is_duplicate
from ..serialization import position_from_record, position_to_record
from ..valuation import distance_to_liquidation, risk_level_for_distance, unrealized_pnl

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a store mutation; ``error`` is set when ``ok`` is False."""

    ok: bool
    position: Optional[PortfolioPosition] = None
    error: Optional[TrackerError] = None

    @classmethod
    def success(cls, position: PortfolioPosition) -> "StoreResult":
        return cls(ok=True, position=position)

    @classmethod
    def failure(
        cls, error: TrackerError, position: Optional[PortfolioPosition] = None
    ) -> "StoreResult":
        return cls(ok=False, position=position, error=error)


def compute_stats(positions: Iterable[PortfolioPosition]) -> PortfolioStats:
    """Aggregate open exposure and closed-trade performance."""
    positions = list(positions)
    open_positions = [p for p in positions if p.is_open]
    closed = [p for p in positions if not p.is_open]
    realized = [p.realized_pnl or 0.0 for p in closed]
    winners = sum(1 for pnl in realized if pnl > 0)

    return PortfolioStats(
        open_count=len(open_positions),
        closed_count=len(closed),
        total_value=sum(p.position_size for p in open_positions),
        total_unrealized_pnl=sum(p.unrealized_pnl for p in open_positions),
        total_margin=sum(p.margin_used for p in open_positions),
        critical_positions=sum(
            1 for p in open_positions if p.risk_level is RiskLevel.CRITICAL
        ),
        high_risk_positions=sum(
            1 for p in open_positions if p.risk_level is RiskLevel.HIGH
        ),
        profitable_positions=sum(1 for p in open_positions if p.unrealized_pnl > 0),
        losing_positions=sum(1 for p in open_positions if p.unrealized_pnl < 0),
        total_realized_pnl=sum(realized),
        win_rate=(winners / len(closed) * 100) if closed else 0.0,
    )


class PortfolioStore:
    """Ordered collection of positions, most recent first.

    Every mutation is persisted through *storage* and reported as a
    :class:`StoreResult`; errors never escape as exceptions.
    """

    def __init__(
        self,
        storage: PositionStorage,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._positions: list[PortfolioPosition] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def positions(self) -> tuple[PortfolioPosition, ...]:
        return tuple(self._positions)

    def get(self, position_id: str) -> Optional[PortfolioPosition]:
        for position in self._positions:
            if position.id == position_id:
                return position
        return None

    def open_positions(self) -> list[PortfolioPosition]:
        return [p for p in self._positions if p.is_open]

    def closed_positions(self) -> list[PortfolioPosition]:
        return [p for p in self._positions if not p.is_open]

    def has_open_positions(self) -> bool:
        return any(p.is_open for p in self._positions)

    def open_symbols(self) -> list[str]:
        """Distinct symbols across open positions, in first-seen order."""
        return list(dict.fromkeys(p.symbol for p in self._positions if p.is_open))

    def stats(self) -> PortfolioStats:
        return compute_stats(self._positions)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> int:
        """Replace the collection with what storage holds.

        Unreadable records are skipped. Returns the number loaded.
        """
        try:
            records = self._storage.load_positions()
        except Exception as e:
            logger.error("Failed to load portfolio: %s", e)
            records = []

        loaded: list[PortfolioPosition] = []
        for record in records:
            try:
                loaded.append(position_from_record(record, now=self._clock()))
            except (ValueError, TypeError, ArithmeticError, TrackerError) as e:
                logger.warning("Skipping unreadable position record: %s", e)

        self._positions = loaded
        logger.info("Loaded %d position(s) from storage", len(loaded))
        return len(loaded)

    def _persist(self) -> None:
        records = [position_to_record(p) for p in self._positions]
        try:
            self._storage.save_positions(records)
        except OSError as e:
            logger.error("Failed to save portfolio: %s", e)

    def _index_of(self, position_id: str) -> int:
        for i, position in enumerate(self._positions):
            if position.id == position_id:
                return i
        return -1

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def add(self, candidate: PortfolioPosition) -> StoreResult:
        """Prepend *candidate* unless a similar open position exists."""
        for existing in self._positions:
            if is_duplicate(candidate, existing):
                return StoreResult.failure(
                    DuplicateError(
                        f"A similar {candidate.symbol} {candidate.position_type.value} "
                        f"position already exists ({existing.id})"
                    ),
                    position=existing,
                )
        if self._index_of(candidate.id) >= 0:
            return StoreResult.failure(
                DuplicateError(f"Position id {candidate.id} already in portfolio")
            )

        self._positions.insert(0, candidate)
        self._persist()
        logger.info(
            "Added %s %s %.2fx position %s",
            candidate.symbol,
            candidate.position_type.value,
            candidate.leverage,
            candidate.id,
        )
        return StoreResult.success(candidate)

    def update_prices(self, prices: Mapping[str, float]) -> list[str]:
        """Revalue open positions that have an entry in *prices*.

        Closed positions and positions without a price pass through
        unchanged. Returns the ids of the positions updated.
        """
        if not prices:
            return []

        now = self._clock()
        updated_ids: list[str] = []
        refreshed: list[PortfolioPosition] = []

        for position in self._positions:
            price = prices.get(position.symbol)
            if not position.is_open or price is None or price <= 0:
                refreshed.append(position)
                continue

            pnl = unrealized_pnl(position, price)
            distance = distance_to_liquidation(
                position.position_type, position.liquidation_price, price
            )
            refreshed.append(
                replace(
                    position,
                    current_price=price,
                    unrealized_pnl=pnl.pnl,
                    unrealized_pnl_percentage=pnl.pnl_percentage,
                    risk_level=risk_level_for_distance(distance),
                    distance_to_liquidation=max(0.0, distance),
                    last_updated=now,
                )
            )
            updated_ids.append(position.id)

        self._positions = refreshed
        if updated_ids:
            self._persist()
        return updated_ids

    def close(
        self,
        position_id: str,
        exit_price: float,
        close_reason: CloseReason = CloseReason.MANUAL,
        notes: str = "",
    ) -> StoreResult:
        """Close an open position at *exit_price*, freezing its realized P&L."""
        index = self._index_of(position_id)
        if index < 0:
            return StoreResult.failure(NotFoundError(f"Position {position_id} not found"))

        position = self._positions[index]
        if not position.is_open:
            return StoreResult.failure(
                PositionClosedError(f"Position {position_id} is already closed"),
                position=position,
            )
        if exit_price is None or not math.isfinite(exit_price) or exit_price <= 0:
            return StoreResult.failure(
                ValidationError(
                    f"Exit price must be a positive finite number, got {exit_price}"
                ),
                position=position,
            )

        now = self._clock()
        closed = replace(
            position,
            status=PositionStatus.CLOSED,
            exit_price=exit_price,
            exit_date=now,
            realized_pnl=unrealized_pnl(position, exit_price).pnl,
            close_reason=close_reason,
            notes=notes,
            last_updated=now,
        )
        self._positions[index] = closed
        self._persist()
        logger.info(
            "Closed %s at %s (%s), realized P&L %.2f",
            position_id,
            exit_price,
            close_reason.value,
            closed.realized_pnl,
        )
        return StoreResult.success(closed)

    def remove(self, position_id: str) -> StoreResult:
        """Delete a position whatever its status."""
        index = self._index_of(position_id)
        if index < 0:
            return StoreResult.failure(NotFoundError(f"Position {position_id} not found"))

        removed = self._positions.pop(index)
        self._persist()
        logger.info("Removed position %s (%s)", position_id, removed.symbol)
        return StoreResult.success(removed)
