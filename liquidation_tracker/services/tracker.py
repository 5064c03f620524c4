"""Tracker orchestration — wires collaborators and presents outcomes."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from ..config import AppConfig
from ..errors import ValidationError
from ..formatting import format_percentage, format_pnl, format_price
from ..interfaces.notifier import Notifier
from ..interfaces.price_source import PriceSource
from ..interfaces.storage import PositionStorage
from ..models import (
    CalculationResult,
    CloseReason,
    PortfolioPosition,
    Position,
    ProfitLossProjection,
    Severity,
)
from ..notifications import EmailNotifier, LogNotifier, TelegramNotifier
from ..oracles import AlternativeMeOracle, TickerCache
from ..positions import create_position, parse_number, promote_to_portfolio_position
from ..storage import JsonFileStorage
from ..valuation import calculate, project_exit
from .alerts import RiskAlertEvaluator
from .portfolio import PortfolioStore, StoreResult
from .refresher import PriceRefresher, RefreshOutcome

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Tracker:
    """Portfolio tracker: builds collaborators from config and runs workflows."""

    def __init__(
        self,
        config: AppConfig,
        *,
        price_source: Optional[PriceSource] = None,
        storage: Optional[PositionStorage] = None,
        notifiers: Optional[Sequence[Notifier]] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config
        self._clock = clock

        if price_source is None:
            cache = TickerCache(config.market_data.cache_ttl_seconds)
            price_source = AlternativeMeOracle(config.market_data, cache)
        self._price_source = price_source

        if storage is None:
            storage = JsonFileStorage(config.storage.path)
        self.store = PortfolioStore(storage, clock=clock)
        self.store.load()

        # Build notifiers
        if notifiers is None:
            built: list[Notifier] = [LogNotifier()]
            if config.notifications.telegram.enabled:
                built.append(TelegramNotifier(config.notifications.telegram))
            if config.notifications.email.enabled:
                built.append(EmailNotifier(config.notifications.email))
            notifiers = built
        self._notifiers: list[Notifier] = list(notifiers)

        self.evaluator = RiskAlertEvaluator()
        self.refresher = PriceRefresher(
            self.store,
            self._price_source,
            self.evaluator,
            fetch_timeout=config.tracker.fetch_timeout_seconds,
            interval=config.tracker.refresh_interval_seconds,
            notify=self._notify,
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _notify(self, severity: Severity, title: str, message: str) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.notify(severity, title, message)
            except Exception as e:
                logger.error("Notifier %s failed: %s", type(notifier).__name__, e)

    # ------------------------------------------------------------------
    # Calculator
    # ------------------------------------------------------------------

    @staticmethod
    def calculate(
        symbol: str,
        entry_price: Any,
        leverage: Any,
        position_type: Any,
        position_size: Any,
    ) -> tuple[Position, CalculationResult]:
        """Validate input and compute entry-time figures.

        Raises:
            ValidationError: the input is rejected.
        """
        position = create_position(
            symbol, entry_price, leverage, position_type, position_size
        )
        return position, calculate(position)

    @staticmethod
    def project_exit(
        position: Position, result: CalculationResult, exit_price: float
    ) -> ProfitLossProjection:
        return project_exit(position, result.liquidation_price, exit_price)

    # ------------------------------------------------------------------
    # Portfolio workflows
    # ------------------------------------------------------------------

    async def add_position(
        self,
        symbol: str,
        entry_price: Any,
        leverage: Any,
        position_type: Any,
        position_size: Any,
    ) -> StoreResult:
        """Create a position from raw input and add it to the portfolio."""
        try:
            position, result = self.calculate(
                symbol, entry_price, leverage, position_type, position_size
            )
        except ValidationError as e:
            await self._notify(Severity.WARNING, "❌ Invalid Position", str(e))
            return StoreResult.failure(e)

        candidate = promote_to_portfolio_position(position, result, now=self._clock())
        outcome = self.store.add(candidate)
        if not outcome.ok:
            await self._notify(
                Severity.WARNING, "⚠️ Similar Position Exists", str(outcome.error)
            )
            return outcome

        await self._notify(
            Severity.INFO,
            "✅ Position Added",
            f"{position.symbol} {position.position_type.value.upper()} position "
            f"added to portfolio (liquidation ${format_price(result.liquidation_price)})",
        )
        return outcome

    async def close_position(
        self,
        position_id: str,
        exit_price: Any,
        close_reason: CloseReason = CloseReason.MANUAL,
        notes: str = "",
    ) -> StoreResult:
        try:
            price = parse_number("Exit price", exit_price)
        except ValidationError as error:
            await self._notify(Severity.WARNING, "❌ Invalid Exit Price", str(error))
            return StoreResult.failure(error)

        outcome = self.store.close(position_id, price, close_reason, notes)
        if not outcome.ok:
            await self._notify(Severity.WARNING, "❌ Close Failed", str(outcome.error))
            return outcome

        closed = outcome.position
        pnl = closed.realized_pnl or 0.0
        title = "🎉 Position Closed - Profit!" if pnl >= 0 else "📉 Position Closed - Loss"
        await self._notify(
            Severity.INFO, title, f"{closed.symbol} closed with {format_pnl(pnl)} P&L"
        )
        return outcome

    async def remove_position(self, position_id: str) -> StoreResult:
        outcome = self.store.remove(position_id)
        if not outcome.ok:
            await self._notify(Severity.WARNING, "❌ Remove Failed", str(outcome.error))
            return outcome

        await self._notify(
            Severity.INFO,
            "🗑️ Position Removed",
            f"{outcome.position.symbol} position removed from portfolio",
        )
        return outcome

    async def refresh(self) -> RefreshOutcome:
        """Manual refresh: bypass the ticker cache, then revalue open positions."""
        if isinstance(self._price_source, AlternativeMeOracle):
            self._price_source.clear_cache()
        return await self.refresher.refresh()

    async def run_continuous(self, interval_seconds: Optional[float] = None) -> None:
        """Refresh on a timer until no open positions remain."""
        if not self.refresher.start(interval_seconds):
            logger.info("No open positions to monitor")
            return
        try:
            await self.refresher.wait()
        finally:
            await self.refresher.stop()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def format_position(position: PortfolioPosition) -> str:
        header = (
            f"{position.id} · {position.symbol} {position.position_type.value.upper()} "
            f"{position.leverage:g}x · {position.status.value.upper()}"
        )
        if position.is_open:
            return (
                f"{header}\n"
                f"  Entry: ${format_price(position.entry_price)} · "
                f"Current: ${format_price(position.current_price)} · "
                f"Liquidation: ${format_price(position.liquidation_price)}\n"
                f"  Size: ${format_price(position.position_size)} · "
                f"Margin: ${format_price(position.margin_used)}\n"
                f"  P&L: {format_pnl(position.unrealized_pnl)} "
                f"({format_percentage(position.unrealized_pnl_percentage)}) · "
                f"Risk: {position.risk_level.value.upper()} · "
                f"Distance: {position.distance_to_liquidation:.2f}%"
            )
        reason = position.close_reason.value if position.close_reason else "manual"
        return (
            f"{header}\n"
            f"  Entry: ${format_price(position.entry_price)} · "
            f"Exit: ${format_price(position.exit_price)} ({reason})\n"
            f"  Realized P&L: {format_pnl(position.realized_pnl or 0.0)}"
            + (f"\n  Notes: {position.notes}" if position.notes else "")
        )

    def build_report(self) -> str:
        stats = self.store.stats()
        lines = [
            "📋 Portfolio Report",
            "",
            f"Open positions: {stats.open_count} · Closed: {stats.closed_count}",
            f"Total value: ${format_price(stats.total_value)} · "
            f"Margin: ${format_price(stats.total_margin)}",
            f"Unrealized P&L: {format_pnl(stats.total_unrealized_pnl)} "
            f"({stats.profitable_positions} up / {stats.losing_positions} down)",
            f"Critical: {stats.critical_positions} · High risk: {stats.high_risk_positions}",
            f"Realized P&L: {format_pnl(stats.total_realized_pnl)} · "
            f"Win rate: {stats.win_rate:.1f}%",
        ]
        positions = self.store.positions
        if positions:
            lines.append("")
            lines.extend(self.format_position(p) for p in positions)
        else:
            lines.extend(["", "No positions in portfolio."])
        lines.extend(["", f"{self._clock().strftime('%Y-%m-%d %H:%M:%S')} UTC"])
        return "\n".join(lines)

    async def generate_report(self) -> str:
        """Build the portfolio report and send it to the notifiers."""
        report = self.build_report()
        await self._notify(Severity.INFO, "📋 Portfolio Report", report)
        logger.info("Portfolio report sent")
        return report
