"""Price refresh orchestration — fetch, apply, alert."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..interfaces.price_source import PriceSource
from ..models import CriticalRiskAlert, Severity
from .alerts import ALERT_TITLE, RiskAlertEvaluator, alert_message
from .portfolio import PortfolioStore

logger = logging.getLogger(__name__)

NotifyFn = Callable[[Severity, str, str], Awaitable[None]]


@dataclass(frozen=True)
class RefreshOutcome:
    """What a single refresh did."""

    skipped: bool = False
    requested: tuple[str, ...] = ()
    updated_symbols: tuple[str, ...] = ()
    failed_symbols: tuple[str, ...] = ()
    updated_positions: int = 0
    alert: Optional[CriticalRiskAlert] = None

    @property
    def batch_failed(self) -> bool:
        """Every requested symbol failed."""
        return bool(self.requested) and not self.updated_symbols


class PriceRefresher:
    """Refresh open positions against a price source, on demand or on a timer.

    A refresh requested while one is in flight is dropped, not queued.
    """

    def __init__(
        self,
        store: PortfolioStore,
        price_source: PriceSource,
        evaluator: RiskAlertEvaluator,
        *,
        fetch_timeout: float = 10.0,
        interval: float = 120.0,
        notify: Optional[NotifyFn] = None,
    ) -> None:
        self._store = store
        self._price_source = price_source
        self._evaluator = evaluator
        self._fetch_timeout = fetch_timeout
        self._interval = interval
        self._notify = notify
        self._in_flight = False
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Single refresh
    # ------------------------------------------------------------------

    async def _fetch(self, symbol: str) -> Optional[float]:
        try:
            price = await asyncio.wait_for(
                self._price_source.get_price(symbol), timeout=self._fetch_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Price fetch for %s timed out", symbol)
            return None
        except Exception as e:
            logger.warning("Failed to update %s: %s", symbol, e)
            return None

        if price is None or price <= 0:
            logger.warning("No price available for %s", symbol)
            return None
        return float(price)

    async def _emit(self, severity: Severity, title: str, message: str) -> None:
        if self._notify is None:
            return
        try:
            await self._notify(severity, title, message)
        except Exception as e:
            logger.error("Refresh notification failed: %s", e)

    async def refresh(self) -> RefreshOutcome:
        """Fetch prices for all open symbols concurrently and apply them."""
        if self._in_flight:
            logger.debug("Refresh already in progress, skipping")
            return RefreshOutcome(skipped=True)

        symbols = self._store.open_symbols()
        if not symbols:
            return RefreshOutcome()

        self._in_flight = True
        try:
            results = await asyncio.gather(*(self._fetch(s) for s in symbols))
            prices = {s: p for s, p in zip(symbols, results) if p is not None}
            failed = tuple(s for s, p in zip(symbols, results) if p is None)
            updated_ids = self._store.update_prices(prices)
        finally:
            self._in_flight = False

        if not prices:
            logger.error("Price refresh failed for all %d symbol(s)", len(symbols))
            await self._emit(
                Severity.WARNING,
                "❌ Update Failed",
                "Could not fetch latest prices. Please try again.",
            )
            return RefreshOutcome(requested=tuple(symbols), failed_symbols=failed)

        alert = self._evaluator.evaluate(self._store.open_positions())
        if alert is not None:
            await self._emit(Severity.CRITICAL, ALERT_TITLE, alert_message(alert))

        logger.info(
            "Refreshed %d position(s): %d symbol(s) priced, %d failed",
            len(updated_ids),
            len(prices),
            len(failed),
        )
        return RefreshOutcome(
            requested=tuple(symbols),
            updated_symbols=tuple(prices),
            failed_symbols=failed,
            updated_positions=len(updated_ids),
            alert=alert,
        )

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _run_loop(self) -> None:
        logger.info("Starting price refresh loop (every %.0f seconds)", self._interval)
        while self._store.has_open_positions():
            try:
                await self.refresh()
            except Exception as e:
                logger.error("Error in refresh loop: %s", e)
            if not self._store.has_open_positions():
                break
            await asyncio.sleep(self._interval)
        logger.info("No open positions, price refresh loop stopped")

    def start(self, interval: Optional[float] = None) -> bool:
        """Start the periodic refresh task if there is anything to refresh.

        Returns True when a loop is running afterwards.
        """
        if interval:
            self._interval = interval
        if self.running:
            return True
        if not self._store.has_open_positions():
            return False
        self._task = asyncio.get_running_loop().create_task(self._run_loop())
        return True

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait(self) -> None:
        """Block until the refresh loop finishes on its own."""
        if self._task is not None:
            await self._task
