"""Risk alert evaluation — one alert per batch of critical positions."""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ..models import CriticalRiskAlert, PortfolioPosition, RiskLevel

logger = logging.getLogger(__name__)

ALERT_TITLE = "🚨 LIQUIDATION RISK"

AlertListener = Callable[[CriticalRiskAlert], None]


def alert_message(alert: CriticalRiskAlert) -> str:
    symbols = ", ".join(alert.symbols)
    return (
        f"{alert.count} position(s) critically close to liquidation!"
        + (f" ({symbols})" if symbols else "")
    )


class RiskAlertEvaluator:
    """Count critical open positions and emit a single alert for them."""

    def __init__(self) -> None:
        self._listeners: list[AlertListener] = []

    def subscribe(self, listener: AlertListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: AlertListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def evaluate(
        self, positions: Iterable[PortfolioPosition]
    ) -> Optional[CriticalRiskAlert]:
        critical = [
            p for p in positions
            if p.is_open and p.risk_level is RiskLevel.CRITICAL
        ]
        if not critical:
            return None

        alert = CriticalRiskAlert(
            count=len(critical),
            symbols=tuple(dict.fromkeys(p.symbol for p in critical)),
        )
        logger.warning("%d position(s) at critical liquidation risk", alert.count)

        for listener in list(self._listeners):
            try:
                listener(alert)
            except Exception as e:
                logger.error("Risk alert listener failed: %s", e)
        return alert
