"""Service modules"""
from .alerts import RiskAlertEvaluator
from .portfolio import PortfolioStore, StoreResult
from .refresher import PriceRefresher, RefreshOutcome
from .tracker import Tracker

__all__ = [
    "PortfolioStore",
    "PriceRefresher",
    "RefreshOutcome",
    "RiskAlertEvaluator",
    "StoreResult",
    "Tracker",
]
