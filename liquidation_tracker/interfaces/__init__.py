"""Protocol interfaces for the liquidation tracker."""
from .notifier import Notifier
from .price_source import PriceSource
from .storage import PositionStorage

__all__ = ["Notifier", "PriceSource", "PositionStorage"]
