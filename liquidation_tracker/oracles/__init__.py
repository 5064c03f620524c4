"""Market data oracles."""
from .alternative_me import AlternativeMeOracle
from .cache import TickerCache

__all__ = ["AlternativeMeOracle", "TickerCache"]
