"""Price source protocol — market data abstraction."""
from typing import Optional, Protocol


class PriceSource(Protocol):
    """Abstract interface for current USD prices.

    ``None`` means the price is unavailable, whatever the cause.
    """

    async def get_price(self, symbol: str) -> Optional[float]: ...
