"""Storage protocol — persisted position records."""
from typing import Any, Protocol


class PositionStorage(Protocol):
    """Abstract interface for loading and saving serialized positions."""

    def load_positions(self) -> list[dict[str, Any]]: ...

    def save_positions(self, records: list[dict[str, Any]]) -> None: ...
