"""Notifier protocol — notification channel abstraction."""
from typing import Protocol

from ..models import Severity


class Notifier(Protocol):
    """Abstract interface for delivering notifications."""

    async def notify(self, severity: Severity, title: str, message: str) -> bool: ...
