"""Notifier that writes to the application log."""
import logging

from ..models import Severity

logger = logging.getLogger(__name__)

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.CRITICAL: logging.CRITICAL,
}


class LogNotifier:
    """Emit every notification as a log record."""

    async def notify(self, severity: Severity, title: str, message: str) -> bool:
        logger.log(_LEVELS.get(severity, logging.INFO), "%s: %s", title, message)
        return True
