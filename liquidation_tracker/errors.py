"""Error taxonomy for the tracker."""
from __future__ import annotations


class TrackerError(Exception):
    """Base class for every error raised by the tracker."""


class ValidationError(TrackerError):
    """User input failed a precondition (non-numeric, leverage <= 1, ...)."""


class DuplicateError(TrackerError):
    """A similar open position already exists in the portfolio."""


class NotFoundError(TrackerError):
    """No position with the requested id."""


class PositionClosedError(TrackerError):
    """The position is already closed and cannot change."""


class PriceFetchError(TrackerError):
    """Market data could not be fetched."""
