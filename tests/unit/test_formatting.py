"""Unit tests for display formatting."""
from __future__ import annotations

import pytest

from liquidation_tracker.formatting import (
    format_large_number,
    format_percentage,
    format_pnl,
    format_price,
)


class TestFormatPrice:
    def test_large(self) -> None:
        assert format_price(45000) == "45,000.00"

    def test_small(self) -> None:
        assert format_price(0.0001234) == "0.000123"

    @pytest.mark.parametrize("value", [None, float("nan")])
    def test_missing(self, value) -> None:
        assert format_price(value) == "N/A"


class TestFormatPercentage:
    def test_signs(self) -> None:
        assert format_percentage(5.2631) == "+5.26%"
        assert format_percentage(-66.6667) == "-66.67%"
        assert format_percentage(0) == "+0.00%"
        assert format_percentage(None) == "N/A"


class TestFormatLargeNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (2.5e12, "$2.50T"),
            (9.4e11, "$940.00B"),
            (1.5e6, "$1.50M"),
            (2500, "$2.50K"),
            (999, "$999"),
        ],
    )
    def test_suffixes(self, value: float, expected: str) -> None:
        assert format_large_number(value) == expected


class TestFormatPnL:
    def test_signs(self) -> None:
        assert format_pnl(1250) == "+$1,250.00"
        assert format_pnl(-1333.333) == "-$1,333.33"
