"""Liquidation price calculator and leveraged portfolio tracker."""

__version__ = "0.1.0"
