"""Volatility oracle, volatility futures redemption and variance market settlement."""

__version__ = "0.1.0"
__all__ = ["accounts", "errors", "futures", "oracle", "variance"]