"""Version information for the delta arbitrage bot."""

__version__ = "0.3.0"
