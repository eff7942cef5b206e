"""Training load, plan adaptation and daily workout recommendation engine."""

__version__ = "0.1.0"
