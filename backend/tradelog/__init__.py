"""TradeLog - trade journal normalization and analytics engine."""

__version__ = "1.0.0"
