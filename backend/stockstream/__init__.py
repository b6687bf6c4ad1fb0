"""StockStream: real-time price distribution with per-user subscriptions."""

__version__ = "0.1.0"
