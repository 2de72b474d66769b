"""Cross-chain gas tracker: fee ingestion, OHLC aggregation, and on-chain ETH/USD pricing."""

__version__ = "0.1.0"
