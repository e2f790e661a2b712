"""
Consensus App - Multi-Exchange Candle Aggregation Engine

Consolidates per-exchange candles and order book snapshots into a single
statistically robust view: aggregated OHLCV, liquidity-weighted fair value,
market efficiency score, and per-exchange dominance metrics.
"""

__version__ = "0.1.0"
__author__ = "Consensus Team"
