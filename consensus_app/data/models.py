"""
Canonical data models for the aggregation engine.

This module defines immutable data structures for per-exchange inputs
(candles, order book snapshots), derived exchange metrics, and the
aggregated outputs handed to presentation.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Candle:
    """Per-exchange OHLCV sample."""
    timestamp: int      # Milliseconds since epoch
    open: float
    high: float
    low: float
    close: float
    volume: float       # Base volume, >= 0
    exchange: str
    market: str


@dataclass(frozen=True)
class BookLevel:
    """Single order book level with price and volume."""
    price: float
    volume: float

    @property
    def notional(self) -> float:
        return self.price * self.volume


@dataclass(frozen=True)
class OrderBookSnapshot:
    """Order book snapshot; levels are best-first as delivered by the feed."""
    exchange: str
    market: str
    bids: tuple[BookLevel, ...] = ()
    asks: tuple[BookLevel, ...] = ()
    timestamp: int = 0

    @property
    def best_bid(self) -> Optional[float]:
        """Best bid price, None if no bids."""
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        """Best ask price, None if no asks."""
        return self.asks[0].price if self.asks else None


@dataclass(frozen=True)
class ExchangeMetrics:
    """Liquidity profile of one exchange for one market."""
    exchange: str
    liquidity: float        # Bid + ask notional
    market_share: float     # Percent of total market liquidity
    dominance: float        # Market share boosted by book depth
    depth: int              # Number of book levels
    spread: float           # Best ask - best bid, 0 if unavailable


@dataclass(frozen=True)
class ExchangeData:
    """Candles of one exchange joined with its liquidity metrics."""
    exchange: str
    candles: tuple[Candle, ...] = ()
    liquidity: float = 0.0
    market_share: float = 0.0
    dominance: float = 0.0

    def latest_close(self, market: Optional[str] = None) -> Optional[float]:
        """
        Close of the chronologically latest candle, optionally for one market.

        On equal timestamps the later candle in input order wins.
        """
        latest = None
        for candle in self.candles:
            if market is not None and candle.market != market:
                continue
            if latest is None or candle.timestamp >= latest.timestamp:
                latest = candle
        return latest.close if latest is not None else None

    def has_market(self, market: str) -> bool:
        """True if any candle belongs to the given market."""
        return any(candle.market == market for candle in self.candles)


@dataclass(frozen=True)
class WeightedValue:
    """Value with a non-negative weight, used by the statistics helpers."""
    value: float
    weight: float


@dataclass(frozen=True)
class AggregationStats:
    """Quality metadata for one aggregated bucket."""
    exchange_count: int = 0
    candle_count: int = 0
    outliers_removed: int = 0
    total_weight: float = 0.0
    price_std_dev: float = 0.0
    price_range: float = 0.0
    confidence_score: float = 0.0


@dataclass(frozen=True)
class AggregatedCandle:
    """Consensus candle for one time bucket."""
    time: int           # Bucket start in milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    vwap: Optional[float] = None
    stats: AggregationStats = field(default_factory=AggregationStats)

    @property
    def is_usable(self) -> bool:
        """False for degenerate buckets where every sample was an outlier."""
        return self.stats.candle_count > 0


@dataclass(frozen=True)
class NormalizedPoint:
    """Exchange price expressed as percent change from its center price."""
    time: int               # Bucket start in milliseconds
    value: float            # Percent deviation from center price
    original_price: float
