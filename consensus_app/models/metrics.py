"""Result models for aggregation quality, market efficiency and consensus snapshots"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from ..data.models import AggregatedCandle, ExchangeData, ExchangeMetrics
from ..utils.time import ms_to_datetime


@dataclass(frozen=True)
class AggregationQualityReport:
    """Quality summary over a series of aggregated candles"""
    avg_confidence: float = 0.0
    avg_exchange_count: float = 0.0
    total_outliers_removed: int = 0
    candles_with_low_confidence: int = 0

    @classmethod
    def from_candles(cls, candles: Sequence[AggregatedCandle],
                     low_confidence_threshold: float = 0.5) -> "AggregationQualityReport":
        """Summarize candles; all zeros for an empty series"""
        if not candles:
            return cls()

        count = len(candles)
        return cls(
            avg_confidence=sum(c.stats.confidence_score for c in candles) / count,
            avg_exchange_count=sum(c.stats.exchange_count for c in candles) / count,
            total_outliers_removed=sum(c.stats.outliers_removed for c in candles),
            candles_with_low_confidence=sum(
                1 for c in candles if c.stats.confidence_score < low_confidence_threshold
            ),
        )


@dataclass(frozen=True)
class EfficiencyReport:
    """Market efficiency components and concentration warning"""
    price_efficiency: float = 0.0
    liquidity_efficiency: float = 0.0
    concentration_efficiency: float = 0.0
    score: float = 0.0                      # 0-100 composite
    rating: str = "low"                     # 'high', 'medium' or 'low'
    leader: Optional[str] = None            # Exchange with the largest market share
    leader_market_share: float = 0.0
    highly_concentrated: bool = False


@dataclass(frozen=True)
class ConsensusSnapshot:
    """Complete consensus view of one market"""
    market: str
    exchange_metrics: tuple[ExchangeMetrics, ...] = ()
    exchanges: tuple[ExchangeData, ...] = ()
    candles: tuple[AggregatedCandle, ...] = ()
    fair_value: Optional[float] = None
    price_deviation_pct: float = 0.0
    change_pct: float = 0.0
    efficiency: EfficiencyReport = field(default_factory=EfficiencyReport)
    quality: AggregationQualityReport = field(default_factory=AggregationQualityReport)

    @property
    def last_candle(self) -> Optional[AggregatedCandle]:
        return self.candles[-1] if self.candles else None

    @property
    def last_update(self) -> Optional[datetime]:
        """Start of the latest aggregated bucket as a UTC datetime"""
        if not self.candles:
            return None
        return ms_to_datetime(self.candles[-1].time)

    def has_sufficient_data(self) -> bool:
        """Check if the snapshot carries a consensus price"""
        return bool(self.candles) and self.fair_value is not None
