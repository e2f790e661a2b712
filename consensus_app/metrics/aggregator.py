"""
Multi-exchange candle aggregation.

Groups candles from every exchange into fixed-width time buckets, removes
outlier prints, and combines the survivors into one consensus candle per
bucket using the configured aggregation method.
"""

from typing import Optional, Sequence

from ..config.defaults import DEFAULT_AGGREGATION_CONFIG, AggregationConfig, AggregationMethod
from ..data.models import (
    AggregatedCandle,
    AggregationStats,
    Candle,
    ExchangeData,
    WeightedValue,
)
from ..logging.config import get_audit_logger
from ..utils.time import bucket_start, ms_to_seconds
from .confidence import calculate_confidence_score
from .outliers import OutlierDetector
from .statistics import mean, std_dev, twap, vwap, weighted_average, weighted_median_of
from .weights import calculate_weight

logger = get_audit_logger(__name__)

BucketMember = tuple[Candle, ExchangeData]


def group_candles_by_bucket(exchange_data: Sequence[ExchangeData],
                            timeframe_ms: int) -> dict[int, list[BucketMember]]:
    """
    Group every (candle, owning exchange) pair by time bucket

    Args:
        exchange_data: Exchanges with their candles
        timeframe_ms: Bucket width in milliseconds

    Returns:
        Mapping of integer bucket start to members in input order
    """
    groups: dict[int, list[BucketMember]] = {}
    for exchange in exchange_data:
        for candle in exchange.candles:
            key = bucket_start(candle.timestamp, timeframe_ms)
            groups.setdefault(key, []).append((candle, exchange))
    return groups


def _empty_candle(timestamp: int, outliers_removed: int) -> AggregatedCandle:
    return AggregatedCandle(
        time=timestamp,
        open=0.0,
        high=0.0,
        low=0.0,
        close=0.0,
        volume=0.0,
        stats=AggregationStats(outliers_removed=outliers_removed),
    )


class CandleAggregator:
    """
    Aggregates candles from several exchanges into consensus candles.

    Stateless apart from its configuration: repeated calls with the same
    input produce identical output.
    """

    def __init__(self, config: Optional[AggregationConfig] = None):
        self.config = config or DEFAULT_AGGREGATION_CONFIG
        self.outlier_detector = OutlierDetector(self.config.outlier_detection)

    def aggregate(self, exchange_data: Sequence[ExchangeData]) -> list[AggregatedCandle]:
        """
        Aggregate all buckets

        Buckets with fewer distinct exchanges than ``min_exchanges`` are
        dropped. Buckets where every sample was an outlier are returned as
        zero-valued candles with ``candle_count == 0``; use
        :func:`filter_usable` before charting.

        Args:
            exchange_data: Exchanges with candles and liquidity metrics

        Returns:
            Aggregated candles sorted by bucket time ascending
        """
        if not exchange_data:
            return []

        groups = group_candles_by_bucket(exchange_data, self.config.timeframe_ms)

        aggregated = []
        for timestamp in sorted(groups):
            members = groups[timestamp]
            exchange_count = len({exchange.exchange for _, exchange in members})
            if exchange_count < self.config.min_exchanges:
                logger.debug(
                    "Bucket dropped - not enough exchanges",
                    bucket=timestamp,
                    exchange_count=exchange_count,
                    min_exchanges=self.config.min_exchanges,
                )
                continue

            aggregated.append(self.aggregate_bucket(members, timestamp))

        return aggregated

    def filter_outliers(self, members: Sequence[BucketMember]) -> tuple[list[BucketMember], int]:
        """
        Remove pairs whose close price is an outlier within the bucket

        Returns:
            Tuple of (surviving members, removed count)
        """
        outliers = self.outlier_detector.detect([candle.close for candle, _ in members])
        if not outliers:
            return list(members), 0

        filtered = [member for i, member in enumerate(members) if i not in outliers]
        return filtered, len(outliers)

    def aggregate_bucket(self, members: Sequence[BucketMember], timestamp: int) -> AggregatedCandle:
        """
        Aggregate one bucket into a consensus candle

        Args:
            members: (candle, exchange) pairs of the bucket
            timestamp: Bucket start in milliseconds

        Returns:
            AggregatedCandle with statistics
        """
        filtered, removed_count = self.filter_outliers(members)

        if removed_count:
            logger.debug("Outliers removed from bucket", bucket=timestamp, removed=removed_count)

        if not filtered:
            logger.warning("Every sample in bucket flagged as outlier", bucket=timestamp,
                           removed=removed_count)
            return _empty_candle(timestamp, removed_count)

        candles = [candle for candle, _ in filtered]
        method = self.config.method

        # High/low are real extrema regardless of method
        high = max(c.high for c in candles)
        low = min(c.low for c in candles)
        volume = sum(c.volume for c in candles)

        open_price, close_price, vwap_value = self._open_close(filtered, method, volume)

        closes = [c.close for c in candles]
        price_std_dev = std_dev(closes)
        total_weight = sum(calculate_weight(method, candle, exchange) for candle, exchange in filtered)
        exchange_count = len({exchange.exchange for _, exchange in filtered})

        stats = AggregationStats(
            exchange_count=exchange_count,
            candle_count=len(filtered),
            outliers_removed=removed_count,
            total_weight=total_weight,
            price_std_dev=price_std_dev,
            price_range=high - low,
            confidence_score=calculate_confidence_score(
                exchange_count, price_std_dev, mean(closes), total_weight
            ),
        )

        return AggregatedCandle(
            time=timestamp,
            open=open_price,
            high=high,
            low=low,
            close=close_price,
            volume=volume,
            vwap=vwap_value,
            stats=stats,
        )

    def _open_close(self, members: Sequence[BucketMember], method: AggregationMethod,
                    volume: float) -> tuple[float, float, Optional[float]]:
        """Compute (open, close, vwap) for the configured method"""
        candles = [candle for candle, _ in members]

        if method is AggregationMethod.VWAP:
            open_price = vwap([(c.open, c.volume) for c in candles])
            close_price = vwap([(c.close, c.volume) for c in candles])
            return open_price, close_price, close_price

        if method is AggregationMethod.TWAP:
            open_price = twap([(c.open, c.timestamp) for c in candles])
            close_price = twap([(c.close, c.timestamp) for c in candles])
            return open_price, close_price, None

        if method is AggregationMethod.MEDIAN:
            open_price = weighted_median_of(c.open for c in candles)
            close_price = weighted_median_of(c.close for c in candles)
            return open_price, close_price, None

        if method in (AggregationMethod.MARKET_SHARE, AggregationMethod.LIQUIDITY,
                      AggregationMethod.DOMINANCE, AggregationMethod.EQUAL):
            weights = [calculate_weight(method, candle, exchange) for candle, exchange in members]
            open_price = weighted_average([WeightedValue(c.open, w) for c, w in zip(candles, weights)])
            close_price = weighted_average([WeightedValue(c.close, w) for c, w in zip(candles, weights)])
            vwap_value = vwap([(c.close, c.volume) for c in candles]) if volume > 0 else None
            return open_price, close_price, vwap_value

        raise ValueError(f"Unhandled aggregation method: {method!r}")


def aggregate_candles(exchange_data: Sequence[ExchangeData],
                      config: Optional[AggregationConfig] = None) -> list[AggregatedCandle]:
    """Aggregate candles across exchanges with the given (or default) config"""
    return CandleAggregator(config).aggregate(exchange_data)


def filter_usable(candles: Sequence[AggregatedCandle]) -> list[AggregatedCandle]:
    """Drop degenerate buckets that have no surviving samples"""
    return [candle for candle in candles if candle.is_usable]


def to_chart_format(candles: Sequence[AggregatedCandle]) -> list[dict[str, float]]:
    """Convert aggregated candles to chart rows with time in seconds"""
    return [
        {
            "time": ms_to_seconds(c.time),
            "open": c.open,
            "high": c.high,
            "low": c.low,
            "close": c.close,
        }
        for c in candles
    ]
