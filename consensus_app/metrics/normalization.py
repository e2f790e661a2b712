"""
Time synchronization and percent normalization of exchange price series.

Exchanges publish candles at different instants. To plot them against each
other every exchange series is re-sampled onto the union of time buckets
seen across all exchanges, forward-filling gaps, and expressed as percent
change from a per-exchange center price.
"""

from typing import Sequence

from ..config.defaults import AggregationTimeframe, CenterMethod, coerce_enum
from ..data.models import Candle, ExchangeData, NormalizedPoint
from ..utils.time import bucket_start
from .statistics import mean, median

DEFAULT_TIMEFRAME_MS = int(AggregationTimeframe.MINUTE_1)
RANGE_PADDING = 0.1


def collect_time_buckets(exchange_data: Sequence[ExchangeData], timeframe_ms: int) -> list[int]:
    """Union of bucket starts across all exchanges, ascending"""
    buckets = {
        bucket_start(candle.timestamp, timeframe_ms)
        for exchange in exchange_data
        for candle in exchange.candles
    }
    return sorted(buckets)


def bucket_latest_closes(candles: Sequence[Candle], timeframe_ms: int) -> dict[int, float]:
    """
    Reduce one exchange's candles to a close price per bucket

    The candle with the greatest timestamp wins within a bucket; on equal
    timestamps the later one in input order wins.

    Returns:
        Mapping of bucket start to close, in ascending bucket order
    """
    latest: dict[int, Candle] = {}
    for candle in candles:
        key = bucket_start(candle.timestamp, timeframe_ms)
        current = latest.get(key)
        if current is None or candle.timestamp >= current.timestamp:
            latest[key] = candle
    return {key: latest[key].close for key in sorted(latest)}


def center_price(closes: Sequence[float], method: CenterMethod) -> float:
    """
    Reference price of a bucketed close series

    Args:
        closes: Bucketed closes in chronological order
        method: first, average or median

    Returns:
        Center price, 0.0 for an empty series
    """
    if not closes:
        return 0.0

    if method is CenterMethod.FIRST:
        return closes[0]
    elif method is CenterMethod.AVERAGE:
        return mean(closes)
    elif method is CenterMethod.MEDIAN:
        return median(closes)
    raise ValueError(f"Unhandled center method: {method!r}")


def normalize_exchange_prices(exchange_data: Sequence[ExchangeData],
                              center_method: CenterMethod | str = CenterMethod.FIRST,
                              timeframe_ms: int = DEFAULT_TIMEFRAME_MS) -> dict[str, list[NormalizedPoint]]:
    """
    Normalize every exchange to percent change from its center price

    Every returned series covers the same buckets in the same order. Before
    an exchange's first sample the value is 0 and the price is the center
    price; afterwards gaps repeat the last known value and price.

    Args:
        exchange_data: Exchanges with candles
        center_method: first, average or median
        timeframe_ms: Bucket width in milliseconds

    Returns:
        Mapping of exchange name to its normalized series; exchanges without
        candles are omitted
    """
    method = coerce_enum(CenterMethod, center_method, "center method")
    if timeframe_ms <= 0:
        raise ValueError(f"timeframe_ms must be positive, got {timeframe_ms}")

    all_buckets = collect_time_buckets(exchange_data, timeframe_ms)

    result: dict[str, list[NormalizedPoint]] = {}
    for exchange in exchange_data:
        if not exchange.candles:
            continue

        closes = bucket_latest_closes(exchange.candles, timeframe_ms)
        center = center_price(list(closes.values()), method)

        last_value = 0.0
        last_price = center
        series = []
        for bucket in all_buckets:
            if bucket in closes:
                last_price = closes[bucket]
                last_value = (last_price - center) / center * 100 if center > 0 else 0.0
            series.append(NormalizedPoint(time=bucket, value=last_value, original_price=last_price))

        result[exchange.exchange] = series

    return result


def normalized_price_range(normalized: dict[str, list[NormalizedPoint]]) -> tuple[float, float]:
    """
    Value range across all normalized series, padded by 10%

    The range always includes 0.

    Returns:
        Tuple of (min, max)
    """
    low = 0.0
    high = 0.0
    for series in normalized.values():
        for point in series:
            low = min(low, point.value)
            high = max(high, point.value)

    padding = (high - low) * RANGE_PADDING
    return low - padding, high + padding


def baseline_vwap(exchange_data: Sequence[ExchangeData]) -> float:
    """Volume-weighted close over every candle of every exchange, 0.0 without volume"""
    total_volume = 0.0
    total_value = 0.0
    for exchange in exchange_data:
        for candle in exchange.candles:
            total_volume += candle.volume
            total_value += candle.close * candle.volume

    return total_value / total_volume if total_volume > 0 else 0.0


class TimeSynchronizer:
    """Aligns exchange price series onto a common time grid"""

    def __init__(self, timeframe_ms: int = DEFAULT_TIMEFRAME_MS,
                 center_method: CenterMethod | str = CenterMethod.FIRST):
        self.timeframe_ms = timeframe_ms
        self.center_method = coerce_enum(CenterMethod, center_method, "center method")

    def time_grid(self, exchange_data: Sequence[ExchangeData]) -> list[int]:
        return collect_time_buckets(exchange_data, self.timeframe_ms)

    def normalize(self, exchange_data: Sequence[ExchangeData]) -> dict[str, list[NormalizedPoint]]:
        return normalize_exchange_prices(exchange_data, self.center_method, self.timeframe_ms)
