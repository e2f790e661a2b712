"""Per-sample weights for weighted-average aggregation"""

from ..config.defaults import AggregationMethod
from ..data.models import Candle, ExchangeData


def calculate_weight(method: AggregationMethod, candle: Candle, exchange: ExchangeData) -> float:
    """
    Calculate the weight of one (candle, exchange) pair

    VWAP weighs by candle volume, market share and dominance are converted
    from percent to fractions, liquidity is used as-is. Equal, median and
    TWAP weigh every sample as 1 (median and TWAP have their own paths in the
    aggregator).

    Args:
        method: Aggregation method
        candle: Candle being weighted
        exchange: Owning exchange with its liquidity metrics

    Returns:
        Non-negative weight
    """
    if method is AggregationMethod.VWAP:
        weight = candle.volume
    elif method is AggregationMethod.MARKET_SHARE:
        weight = exchange.market_share / 100
    elif method is AggregationMethod.LIQUIDITY:
        weight = exchange.liquidity
    elif method is AggregationMethod.DOMINANCE:
        weight = exchange.dominance / 100
    elif method in (AggregationMethod.EQUAL, AggregationMethod.MEDIAN, AggregationMethod.TWAP):
        weight = 1.0
    else:
        raise ValueError(f"Unhandled aggregation method: {method!r}")

    return max(weight or 0.0, 0.0)
