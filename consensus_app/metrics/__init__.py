"""Aggregation and statistics engine for multi-exchange market data"""

from .aggregator import CandleAggregator, aggregate_candles, filter_usable, to_chart_format
from .calculator import MetricsCalculator, build_exchange_data
from .confidence import calculate_confidence_score
from .efficiency import MarketEfficiencyScorer, compute_market_efficiency, is_highly_concentrated
from .fair_value import FairValueEstimator, compute_fair_value, price_deviation_pct
from .liquidity import LiquidityAnalyzer, compute_exchange_liquidity
from .normalization import TimeSynchronizer, normalize_exchange_prices
from .outliers import OutlierDetector, detect_outliers_iqr, detect_outliers_zscore
from .weights import calculate_weight

__all__ = [
    "CandleAggregator",
    "FairValueEstimator",
    "LiquidityAnalyzer",
    "MarketEfficiencyScorer",
    "MetricsCalculator",
    "OutlierDetector",
    "TimeSynchronizer",
    "aggregate_candles",
    "build_exchange_data",
    "calculate_confidence_score",
    "calculate_weight",
    "compute_exchange_liquidity",
    "compute_fair_value",
    "compute_market_efficiency",
    "detect_outliers_iqr",
    "detect_outliers_zscore",
    "filter_usable",
    "is_highly_concentrated",
    "normalize_exchange_prices",
    "price_deviation_pct",
    "to_chart_format",
]
