"""Main metrics calculator coordinating the consensus pipeline for one market"""

from typing import Optional, Sequence

from ..config.defaults import AggregationConfig, EngineParams, get_preset
from ..data.models import Candle, ExchangeData, ExchangeMetrics, OrderBookSnapshot
from ..errors import ConfigurationError, DataQualityError, MetricsCalculationError
from ..logging.config import get_audit_logger, log_aggregation_summary
from ..models.metrics import AggregationQualityReport, ConsensusSnapshot
from .aggregator import CandleAggregator, filter_usable
from .efficiency import MarketEfficiencyScorer
from .fair_value import FairValueEstimator, change_pct
from .liquidity import LiquidityAnalyzer

logger = get_audit_logger(__name__)


def build_exchange_data(candles: Sequence[Candle], exchange_metrics: Sequence[ExchangeMetrics],
                        market: str, max_candles_per_exchange: Optional[int] = None) -> list[ExchangeData]:
    """
    Join candles with liquidity metrics per exchange for one market

    Every exchange with metrics is included; exchanges that only have candles
    are included with zero liquidity. Each exchange keeps its most recent
    ``max_candles_per_exchange`` candles in chronological order.

    Args:
        candles: Candles of any exchanges and markets
        exchange_metrics: Liquidity metrics for the market
        market: Market to assemble
        max_candles_per_exchange: Cap per exchange, None for no cap

    Returns:
        ExchangeData sorted by dominance descending
    """
    by_exchange: dict[str, list[Candle]] = {}
    for candle in candles:
        if candle.market == market:
            by_exchange.setdefault(candle.exchange, []).append(candle)

    metrics_by_exchange = {m.exchange: m for m in exchange_metrics}
    names = list(metrics_by_exchange)
    names.extend(name for name in by_exchange if name not in metrics_by_exchange)

    exchanges = []
    for name in names:
        own = sorted(by_exchange.get(name, []), key=lambda c: c.timestamp)
        if max_candles_per_exchange is not None:
            own = own[-max_candles_per_exchange:] if max_candles_per_exchange > 0 else []

        metrics = metrics_by_exchange.get(name)
        exchanges.append(ExchangeData(
            exchange=name,
            candles=tuple(own),
            liquidity=metrics.liquidity if metrics else 0.0,
            market_share=metrics.market_share if metrics else 0.0,
            dominance=metrics.dominance if metrics else 0.0,
        ))

    return sorted(exchanges, key=lambda e: e.dominance, reverse=True)


class MetricsCalculator:
    """
    Coordinates liquidity analysis, aggregation, fair value and efficiency
    scoring into a ConsensusSnapshot
    """

    def __init__(self, config: Optional[AggregationConfig] = None,
                 params: Optional[EngineParams] = None):
        self.config = config or get_preset("standard")
        self.params = params or EngineParams()

        self.liquidity_analyzer = LiquidityAnalyzer(depth_levels=self.params.depth_normalization_levels)
        self.aggregator = CandleAggregator(self.config)
        self.efficiency_scorer = MarketEfficiencyScorer(
            concentration_threshold=self.params.concentration_threshold,
            efficiency_high=self.params.efficiency_high,
            efficiency_medium=self.params.efficiency_medium,
        )

    def calculate(self, candles: Sequence[Candle], order_books: Sequence[OrderBookSnapshot],
                  market: str) -> ConsensusSnapshot:
        """
        Calculate the consensus snapshot for one market

        Args:
            candles: Candles from every exchange
            order_books: Order book snapshots from every exchange
            market: Market to consolidate

        Returns:
            ConsensusSnapshot; degenerate buckets are filtered out and only
            the most recent ``max_candles_to_display`` buckets are kept
        """
        try:
            exchange_metrics = self.liquidity_analyzer.analyze(order_books, market)
            exchanges = build_exchange_data(
                candles, exchange_metrics, market, self.params.max_candles_per_exchange
            )

            aggregated = filter_usable(self.aggregator.aggregate(exchanges))
            if self.params.max_candles_to_display > 0:
                aggregated = aggregated[-self.params.max_candles_to_display:]

            last_candle = aggregated[-1] if aggregated else None
            estimator = FairValueEstimator(market)
            fair_value = estimator.estimate(exchanges, last_candle)
            efficiency = self.efficiency_scorer.evaluate(exchanges, fair_value, market)

            snapshot = ConsensusSnapshot(
                market=market,
                exchange_metrics=tuple(exchange_metrics),
                exchanges=tuple(exchanges),
                candles=tuple(aggregated),
                fair_value=fair_value,
                price_deviation_pct=estimator.deviation(last_candle, fair_value),
                change_pct=change_pct(aggregated),
                efficiency=efficiency,
                quality=AggregationQualityReport.from_candles(
                    aggregated, self.params.low_confidence_threshold
                ),
            )

        except (ConfigurationError, DataQualityError, MetricsCalculationError):
            raise
        except Exception as e:
            raise MetricsCalculationError(
                f"Unexpected error in consensus calculation: {str(e)}",
                metric_name="consensus",
                calculation_input={
                    "market": market,
                    "candle_count": len(candles),
                    "order_book_count": len(order_books),
                },
            ) from e

        log_aggregation_summary(logger, market, self.config.method.value, snapshot.candles,
                                context={"fair_value": fair_value,
                                         "efficiency": round(efficiency.score, 2)})

        if efficiency.highly_concentrated:
            logger.warning(
                "Market highly concentrated",
                market=market,
                leader=efficiency.leader,
                leader_market_share=round(efficiency.leader_market_share, 2),
                threshold=self.params.concentration_threshold,
            )

        return snapshot

    def update_config(self, new_config: AggregationConfig) -> None:
        """Replace the aggregation configuration"""
        self.config = new_config
        self.aggregator = CandleAggregator(new_config)
