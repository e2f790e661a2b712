"""Market efficiency and concentration scoring"""

import math
from typing import Optional, Protocol, Sequence

from ..data.models import ExchangeData
from ..models.metrics import EfficiencyReport
from .fair_value import exchanges_for_market, liquidity_weights
from .statistics import gini_coefficient

CONCENTRATION_THRESHOLD = 40.0
EFFICIENCY_HIGH = 80.0
EFFICIENCY_MEDIUM = 60.0

PRICE_WEIGHT = 0.5
LIQUIDITY_WEIGHT = 0.3
CONCENTRATION_WEIGHT = 0.2


class HasMarketShare(Protocol):
    exchange: str
    market_share: float


def calculate_price_efficiency(exchanges: Sequence[ExchangeData], fair_value: Optional[float],
                               market: str) -> float:
    """
    Price convergence score (0-100)

    price_variance = sum(|latest_close_i - fair_value| * weight_i) with
    liquidity weights; efficiency = max(0, 100 - price_variance / fair_value * 1000).
    """
    if not exchanges or not fair_value or fair_value <= 0:
        return 0.0

    price_variance = 0.0
    for exchange, weight in zip(exchanges, liquidity_weights(exchanges)):
        price_variance += abs(exchange.latest_close(market) - fair_value) * weight

    return max(0.0, 100 - (price_variance / fair_value) * 1000)


def calculate_liquidity_efficiency(exchanges: Sequence[ExchangeData]) -> float:
    """Liquidity distribution equality score, (1 - gini) * 100"""
    return (1 - gini_coefficient([exchange.liquidity for exchange in exchanges])) * 100


def calculate_concentration_efficiency(exchanges: Sequence[HasMarketShare]) -> float:
    """
    Market share balance score (0-100)

    Penalizes the standard deviation of market shares:
    max(0, 100 - sqrt(Var(share_i)) * 2).
    """
    if not exchanges:
        return 0.0

    shares = [exchange.market_share or 0.0 for exchange in exchanges]
    avg_share = sum(shares) / len(shares)
    variance = sum((share - avg_share) ** 2 for share in shares) / len(shares)
    return max(0.0, 100 - math.sqrt(variance) * 2)


def find_leader(exchanges: Sequence[HasMarketShare]) -> Optional[HasMarketShare]:
    """Exchange with the largest market share (first one on ties)"""
    leader = None
    for exchange in exchanges:
        if leader is None or exchange.market_share > leader.market_share:
            leader = exchange
    return leader


def is_highly_concentrated(exchanges: Sequence[HasMarketShare],
                           threshold: float = CONCENTRATION_THRESHOLD) -> bool:
    """True when the top exchange's market share exceeds the threshold percent"""
    leader = find_leader(exchanges)
    return leader is not None and leader.market_share > threshold


def efficiency_rating(score: float, high: float = EFFICIENCY_HIGH, medium: float = EFFICIENCY_MEDIUM) -> str:
    """Map a 0-100 efficiency score to 'high', 'medium' or 'low'"""
    if score >= high:
        return "high"
    elif score >= medium:
        return "medium"
    return "low"


class MarketEfficiencyScorer:
    """Composite market efficiency score with a concentration warning"""

    def __init__(self, concentration_threshold: float = CONCENTRATION_THRESHOLD,
                 efficiency_high: float = EFFICIENCY_HIGH,
                 efficiency_medium: float = EFFICIENCY_MEDIUM):
        self.concentration_threshold = concentration_threshold
        self.efficiency_high = efficiency_high
        self.efficiency_medium = efficiency_medium

    def evaluate(self, exchange_data: Sequence[ExchangeData], fair_value: Optional[float],
                 market: str) -> EfficiencyReport:
        """
        Score how efficiently a market is priced across exchanges

        score = 0.5 * price + 0.3 * liquidity + 0.2 * concentration

        Args:
            exchange_data: Exchanges with candles and liquidity metrics
            fair_value: Consensus price of the market
            market: Market being scored

        Returns:
            EfficiencyReport; all zeros when no exchange has candles in the market
        """
        exchanges = exchanges_for_market(exchange_data, market)
        if not exchanges:
            return EfficiencyReport()

        price_efficiency = calculate_price_efficiency(exchanges, fair_value, market)
        liquidity_efficiency = calculate_liquidity_efficiency(exchanges)
        concentration_efficiency = calculate_concentration_efficiency(exchanges)

        score = (price_efficiency * PRICE_WEIGHT +
                 liquidity_efficiency * LIQUIDITY_WEIGHT +
                 concentration_efficiency * CONCENTRATION_WEIGHT)

        leader = find_leader(exchanges)
        return EfficiencyReport(
            price_efficiency=price_efficiency,
            liquidity_efficiency=liquidity_efficiency,
            concentration_efficiency=concentration_efficiency,
            score=score,
            rating=efficiency_rating(score, self.efficiency_high, self.efficiency_medium),
            leader=leader.exchange,
            leader_market_share=leader.market_share,
            highly_concentrated=leader.market_share > self.concentration_threshold,
        )


def compute_market_efficiency(exchange_data: Sequence[ExchangeData], fair_value: Optional[float],
                              market: str) -> float:
    """Market efficiency score (0-100)"""
    return MarketEfficiencyScorer().evaluate(exchange_data, fair_value, market).score
