"""Liquidity-weighted fair value of a market"""

from typing import Optional, Sequence

from ..data.models import AggregatedCandle, ExchangeData


def exchanges_for_market(exchange_data: Sequence[ExchangeData], market: str) -> list[ExchangeData]:
    """Exchanges with at least one candle in the market"""
    return [exchange for exchange in exchange_data if exchange.has_market(market)]


def liquidity_weights(exchanges: Sequence[ExchangeData]) -> list[float]:
    """
    Relative liquidity of each exchange

    Falls back to equal weights when total liquidity is zero.
    """
    if not exchanges:
        return []

    total_liquidity = sum(exchange.liquidity for exchange in exchanges)
    if total_liquidity <= 0:
        return [1 / len(exchanges)] * len(exchanges)
    return [exchange.liquidity / total_liquidity for exchange in exchanges]


def compute_fair_value(exchange_data: Sequence[ExchangeData],
                       last_candle: Optional[AggregatedCandle],
                       market: str) -> Optional[float]:
    """
    Calculate the liquidity-weighted consensus price

    fair_value = sum(latest_close_i * liquidity_i / total_liquidity)

    Args:
        exchange_data: Exchanges with candles and liquidity
        last_candle: Most recent aggregated candle
        market: Market to price

    Returns:
        Fair value; the aggregated close when no exchange qualifies or total
        liquidity is zero; None without an aggregated candle
    """
    if last_candle is None:
        return None

    exchanges = exchanges_for_market(exchange_data, market)
    if not exchanges:
        return last_candle.close

    total_liquidity = sum(exchange.liquidity for exchange in exchanges)
    if total_liquidity <= 0:
        return last_candle.close

    fair_value = 0.0
    for exchange in exchanges:
        weight = exchange.liquidity / total_liquidity
        fair_value += exchange.latest_close(market) * weight

    return fair_value


def price_deviation_pct(last_candle: Optional[AggregatedCandle], fair_value: Optional[float]) -> float:
    """Percent deviation of the aggregated close from fair value, 0.0 if undefined"""
    if last_candle is None or not fair_value:
        return 0.0
    return (last_candle.close - fair_value) / fair_value * 100


def change_pct(candles: Sequence[AggregatedCandle]) -> float:
    """Percent change from the first to the last aggregated close"""
    if not candles or candles[0].close == 0:
        return 0.0
    return (candles[-1].close - candles[0].close) / candles[0].close * 100


class FairValueEstimator:
    """Computes fair value and deviation for one market"""

    def __init__(self, market: str):
        self.market = market

    def estimate(self, exchange_data: Sequence[ExchangeData],
                 last_candle: Optional[AggregatedCandle]) -> Optional[float]:
        return compute_fair_value(exchange_data, last_candle, self.market)

    def deviation(self, last_candle: Optional[AggregatedCandle], fair_value: Optional[float]) -> float:
        return price_deviation_pct(last_candle, fair_value)
