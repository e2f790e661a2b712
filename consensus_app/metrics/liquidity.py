"""Order book liquidity, market share and dominance per exchange"""

from typing import Sequence

from ..data.models import BookLevel, ExchangeMetrics, OrderBookSnapshot

DEPTH_NORMALIZATION_LEVELS = 20
DEPTH_BONUS = 0.1


def calculate_notional_value(levels: Sequence[BookLevel]) -> float:
    """
    Calculate notional value for order book side

    Args:
        levels: Book levels of one side

    Returns:
        Total notional value (price * volume) over all levels
    """
    return sum(level.notional for level in levels)


def calculate_spread(book: OrderBookSnapshot) -> float:
    """Best ask minus best bid, 0.0 unless both sides have a positive price"""
    best_bid = book.best_bid
    best_ask = book.best_ask
    if best_bid is None or best_ask is None or best_bid <= 0 or best_ask <= 0:
        return 0.0
    return best_ask - best_bid


def calculate_dominance(market_share: float, depth: int,
                        depth_levels: int = DEPTH_NORMALIZATION_LEVELS) -> float:
    """
    Calculate dominance score

    dominance = market_share * (1 + 0.1 * min(depth / depth_levels, 1))

    Args:
        market_share: Market share in percent
        depth: Number of book levels
        depth_levels: Depth at which the full bonus applies

    Returns:
        Dominance score
    """
    depth_factor = min(depth / depth_levels, 1.0)
    return market_share * (1 + DEPTH_BONUS * depth_factor)


def latest_books_by_exchange(order_books: Sequence[OrderBookSnapshot],
                             market: str) -> list[OrderBookSnapshot]:
    """
    Select one snapshot per exchange for a market

    The newest snapshot wins; on equal timestamps the later one in input
    order wins. Exchanges keep the order of their first appearance.
    """
    latest: dict[str, OrderBookSnapshot] = {}
    for book in order_books:
        if book.market != market:
            continue
        current = latest.get(book.exchange)
        if current is None or book.timestamp >= current.timestamp:
            latest[book.exchange] = book
    return list(latest.values())


def compute_exchange_liquidity(order_books: Sequence[OrderBookSnapshot], market: str,
                               depth_levels: int = DEPTH_NORMALIZATION_LEVELS) -> list[ExchangeMetrics]:
    """
    Compute liquidity metrics for every exchange quoting a market

    Args:
        order_books: Snapshots for any number of exchanges and markets
        market: Market to analyze
        depth_levels: Depth at which the full dominance bonus applies

    Returns:
        ExchangeMetrics sorted by dominance descending; market shares sum to
        100 (or are all 0 when there is no liquidity)
    """
    books = latest_books_by_exchange(order_books, market)

    raw = []
    for book in books:
        liquidity = calculate_notional_value(book.bids) + calculate_notional_value(book.asks)
        depth = len(book.bids) + len(book.asks)
        raw.append((book.exchange, liquidity, depth, calculate_spread(book)))

    total_liquidity = sum(liquidity for _, liquidity, _, _ in raw)

    metrics = []
    for exchange, liquidity, depth, spread in raw:
        market_share = liquidity / total_liquidity * 100 if total_liquidity > 0 else 0.0
        metrics.append(ExchangeMetrics(
            exchange=exchange,
            liquidity=liquidity,
            market_share=market_share,
            dominance=calculate_dominance(market_share, depth, depth_levels),
            depth=depth,
            spread=spread,
        ))

    return sorted(metrics, key=lambda m: m.dominance, reverse=True)


class LiquidityAnalyzer:
    """Turns order book snapshots into per-exchange liquidity metrics"""

    def __init__(self, depth_levels: int = DEPTH_NORMALIZATION_LEVELS):
        self.depth_levels = depth_levels

    def analyze(self, order_books: Sequence[OrderBookSnapshot], market: str) -> list[ExchangeMetrics]:
        """Compute metrics for one market; empty input yields an empty list"""
        return compute_exchange_liquidity(order_books, market, self.depth_levels)
