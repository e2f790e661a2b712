"""Pytest configuration and shared fixtures."""

import pytest
from typing import Any, Dict

from consensus_app.data.models import ExchangeData

from tests.factories import BASE_TS, MARKET, make_candle


@pytest.fixture
def two_exchange_data() -> list[ExchangeData]:
    """Two exchanges reporting in the same bucket (closes 100 and 102)."""
    return [
        ExchangeData(
            exchange="binance",
            candles=(make_candle(100.0, volume=10.0, exchange="binance"),),
            liquidity=3000.0,
            market_share=75.0,
            dominance=80.0,
        ),
        ExchangeData(
            exchange="kraken",
            candles=(make_candle(102.0, volume=30.0, exchange="kraken", timestamp=BASE_TS + 5_000),),
            liquidity=1000.0,
            market_share=25.0,
            dominance=26.0,
        ),
    ]


@pytest.fixture
def sample_candle_payload() -> Dict[str, Any]:
    """Raw candle payload as delivered by a feed adapter."""
    return {
        "timestamp": BASE_TS,
        "open": 100.0,
        "high": 105.0,
        "low": 99.0,
        "close": 103.0,
        "volume": 1000.0,
        "exchange": "binance",
        "market": MARKET,
    }


@pytest.fixture
def sample_order_book_payload() -> Dict[str, Any]:
    """Raw order book payload as delivered by a feed adapter."""
    return {
        "exchange": "binance",
        "market": MARKET,
        "timestamp": BASE_TS,
        "bids": [
            [102.5, 100.0],
            [102.0, 200.0],
        ],
        "asks": [
            [103.0, 80.0],
            [103.5, 120.0],
        ],
    }
