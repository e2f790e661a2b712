"""Unit tests for data and result models."""

import pytest
from datetime import datetime, timezone

from consensus_app.data.models import AggregatedCandle, AggregationStats, ExchangeData
from consensus_app.models.metrics import AggregationQualityReport, ConsensusSnapshot
from tests.factories import BASE_TS, MARKET, make_candle


def aggregated(confidence: float, exchanges: int, outliers: int = 0, time: int = BASE_TS) -> AggregatedCandle:
    return AggregatedCandle(time=time, open=1.0, high=1.0, low=1.0, close=1.0, volume=1.0,
                            stats=AggregationStats(exchange_count=exchanges, candle_count=exchanges,
                                                   outliers_removed=outliers,
                                                   confidence_score=confidence))


class TestExchangeData:
    """Test suite for ExchangeData helpers."""

    def test_latest_close_is_chronological(self) -> None:
        """Test that the newest candle wins regardless of input order."""
        exchange = ExchangeData(exchange="binance", candles=(
            make_candle(105.0, timestamp=BASE_TS + 60_000),
            make_candle(100.0, timestamp=BASE_TS),
        ))
        assert exchange.latest_close() == 105.0

    def test_latest_close_tie_takes_later_input(self) -> None:
        """Test that equal timestamps resolve to the later candle."""
        exchange = ExchangeData(exchange="binance", candles=(make_candle(100.0), make_candle(101.0)))
        assert exchange.latest_close() == 101.0

    def test_latest_close_by_market(self) -> None:
        """Test filtering by market."""
        exchange = ExchangeData(exchange="binance", candles=(
            make_candle(100.0),
            make_candle(2000.0, market="ETH/USDT", timestamp=BASE_TS + 1),
        ))
        assert exchange.latest_close(MARKET) == 100.0
        assert exchange.latest_close("SOL/USDT") is None
        assert exchange.has_market("ETH/USDT")
        assert not exchange.has_market("SOL/USDT")


class TestQualityReport:
    """Test suite for the aggregation quality report."""

    def test_from_candles(self) -> None:
        """Test averages and counts over a series."""
        report = AggregationQualityReport.from_candles([
            aggregated(0.9, 4, outliers=1),
            aggregated(0.3, 2, outliers=2),
        ])
        assert report.avg_confidence == pytest.approx(0.6)
        assert report.avg_exchange_count == 3.0
        assert report.total_outliers_removed == 3
        assert report.candles_with_low_confidence == 1

    def test_empty_series(self) -> None:
        """Test that an empty series yields zeros."""
        assert AggregationQualityReport.from_candles([]) == AggregationQualityReport()


class TestConsensusSnapshot:
    """Test suite for ConsensusSnapshot accessors."""

    def test_last_update(self) -> None:
        """Test that last_update is the latest bucket start in UTC."""
        snapshot = ConsensusSnapshot(market=MARKET, candles=(
            aggregated(1.0, 1), aggregated(1.0, 1, time=BASE_TS + 60_000),
        ), fair_value=1.0)

        assert snapshot.last_update == datetime(2023, 11, 14, 22, 15, tzinfo=timezone.utc)
        assert snapshot.last_candle.time == BASE_TS + 60_000
        assert snapshot.has_sufficient_data()

    def test_empty_snapshot(self) -> None:
        """Test accessors on an empty snapshot."""
        snapshot = ConsensusSnapshot(market=MARKET)
        assert snapshot.last_candle is None
        assert snapshot.last_update is None
        assert not snapshot.has_sufficient_data()
