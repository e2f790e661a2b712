"""Unit tests for payload parsing."""

import math
import pytest
from datetime import datetime, timezone
from typing import Any, Dict

from consensus_app.data.models import BookLevel, Candle
from consensus_app.data.parsers import (
    parse_book_level,
    parse_candle,
    parse_order_book,
    parse_timestamp,
)
from consensus_app.errors import DataQualityError, MalformedDataError, MissingDataError
from tests.factories import BASE_TS, MARKET


class TestParseCandle:
    """Test suite for candle parsing."""

    def test_parse_valid_candle(self, sample_candle_payload: Dict[str, Any]) -> None:
        """Test parsing a complete payload."""
        candle = parse_candle(sample_candle_payload)

        assert candle == Candle(timestamp=BASE_TS, open=100.0, high=105.0, low=99.0, close=103.0,
                                volume=1000.0, exchange="binance", market=MARKET)

    def test_string_numbers(self, sample_candle_payload: Dict[str, Any]) -> None:
        """Test that numeric strings are converted."""
        payload = {**sample_candle_payload, "close": "103.5", "timestamp": str(BASE_TS)}
        candle = parse_candle(payload)
        assert candle.close == 103.5
        assert candle.timestamp == BASE_TS

    def test_volume_defaults_to_zero(self, sample_candle_payload: Dict[str, Any]) -> None:
        """Test that a missing volume is treated as zero."""
        del sample_candle_payload["volume"]
        assert parse_candle(sample_candle_payload).volume == 0.0

    @pytest.mark.parametrize("field", ["timestamp", "open", "close", "exchange", "market"])
    def test_missing_field(self, sample_candle_payload: Dict[str, Any], field: str) -> None:
        """Test that required fields raise MissingDataError."""
        del sample_candle_payload[field]
        with pytest.raises(MissingDataError) as exc_info:
            parse_candle(sample_candle_payload)
        assert exc_info.value.field == field
        assert exc_info.value.data_type == "candle"

    @pytest.mark.parametrize("field,value", [
        ("close", "abc"),
        ("close", 0),
        ("low", -1.0),
        ("high", math.nan),
        ("open", math.inf),
        ("open", True),
        ("volume", -5.0),
        ("timestamp", -1),
    ])
    def test_malformed_field(self, sample_candle_payload: Dict[str, Any], field: str, value: Any) -> None:
        """Test that out-of-range or non-numeric values raise MalformedDataError."""
        sample_candle_payload[field] = value
        with pytest.raises(MalformedDataError):
            parse_candle(sample_candle_payload)

    def test_non_mapping_payload(self) -> None:
        """Test that a list payload is rejected."""
        with pytest.raises(MalformedDataError) as exc_info:
            parse_candle([BASE_TS, 100.0, 101.0, 99.0, 100.5])
        assert exc_info.value.expected_format == "dict"


class TestParseTimestamp:
    """Test suite for timestamp parsing."""

    def test_datetime_input(self) -> None:
        """Test that datetimes convert to milliseconds."""
        ts = datetime(2023, 11, 14, 22, 14, tzinfo=timezone.utc)
        assert parse_timestamp(ts) == BASE_TS

    def test_float_truncated(self) -> None:
        """Test that fractional milliseconds are dropped."""
        assert parse_timestamp(BASE_TS + 0.7) == BASE_TS


class TestParseOrderBook:
    """Test suite for order book parsing."""

    def test_parse_valid_book(self, sample_order_book_payload: Dict[str, Any]) -> None:
        """Test parsing array levels."""
        book = parse_order_book(sample_order_book_payload)

        assert book.exchange == "binance"
        assert book.timestamp == BASE_TS
        assert book.bids == (BookLevel(102.5, 100.0), BookLevel(102.0, 200.0))
        assert book.best_bid == 102.5
        assert book.best_ask == 103.0

    def test_mapping_levels(self) -> None:
        """Test parsing levels given as mappings with size or volume."""
        assert parse_book_level({"price": "100.5", "size": 2}) == BookLevel(100.5, 2.0)
        assert parse_book_level({"price": 100.5, "volume": 3}) == BookLevel(100.5, 3.0)

    def test_extra_level_fields_ignored(self) -> None:
        """Test that exchange-specific trailing fields are ignored."""
        assert parse_book_level(["100.0", "1.5", "0", "4"]) == BookLevel(100.0, 1.5)

    @pytest.mark.parametrize("level", [[100.0], "100@1", [100.0, -1.0], {"price": 100.0}])
    def test_bad_level(self, level: Any) -> None:
        """Test that malformed levels raise data quality errors."""
        with pytest.raises(DataQualityError):
            parse_book_level(level)

    def test_missing_sides_and_timestamp(self) -> None:
        """Test that absent sides are empty and the timestamp defaults to zero."""
        book = parse_order_book({"exchange": "kraken", "market": MARKET})
        assert book.bids == ()
        assert book.asks == ()
        assert book.timestamp == 0
        assert book.best_bid is None

    def test_missing_exchange(self, sample_order_book_payload: Dict[str, Any]) -> None:
        """Test that a book without exchange is rejected."""
        del sample_order_book_payload["exchange"]
        with pytest.raises(MissingDataError):
            parse_order_book(sample_order_book_payload)

    def test_side_not_a_list(self, sample_order_book_payload: Dict[str, Any]) -> None:
        """Test that a scalar side is rejected."""
        sample_order_book_payload["bids"] = 42
        with pytest.raises(MalformedDataError):
            parse_order_book(sample_order_book_payload)
