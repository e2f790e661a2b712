"""
Parsers converting raw feed payloads into domain objects.

Feed adapters deliver candles as dicts and order book levels as
``[price, volume, ...]`` arrays. This module converts them into immutable
models with type conversion and error reporting. Parsing is pure: no global
counters are kept, callers decide whether a bad payload is fatal.
"""

import math
from datetime import datetime
from typing import Any, Mapping

from ..errors import MalformedDataError, MissingDataError
from ..utils.time import datetime_to_ms
from .models import BookLevel, Candle, OrderBookSnapshot

CANDLE_PRICE_FIELDS = ("open", "high", "low", "close")


def _require(payload: Mapping[str, Any], key: str, data_type: str) -> Any:
    if key not in payload or payload[key] is None:
        raise MissingDataError(f"Missing '{key}' field in {data_type} payload",
                               data_type=data_type, field=key)
    return payload[key]


def _to_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise MalformedDataError(f"Invalid {name} value: {value!r}", raw_data=repr(value),
                                 expected_format="number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedDataError(f"Invalid {name} value: {value!r}", raw_data=repr(value),
                                 expected_format="number") from None

    if math.isnan(number) or math.isinf(number):
        raise MalformedDataError(f"Non-finite {name} value: {value!r}", raw_data=repr(value))
    return number


def parse_timestamp(value: Any) -> int:
    """
    Parse a timestamp into integer milliseconds.

    Accepts integer/float/string milliseconds or a datetime.
    """
    if isinstance(value, datetime):
        return datetime_to_ms(value)

    ts = _to_float(value, "timestamp")
    if ts < 0:
        raise MalformedDataError(f"Negative timestamp: {value!r}", raw_data=repr(value))
    return int(ts)


def parse_candle(payload: Mapping[str, Any]) -> Candle:
    """
    Parse a single candle payload.

    Expected format:
    {"timestamp": 1700000000000, "open": 100.0, "high": 101.0, "low": 99.5,
     "close": 100.5, "volume": 12.3, "exchange": "binance", "market": "BTC/USDT"}

    Raises:
        MissingDataError: If a required field is absent
        MalformedDataError: If a field cannot be converted or is out of range
    """
    if not isinstance(payload, Mapping):
        raise MalformedDataError("Candle payload must be a mapping",
                                 raw_data=repr(payload)[:100], expected_format="dict")

    timestamp = parse_timestamp(_require(payload, "timestamp", "candle"))

    prices = {}
    for name in CANDLE_PRICE_FIELDS:
        price = _to_float(_require(payload, name, "candle"), name)
        if price <= 0:
            raise MalformedDataError(f"Non-positive {name} price: {price}")
        prices[name] = price

    volume = _to_float(payload.get("volume", 0.0), "volume")
    if volume < 0:
        raise MalformedDataError(f"Negative volume: {volume}")

    return Candle(
        timestamp=timestamp,
        open=prices["open"],
        high=prices["high"],
        low=prices["low"],
        close=prices["close"],
        volume=volume,
        exchange=str(_require(payload, "exchange", "candle")),
        market=str(_require(payload, "market", "candle")),
    )


def parse_book_level(level: Any) -> BookLevel:
    """Parse ``[price, volume, ...]``, ``{"price", "volume"}`` or a BookLevel."""
    if isinstance(level, BookLevel):
        return level

    if isinstance(level, Mapping):
        price = _require(level, "price", "book level")
        volume = level.get("volume", level.get("size"))
        if volume is None:
            raise MissingDataError("Missing 'volume' field in book level payload",
                                   data_type="book level", field="volume")
    elif isinstance(level, (list, tuple)) and len(level) >= 2:
        price, volume = level[0], level[1]
    else:
        raise MalformedDataError("Book level must be [price, volume] or a mapping",
                                 raw_data=repr(level)[:100], expected_format="[price, volume]")

    price_value = _to_float(price, "level price")
    volume_value = _to_float(volume, "level volume")
    if price_value < 0 or volume_value < 0:
        raise MalformedDataError(f"Negative book level: {level!r}")

    return BookLevel(price=price_value, volume=volume_value)


def parse_order_book(payload: Mapping[str, Any]) -> OrderBookSnapshot:
    """
    Parse an order book snapshot payload.

    Expected format:
    {"exchange": "binance", "market": "BTC/USDT", "timestamp": 1700000000000,
     "bids": [[100.0, 2.5], ...], "asks": [[100.5, 1.0], ...]}

    Level order is preserved; best-first is the feed's convention.
    """
    if not isinstance(payload, Mapping):
        raise MalformedDataError("Order book payload must be a mapping",
                                 raw_data=repr(payload)[:100], expected_format="dict")

    sides = {}
    for side in ("bids", "asks"):
        levels = payload.get(side) or []
        if not isinstance(levels, (list, tuple)):
            raise MalformedDataError(f"'{side}' field must be a list", raw_data=repr(levels)[:100])
        sides[side] = tuple(parse_book_level(level) for level in levels)

    raw_ts = payload.get("timestamp")
    return OrderBookSnapshot(
        exchange=str(_require(payload, "exchange", "order book")),
        market=str(_require(payload, "market", "order book")),
        bids=sides["bids"],
        asks=sides["asks"],
        timestamp=parse_timestamp(raw_ts) if raw_ts is not None else 0,
    )

