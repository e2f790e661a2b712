"""
Integer time-bucket arithmetic shared by the aggregator and normalizer.

Exchanges report candles at slightly different instants, so every component
that groups samples across exchanges must agree on the bucket a timestamp
falls into. All helpers work on integer milliseconds.
"""

from datetime import UTC, datetime


def bucket_start(timestamp_ms: int, timeframe_ms: int) -> int:
    """
    Get the start of the time bucket containing a timestamp.

    Args:
        timestamp_ms: Sample timestamp in milliseconds
        timeframe_ms: Bucket width in milliseconds

    Returns:
        Bucket start in milliseconds, ``bucket_start % timeframe_ms == 0``
    """
    if timeframe_ms <= 0:
        raise ValueError(f"timeframe_ms must be positive, got {timeframe_ms}")
    return (int(timestamp_ms) // timeframe_ms) * timeframe_ms


def ms_to_seconds(timestamp_ms: int) -> int:
    """Convert a millisecond timestamp to whole seconds (floor)."""
    return int(timestamp_ms) // 1000


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert a millisecond timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)


def datetime_to_ms(ts: datetime) -> int:
    """Convert a datetime to integer milliseconds, naive values treated as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return int(ts.timestamp() * 1000)
