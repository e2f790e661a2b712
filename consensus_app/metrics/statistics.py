"""Weighted statistics used by the aggregation pipeline.

Pure math, no domain knowledge. Every function returns a defined value for
empty or zero-weight input instead of raising.
"""

import math
from typing import Iterable, Sequence

from ..data.models import WeightedValue


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 for empty input."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def median(values: Sequence[float]) -> float:
    """Standard median (average of the two middle elements for even count)."""
    if not values:
        return 0.0

    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def weighted_average(values: Sequence[WeightedValue]) -> float:
    """
    Calculate weighted average

    sum(v * w) / sum(w), falling back to the unweighted mean when the total
    weight is zero.

    Args:
        values: Weighted values

    Returns:
        Weighted average or 0.0 for empty input
    """
    if not values:
        return 0.0

    total_weight = sum(v.weight for v in values)
    if total_weight == 0:
        return mean([v.value for v in values])

    return sum(v.value * v.weight for v in values) / total_weight


def weighted_median(values: Sequence[WeightedValue]) -> float:
    """
    Calculate weighted median

    Sorts by value and returns the first value whose cumulative weight reaches
    half of the total weight. When the cumulative weight lands exactly on
    the half, the two neighbouring values are averaged, so equal weights give
    the standard median. Falls back to the standard median when the total
    weight is zero.

    Args:
        values: Weighted values

    Returns:
        Weighted median or 0.0 for empty input
    """
    if not values:
        return 0.0
    if len(values) == 1:
        return values[0].value

    ordered = sorted(values, key=lambda v: v.value)
    total_weight = sum(v.weight for v in ordered)

    if total_weight == 0:
        return median([v.value for v in ordered])

    half_weight = total_weight / 2
    cumulative = 0.0
    for i, item in enumerate(ordered):
        cumulative += item.weight
        if item.weight > 0 and math.isclose(cumulative, half_weight):
            # Exact split between two values, as the standard median does
            upper = next((v for v in ordered[i + 1:] if v.weight > 0), None)
            if upper is not None:
                return (item.value + upper.value) / 2
        if cumulative >= half_weight:
            return item.value

    return ordered[-1].value


def weighted_median_of(values: Iterable[float]) -> float:
    """Weighted median with every weight set to 1."""
    return weighted_median([WeightedValue(value=v, weight=1.0) for v in values])


def vwap(pairs: Sequence[tuple[float, float]]) -> float:
    """
    Calculate VWAP (Volume-Weighted Average Price)

    VWAP = sum(price * volume) / sum(volume)

    Args:
        pairs: (price, volume) pairs

    Returns:
        VWAP, the unweighted mean price if total volume is zero, 0.0 if empty
    """
    if not pairs:
        return 0.0

    total_volume = sum(volume for _, volume in pairs)
    if total_volume == 0:
        return mean([price for price, _ in pairs])

    return sum(price * volume for price, volume in pairs) / total_volume


def twap(pairs: Sequence[tuple[float, int]]) -> float:
    """
    Calculate TWAP (Time-Weighted Average Price)

    Each price is weighted by the time until the next sample; the last sample
    is weighted by the average delta.

    Args:
        pairs: (price, timestamp_ms) pairs in any order

    Returns:
        TWAP, the single price for one sample, 0.0 if empty
    """
    if not pairs:
        return 0.0
    if len(pairs) == 1:
        return pairs[0][0]

    ordered = sorted(pairs, key=lambda p: p[1])

    total_time = 0.0
    weighted_sum = 0.0
    for (price, ts), (_, next_ts) in zip(ordered, ordered[1:]):
        delta = next_ts - ts
        weighted_sum += price * delta
        total_time += delta

    if total_time > 0:
        avg_delta = total_time / (len(ordered) - 1)
        weighted_sum += ordered[-1][0] * avg_delta
        total_time += avg_delta
        return weighted_sum / total_time

    # All samples share one timestamp
    return ordered[0][0]


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n), 0.0 for fewer than 2 values."""
    if len(values) < 2:
        return 0.0

    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def gini_coefficient(values: Sequence[float]) -> float:
    """
    Calculate the Gini coefficient of a distribution

    G = 2 * sum(i * x_i) / (n * sum(x)) - (n + 1) / n with x sorted ascending
    and i 1-indexed. 0 means perfectly equal, (n - 1) / n is the maximum.

    Args:
        values: Non-negative quantities (e.g. liquidity per exchange)

    Returns:
        Gini coefficient, 0.0 for empty or zero-sum input
    """
    if not values:
        return 0.0

    total = sum(values)
    if total == 0:
        return 0.0

    ordered = sorted(values)
    n = len(ordered)
    ranked_sum = sum((i + 1) * x for i, x in enumerate(ordered))
    return (2 * ranked_sum) / (n * total) - (n + 1) / n
