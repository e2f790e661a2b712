"""Confidence scoring for aggregated buckets"""

EXCHANGE_COVERAGE_TARGET = 5     # Exchanges needed for full coverage credit
DISPERSION_PENALTY = 10          # Coefficient of variation multiplier

EXCHANGE_WEIGHT = 0.4
CONSISTENCY_WEIGHT = 0.4
WEIGHT_DISTRIBUTION_WEIGHT = 0.2


def calculate_confidence_score(exchange_count: int, price_std_dev: float,
                               avg_price: float, total_weight: float) -> float:
    """
    Calculate confidence score for one aggregated bucket (0.0 to 1.0)

    Combines exchange coverage, price consistency (coefficient of variation)
    and weight distribution:

        0.4 * min(exchanges / 5, 1)
      + 0.4 * max(0, 1 - (std_dev / avg_price) * 10)
      + 0.2 * min(total_weight / exchanges, 1)

    Args:
        exchange_count: Distinct exchanges in the bucket
        price_std_dev: Population std-dev of close prices
        avg_price: Mean close price
        total_weight: Sum of aggregation weights

    Returns:
        Confidence score clamped to [0, 1]
    """
    exchange_factor = min(exchange_count / EXCHANGE_COVERAGE_TARGET, 1.0)

    if avg_price == 0:
        consistency_factor = 0.0
    else:
        consistency_factor = max(0.0, 1 - (price_std_dev / avg_price) * DISPERSION_PENALTY)

    if exchange_count == 0:
        weight_factor = 0.0
    else:
        weight_factor = min(total_weight / exchange_count, 1.0)

    score = (exchange_factor * EXCHANGE_WEIGHT +
             consistency_factor * CONSISTENCY_WEIGHT +
             weight_factor * WEIGHT_DISTRIBUTION_WEIGHT)

    return min(max(score, 0.0), 1.0)
