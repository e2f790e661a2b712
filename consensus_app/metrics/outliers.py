"""Outlier detection for prices reported by different exchanges"""

import math
from typing import Optional, Sequence

from ..config.defaults import (
    DEFAULT_IQR_THRESHOLD,
    DEFAULT_ZSCORE_THRESHOLD,
    OutlierConfig,
    OutlierMethod,
)

# Below this many samples a bucket is never filtered
MIN_BUCKET_SAMPLES = 4


def detect_outliers_iqr(values: Sequence[float], threshold: float = DEFAULT_IQR_THRESHOLD) -> set[int]:
    """
    Detect outliers using the Interquartile Range

    Q1 and Q3 are the sorted elements at floor(n * 0.25) and floor(n * 0.75).
    Values outside [Q1 - k*IQR, Q3 + k*IQR] are outliers.

    Args:
        values: Sample values in original order
        threshold: IQR multiplier k

    Returns:
        Indices of outliers into ``values``; empty for fewer than 4 values
    """
    if len(values) < 4:
        return set()

    ordered = sorted(values)
    n = len(ordered)
    q1 = ordered[math.floor(n * 0.25)]
    q3 = ordered[math.floor(n * 0.75)]
    iqr = q3 - q1

    lower_bound = q1 - threshold * iqr
    upper_bound = q3 + threshold * iqr

    return {i for i, value in enumerate(values) if value < lower_bound or value > upper_bound}


def detect_outliers_zscore(values: Sequence[float], threshold: float = DEFAULT_ZSCORE_THRESHOLD) -> set[int]:
    """
    Detect outliers using the Z-score

    Uses population mean and standard deviation. A value is an outlier when
    |value - mean| / std_dev > threshold.

    Args:
        values: Sample values in original order
        threshold: Z-score limit

    Returns:
        Indices of outliers; empty for fewer than 2 values or zero deviation
    """
    if len(values) < 2:
        return set()

    avg = sum(values) / len(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    deviation = math.sqrt(variance)

    if deviation == 0:
        return set()

    return {i for i, value in enumerate(values) if abs(value - avg) / deviation > threshold}


class OutlierDetector:
    """Applies the configured outlier algorithm to one bucket's close prices"""

    def __init__(self, config: Optional[OutlierConfig] = None):
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config is not None and self.config.enabled

    def detect(self, values: Sequence[float]) -> set[int]:
        """
        Flag outliers within a bucket

        Args:
            values: Close prices of the bucket's (candle, exchange) pairs

        Returns:
            Indices of outliers; empty when disabled or fewer than 4 samples
        """
        if not self.enabled or len(values) < MIN_BUCKET_SAMPLES:
            return set()

        method = self.config.method
        if method is OutlierMethod.IQR:
            return detect_outliers_iqr(values, self.config.threshold)
        elif method is OutlierMethod.ZSCORE:
            return detect_outliers_zscore(values, self.config.threshold)
        raise ValueError(f"Unhandled outlier method: {method!r}")
