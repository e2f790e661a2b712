"""
Error classification for the aggregation engine.

Data quality errors describe bad inputs that can be skipped; system failures
describe misconfiguration or broken calculations that must reach the caller.
"""

from .data_quality import (
    DataQualityError,
    MissingDataError,
    MalformedDataError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
    MetricsCalculationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MissingDataError",
    "MalformedDataError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "MetricsCalculationError",
]
