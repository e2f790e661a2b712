"""
Aggregation configuration: closed enums, validated config objects, presets,
and YAML-backed per-market overrides.
"""

from .defaults import (
    AGGREGATION_PRESETS,
    DEFAULT_AGGREGATION_CONFIG,
    AggregationConfig,
    AggregationMethod,
    AggregationTimeframe,
    CenterMethod,
    EngineParams,
    OutlierConfig,
    OutlierMethod,
    get_preset,
)

__all__ = [
    "AGGREGATION_PRESETS",
    "DEFAULT_AGGREGATION_CONFIG",
    "AggregationConfig",
    "AggregationMethod",
    "AggregationTimeframe",
    "CenterMethod",
    "EngineParams",
    "OutlierConfig",
    "OutlierMethod",
    "get_preset",
]
