"""Default configuration parameters and presets for candle aggregation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..errors import ConfigurationError


class AggregationMethod(str, Enum):
    """How per-exchange open/close prices are combined into one candle."""
    VWAP = "vwap"                    # Volume-weighted (industry standard)
    TWAP = "twap"                    # Time-weighted
    MARKET_SHARE = "market-share"    # Weighted by liquidity market share
    LIQUIDITY = "liquidity"          # Weighted by order book notional
    DOMINANCE = "dominance"          # Market share boosted by book depth
    EQUAL = "equal"                  # Every exchange counts once
    MEDIAN = "median"                # Outlier resistant


class OutlierMethod(str, Enum):
    """Outlier detection algorithm applied to close prices within a bucket."""
    IQR = "iqr"
    ZSCORE = "zscore"


class CenterMethod(str, Enum):
    """Reference price used when normalizing an exchange series to percent."""
    FIRST = "first"
    AVERAGE = "average"
    MEDIAN = "median"


class AggregationTimeframe(int, Enum):
    """Common bucket widths in milliseconds."""
    SECOND_1 = 1_000
    SECOND_5 = 5_000
    SECOND_15 = 15_000
    SECOND_30 = 30_000
    MINUTE_1 = 60_000
    MINUTE_5 = 300_000
    MINUTE_15 = 900_000
    HOUR_1 = 3_600_000


DEFAULT_IQR_THRESHOLD = 1.5
DEFAULT_ZSCORE_THRESHOLD = 3.0


def coerce_enum(enum_cls: type[Enum], value: Any, field: str) -> Any:
    """
    Resolve a config value to a member of a closed enum.

    Accepts a member, its value, or its name (case-insensitive).

    Raises:
        ConfigurationError: If the value names no member
    """
    if isinstance(value, enum_cls):
        return value

    if isinstance(value, str):
        key = value.strip().replace("-", "").replace("_", "").upper()
        for member in enum_cls:
            if value == member.value or key == member.name.replace("_", ""):
                return member

    allowed = ", ".join(str(m.value) for m in enum_cls)
    raise ConfigurationError(
        f"Unrecognized {field} {value!r}; expected one of: {allowed}",
        field=field,
        value=value,
    )


@dataclass(frozen=True)
class OutlierConfig:
    """Outlier detection parameters."""
    enabled: bool = True
    method: OutlierMethod = OutlierMethod.IQR
    threshold: Optional[float] = None    # IQR multiplier or z-score limit

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", coerce_enum(OutlierMethod, self.method, "outlier method"))

        if self.threshold is None:
            default = DEFAULT_IQR_THRESHOLD if self.method is OutlierMethod.IQR else DEFAULT_ZSCORE_THRESHOLD
            object.__setattr__(self, "threshold", default)

        if isinstance(self.threshold, bool) or not isinstance(self.threshold, (int, float)) or self.threshold <= 0:
            raise ConfigurationError(
                "Outlier threshold must be a positive number",
                field="threshold",
                value=self.threshold,
            )


@dataclass(frozen=True)
class AggregationConfig:
    """Immutable aggregation settings supplied with every aggregation call."""
    method: AggregationMethod = AggregationMethod.VWAP
    timeframe_ms: int = AggregationTimeframe.MINUTE_1
    use_real_high_low: bool = True       # High/low are always real extrema
    outlier_detection: Optional[OutlierConfig] = None
    min_exchanges: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", coerce_enum(AggregationMethod, self.method, "aggregation method"))

        if isinstance(self.timeframe_ms, bool) or not isinstance(self.timeframe_ms, int) or self.timeframe_ms <= 0:
            raise ConfigurationError(
                "timeframe_ms must be a positive integer number of milliseconds",
                field="timeframe_ms",
                value=self.timeframe_ms,
            )
        object.__setattr__(self, "timeframe_ms", int(self.timeframe_ms))

        if isinstance(self.min_exchanges, bool) or not isinstance(self.min_exchanges, int) or self.min_exchanges < 1:
            raise ConfigurationError(
                "min_exchanges must be an integer >= 1",
                field="min_exchanges",
                value=self.min_exchanges,
            )

        if self.outlier_detection is not None and not isinstance(self.outlier_detection, OutlierConfig):
            raise ConfigurationError(
                "outlier_detection must be an OutlierConfig",
                field="outlier_detection",
                value=self.outlier_detection,
            )

    @property
    def outliers_enabled(self) -> bool:
        """True when outlier filtering should run."""
        return self.outlier_detection is not None and self.outlier_detection.enabled


@dataclass(frozen=True)
class EngineParams:
    """Engine-wide limits and reporting thresholds."""
    max_candles_per_exchange: int = 100      # Input cap per exchange
    max_candles_to_display: int = 100        # Most recent buckets kept
    concentration_threshold: float = 40.0    # Market share % flagging concentration
    efficiency_high: float = 80.0
    efficiency_medium: float = 60.0
    low_confidence_threshold: float = 0.5
    depth_normalization_levels: int = 20     # Book levels for full depth bonus


DEFAULT_AGGREGATION_CONFIG = AggregationConfig(
    method=AggregationMethod.VWAP,
    timeframe_ms=AggregationTimeframe.MINUTE_1,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.IQR, threshold=1.5),
    min_exchanges=1,
)

# Risk management and regulatory compliance
CONSERVATIVE_PRESET = AggregationConfig(
    method=AggregationMethod.MEDIAN,
    timeframe_ms=AggregationTimeframe.MINUTE_5,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.IQR, threshold=1.0),
    min_exchanges=4,
)

STANDARD_PRESET = AggregationConfig(
    method=AggregationMethod.VWAP,
    timeframe_ms=AggregationTimeframe.MINUTE_1,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.IQR, threshold=1.5),
    min_exchanges=2,
)

# Low latency, lighter outlier removal
AGGRESSIVE_PRESET = AggregationConfig(
    method=AggregationMethod.MARKET_SHARE,
    timeframe_ms=AggregationTimeframe.SECOND_15,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.ZSCORE, threshold=3.0),
    min_exchanges=1,
)

# Keeps every sample
RESEARCH_PRESET = AggregationConfig(
    method=AggregationMethod.EQUAL,
    timeframe_ms=AggregationTimeframe.MINUTE_1,
    outlier_detection=OutlierConfig(enabled=False, method=OutlierMethod.IQR, threshold=3.0),
    min_exchanges=1,
)

LIQUIDITY_PRESET = AggregationConfig(
    method=AggregationMethod.LIQUIDITY,
    timeframe_ms=AggregationTimeframe.SECOND_30,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.IQR, threshold=1.5),
    min_exchanges=2,
)

REGULATORY_PRESET = AggregationConfig(
    method=AggregationMethod.MARKET_SHARE,
    timeframe_ms=AggregationTimeframe.MINUTE_1,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.IQR, threshold=1.5),
    min_exchanges=3,
)

TWAP_PRESET = AggregationConfig(
    method=AggregationMethod.TWAP,
    timeframe_ms=AggregationTimeframe.MINUTE_1,
    outlier_detection=OutlierConfig(enabled=True, method=OutlierMethod.IQR, threshold=1.5),
    min_exchanges=2,
)

AGGREGATION_PRESETS: dict[str, AggregationConfig] = {
    "conservative": CONSERVATIVE_PRESET,
    "standard": STANDARD_PRESET,
    "aggressive": AGGRESSIVE_PRESET,
    "research": RESEARCH_PRESET,
    "liquidity": LIQUIDITY_PRESET,
    "regulatory": REGULATORY_PRESET,
    "twap": TWAP_PRESET,
}


def get_preset(name: str) -> AggregationConfig:
    """Get a named aggregation preset."""
    try:
        return AGGREGATION_PRESETS[name.lower()]
    except (KeyError, AttributeError):
        raise ConfigurationError(
            f"Unknown aggregation preset {name!r}; expected one of: {', '.join(AGGREGATION_PRESETS)}",
            field="preset",
            value=name,
        ) from None
