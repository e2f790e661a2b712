"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from ..errors import ConfigurationError
from .defaults import AGGREGATION_PRESETS, AggregationMethod, OutlierMethod, coerce_enum


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_member(enum_cls: type, value: Any, field: str) -> bool:
    try:
        coerce_enum(enum_cls, value, field)
    except ConfigurationError:
        return False
    return True


class ConfigValidator:
    """Validates aggregation parameters without raising."""

    @staticmethod
    def validate_aggregation_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate aggregation parameters."""
        errors = []

        if "preset" in params and str(params["preset"]).lower() not in AGGREGATION_PRESETS:
            errors.append(ValidationError(
                field="preset",
                message=f"Must be one of: {', '.join(AGGREGATION_PRESETS)}",
                value=params["preset"]
            ))

        if "method" in params:
            value = params["method"]
            allowed = {m.value for m in AggregationMethod}
            if not _is_member(AggregationMethod, value, "method"):
                errors.append(ValidationError(
                    field="method",
                    message=f"Must be one of: {', '.join(sorted(allowed))}",
                    value=value
                ))

        if "timeframe_ms" in params:
            value = params["timeframe_ms"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field="timeframe_ms",
                    message="Must be a positive integer",
                    value=value
                ))

        if "use_real_high_low" in params:
            value = params["use_real_high_low"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="use_real_high_low",
                    message="Must be a boolean",
                    value=value
                ))

        if "min_exchanges" in params:
            value = params["min_exchanges"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(ValidationError(
                    field="min_exchanges",
                    message="Must be an integer >= 1",
                    value=value
                ))

        if "outlier_detection" in params:
            errors.extend(ConfigValidator.validate_outlier_params(params["outlier_detection"]))

        return errors

    @staticmethod
    def validate_outlier_params(params: Any) -> list[ValidationError]:
        """Validate outlier detection parameters."""
        if params is None:
            return []
        if not isinstance(params, dict):
            return [ValidationError(
                field="outlier_detection",
                message="Must be a mapping",
                value=params
            )]

        errors = []

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ValidationError(
                field="outlier_detection.enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        if "method" in params:
            value = params["method"]
            allowed = {m.value for m in OutlierMethod}
            if not _is_member(OutlierMethod, value, "outlier method"):
                errors.append(ValidationError(
                    field="outlier_detection.method",
                    message=f"Must be one of: {', '.join(sorted(allowed))}",
                    value=value
                ))

        if "threshold" in params and params["threshold"] is not None:
            value = params["threshold"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="outlier_detection.threshold",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate a complete merged configuration."""
        errors = ConfigValidator.validate_aggregation_params(config)

        for field_name in ("method", "timeframe_ms"):
            if field_name not in config:
                errors.append(ValidationError(
                    field=field_name,
                    message="Required field is missing",
                    value=None
                ))

        return errors
