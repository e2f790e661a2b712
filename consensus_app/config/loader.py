"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    AggregationConfig,
    EngineParams,
    OutlierConfig,
    OutlierMethod,
    coerce_enum,
    get_preset,
)

DEFAULT_PRESET = "standard"
MARKETS_FILE = "markets.yaml"


def config_to_dict(config: AggregationConfig) -> dict[str, Any]:
    """Convert an AggregationConfig into a plain dict with enum values."""
    return _dataclass_to_dict(config)


def _dataclass_to_dict(obj: Any) -> Any:
    """Convert nested dataclasses to dictionary."""
    if hasattr(obj, '__dataclass_fields__'):
        return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    return obj


def build_aggregation_config(params: dict[str, Any]) -> AggregationConfig:
    """
    Build a validated AggregationConfig from a plain dict.

    Unknown keys are rejected so that typos in YAML files surface early.

    Raises:
        ConfigurationError: If any value is invalid
    """
    allowed = {f.name for f in fields(AggregationConfig)}
    unknown = set(params) - allowed - {"preset"}
    if unknown:
        raise ConfigurationError(
            f"Unknown aggregation config keys: {', '.join(sorted(unknown))}",
            field="config",
            value=sorted(unknown),
        )

    kwargs = {key: value for key, value in params.items() if key in allowed}

    outlier = kwargs.get("outlier_detection")
    if isinstance(outlier, dict):
        try:
            kwargs["outlier_detection"] = OutlierConfig(**outlier)
        except TypeError as e:
            raise ConfigurationError(f"Invalid outlier_detection: {e}",
                                     field="outlier_detection", value=outlier) from e

    return AggregationConfig(**kwargs)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_layer(config: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """
    Merge one override layer into the config.

    A layer that switches the outlier method without giving a threshold
    drops the inherited one, so the new method's default applies.
    """
    layer = {k: v for k, v in layer.items() if k != "preset"}
    outlier = layer.get("outlier_detection")
    base_outlier = config.get("outlier_detection")

    if (isinstance(outlier, dict) and isinstance(base_outlier, dict)
            and "method" in outlier and "threshold" not in outlier):
        new_method = coerce_enum(OutlierMethod, outlier["method"], "outlier method")
        old_method = coerce_enum(OutlierMethod, base_outlier.get("method", OutlierMethod.IQR), "outlier method")
        if new_method is not old_method:
            config = {**config, "outlier_detection": {**base_outlier, "threshold": None}}

    return _deep_merge(config, layer)


@dataclass(frozen=True)
class ConfigLoader:
    """Manages aggregation configuration loading with 3-tier precedence."""

    config_dir: Path

    @classmethod
    def create(cls, config_dir: Optional[Path | str] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(config_dir=Path(config_dir))

    def _load_file(self) -> dict[str, Any]:
        markets_file = self.config_dir / MARKETS_FILE

        if not markets_file.exists():
            return {}

        with open(markets_file) as f:
            loaded = yaml.safe_load(f)

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{markets_file} must contain a mapping",
                                     field="file", value=str(markets_file))
        return loaded

    def load_market_config(self, market: str) -> dict[str, Any]:
        """Load market-specific configuration overrides."""
        return dict(self._load_file().get("markets", {}).get(market, {}) or {})

    def load_engine_params(self) -> EngineParams:
        """Load engine-wide limits, falling back to defaults."""
        params = self._load_file().get("engine", {}) or {}
        try:
            return EngineParams(**params)
        except TypeError as e:
            raise ConfigurationError(f"Invalid engine parameters: {e}",
                                     field="engine", value=params) from e

    def merge_config(
        self,
        market: str,
        overrides: Optional[dict[str, Any]] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. Market-specific overrides
        3. Preset defaults (lowest priority)

        The preset is taken from the ``preset`` argument, then from a
        ``preset`` key in the overrides or market config, then ``standard``.
        """
        market_config = self.load_market_config(market)
        overrides = overrides or {}

        preset_name = (preset or overrides.get("preset") or market_config.get("preset")
                       or DEFAULT_PRESET)
        config = config_to_dict(get_preset(preset_name))

        config = _apply_layer(config, market_config)
        config = _apply_layer(config, overrides)

        return config

    def resolve(
        self,
        market: str,
        overrides: Optional[dict[str, Any]] = None,
        preset: Optional[str] = None,
    ) -> AggregationConfig:
        """Merge and build the AggregationConfig for a market."""
        return build_aggregation_config(self.merge_config(market, overrides, preset))
