"""Unit tests for configuration management."""

import pytest
from pathlib import Path

from consensus_app.config.defaults import (
    AGGREGATION_PRESETS,
    DEFAULT_AGGREGATION_CONFIG,
    AggregationConfig,
    AggregationMethod,
    AggregationTimeframe,
    EngineParams,
    OutlierConfig,
    OutlierMethod,
    coerce_enum,
    get_preset,
)
from consensus_app.config.loader import ConfigLoader, build_aggregation_config, config_to_dict
from consensus_app.config.validation import ConfigValidator
from consensus_app.errors import ConfigurationError


MARKETS_YAML = """
engine:
  max_candles_to_display: 50
  concentration_threshold: 45.0

markets:
  BTC/USDT:
    preset: regulatory
    min_exchanges: 2
  ETH/USDT:
    outlier_detection:
      threshold: 2.0
"""


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    (tmp_path / "markets.yaml").write_text(MARKETS_YAML)
    return tmp_path


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_aggregation_config(self) -> None:
        """Test the documented defaults: VWAP, one minute, IQR 1.5, one exchange."""
        config = DEFAULT_AGGREGATION_CONFIG
        assert config.method is AggregationMethod.VWAP
        assert config.timeframe_ms == 60_000
        assert config.outlier_detection.method is OutlierMethod.IQR
        assert config.outlier_detection.threshold == 1.5
        assert config.min_exchanges == 1
        assert config.use_real_high_low is True

    def test_timeframes_in_milliseconds(self) -> None:
        """Test timeframe enum values."""
        assert AggregationTimeframe.SECOND_15 == 15_000
        assert AggregationTimeframe.HOUR_1 == 3_600_000

    def test_engine_params_defaults(self) -> None:
        """Test engine limits."""
        params = EngineParams()
        assert params.max_candles_per_exchange == 100
        assert params.max_candles_to_display == 100
        assert params.concentration_threshold == 40.0


class TestPresets:
    """Test suite for aggregation presets."""

    @pytest.mark.parametrize("name,method,timeframe,min_exchanges", [
        ("conservative", AggregationMethod.MEDIAN, 300_000, 4),
        ("standard", AggregationMethod.VWAP, 60_000, 2),
        ("aggressive", AggregationMethod.MARKET_SHARE, 15_000, 1),
        ("research", AggregationMethod.EQUAL, 60_000, 1),
        ("liquidity", AggregationMethod.LIQUIDITY, 30_000, 2),
        ("regulatory", AggregationMethod.MARKET_SHARE, 60_000, 3),
        ("twap", AggregationMethod.TWAP, 60_000, 2),
    ])
    def test_preset_values(self, name, method, timeframe, min_exchanges) -> None:
        """Test every preset's method, timeframe and coverage."""
        preset = get_preset(name)
        assert preset.method is method
        assert preset.timeframe_ms == timeframe
        assert preset.min_exchanges == min_exchanges

    def test_preset_outlier_settings(self) -> None:
        """Test outlier settings that differ between presets."""
        assert get_preset("aggressive").outlier_detection.method is OutlierMethod.ZSCORE
        assert get_preset("aggressive").outlier_detection.threshold == 3.0
        assert get_preset("conservative").outlier_detection.threshold == 1.0
        assert not get_preset("research").outliers_enabled

    def test_preset_lookup_case_insensitive(self) -> None:
        """Test preset names ignore case."""
        assert get_preset("STANDARD") is AGGREGATION_PRESETS["standard"]

    def test_unknown_preset(self) -> None:
        """Test that unknown presets raise."""
        with pytest.raises(ConfigurationError) as exc_info:
            get_preset("turbo")
        assert exc_info.value.field == "preset"


class TestConfigConstruction:
    """Test suite for config validation at construction time."""

    @pytest.mark.parametrize("value,expected", [
        ("market-share", AggregationMethod.MARKET_SHARE),
        ("MarketShare", AggregationMethod.MARKET_SHARE),
        ("MARKET_SHARE", AggregationMethod.MARKET_SHARE),
        (AggregationMethod.TWAP, AggregationMethod.TWAP),
    ])
    def test_method_coercion(self, value, expected) -> None:
        """Test that method names and values resolve to members."""
        assert coerce_enum(AggregationMethod, value, "method") is expected

    def test_unknown_method(self) -> None:
        """Test that an unknown method is rejected."""
        with pytest.raises(ConfigurationError):
            AggregationConfig(method="fancy")

    @pytest.mark.parametrize("timeframe", [0, -1000, 1.5, True, "60000"])
    def test_invalid_timeframe(self, timeframe) -> None:
        """Test that non-positive or non-integer timeframes are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            AggregationConfig(timeframe_ms=timeframe)
        assert exc_info.value.field == "timeframe_ms"

    @pytest.mark.parametrize("min_exchanges", [0, -2, 1.0])
    def test_invalid_min_exchanges(self, min_exchanges) -> None:
        """Test that min_exchanges must be an integer >= 1."""
        with pytest.raises(ConfigurationError):
            AggregationConfig(min_exchanges=min_exchanges)

    def test_timeframe_enum_accepted(self) -> None:
        """Test that timeframe enum members are stored as plain integers."""
        config = AggregationConfig(timeframe_ms=AggregationTimeframe.SECOND_5)
        assert config.timeframe_ms == 5_000
        assert type(config.timeframe_ms) is int

    def test_outlier_threshold_defaults_by_method(self) -> None:
        """Test per-method default thresholds."""
        assert OutlierConfig(method="iqr").threshold == 1.5
        assert OutlierConfig(method="zscore").threshold == 3.0

    @pytest.mark.parametrize("threshold", [0, -1.5, "high"])
    def test_invalid_outlier_threshold(self, threshold) -> None:
        """Test that thresholds must be positive numbers."""
        with pytest.raises(ConfigurationError):
            OutlierConfig(threshold=threshold)

    def test_unknown_outlier_method(self) -> None:
        """Test that an unknown outlier method is rejected."""
        with pytest.raises(ConfigurationError):
            OutlierConfig(method="mad")

    def test_outlier_detection_type_checked(self) -> None:
        """Test that outlier_detection must be an OutlierConfig."""
        with pytest.raises(ConfigurationError):
            AggregationConfig(outlier_detection={"enabled": True})


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_config_loader_creation(self) -> None:
        """Test that ConfigLoader can be created."""
        loader = ConfigLoader.create()
        assert isinstance(loader.config_dir, Path)

    def test_missing_file_uses_preset(self, tmp_path: Path) -> None:
        """Test config merging with defaults only."""
        loader = ConfigLoader.create(tmp_path)
        assert loader.resolve("UNKNOWN/USDT") == get_preset("standard")

    def test_market_preset_and_override(self, config_dir: Path) -> None:
        """Test that the market entry selects a preset and overrides it."""
        config = ConfigLoader.create(config_dir).resolve("BTC/USDT")
        assert config.method is AggregationMethod.MARKET_SHARE
        assert config.min_exchanges == 2

    def test_nested_market_override(self, config_dir: Path) -> None:
        """Test deep merge of nested outlier settings."""
        config = ConfigLoader.create(config_dir).resolve("ETH/USDT")
        assert config.outlier_detection.threshold == 2.0
        assert config.outlier_detection.method is OutlierMethod.IQR
        assert config.outlier_detection.enabled is True

    def test_call_overrides_win(self, config_dir: Path) -> None:
        """Test that per-call overrides take precedence over the market entry."""
        loader = ConfigLoader.create(config_dir)
        config = loader.resolve("BTC/USDT", overrides={"min_exchanges": 5, "method": "median"})
        assert config.min_exchanges == 5
        assert config.method is AggregationMethod.MEDIAN

    def test_method_switch_resets_inherited_threshold(self, config_dir: Path) -> None:
        """Test that switching to zscore does not keep the preset's IQR multiplier."""
        loader = ConfigLoader.create(config_dir)
        config = loader.resolve("BTC/USDT", overrides={"outlier_detection": {"method": "zscore"}})
        assert config.outlier_detection == OutlierConfig(enabled=True, method=OutlierMethod.ZSCORE, threshold=3.0)

    def test_method_switch_keeps_explicit_threshold(self, config_dir: Path) -> None:
        """Test that a threshold given alongside the new method is kept."""
        loader = ConfigLoader.create(config_dir)
        config = loader.resolve(
            "BTC/USDT", overrides={"outlier_detection": {"method": "zscore", "threshold": 2.5}})
        assert config.outlier_detection.method is OutlierMethod.ZSCORE
        assert config.outlier_detection.threshold == 2.5

    def test_same_method_keeps_market_threshold(self, config_dir: Path) -> None:
        """Test that restating the current method keeps the market's threshold."""
        loader = ConfigLoader.create(config_dir)
        config = loader.resolve("ETH/USDT", overrides={"outlier_detection": {"method": "iqr"}})
        assert config.outlier_detection.threshold == 2.0

    def test_market_method_switch_uses_method_default(self, tmp_path: Path) -> None:
        """Test that a market entry switching method gets that method's default."""
        (tmp_path / "markets.yaml").write_text(
            "markets:\n  SOL/USDT:\n    outlier_detection:\n      method: zscore\n")
        config = ConfigLoader.create(tmp_path).resolve("SOL/USDT")
        assert config.outlier_detection.threshold == 3.0

    def test_preset_argument_wins(self, config_dir: Path) -> None:
        """Test that an explicit preset replaces the market's preset."""
        config = ConfigLoader.create(config_dir).resolve("BTC/USDT", preset="twap")
        assert config.method is AggregationMethod.TWAP
        # Market override still applies on top of the preset
        assert config.min_exchanges == 2

    def test_engine_params(self, config_dir: Path) -> None:
        """Test loading engine limits from the file."""
        params = ConfigLoader.create(config_dir).load_engine_params()
        assert params.max_candles_to_display == 50
        assert params.concentration_threshold == 45.0
        assert params.max_candles_per_exchange == 100

    def test_unknown_engine_param(self, tmp_path: Path) -> None:
        """Test that typos in the engine section are rejected."""
        (tmp_path / "markets.yaml").write_text("engine:\n  max_candle: 5\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path).load_engine_params()

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file behaves like a missing one."""
        (tmp_path / "markets.yaml").write_text("")
        loader = ConfigLoader.create(tmp_path)
        assert loader.load_market_config("BTC/USDT") == {}
        assert loader.load_engine_params() == EngineParams()

    def test_build_rejects_unknown_keys(self) -> None:
        """Test that unknown config keys are rejected."""
        with pytest.raises(ConfigurationError):
            build_aggregation_config({"method": "vwap", "timeframe": 60_000})

    def test_dict_conversion(self) -> None:
        """Test converting a config to a plain dict and back."""
        as_dict = config_to_dict(get_preset("aggressive"))
        assert as_dict["method"] == "market-share"
        assert as_dict["outlier_detection"] == {"enabled": True, "method": "zscore", "threshold": 3.0}
        assert build_aggregation_config(as_dict) == get_preset("aggressive")


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_valid_params(self) -> None:
        """Test validation of valid aggregation parameters."""
        params = {
            "method": "liquidity",
            "timeframe_ms": 30_000,
            "min_exchanges": 2,
            "outlier_detection": {"enabled": True, "method": "zscore", "threshold": 2.5},
        }
        assert ConfigValidator.validate_aggregation_params(params) == []

    def test_invalid_method(self) -> None:
        """Test validation of an unknown method."""
        errors = ConfigValidator.validate_aggregation_params({"method": "fancy"})
        assert len(errors) == 1
        assert errors[0].field == "method"

    def test_multiple_errors(self) -> None:
        """Test that every invalid field is reported."""
        errors = ConfigValidator.validate_aggregation_params({
            "timeframe_ms": -1,
            "min_exchanges": 0,
            "preset": "turbo",
            "outlier_detection": {"threshold": 0},
        })
        fields = {err.field for err in errors}
        assert fields == {"timeframe_ms", "min_exchanges", "preset", "outlier_detection.threshold"}

    def test_outlier_params_must_be_mapping(self) -> None:
        """Test validation of a non-mapping outlier section."""
        errors = ConfigValidator.validate_outlier_params("iqr")
        assert errors[0].field == "outlier_detection"

    def test_validate_config_requires_fields(self) -> None:
        """Test that a merged config needs method and timeframe."""
        errors = ConfigValidator.validate_config({"min_exchanges": 1})
        assert {err.field for err in errors} == {"method", "timeframe_ms"}
