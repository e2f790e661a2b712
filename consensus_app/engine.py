"""
Consensus engine coordinator.

Entry point for callers holding raw feed payloads: parses candles and order
book snapshots, resolves the aggregation configuration for the market, and
runs the metrics calculator.

Market Data → Parsing → Liquidity → Aggregation → Fair Value → Efficiency
"""

from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

import structlog

from .config.loader import ConfigLoader, build_aggregation_config
from .config.validation import ConfigValidator
from .data.parsers import parse_candle, parse_order_book
from .errors import ConfigurationError, DataQualityError
from .logging.config import get_logger
from .metrics.calculator import MetricsCalculator
from .models.metrics import ConsensusSnapshot

logger = get_logger(__name__)

T = TypeVar("T")


class ConsensusEngine:
    """
    Produces consensus snapshots from raw multi-exchange payloads.

    Holds no market data between calls; every call to :meth:`process` is
    independent.
    """

    def __init__(self, config_dir: Optional[str] = None, strict: bool = False) -> None:
        """
        Initialize the consensus engine.

        Args:
            config_dir: Directory containing markets.yaml
            strict: Raise on the first malformed payload instead of skipping it
        """
        self.logger = logger
        self.config_loader = ConfigLoader.create(config_dir)
        self.params = self.config_loader.load_engine_params()
        self.strict = strict

        self.logger.info("Consensus engine initialized", config_dir=str(self.config_loader.config_dir))

    def process(
        self,
        market: str,
        candle_payloads: Iterable[Mapping[str, Any]],
        order_book_payloads: Iterable[Mapping[str, Any]],
        overrides: Optional[dict[str, Any]] = None,
        preset: Optional[str] = None,
    ) -> ConsensusSnapshot:
        """
        Build the consensus snapshot for one market.

        Args:
            market: Market to consolidate (e.g. "BTC/USDT")
            candle_payloads: Raw candle dicts from any exchanges
            order_book_payloads: Raw order book dicts from any exchanges
            overrides: Per-call aggregation parameter overrides
            preset: Preset name taking precedence over the market's preset

        Returns:
            ConsensusSnapshot for the market

        Raises:
            ConfigurationError: If the resolved configuration is invalid
            DataQualityError: In strict mode, for the first malformed payload
        """
        if overrides:
            validation_errors = ConfigValidator.validate_aggregation_params(overrides)
            if validation_errors:
                error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in validation_errors]
                self.logger.error("Aggregation override validation failed", market=market, errors=error_msgs)
                raise ConfigurationError(
                    "Invalid aggregation overrides: " + "; ".join(error_msgs),
                    field="overrides",
                    value=overrides,
                )

        merged = self.config_loader.merge_config(market, overrides, preset)
        config_errors = ConfigValidator.validate_config(merged)
        if config_errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in config_errors]
            self.logger.error("Merged aggregation config validation failed", market=market, errors=error_msgs)
            raise ConfigurationError(
                f"Invalid aggregation config for {market}: " + "; ".join(error_msgs),
                field="config",
                value=merged,
            )

        config = build_aggregation_config(merged)

        # Tags parse and calculation events with the market
        with structlog.contextvars.bound_contextvars(market=market):
            candles = self._parse_all(candle_payloads, parse_candle, "candle")
            order_books = self._parse_all(order_book_payloads, parse_order_book, "order_book")

            self.logger.debug(
                "Payloads parsed",
                method=config.method.value,
                candle_count=len(candles),
                order_book_count=len(order_books),
            )

            calculator = MetricsCalculator(config, self.params)
            return calculator.calculate(candles, order_books, market)

    def _parse_all(self, payloads: Iterable[Mapping[str, Any]],
                   parser: Callable[[Mapping[str, Any]], T], kind: str) -> list[T]:
        """Parse payloads, skipping malformed ones unless strict."""
        parsed = []
        skipped = 0

        for index, payload in enumerate(payloads):
            try:
                parsed.append(parser(payload))
            except DataQualityError as e:
                if self.strict:
                    raise
                skipped += 1
                self.logger.warning(
                    "Skipping malformed payload",
                    kind=kind,
                    index=index,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        if skipped:
            self.logger.info("Malformed payloads skipped", kind=kind, skipped=skipped, parsed=len(parsed))

        return parsed
