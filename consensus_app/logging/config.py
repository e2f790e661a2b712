"""
Centralized logging configuration for the consensus aggregation engine.

This module provides standardized logging configuration using structlog.
Pure statistics helpers never log; orchestrators (aggregator, calculator,
engine) use the loggers returned here so that every consensus price can be
traced back to the buckets and exchanges that produced it.
"""
import logging
import sys
from typing import Any, Optional, Sequence

import structlog
from structlog.types import FilteringBoundLogger

from ..errors import ConfigurationError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog on top of stdlib logging for the aggregation engine.

    Context bound with ``structlog.contextvars.bind_contextvars`` (for
    example the market being processed) is merged into every event.

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL
        format_json: Render events as JSON lines with sorted keys
        include_timestamp: Add an ISO-8601 UTC timestamp
        include_caller: Add module, function and line number
        extra_processors: Processors inserted before the renderer

    Raises:
        ConfigurationError: If the level is not a known logging level
    """
    level_name = str(level).upper()
    if level_name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level {level!r}; expected one of: {', '.join(LOG_LEVELS)}",
            field="level",
            value=level,
        )

    logging.basicConfig(
        level=getattr(logging, level_name),
        stream=sys.stdout,
        format="%(message)s",
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.MODULE,
                        structlog.processors.CallsiteParameter.FUNC_NAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    renderer = (structlog.processors.JSONRenderer(sort_keys=True) if format_json
                else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_audit_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for compliance-relevant aggregation decisions.

    Bucket drops, outlier removals and fair value results are logged through
    this logger so a reviewer can reconstruct how a consensus price was made.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the aggregation subsystem
    """
    # Unbound proxy, resolves the active configuration on first use
    return structlog.get_logger(
        name,
        subsystem="aggregation",
        audit_trail=True
    )


def log_aggregation_summary(
    logger: FilteringBoundLogger,
    market: str,
    method: str,
    candles: Sequence[Any],
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a summary of one aggregation run with standardized format.

    Args:
        logger: Structlog logger instance
        market: Market the candles were aggregated for
        method: Aggregation method value
        candles: Aggregated candles (objects exposing ``stats``)
        context: Additional context data
    """
    bucket_count = len(candles)
    if bucket_count:
        mean_confidence = sum(c.stats.confidence_score for c in candles) / bucket_count
    else:
        mean_confidence = 0.0
    outliers_removed = sum(c.stats.outliers_removed for c in candles)

    bound_logger = logger.bind(
        market=market,
        method=method,
        bucket_count=bucket_count,
        mean_confidence=round(mean_confidence, 4),
        outliers_removed=outliers_removed,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if bucket_count == 0:
        bound_logger.warning("Aggregation produced no usable buckets")
    else:
        bound_logger.info("Aggregation completed")
