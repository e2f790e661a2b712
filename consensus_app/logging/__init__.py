"""
Logging configuration and utilities for the consensus aggregation engine.
"""
from .config import configure_logging, get_audit_logger, get_logger, log_aggregation_summary

__all__ = ["configure_logging", "get_logger", "get_audit_logger", "log_aggregation_summary"]
