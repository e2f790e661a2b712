"""
System failure error classifications for unrecoverable errors.

These exceptions represent caller misconfiguration or broken calculations
that must not be masked by a silent fallback.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""
    
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(SystemFailureError):
    """Invalid aggregation configuration, rejected at construction time."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class MetricsCalculationError(SystemFailureError):
    """Critical error in a pipeline stage that prevents producing a snapshot."""
    
    def __init__(self, message: str, metric_name: Optional[str] = None, 
                 calculation_input: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.metric_name = metric_name
        self.calculation_input = calculation_input
