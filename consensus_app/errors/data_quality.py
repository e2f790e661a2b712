"""
Data quality error classifications for market data ingestion.

These exceptions describe candle and order book payloads that cannot be
turned into domain objects. They are recoverable: the offending payload is
skipped and the rest of the batch is still aggregated.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""
    
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MissingDataError(DataQualityError):
    """Required field is completely missing."""
    
    def __init__(self, message: str, data_type: Optional[str] = None,
                 field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data_type = data_type
        self.field = field


class MalformedDataError(DataQualityError):
    """Data exists but is in incorrect format."""
    
    def __init__(self, message: str, raw_data: Optional[str] = None, 
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format
