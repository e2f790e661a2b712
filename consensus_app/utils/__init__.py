"""
Utility functions module.

Time Semantics:
- All timestamps are integer milliseconds since the Unix epoch
- Bucket keys are integers; floating point bucket keys are never produced
- Chart-facing output uses whole seconds
"""
