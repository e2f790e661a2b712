"""
Result models module.

Immutable snapshots summarizing one aggregation run for presentation.
"""
