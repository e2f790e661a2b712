"""
Market data models and raw payload parsing.

Candles and order book snapshots arrive from external feed adapters as plain
dicts/lists; this package turns them into immutable domain objects.
"""
