"""
Statistics engine.

- intervals: Student-t prediction intervals over small samples
- aggregator: Rolls game and rating history up into a player's Stats
"""

from .aggregator import StatsAggregator
from .intervals import calculate_prediction_interval

__all__ = [
    "StatsAggregator",
    "calculate_prediction_interval",
]
