"""Application services for taskpulse."""

from .analytics import (
    Statistics,
    CompletionStreak,
    StatisticsCalculator,
    calculate_statistics,
    calculate_streak,
    completion_heatmap,
)

__all__ = [
    "Statistics",
    "CompletionStreak",
    "StatisticsCalculator",
    "calculate_statistics",
    "calculate_streak",
    "completion_heatmap",
]
