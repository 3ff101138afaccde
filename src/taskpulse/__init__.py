"""taskpulse - recurrence scheduling and completion analytics for personal task lists."""

__version__ = "0.1.0"
__author__ = "taskpulse Team"

from .task import Task, TaskStatus, Priority, RecurrenceType
from .recurring import (
    RecurrenceRule,
    RecurrenceParser,
    calculate_next_due_date,
    generate_next_occurrence,
    preview_occurrences,
    describe_recurrence,
)
from .services.analytics import (
    Statistics,
    CompletionStreak,
    StatisticsCalculator,
    calculate_statistics,
    completion_heatmap,
)

__all__ = [
    "Task",
    "TaskStatus",
    "Priority",
    "RecurrenceType",
    "RecurrenceRule",
    "RecurrenceParser",
    "calculate_next_due_date",
    "generate_next_occurrence",
    "preview_occurrences",
    "describe_recurrence",
    "Statistics",
    "CompletionStreak",
    "StatisticsCalculator",
    "calculate_statistics",
    "completion_heatmap",
    "__version__",
]
