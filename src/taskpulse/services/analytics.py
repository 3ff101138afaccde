"""Completion analytics for taskpulse.

This module derives read-only statistics from a snapshot of tasks:
- Counts by status, priority and category
- Completion rate and average completion latency
- Estimation accuracy (estimated vs. actual effort)
- Current and longest completion-day streaks
- A trailing-window completion heatmap and hour/weekday distributions

Every figure is computed fresh from the tasks passed in; nothing is cached.
"""

import logging
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from ..config import ConfigModel
from ..task import Priority, Task, TaskStatus
from ..utils.datetime import Clock, FixedClock, SystemClock, date_range, to_date

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday",
                 "Friday", "Saturday", "Sunday"]


@dataclass(frozen=True)
class CompletionStreak:
    """Consecutive-day completion streaks"""
    current: int = 0
    longest: int = 0
    last_completion_date: Optional[date] = None
    active_today: bool = False
    total_active_days: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': self.current,
            'longest': self.longest,
            'last_completion_date': self.last_completion_date.isoformat() if self.last_completion_date else None,
            'active_today': self.active_today,
            'total_active_days': self.total_active_days,
        }


@dataclass(frozen=True)
class Statistics:
    """Aggregate completion statistics for one task snapshot"""
    generated_at: datetime
    total_tasks: int = 0
    pending_count: int = 0
    in_progress_count: int = 0
    completed_count: int = 0
    cancelled_count: int = 0
    overdue_count: int = 0

    completion_rate: float = 0.0  # 0.0 - 1.0
    average_completion_hours: float = 0.0
    estimation_accuracy: float = 0.0  # 0.0 - 1.0

    tasks_by_status: Dict[str, int] = field(default_factory=dict)
    tasks_by_priority: Dict[str, int] = field(default_factory=dict)
    tasks_by_category: Dict[str, int] = field(default_factory=dict)

    streak: CompletionStreak = field(default_factory=CompletionStreak)
    heatmap: Dict[date, int] = field(default_factory=dict)

    completions_by_weekday: Dict[str, int] = field(default_factory=dict)
    completions_by_hour: Dict[int, int] = field(default_factory=dict)
    most_productive_hour: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'generated_at': self.generated_at.isoformat(),
            'total_tasks': self.total_tasks,
            'pending_count': self.pending_count,
            'in_progress_count': self.in_progress_count,
            'completed_count': self.completed_count,
            'cancelled_count': self.cancelled_count,
            'overdue_count': self.overdue_count,
            'completion_rate': self.completion_rate,
            'average_completion_hours': self.average_completion_hours,
            'estimation_accuracy': self.estimation_accuracy,
            'tasks_by_status': dict(self.tasks_by_status),
            'tasks_by_priority': dict(self.tasks_by_priority),
            'tasks_by_category': dict(self.tasks_by_category),
            'streak': self.streak.to_dict(),
            'heatmap': {day.isoformat(): count for day, count in self.heatmap.items()},
            'completions_by_weekday': dict(self.completions_by_weekday),
            'completions_by_hour': {str(hour): count for hour, count in self.completions_by_hour.items()},
            'most_productive_hour': self.most_productive_hour,
        }


class StatisticsCalculator:
    """Computes ``Statistics`` from task snapshots"""

    def __init__(self, config: Optional[ConfigModel] = None, clock: Optional[Clock] = None):
        self.config = config or ConfigModel()
        self.clock = clock or SystemClock()

    def calculate(self, tasks: Iterable[Task], heatmap_days: Optional[int] = None) -> Statistics:
        """Generate statistics for a task snapshot.

        Counts and rates cover non-archived tasks only. Streaks, the heatmap
        and the hour/weekday distributions read the completion history of every
        task, archived ones included.
        """
        now = self.clock.now()
        today = now.date()
        if heatmap_days is None:
            heatmap_days = self.config.heatmap_days

        history = list(tasks)
        active = [t for t in history if not t.is_archived]
        completed = [t for t in active if t.is_completed]

        by_status = self._count_by_status(active)
        total = len(active)
        completion_rate = len(completed) / total if total > 0 else 0.0

        completions_by_hour = self._completions_by_hour(history)

        result = Statistics(
            generated_at=now,
            total_tasks=total,
            pending_count=by_status[TaskStatus.PENDING.value],
            in_progress_count=by_status[TaskStatus.IN_PROGRESS.value],
            completed_count=by_status[TaskStatus.COMPLETED.value],
            cancelled_count=by_status[TaskStatus.CANCELLED.value],
            overdue_count=sum(1 for t in active if t.is_overdue(now)),
            completion_rate=completion_rate,
            average_completion_hours=self._average_completion_hours(completed),
            estimation_accuracy=self._estimation_accuracy(completed),
            tasks_by_status=by_status,
            tasks_by_priority=self._count_by_priority(active),
            tasks_by_category=self._count_by_category(active),
            streak=calculate_streak(history, today, self.config.streak_grace_days),
            heatmap=completion_heatmap(history, heatmap_days, now),
            completions_by_weekday=self._completions_by_weekday(history),
            completions_by_hour=completions_by_hour,
            most_productive_hour=self._most_productive_hour(completions_by_hour),
        )

        logger.debug(f"Computed statistics for {total} tasks: {result.completed_count} completed, "
                     f"rate={result.completion_rate:.2f}, streak={result.streak.current}")
        return result

    def _count_by_status(self, tasks: List[Task]) -> Dict[str, int]:
        counts = Counter(t.status for t in tasks)
        return {status.value: counts.get(status, 0) for status in TaskStatus}

    def _count_by_priority(self, tasks: List[Task]) -> Dict[str, int]:
        """Counts for every priority level, zero where absent"""
        counts = Counter(t.priority for t in tasks)
        return {priority.value: counts.get(priority, 0) for priority in Priority}

    def _count_by_category(self, tasks: List[Task]) -> Dict[str, int]:
        label = self.config.uncategorized_label
        counts = Counter(t.category_id if t.category_id is not None else label for t in tasks)
        return dict(counts)

    def _average_completion_hours(self, completed: List[Task]) -> float:
        """Mean hours from creation to completion"""
        hours = [
            (t.completed_at - t.created_at).total_seconds() / 3600
            for t in completed
            if t.completed_at is not None and t.created_at is not None
        ]
        if not hours:
            return 0.0
        return statistics.mean(hours)

    def _estimation_accuracy(self, completed: List[Task]) -> float:
        """Mean of 1 - relative estimate error, each clamped to [0, 1]"""
        scores = []
        for t in completed:
            if not t.estimated_minutes or t.estimated_minutes <= 0 or t.actual_minutes is None:
                continue
            error = abs(t.actual_minutes - t.estimated_minutes) / t.estimated_minutes
            scores.append(1.0 - min(max(error, 0.0), 1.0))

        if not scores:
            return 0.0
        return statistics.mean(scores)

    def _completions_by_weekday(self, tasks: List[Task]) -> Dict[str, int]:
        counts = Counter(t.completed_at.weekday() for t in tasks if t.completed_at is not None)
        return {name: counts.get(index, 0) for index, name in enumerate(WEEKDAY_NAMES)}

    def _completions_by_hour(self, tasks: List[Task]) -> Dict[int, int]:
        counts = Counter(t.completed_at.hour for t in tasks if t.completed_at is not None)
        return {hour: counts.get(hour, 0) for hour in range(24)}

    def _most_productive_hour(self, by_hour: Dict[int, int]) -> Optional[int]:
        # Earliest hour wins ties
        best = max(by_hour.items(), key=lambda item: (item[1], -item[0]), default=None)
        if best is None or best[1] == 0:
            return None
        return best[0]


def completion_dates(tasks: Iterable[Task]) -> List[date]:
    """Distinct calendar dates with at least one completion, oldest first."""
    return sorted({to_date(t.completed_at) for t in tasks if t.completed_at is not None})


def calculate_streak(tasks: Iterable[Task], today: date, grace_days: int = 1) -> CompletionStreak:
    """Calculate current and longest completion-day streaks.

    A streak is a run of calendar days, each one day after the previous, with
    at least one completion. Several completions on one day count once. The
    current streak is the run ending at the most recent completion day, and
    only counts while that day is no more than ``grace_days`` before
    ``today``.
    """
    days = completion_dates(tasks)
    if not days:
        return CompletionStreak()

    longest = 1
    run = 1
    for previous, current in zip(days, days[1:]):
        if current - previous == timedelta(days=1):
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    past_days = [d for d in days if d <= today]
    current_streak = 0
    if past_days and (today - past_days[-1]).days <= grace_days:
        current_streak = 1
        for index in range(len(past_days) - 1, 0, -1):
            if past_days[index] - past_days[index - 1] != timedelta(days=1):
                break
            current_streak += 1

    return CompletionStreak(
        current=current_streak,
        longest=longest,
        last_completion_date=days[-1],
        active_today=today in days,
        total_active_days=len(days),
    )


def completion_heatmap(tasks: Iterable[Task], days: int,
                       now: Optional[datetime] = None) -> Dict[date, int]:
    """Completions per day over the ``days`` calendar days ending today.

    Every day of the window is present, oldest first, with 0 where nothing
    was completed. Completions outside the window are ignored.
    """
    if now is None:
        now = SystemClock().now()
    window = {day: 0 for day in date_range(now.date(), days)}

    for t in tasks:
        if t.completed_at is None:
            continue
        day = to_date(t.completed_at)
        if day in window:
            window[day] += 1
    return window


def calculate_statistics(tasks: Iterable[Task], now: Optional[datetime] = None,
                         heatmap_days: Optional[int] = None,
                         config: Optional[ConfigModel] = None) -> Statistics:
    """Compute statistics for ``tasks`` as of ``now`` (default: the local clock)."""
    clock = FixedClock(now) if now is not None else SystemClock()
    return StatisticsCalculator(config=config, clock=clock).calculate(tasks, heatmap_days)
