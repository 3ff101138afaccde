"""
Recurrence engine for taskpulse.

Computes the next due date of a repeating task, previews the upcoming
occurrences of a series, and produces the follow-up task when an occurrence
is completed. Everything here is a pure function of its arguments: tasks are
never modified, only copied.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterator, Optional, Tuple

from .task import RecurrenceType, Task, TaskStatus
from .utils.datetime import (
    LeapDayPolicy,
    add_days,
    add_months,
    add_years,
    local_now,
    to_date,
)

logger = logging.getLogger(__name__)

IdGenerator = Callable[[], str]


@dataclass(frozen=True)
class RecurrenceRule:
    """The recurrence fields of a task, read as one unit."""
    type: RecurrenceType
    interval: Optional[int] = None
    due_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @classmethod
    def from_task(cls, task: Task) -> "RecurrenceRule":
        return cls(
            type=task.recurrence_type,
            interval=task.recurrence_interval,
            due_date=task.due_date,
            end_date=task.recurrence_end_date,
        )

    @property
    def effective_interval(self) -> int:
        """The interval to step by; absent or non-positive means 1."""
        if self.interval is None or self.interval <= 0:
            return 1
        return self.interval

    def is_past_end(self, candidate: datetime) -> bool:
        """Check if ``candidate`` falls on a calendar day after the end date."""
        if self.end_date is None:
            return False
        return to_date(candidate) > to_date(self.end_date)


def _advance_daily(due: datetime, interval: int, policy: LeapDayPolicy) -> datetime:
    return add_days(due, interval)


def _advance_weekly(due: datetime, interval: int, policy: LeapDayPolicy) -> datetime:
    return add_days(due, 7 * interval)


def _advance_monthly(due: datetime, interval: int, policy: LeapDayPolicy) -> datetime:
    return add_months(due, interval)


def _advance_yearly(due: datetime, interval: int, policy: LeapDayPolicy) -> datetime:
    return add_years(due, interval, policy)


# One entry per recurring kind. CUSTOM is an alias of DAILY.
_ADVANCERS: Dict[RecurrenceType, Callable[[datetime, int, LeapDayPolicy], datetime]] = {
    RecurrenceType.DAILY: _advance_daily,
    RecurrenceType.WEEKLY: _advance_weekly,
    RecurrenceType.MONTHLY: _advance_monthly,
    RecurrenceType.YEARLY: _advance_yearly,
    RecurrenceType.CUSTOM: _advance_daily,
}

_missing = set(RecurrenceType) - set(_ADVANCERS) - {RecurrenceType.NONE}
if _missing:
    raise RuntimeError(
        "No date arithmetic for recurrence types: "
        + ", ".join(sorted(kind.value for kind in _missing))
    )


def calculate_next_due_date(task: Task,
                            leap_day_policy: Optional[LeapDayPolicy] = None) -> Optional[datetime]:
    """Calculate the due date of the occurrence after ``task``.

    The step is taken from the task's current due date, not from today.
    ``leap_day_policy`` defaults to ``LeapDayPolicy.CLAMP``; the loaded
    configuration is never consulted here. Returns None for non-recurring tasks, tasks without a due date, and when
    the next date would fall after the recurrence end date.
    """
    rule = RecurrenceRule.from_task(task)
    if rule.type == RecurrenceType.NONE or rule.due_date is None:
        return None

    policy = leap_day_policy or LeapDayPolicy.CLAMP
    candidate = _ADVANCERS[rule.type](rule.due_date, rule.effective_interval, policy)

    if rule.is_past_end(candidate):
        logger.debug(f"Series for task {task.id} ended: {candidate.date()} is after "
                     f"{to_date(rule.end_date)}")
        return None
    return candidate


def generate_next_occurrence(completed_task: Task,
                             id_generator: Optional[IdGenerator] = None,
                             now: Optional[datetime] = None,
                             leap_day_policy: Optional[LeapDayPolicy] = None) -> Optional[Task]:
    """Build the task for the occurrence that follows ``completed_task``.

    The new task is a copy with a fresh id, the next due date, status reset to
    pending and completion data cleared. Title, priority, category, tags,
    estimates and the recurrence rule itself carry over unchanged so the series
    keeps going. Returns None when the series has no further occurrence.
    """
    next_due = calculate_next_due_date(completed_task, leap_day_policy)
    if next_due is None:
        return None

    if id_generator is None:
        id_generator = _new_task_id
    if now is None:
        now = local_now()

    next_task = completed_task.copy_with(
        id=id_generator(),
        due_date=next_due,
        status=TaskStatus.PENDING,
        created_at=now,
        updated_at=now,
        clear_completed_at=True,
        clear_actual_minutes=True,
    )
    logger.debug(f"Generated occurrence {next_task.id} of task {completed_task.id} "
                 f"due {next_due.isoformat()}")
    return next_task


def preview_occurrences(task: Task, count: int,
                        leap_day_policy: Optional[LeapDayPolicy] = None) -> Iterator[datetime]:
    """Yield up to ``count`` upcoming due dates of a recurring task.

    Stops early once the series ends. Nothing is yielded for non-recurring
    tasks or tasks without a due date. Each call starts afresh from the
    task's current due date.
    """
    current = task
    for _ in range(count):
        next_due = calculate_next_due_date(current, leap_day_policy)
        if next_due is None:
            return
        yield next_due
        current = current.copy_with(due_date=next_due)


def _new_task_id() -> str:
    return uuid.uuid4().hex


_UNITS = {
    RecurrenceType.DAILY: "day",
    RecurrenceType.CUSTOM: "day",
    RecurrenceType.WEEKLY: "week",
    RecurrenceType.MONTHLY: "month",
    RecurrenceType.YEARLY: "year",
}

_ADVERBS = {
    RecurrenceType.DAILY: "daily",
    RecurrenceType.CUSTOM: "daily",
    RecurrenceType.WEEKLY: "weekly",
    RecurrenceType.MONTHLY: "monthly",
    RecurrenceType.YEARLY: "yearly",
}


def describe_recurrence(task: Task, date_format: str = "%Y-%m-%d") -> str:
    """Render a task's recurrence rule as text, e.g. 'every 2 weeks until 2025-03-01'."""
    rule = RecurrenceRule.from_task(task)
    if rule.type == RecurrenceType.NONE:
        return "does not repeat"

    interval = rule.effective_interval
    if interval == 1:
        text = _ADVERBS[rule.type]
    else:
        text = f"every {interval} {_UNITS[rule.type]}s"

    if rule.end_date is not None:
        text += f" until {rule.end_date.strftime(date_format)}"
    return text


class RecurrenceParser:
    """Parses natural language recurrence patterns"""

    PATTERNS = {
        r'^(none|never|once)$': (RecurrenceType.NONE, 1),

        # Daily patterns
        r'^daily$': (RecurrenceType.DAILY, 1),
        r'^every day$': (RecurrenceType.DAILY, 1),
        r'^every (\d+) days?$': (RecurrenceType.DAILY, None),

        # Weekly patterns
        r'^weekly$': (RecurrenceType.WEEKLY, 1),
        r'^every week$': (RecurrenceType.WEEKLY, 1),
        r'^(fortnightly|biweekly)$': (RecurrenceType.WEEKLY, 2),
        r'^every (\d+) weeks?$': (RecurrenceType.WEEKLY, None),

        # Monthly patterns
        r'^monthly$': (RecurrenceType.MONTHLY, 1),
        r'^every month$': (RecurrenceType.MONTHLY, 1),
        r'^quarterly$': (RecurrenceType.MONTHLY, 3),
        r'^every (\d+) months?$': (RecurrenceType.MONTHLY, None),

        # Yearly patterns
        r'^yearly$': (RecurrenceType.YEARLY, 1),
        r'^annually$': (RecurrenceType.YEARLY, 1),
        r'^every year$': (RecurrenceType.YEARLY, 1),
        r'^every (\d+) years?$': (RecurrenceType.YEARLY, None),
    }

    @classmethod
    def parse(cls, pattern_str: str) -> Optional[Tuple[RecurrenceType, int]]:
        """Parse a natural language recurrence pattern.

        Returns the recurrence type and interval, or None when the phrase is
        not understood.
        """
        pattern_str = " ".join(pattern_str.lower().split())

        for regex, (rec_type, interval) in cls.PATTERNS.items():
            match = re.match(regex, pattern_str)
            if match:
                if interval is None:
                    interval = int(match.group(1))
                if interval <= 0:
                    return None
                return rec_type, interval

        return None

    @classmethod
    def apply(cls, task: Task, pattern_str: str) -> Task:
        """Return a copy of ``task`` repeating as described by ``pattern_str``.

        Raises:
            ValueError: If the pattern is not understood.
        """
        parsed = cls.parse(pattern_str)
        if parsed is None:
            raise ValueError(f"Invalid recurrence pattern: {pattern_str}")
        rec_type, interval = parsed
        return task.copy_with(recurrence_type=rec_type, recurrence_interval=interval)
