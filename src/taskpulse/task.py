"""Task value model for taskpulse."""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .utils.datetime import parse_datetime, to_iso_string


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(Enum):
    """Task status states."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecurrenceType(Enum):
    """Recurrence kinds a task can carry."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"  # Currently spaced like DAILY


# Optional fields whose absence is itself a meaningful state.
CLEARABLE_FIELDS = {
    "clear_due_date": "due_date",
    "clear_completed_at": "completed_at",
    "clear_category": "category_id",
    "clear_recurrence_end_date": "recurrence_end_date",
    "clear_estimated_minutes": "estimated_minutes",
    "clear_actual_minutes": "actual_minutes",
}

# Keys written by other clients of the same store.
_CAMEL_CASE_KEYS = {
    "categoryId": "category_id",
    "dueDate": "due_date",
    "recurrenceType": "recurrence_type",
    "recurrenceInterval": "recurrence_interval",
    "recurrenceEndDate": "recurrence_end_date",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "completedAt": "completed_at",
    "estimatedMinutes": "estimated_minutes",
    "actualMinutes": "actual_minutes",
    "isArchived": "is_archived",
    "inProgress": "in_progress",
}

_DATETIME_FIELDS = ("due_date", "recurrence_end_date", "created_at",
                    "updated_at", "completed_at")


@dataclass(frozen=True)
class Task:
    """Immutable task record as read from the task store.

    Instances are never modified in place; use ``copy_with`` to derive a
    changed copy.
    """

    # Core identification
    id: str
    title: str
    description: str = ""

    # Status and organisation
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    category_id: Optional[str] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    # Scheduling
    due_date: Optional[datetime] = None
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_interval: Optional[int] = None
    recurrence_end_date: Optional[datetime] = None

    # Metadata
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Effort in minutes
    estimated_minutes: Optional[float] = None
    actual_minutes: Optional[float] = None

    is_archived: bool = False

    def __post_init__(self):
        # Lists handed in by callers are frozen into tuples
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags or ()))

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type != RecurrenceType.NONE

    @property
    def recurrence_rule(self):
        """The recurrence fields of this task as a ``RecurrenceRule``."""
        from .recurring import RecurrenceRule
        return RecurrenceRule.from_task(self)

    def is_overdue(self, now: datetime) -> bool:
        """Check if the task is due strictly before ``now`` and not completed."""
        if self.due_date is None or self.is_completed:
            return False
        return self.due_date < now

    def copy_with(self, *,
                  clear_due_date: bool = False,
                  clear_completed_at: bool = False,
                  clear_category: bool = False,
                  clear_recurrence_end_date: bool = False,
                  clear_estimated_minutes: bool = False,
                  clear_actual_minutes: bool = False,
                  **changes: Any) -> "Task":
        """Return a copy with the given fields replaced.

        A field passed as ``None`` is left unchanged. To empty one of the
        optional fields, pass its ``clear_*`` flag instead; combining a value
        and the flag for the same field is rejected.

        Raises:
            TypeError: If ``changes`` names a field Task does not have.
            ValueError: If a field is both set and cleared.
        """
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise TypeError(f"Unknown Task fields: {', '.join(sorted(unknown))}")

        updates = {name: value for name, value in changes.items() if value is not None}

        flags = {
            "clear_due_date": clear_due_date,
            "clear_completed_at": clear_completed_at,
            "clear_category": clear_category,
            "clear_recurrence_end_date": clear_recurrence_end_date,
            "clear_estimated_minutes": clear_estimated_minutes,
            "clear_actual_minutes": clear_actual_minutes,
        }
        for flag, enabled in flags.items():
            if not enabled:
                continue
            name = CLEARABLE_FIELDS[flag]
            if name in updates:
                raise ValueError(f"Cannot both set and clear '{name}'")
            updates[name] = None

        return replace(self, **updates)

    def complete(self, at: datetime) -> "Task":
        """Return a completed copy of this task."""
        return self.copy_with(status=TaskStatus.COMPLETED, completed_at=at, updated_at=at)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the Task to a dictionary with ISO date strings."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "category_id": self.category_id,
            "tags": list(self.tags),
            "due_date": to_iso_string(self.due_date),
            "recurrence_type": self.recurrence_type.value,
            "recurrence_interval": self.recurrence_interval,
            "recurrence_end_date": to_iso_string(self.recurrence_end_date),
            "created_at": to_iso_string(self.created_at),
            "updated_at": to_iso_string(self.updated_at),
            "completed_at": to_iso_string(self.completed_at),
            "estimated_minutes": self.estimated_minutes,
            "actual_minutes": self.actual_minutes,
            "is_archived": self.is_archived,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create a Task from a dictionary.

        Accepts snake_case keys as produced by ``to_dict`` and the camelCase
        keys other clients write.

        Raises:
            ValueError: If the id is missing or an enum, date or flag value is malformed.
        """
        data = {_CAMEL_CASE_KEYS.get(key, key): value for key, value in data.items()}

        if data.get("id") in (None, ""):
            raise ValueError("Task data is missing an 'id'")

        dates = {name: parse_datetime(data.get(name)) for name in _DATETIME_FIELDS}

        interval = data.get("recurrence_interval")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            description=data.get("description") or "",
            status=TaskStatus(_enum_value(data.get("status"), "pending")),
            priority=Priority(data.get("priority") or "medium"),
            category_id=data.get("category_id"),
            tags=tuple(data.get("tags") or ()),
            recurrence_type=RecurrenceType(data.get("recurrence_type") or "none"),
            recurrence_interval=int(interval) if interval is not None else None,
            estimated_minutes=_optional_number(data.get("estimated_minutes")),
            actual_minutes=_optional_number(data.get("actual_minutes")),
            is_archived=_boolean(data.get("is_archived")),
            **dates,
        )


_FIELD_NAMES = {f.name for f in fields(Task)}


def _enum_value(value: Optional[str], default: str) -> str:
    if not value:
        return default
    # "inProgress" from camelCase writers
    return _CAMEL_CASE_KEYS.get(value, value)


def _optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    number = float(value)
    if number < 0:
        raise ValueError(f"Effort minutes must be non-negative, got {value!r}")
    return number


_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0", ""}


def _boolean(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Expected a boolean, got {value!r}")
