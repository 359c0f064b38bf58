"""
Pure client-side task state: filtering, sorting, display helpers and the
transitions that reconcile the local list with server responses.

Tasks are the plain dicts returned by the API.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime

PRIORITY_LABELS = {"high": "High", "medium": "Medium", "low": "Low"}
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

STATUS_CHOICES = ("all", "active", "completed")

DUE_SOON_DAYS = 3

EMPTY_FILTERED_MESSAGE = "No tasks match your filters"
EMPTY_STORE_MESSAGE = "No tasks yet. Add a task to get started!"


@dataclass(frozen=True)
class Filters:
    status: str = "all"
    priority: str = ""
    search: str = ""

    @property
    def active(self):
        return self.status != "all" or bool(self.priority) or bool(self.search)

    def update(self, **changes):
        return replace(self, **changes)


# ---- state transitions ----


@dataclass(frozen=True)
class TaskCreated:
    task: dict


@dataclass(frozen=True)
class TaskUpdated:
    task: dict


@dataclass(frozen=True)
class TaskToggled:
    task: dict


@dataclass(frozen=True)
class TaskDeleted:
    task_id: int


def _replace_by_id(tasks, task):
    return [task if t["id"] == task["id"] else t for t in tasks]


def apply_event(tasks, event):
    """Return the next task list; the previous list is never mutated."""
    if isinstance(event, TaskCreated):
        return [*tasks, event.task]
    if isinstance(event, (TaskUpdated, TaskToggled)):
        return _replace_by_id(tasks, event.task)
    if isinstance(event, TaskDeleted):
        return [t for t in tasks if t["id"] != event.task_id]
    raise TypeError(f"unknown task event: {event!r}")


# ---- filtering / sorting ----


def filter_tasks(tasks, filters):
    filtered = list(tasks)

    if filters.status == "active":
        filtered = [t for t in filtered if not t.get("completed")]
    elif filters.status == "completed":
        filtered = [t for t in filtered if t.get("completed")]

    if filters.priority:
        filtered = [t for t in filtered if t.get("priority") == filters.priority]

    if filters.search:
        needle = filters.search.lower()
        filtered = [
            t
            for t in filtered
            if needle in (t.get("title") or "").lower()
            or needle in (t.get("description") or "").lower()
        ]

    return filtered


def sort_tasks(tasks, sort_by="due_date"):
    """
    Incomplete tasks always come first. Within each group:
      due_date -> earliest first, undated last
      priority -> high, medium, low
      created  -> newest first
    Unknown sort keys return the tasks unchanged.
    """
    if sort_by == "due_date":
        return sorted(
            tasks,
            key=lambda t: (bool(t.get("completed")), t.get("due_date") is None, t.get("due_date") or ""),
        )
    if sort_by == "priority":
        return sorted(
            tasks,
            key=lambda t: (bool(t.get("completed")), PRIORITY_ORDER.get(t.get("priority"), 1)),
        )
    if sort_by == "created":
        by_created = sorted(tasks, key=lambda t: t.get("created_at") or "", reverse=True)
        return sorted(by_created, key=lambda t: bool(t.get("completed")))
    return list(tasks)


def empty_message(filters):
    return EMPTY_FILTERED_MESSAGE if filters.active else EMPTY_STORE_MESSAGE


# ---- display helpers ----


def _parse_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def format_date(value):
    d = _parse_date(value)
    if d is None:
        return "No due date"
    return f"{d:%b} {d.day}, {d.year}"


def is_past_due(value, today=None):
    d = _parse_date(value)
    if d is None:
        return False
    return d < (today or date.today())


def is_due_soon(value, today=None):
    d = _parse_date(value)
    if d is None:
        return False
    days = (d - (today or date.today())).days
    return 0 <= days <= DUE_SOON_DAYS


def priority_label(priority):
    return PRIORITY_LABELS.get(priority, "Medium")
