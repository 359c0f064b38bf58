from dataclasses import dataclass
from datetime import date


@dataclass
class TaskForm:
    """Editable copy of a task as shown in the add/edit dialog."""

    title: str = ""
    description: str = ""
    due_date: object = None  # date, "YYYY-MM-DD" or None
    priority: str = "medium"

    @classmethod
    def from_task(cls, task):
        if task is None:
            return cls()
        return cls(
            title=task.get("title") or "",
            description=task.get("description") or "",
            due_date=task.get("due_date") or None,
            priority=task.get("priority") or "medium",
        )

    def validate(self):
        """Field -> message for every problem that blocks submission."""
        errors = {}
        if not (self.title or "").strip():
            errors["title"] = "Title is required"
        return errors

    def to_payload(self):
        due = self.due_date
        if isinstance(due, date):
            due = due.isoformat()
        return {
            "title": self.title.strip(),
            "description": (self.description or "").strip(),
            "due_date": due or None,
            "priority": self.priority,
        }
