import json
import re
from datetime import date

from .errors import TaskValidationError
from .models import Priority, Task

TITLE_MAX_LENGTH = Task._meta.get_field("title").max_length

TASK_ID_RE = re.compile(r"^[0-9]+$")
DUE_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

# strings read as false; every other non-empty string is true
FALSE_STRINGS = {"", "0", "false", "no", "n", "off", "f"}

MISSING = object()


def parse_task_id(raw):
    """Path segment -> int. Anything but a run of digits is rejected."""
    if raw is None:
        raise TaskValidationError("Valid task ID is required")
    text = str(raw).strip()
    if not TASK_ID_RE.match(text):
        raise TaskValidationError("Valid task ID is required")
    return int(text)


def parse_bool(value):
    """
    Normalize a JSON value to bool:
      true/false -> itself, null -> False, numbers -> value != 0,
      FALSE_STRINGS (case-insensitive) -> False, any other string -> True,
      empty list/object -> False, anything else -> True.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return True


def parse_due_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DUE_DATE_RE.match(value.strip()):
        raise TaskValidationError("Due date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise TaskValidationError("Due date must be in YYYY-MM-DD format")


def parse_json_body(request):
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError):
        raise TaskValidationError("Request body must be a JSON object")
    if not isinstance(payload, dict):
        raise TaskValidationError("Request body must be a JSON object")
    return payload


def _clean_title(value, message):
    if not isinstance(value, str) or not value.strip():
        raise TaskValidationError(message)
    title = value.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise TaskValidationError(f"Task title must be at most {TITLE_MAX_LENGTH} characters")
    return title


def _clean_priority(value):
    if value not in Priority.values:
        raise TaskValidationError("Priority must be high, medium, or low")
    return value


def _clean_description(value):
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TaskValidationError("Description must be a string")
    return value


def clean_create(payload):
    """Validated keyword arguments for TaskStore.create."""
    title = _clean_title(payload.get("title"), "Task title is required")

    priority = payload.get("priority")
    if priority is None or priority == "":
        priority = Priority.MEDIUM
    else:
        priority = _clean_priority(priority)

    return {
        "title": title,
        "description": _clean_description(payload.get("description")),
        "due_date": parse_due_date(payload.get("due_date")),
        "priority": priority,
    }


def clean_update(payload):
    """
    Only the fields present in the payload are returned; anything omitted
    keeps its stored value.
    """
    fields = {}

    title = payload.get("title", MISSING)
    if title is not MISSING:
        fields["title"] = _clean_title(title, "Task title cannot be empty")

    priority = payload.get("priority", MISSING)
    if priority is not MISSING:
        fields["priority"] = _clean_priority(priority)

    if "description" in payload:
        fields["description"] = _clean_description(payload["description"])

    if "due_date" in payload:
        fields["due_date"] = parse_due_date(payload["due_date"])

    if "completed" in payload:
        fields["completed"] = parse_bool(payload["completed"])

    return fields


def clean_list_filters(params):
    """Query params -> TaskStore.list_tasks kwargs; unknown values are dropped."""
    status = params.get("status")
    priority = params.get("priority")
    search = params.get("search")
    return {
        "status": status if status in ("active", "completed") else None,
        "priority": priority if priority in Priority.values else None,
        "search": search or None,
    }
