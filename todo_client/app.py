import logging
from dataclasses import dataclass

from .api import ApiError
from .forms import TaskForm
from .state import (
    Filters,
    TaskCreated,
    TaskDeleted,
    TaskToggled,
    TaskUpdated,
    apply_event,
    empty_message,
    filter_tasks,
    sort_tasks,
)

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    message: str = ""
    severity: str = "success"  # success | info | error
    open: bool = False


class TaskClientApp:
    """
    Client-side state holder.

    The task list is fetched once by load(); filters are applied locally and
    every mutation reconciles the list from the server's response.
    """

    def __init__(self, api):
        self.api = api
        self.tasks = []
        self.filters = Filters()
        self.loading = False
        self.notification = Notification()
        self.dialog_open = False
        self.editing_task = None
        self.form_errors = {}

    # ---- notifications ----

    def notify(self, message, severity="success"):
        self.notification = Notification(message=message, severity=severity, open=True)

    def dismiss_notification(self):
        self.notification.open = False

    # ---- loading / view ----

    def load(self):
        self.loading = True
        try:
            self.tasks = self.api.list_tasks()
        except ApiError:
            logger.exception("Error loading tasks")
            self.tasks = []
            self.notify("Failed to load tasks", "error")
        finally:
            self.loading = False

    def set_filters(self, **changes):
        self.filters = self.filters.update(**changes)

    def clear_filters(self):
        self.filters = Filters()

    def visible_tasks(self, sort_by="due_date"):
        return sort_tasks(filter_tasks(self.tasks, self.filters), sort_by)

    def empty_message(self):
        return empty_message(self.filters)

    def find(self, task_id):
        for task in self.tasks:
            if task["id"] == task_id:
                return task
        return None

    # ---- dialog ----

    def open_create(self):
        self.editing_task = None
        self.form_errors = {}
        self.dialog_open = True
        return TaskForm()

    def open_edit(self, task):
        self.editing_task = task
        self.form_errors = {}
        self.dialog_open = True
        return TaskForm.from_task(task)

    def close_dialog(self):
        self.dialog_open = False
        self.editing_task = None
        self.form_errors = {}

    # ---- mutations ----

    def submit(self, form):
        """Create or update depending on the dialog mode. Returns True on success."""
        self.form_errors = form.validate()
        if self.form_errors:
            return False

        payload = form.to_payload()
        try:
            if self.editing_task is not None:
                updated = self.api.update_task(self.editing_task["id"], payload)
                self.tasks = apply_event(self.tasks, TaskUpdated(updated))
                self.notify("Task updated successfully")
            else:
                created = self.api.create_task(payload)
                self.tasks = apply_event(self.tasks, TaskCreated(created))
                self.notify("Task created successfully")
        except ApiError as exc:
            logger.error("Error saving task: %s", exc.message)
            self.notify(exc.message, "error")
            return False

        self.close_dialog()
        return True

    def toggle_complete(self, task_id):
        try:
            updated = self.api.toggle_complete(task_id)
        except ApiError as exc:
            logger.error("Error toggling task %s: %s", task_id, exc.message)
            self.notify("Failed to update task", "error")
            return False

        self.tasks = apply_event(self.tasks, TaskToggled(updated))
        self.notify("Task completed" if updated.get("completed") else "Task reopened", "info")
        return True

    def delete(self, task_id, confirm=None):
        """
        confirm: optional callable(task) -> bool asked before anything is sent.
        """
        if confirm is not None and not confirm(self.find(task_id)):
            return False

        try:
            self.api.delete_task(task_id)
        except ApiError as exc:
            logger.error("Error deleting task %s: %s", task_id, exc.message)
            self.notify("Failed to delete task", "error")
            return False

        self.tasks = apply_event(self.tasks, TaskDeleted(task_id))
        self.notify("Task deleted successfully")
        return True
