import logging

from django.db import DEFAULT_DB_ALIAS, connections
from django.db.models import F, Q

from .models import Priority, Task

logger = logging.getLogger(__name__)

STATUS_FILTERS = {
    "active": False,
    "completed": True,
}


class TaskStore:
    """
    Table-backed collection of Task rows.

    Every method touches at most one row, except list_tasks which is a
    filtered read of the whole table. Callers pass already-validated values.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def close(self):
        connections[self.using].close()
        logger.debug("TaskStore closed db=%s", self.using)

    def _tasks(self):
        return Task.objects.using(self.using)

    def count(self):
        return self._tasks().count()

    def list_tasks(self, status=None, priority=None, search=None):
        """
        status: "active" | "completed", anything else is ignored
        priority: one of Priority.values, anything else is ignored
        search: substring of title or description
        """
        qs = self._tasks().all()

        if status in STATUS_FILTERS:
            qs = qs.filter(completed=STATUS_FILTERS[status])

        if priority in Priority.values:
            qs = qs.filter(priority=priority)

        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))

        qs = qs.order_by(
            "completed",
            F("due_date").asc(nulls_last=True),
            "-created_at",
            "-id",
        )
        return list(qs)

    def get(self, task_id):
        return self._tasks().filter(pk=task_id).first()

    def create(self, title, description=None, due_date=None, priority=Priority.MEDIUM):
        task = Task(
            title=title.strip(),
            description=description,
            due_date=due_date,
            priority=priority,
        )
        task.save(using=self.using)
        logger.debug("Task created id=%s priority=%s due_date=%s", task.id, priority, due_date)
        return task

    def update(self, task, **fields):
        if "title" in fields:
            fields["title"] = fields["title"].strip()
        for name, value in fields.items():
            setattr(task, name, value)
        # auto_now only refreshes updated_at on a full save
        task.save(using=self.using)
        logger.debug("Task updated id=%s fields=%s", task.id, sorted(fields))
        return task

    def toggle_complete(self, task):
        task.completed = not task.completed
        task.save(using=self.using)
        logger.debug("Task toggled id=%s completed=%s", task.id, task.completed)
        return task

    def delete(self, task):
        task_id = task.id
        task.delete(using=self.using)
        logger.debug("Task deleted id=%s", task_id)
        return task_id
