import atexit

from django.apps import AppConfig


class TasksConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tasks"

    store = None

    def ready(self):
        from .store import TaskStore

        self.store = TaskStore()
        atexit.register(self.store.close)
