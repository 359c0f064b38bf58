from .api import ApiError, TaskApiClient
from .app import TaskClientApp

__all__ = ["ApiError", "TaskApiClient", "TaskClientApp"]
