class TaskError(Exception):
    """Base class for errors that map onto a client-facing HTTP status."""

    status = 400
    default_message = "Bad request"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class TaskValidationError(TaskError):
    status = 400
    default_message = "Invalid task data"


class TaskNotFound(TaskError):
    status = 404
    default_message = "Task not found"
