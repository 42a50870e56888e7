class TaskServiceError(Exception):
    """Base for every error raised below the HTTP layer."""


class ValidationError(TaskServiceError):
    """Malformed identifier, pagination or body. Client fault."""


class NotFound(TaskServiceError):
    def __init__(self, task_id: int):
        super().__init__("task not found")
        self.task_id = task_id


class StorageError(TaskServiceError):
    """Any failure of the underlying store."""
