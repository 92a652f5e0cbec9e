"""Exception hierarchy for tasktray."""


class TaskError(Exception):
    """Base class for all tasktray errors."""


class ValidationError(TaskError, ValueError):
    """Caller-supplied input was rejected (blank title, bad deadline)."""


class NotFoundError(TaskError, LookupError):
    """No task with the requested id exists."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class PersistenceError(TaskError):
    """Reading or writing the tasks file failed."""
