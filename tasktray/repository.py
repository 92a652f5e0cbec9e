"""Task repository for managing task operations.

This module provides the TaskRepository class, the single owner of the
in-memory task list. It validates input, keeps the list ordered newest
first and flushes every mutation through the storage layer.
"""

import logging
import re
import secrets
import threading
from datetime import datetime, timezone
from typing import Any, List, Optional

from tasktray.errors import NotFoundError, PersistenceError, ValidationError
from tasktray.models import Task, normalize_priority
from tasktray.storage import APP_NAME, JsonStorage, Storage, parse_timestamp

logger = logging.getLogger(__name__)

# Tried in order; the first one that parses wins. The pattern pins the exact
# shape (two-digit fields, "Z" or "+hh:mm" offsets); None means RFC3339.
DEADLINE_FORMATS = (
    (re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})"), None),
    (re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}"), "%Y-%m-%dT%H:%M"),
    (re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}"), "%Y-%m-%d %H:%M"),
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
)


def parse_deadline(text: Optional[str]) -> Optional[datetime]:
    """Parse deadline text entered by the user.

    Args:
        text: RFC3339 timestamp, YYYY-MM-DDTHH:MM, YYYY-MM-DD HH:MM or
              YYYY-MM-DD. Blank means no deadline.

    Returns:
        Timezone-aware datetime (UTC when the text carries no offset),
        or None for blank input

    Raises:
        ValidationError: If no accepted format matches
    """
    text = (text or "").strip()
    if not text:
        return None

    for pattern, fmt in DEADLINE_FORMATS:
        if not pattern.fullmatch(text):
            continue
        try:
            parsed = parse_timestamp(text) if fmt is None else datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise ValidationError("invalid deadline format (use RFC3339 or YYYY-MM-DD[THH:MM])")


def generate_id() -> str:
    """Return 128 random bits as lowercase hex."""
    return secrets.token_hex(16)


class TaskRepository:
    """Repository owning the canonical, newest-first task list.

    Every mutation is flushed to storage immediately. A failed flush is
    logged and the in-memory change is kept, so memory and disk can diverge
    until the next successful save.

    Attributes:
        storage: Storage backend for persisting tasks
        context: Lifetime context handed over by the host shell
    """

    def __init__(self, storage: Optional[Storage] = None, app_name: str = APP_NAME):
        """Initialize TaskRepository and load existing tasks.

        Args:
            storage: Storage implementation to use. If None, uses JsonStorage
                    in the per-user configuration directory for app_name.
            app_name: Application directory name for the default storage

        Raises:
            PersistenceError: If the default storage directory cannot be created
        """
        self.storage = storage if storage is not None else JsonStorage(app_name=app_name)
        self.context: Any = None
        self._lock = threading.RLock()
        self._tasks: List[Task] = []

        try:
            loaded = self.storage.load()
        except PersistenceError:
            logger.warning("Could not load tasks, starting with an empty list", exc_info=True)
            return

        loaded.sort(key=lambda t: t.created_at, reverse=True)
        self._tasks = loaded
        logger.info("Loaded %d task(s)", len(loaded))

    def startup(self, context: Any) -> None:
        """Keep the host's lifetime context."""
        self.context = context

    def _persist(self) -> None:
        try:
            self.storage.save(self._tasks)
        except PersistenceError:
            logger.warning("Could not save tasks, keeping in-memory changes", exc_info=True)

    def _index_of(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise NotFoundError(task_id)

    def list_tasks(self) -> List[Task]:
        """Get all tasks, newest first.

        Returns:
            A copy of the task list in canonical order
        """
        with self._lock:
            return list(self._tasks)

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a specific task by ID.

        Args:
            task_id: ID of the task to retrieve

        Returns:
            Task object if found, None otherwise
        """
        with self._lock:
            for task in self._tasks:
                if task.id == task_id:
                    return task
        return None

    def add_task(self, title: str, deadline_text: str = "", priority_text: str = "") -> Task:
        """Create a new task and put it at the head of the list.

        Args:
            title: Task title; surrounding whitespace is trimmed
            deadline_text: Optional deadline, see parse_deadline
            priority_text: "low", "medium" or "high" (case-insensitive);
                          anything else means medium

        Returns:
            The created Task object

        Raises:
            ValidationError: If the title is blank or the deadline unparseable
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("title cannot be empty")

        deadline = parse_deadline(deadline_text)
        priority = normalize_priority(priority_text)

        with self._lock:
            # created_at is taken under the lock; the list stays newest first
            task = Task(
                id=generate_id(),
                title=title,
                created_at=datetime.now().astimezone(),
                completed=False,
                deadline=deadline,
                priority=priority,
            )
            self._tasks.insert(0, task)
            self._persist()

        logger.debug("Added task %s", task.id)
        return task

    def toggle_task(self, task_id: str) -> bool:
        """Flip the completed flag of a task.

        Args:
            task_id: ID of the task to toggle

        Returns:
            The new completed state

        Raises:
            NotFoundError: If no task has this ID
        """
        with self._lock:
            task = self._tasks[self._index_of(task_id)]
            task.completed = not task.completed
            self._persist()
            completed = task.completed

        logger.debug("Toggled task %s to completed=%s", task_id, completed)
        return completed

    def delete_task(self, task_id: str) -> bool:
        """Delete a task by ID.

        Args:
            task_id: ID of the task to delete

        Returns:
            True once the task is removed

        Raises:
            NotFoundError: If no task has this ID
        """
        with self._lock:
            del self._tasks[self._index_of(task_id)]
            self._persist()

        logger.debug("Deleted task %s", task_id)
        return True
