"""Storage layer for tasktray.

This module provides an abstract storage interface and a JSON file-based
implementation. JsonStorage writes the full task list to a temporary sibling
file and renames it over the canonical path, so readers only ever see the
previous complete file or the new complete file.
"""

import contextlib
import json
import logging
import os
import re
import sys
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tasktray.errors import PersistenceError
from tasktray.models import Task, normalize_priority

logger = logging.getLogger(__name__)

APP_NAME = "tasktray"
TASKS_FILE_NAME = "tasks.json"
DB_PATH_ENV = "TASKTRAY_DB_PATH"

# RFC3339 allows any number of fractional digits; fromisoformat wants six.
_FRACTION_RE = re.compile(r"\.(\d+)")


def _six_digit_fraction(match: "re.Match[str]") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def user_config_dir() -> Optional[Path]:
    """Return the platform's per-user configuration directory.

    Returns:
        %APPDATA% on Windows, ~/Library/Application Support on macOS and
        $XDG_CONFIG_HOME (or ~/.config) elsewhere. None if it cannot be
        determined.
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA", "")
        return Path(appdata) if appdata else None

    home = os.environ.get("HOME", "")
    if sys.platform == "darwin":
        return Path(home) / "Library" / "Application Support" if home else None

    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) if os.path.isabs(xdg) else None
    return Path(home) / ".config" if home else None


def resolve_storage_path(app_name: str = APP_NAME) -> Path:
    """Locate (and create) the per-user directory holding the tasks file.

    Falls back to ~/.<app_name> when no platform configuration directory
    is available.

    Args:
        app_name: Name of the application sub-directory

    Returns:
        Path to tasks.json inside the application directory

    Raises:
        PersistenceError: If the directory cannot be created
    """
    config_dir = user_config_dir()
    if config_dir is None:
        directory = Path(os.path.expanduser("~")) / f".{app_name}"
    else:
        directory = config_dir / app_name

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceError(f"Cannot create storage directory {directory}: {exc}") from exc

    return directory / TASKS_FILE_NAME


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an RFC3339 string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC3339 string into a timezone-aware datetime.

    Accepts a trailing "Z" and sub-microsecond fractions. Naive values are
    taken as UTC.
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(_six_digit_fraction, text)
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def task_to_dict(task: Task) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": task.id,
        "title": task.title,
        "created_at": format_timestamp(task.created_at),
        "completed": task.completed,
    }
    if task.deadline is not None:
        data["deadline"] = format_timestamp(task.deadline)
    data["priority"] = task.priority.value
    return data


def _field(data: Dict[str, Any], name: str, kind: type, required: bool = True) -> Any:
    if name not in data or data[name] is None:
        if required:
            raise ValueError(f"task record is missing {name!r}")
        return None
    value = data[name]
    if not isinstance(value, kind):
        raise ValueError(f"task field {name!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


def task_from_dict(data: Any) -> Task:
    """Build a Task from one stored record.

    Raises:
        ValueError: If the record is not an object or a field has the wrong type
    """
    if not isinstance(data, dict):
        raise ValueError(f"task record must be an object, got {type(data).__name__}")

    deadline = _field(data, "deadline", str, required=False)
    completed = _field(data, "completed", bool, required=False)
    return Task(
        id=_field(data, "id", str),
        title=_field(data, "title", str),
        created_at=parse_timestamp(_field(data, "created_at", str)),
        completed=bool(completed),
        deadline=parse_timestamp(deadline) if deadline else None,
        priority=normalize_priority(_field(data, "priority", str, required=False)),
    )


class Storage(ABC):
    """Abstract base class for task storage implementations."""

    @abstractmethod
    def save(self, tasks: List[Task]) -> None:
        """Persist the full task list.

        Args:
            tasks: Tasks in canonical order
        """
        pass

    @abstractmethod
    def load(self) -> List[Task]:
        """Load the full task list.

        Returns:
            Tasks in stored order
        """
        pass

    @abstractmethod
    def delete(self) -> None:
        """Delete all data from storage."""
        pass


class JsonStorage(Storage):
    """JSON file-based storage with atomic write-replace.

    Attributes:
        file_path: Path to the canonical JSON file
        tmp_path: Transient sibling written before each rename
    """

    def __init__(self, file_path: Union[str, Path, None] = None, app_name: str = APP_NAME):
        """Initialize JsonStorage with a file path.

        Args:
            file_path: Path to the JSON file. If None, uses the
                      TASKTRAY_DB_PATH environment variable or the per-user
                      configuration directory for app_name.
            app_name: Application directory name used when resolving the
                      default location

        Raises:
            PersistenceError: If the storage directory cannot be created
        """
        if file_path is None:
            file_path = os.environ.get(DB_PATH_ENV) or None
        if file_path is None:
            self.file_path = resolve_storage_path(app_name)
        else:
            self.file_path = Path(file_path).expanduser()
        self.tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")

    def save(self, tasks: List[Task]) -> None:
        """Write tasks to a temporary file, then rename it into place.

        Args:
            tasks: Tasks in canonical order

        Raises:
            PersistenceError: If serialization, writing or renaming fails
        """
        try:
            payload = json.dumps([task_to_dict(t) for t in tasks], indent=2, ensure_ascii=False)
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(self.tmp_path, self.file_path)
        except (OSError, TypeError, ValueError) as exc:
            with contextlib.suppress(OSError):
                self.tmp_path.unlink()
            raise PersistenceError(f"Cannot save tasks to {self.file_path}: {exc}") from exc

        logger.debug("Saved %d task(s) to %s", len(tasks), self.file_path)

    def load(self) -> List[Task]:
        """Load tasks from the JSON file.

        Returns:
            Tasks in stored order. Empty if the file doesn't exist or is empty.

        Raises:
            PersistenceError: If the file cannot be read or parsed
        """
        try:
            content = self.file_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read {self.file_path}: {exc}") from exc

        if not content:
            return []

        try:
            data = json.loads(content)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            tasks = [task_from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Corrupt tasks file {self.file_path}: {exc}") from exc

        logger.debug("Loaded %d task(s) from %s", len(tasks), self.file_path)
        return tasks

    def delete(self) -> None:
        """Delete the JSON storage file.

        If the file doesn't exist, this method does nothing.
        """
        if self.file_path.exists():
            self.file_path.unlink()
