"""Core models for tasktray.

This module defines the core data structures for task tracking:
- Task: A dataclass representing a single to-do item
- Priority: Enum for task priority levels
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Priority(Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def normalize_priority(text: Optional[str]) -> Priority:
    """Map free-form priority text onto a Priority.

    Matching is case-insensitive and ignores surrounding whitespace. Only
    "low" and "high" are recognized; anything else yields MEDIUM.
    """
    value = (text or "").strip().lower()
    if value == Priority.LOW.value:
        return Priority.LOW
    if value == Priority.HIGH.value:
        return Priority.HIGH
    return Priority.MEDIUM


@dataclass
class Task:
    """Task model representing a single to-do item.

    Attributes:
        id: Opaque unique identifier (lowercase hex), never reused
        title: Trimmed, non-empty task title
        created_at: Timezone-aware creation timestamp
        completed: Whether the task has been ticked off
        deadline: Optional timezone-aware due timestamp
        priority: Priority level of the task
    """

    id: str
    title: str
    created_at: datetime
    completed: bool = False
    deadline: Optional[datetime] = None
    priority: Priority = Priority.MEDIUM
