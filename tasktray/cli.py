"""Command-line interface for tasktray.

This module provides a CLI shell over TaskRepository using argparse.
It supports the following commands:
- add: Create a new task
- list: List tasks, optionally filtered and re-sorted for display
- toggle: Flip a task between done and not done
- delete: Delete a task
- path: Show where tasks are stored
"""

import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional

from tasktray.errors import TaskError
from tasktray.logging_setup import setup_logging
from tasktray.models import Task
from tasktray.repository import TaskRepository

FILTERS = ("all", "active", "done")
SORTS = ("newest", "oldest")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="tasktray",
        description="Personal task tracker"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a new task")
    add_parser.add_argument("title", help="Task title")
    add_parser.add_argument(
        "--deadline",
        default="",
        help="Due date: RFC3339, YYYY-MM-DD, YYYY-MM-DDTHH:MM or 'YYYY-MM-DD HH:MM'"
    )
    add_parser.add_argument(
        "--priority",
        default="",
        help="low, medium or high (default: medium)"
    )

    # List command
    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument(
        "--filter",
        choices=FILTERS,
        default="all",
        help="Show all, only active or only done tasks (default: all)"
    )
    list_parser.add_argument(
        "--sort",
        choices=SORTS,
        default="newest",
        help="Order by creation time (default: newest)"
    )

    # Toggle command
    toggle_parser = subparsers.add_parser("toggle", help="Mark a task done or not done")
    toggle_parser.add_argument("id", help="Task ID")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("id", help="Task ID")

    subparsers.add_parser("path", help="Show the tasks file location")

    return parser


def _describe(task: Task) -> str:
    text = f"{task.id} {task.title} [{task.priority.value}]"
    if task.deadline is not None:
        text += f" due {task.deadline.isoformat()}"
    return text


def format_task(task: Task) -> str:
    """Render one task as a single list line."""
    status_icon = "✓" if task.completed else " "
    return f"[{status_icon}] {_describe(task)}"


def select_tasks(tasks: List[Task], show: str = "all", order: str = "newest") -> List[Task]:
    """Filter and order tasks for display without touching the store.

    Args:
        tasks: Tasks in canonical (newest first) order
        show: "all", "active" (not completed) or "done"
        order: "newest" or "oldest" by creation time

    Returns:
        A new list with the selected tasks
    """
    if show == "active":
        tasks = [t for t in tasks if not t.completed]
    elif show == "done":
        tasks = [t for t in tasks if t.completed]
    return sorted(tasks, key=lambda t: t.created_at, reverse=(order == "newest"))


def cmd_add(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'add' command.

    Args:
        args: Parsed command-line arguments
        repo: TaskRepository instance

    Returns:
        Exit code (0 for success)
    """
    task = repo.add_task(args.title, args.deadline, args.priority)
    print(f"Task added: {_describe(task)}")
    return 0


def cmd_list(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'list' command.

    Args:
        args: Parsed command-line arguments
        repo: TaskRepository instance

    Returns:
        Exit code (0 for success)
    """
    tasks = select_tasks(repo.list_tasks(), args.filter, args.sort)

    if not tasks:
        print("No tasks found.")
        return 0

    for task in tasks:
        print(format_task(task))

    return 0


def cmd_toggle(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'toggle' command.

    Args:
        args: Parsed command-line arguments
        repo: TaskRepository instance

    Returns:
        Exit code (0 for success)
    """
    completed = repo.toggle_task(args.id)
    task = repo.get_task(args.id)
    state = "done" if completed else "not done"
    print(f"Task {args.id} marked as {state}: {task.title}")
    return 0


def cmd_delete(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'delete' command.

    Args:
        args: Parsed command-line arguments
        repo: TaskRepository instance

    Returns:
        Exit code (0 for success)
    """
    repo.delete_task(args.id)
    print(f"Task {args.id} deleted.")
    return 0


def cmd_path(args: argparse.Namespace, repo: TaskRepository) -> int:
    """Handle the 'path' command."""
    print(getattr(repo.storage, "file_path", "<not file-backed>"))
    return 0


def main(argv: Optional[List[str]] = None, repo: Optional[TaskRepository] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]
        repo: Repository to operate on. If None, one is built on the
              default storage location.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.command is None:
        parser.print_help()
        return 1

    commands: Dict[str, Callable[[argparse.Namespace, TaskRepository], int]] = {
        "add": cmd_add,
        "list": cmd_list,
        "toggle": cmd_toggle,
        "delete": cmd_delete,
        "path": cmd_path,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    try:
        if repo is None:
            repo = TaskRepository()
        return handler(args, repo)
    except TaskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
