"""Comprehensive tests for CLI module."""

from datetime import datetime, timedelta, timezone
from io import StringIO
from unittest.mock import patch

import pytest

from tasktray.cli import (
    cmd_add,
    cmd_delete,
    cmd_list,
    cmd_toggle,
    create_parser,
    format_task,
    main,
    select_tasks,
)
from tasktray.models import Priority, Task
from tasktray.repository import TaskRepository
from tasktray.storage import JsonStorage


class TestCLI:
    """Test suite for CLI functionality."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self):
        """Keep main() from reconfiguring the root logger during tests."""
        with patch("tasktray.cli.setup_logging"):
            yield

    @pytest.fixture
    def repo(self, tmp_path):
        """Create a TaskRepository with temporary storage."""
        return TaskRepository(JsonStorage(tmp_path / "tasks.json"))

    def test_create_parser(self):
        """Test that parser is created with correct subcommands."""
        parser = create_parser()
        assert parser.prog == "tasktray"

        with pytest.raises(SystemExit):
            parser.parse_args(["--help"])

    def test_parser_add_command(self):
        """Test parsing 'add' command with defaults."""
        args = create_parser().parse_args(["add", "Test task"])
        assert args.command == "add"
        assert args.title == "Test task"
        assert args.deadline == ""
        assert args.priority == ""

    def test_parser_add_command_with_options(self):
        """Test parsing 'add' command with deadline and priority."""
        args = create_parser().parse_args(
            ["add", "Urgent task", "--deadline", "2025-09-12", "--priority", "HIGH"]
        )
        assert args.deadline == "2025-09-12"
        assert args.priority == "HIGH"

    def test_parser_list_command(self):
        """Test parsing 'list' command defaults."""
        args = create_parser().parse_args(["list"])
        assert args.command == "list"
        assert args.filter == "all"
        assert args.sort == "newest"

    def test_parser_list_rejects_unknown_filter(self):
        """Test that list only accepts known filters."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["list", "--filter", "someday"])

    def test_parser_toggle_and_delete_take_string_ids(self):
        """Test that ids are passed through as strings."""
        parser = create_parser()
        assert parser.parse_args(["toggle", "abc123"]).id == "abc123"
        assert parser.parse_args(["delete", "abc123"]).id == "abc123"

    def test_cmd_add(self, repo):
        """Test cmd_add function."""
        args = create_parser().parse_args(["add", "Test task", "--priority", "high"])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            result = cmd_add(args, repo)

        assert result == 0
        task = repo.list_tasks()[0]
        output = mock_stdout.getvalue()
        assert "Task added:" in output
        assert task.id in output
        assert "[high]" in output
        assert task.priority == Priority.HIGH

    def test_cmd_add_with_deadline(self, repo):
        """Test that the deadline is echoed back."""
        args = create_parser().parse_args(["add", "Pay rent", "--deadline", "2025-09-12"])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            cmd_add(args, repo)

        assert "due 2025-09-12T00:00:00+00:00" in mock_stdout.getvalue()

    def test_cmd_list_empty(self, repo):
        """Test cmd_list with no tasks."""
        args = create_parser().parse_args(["list"])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            result = cmd_list(args, repo)

        assert result == 0
        assert "No tasks found." in mock_stdout.getvalue()

    def test_cmd_list_newest_first(self, repo):
        """Test cmd_list prints newest task first."""
        repo.add_task("First", "", "low")
        repo.add_task("Second", "", "high")
        args = create_parser().parse_args(["list"])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            cmd_list(args, repo)

        lines = mock_stdout.getvalue().splitlines()
        assert "Second" in lines[0] and "[high]" in lines[0]
        assert "First" in lines[1] and "[low]" in lines[1]

    def test_cmd_list_filter_done(self, repo):
        """Test cmd_list with the done filter."""
        first = repo.add_task("Task 1")
        repo.add_task("Task 2")
        repo.toggle_task(first.id)
        args = create_parser().parse_args(["list", "--filter", "done"])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            cmd_list(args, repo)

        output = mock_stdout.getvalue()
        assert "Task 1" in output
        assert "Task 2" not in output
        assert "✓" in output

    def test_cmd_toggle(self, repo):
        """Test cmd_toggle flips the flag both ways."""
        task = repo.add_task("Test task")
        args = create_parser().parse_args(["toggle", task.id])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert cmd_toggle(args, repo) == 0
            assert cmd_toggle(args, repo) == 0

        output = mock_stdout.getvalue()
        assert f"Task {task.id} marked as done: Test task" in output
        assert f"Task {task.id} marked as not done: Test task" in output
        assert repo.get_task(task.id).completed is False

    def test_cmd_delete(self, repo):
        """Test cmd_delete removes the task."""
        task = repo.add_task("Test task")
        args = create_parser().parse_args(["delete", task.id])

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            result = cmd_delete(args, repo)

        assert result == 0
        assert f"Task {task.id} deleted." in mock_stdout.getvalue()
        assert repo.list_tasks() == []

    def test_main_no_command(self, repo):
        """Test main without a command prints help and fails."""
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            result = main([], repo=repo)

        assert result == 1
        assert "usage:" in mock_stdout.getvalue()

    def test_main_validation_error(self, repo):
        """Test that a rejected title is reported on stderr."""
        with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            result = main(["add", "   "], repo=repo)

        assert result == 1
        assert "Error: title cannot be empty" in mock_stderr.getvalue()
        assert repo.list_tasks() == []

    def test_main_bad_deadline(self, repo):
        """Test that an unparseable deadline is reported on stderr."""
        with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            result = main(["add", "Buy milk", "--deadline", "not-a-date"], repo=repo)

        assert result == 1
        assert "invalid deadline format" in mock_stderr.getvalue()

    @pytest.mark.parametrize("command", ["toggle", "delete"])
    def test_main_unknown_id(self, repo, command):
        """Test that unknown ids exit with an error."""
        with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            result = main([command, "nonexistent"], repo=repo)

        assert result == 1
        assert "Task nonexistent not found" in mock_stderr.getvalue()

    def test_main_path(self, repo):
        """Test that path prints the storage location."""
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert main(["path"], repo=repo) == 0

        assert mock_stdout.getvalue().strip() == str(repo.storage.file_path)

    def test_main_builds_default_repo(self, tmp_path, monkeypatch):
        """Test that main uses TASKTRAY_DB_PATH when no repo is given."""
        db = tmp_path / "tasks.json"
        monkeypatch.setenv("TASKTRAY_DB_PATH", str(db))

        with patch("sys.stdout", new_callable=StringIO):
            assert main(["add", "From env"]) == 0

        assert JsonStorage(db).load()[0].title == "From env"


class TestSelectTasks:
    """Tests for display filtering and ordering."""

    @pytest.fixture
    def tasks(self):
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        return [
            Task(id="3", title="newest", created_at=base + timedelta(days=2)),
            Task(id="2", title="middle", created_at=base + timedelta(days=1), completed=True),
            Task(id="1", title="oldest", created_at=base),
        ]

    def test_all_newest(self, tasks):
        assert [t.id for t in select_tasks(tasks)] == ["3", "2", "1"]

    def test_oldest_first(self, tasks):
        assert [t.id for t in select_tasks(tasks, order="oldest")] == ["1", "2", "3"]

    def test_active_only(self, tasks):
        assert [t.id for t in select_tasks(tasks, show="active")] == ["3", "1"]

    def test_done_only(self, tasks):
        assert [t.id for t in select_tasks(tasks, show="done")] == ["2"]

    def test_input_untouched(self, tasks):
        select_tasks(tasks, order="oldest")
        assert [t.id for t in tasks] == ["3", "2", "1"]

    def test_format_task(self, tasks):
        assert format_task(tasks[1]) == "[✓] 2 middle [medium]"
