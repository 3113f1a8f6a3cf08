"""Tests for TaskQueue persistence and transitions."""

from __future__ import annotations

import json
import threading
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from shellpilot.ai.intent import Command
from shellpilot.exceptions import InvalidTransitionError, PersistenceError, TaskNotFoundError
from shellpilot.queue.manager import INTERRUPTED_ERROR, TaskQueue
from shellpilot.queue.models import ExecutionResult, TaskStatus, utc_now
from shellpilot.security.base import CheckResult

RM = Command(cmd="rm", args=["-rf", "/tmp/x"], is_async=True)


class TestAddTask:
    """Tests for adding tasks."""

    def test_missing_file_is_empty_queue(self, queue: TaskQueue) -> None:
        """Test a queue without a file starts empty and creates nothing."""
        assert queue.get_all_tasks() == []
        assert not queue.path.exists()

    def test_add_task_persists(
        self, queue: TaskQueue, queue_path: Path, auth_check: CheckResult
    ) -> None:
        """Test a new task is pending and saved immediately."""
        task = queue.add_task(RM, auth_check)

        assert task.status == TaskStatus.PENDING
        assert task.session_id == "session-1"
        data = json.loads(queue_path.read_text())
        assert [t["id"] for t in data["tasks"]] == [task.id]
        assert data["tasks"][0]["status"] == "pending"

    def test_returned_task_is_a_copy(self, queue: TaskQueue, auth_check: CheckResult) -> None:
        """Test mutating a returned task does not change the queue."""
        task = queue.add_task(RM, auth_check)

        task.transition_status(TaskStatus.APPROVED)

        assert queue.get_task(task.id).status == TaskStatus.PENDING

    def test_concurrent_adds_are_all_persisted(
        self, queue: TaskQueue, queue_path: Path, auth_check: CheckResult
    ) -> None:
        """Test ten threads adding at once lose no task."""
        ids: list[str] = []
        lock = threading.Lock()

        def add(i: int) -> None:
            task = queue.add_task(Command(cmd="touch", args=[f"/tmp/f{i}"]), auth_check)
            with lock:
                ids.append(task.id)

        threads = [threading.Thread(target=add, args=(i,)) for i in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(ids)) == 10
        reloaded = TaskQueue(queue_path, "session-1")
        assert {t.id for t in reloaded.get_all_tasks()} == set(ids)

    def test_failed_save_adds_nothing(self, queue: TaskQueue, auth_check: CheckResult) -> None:
        """Test a task is not kept in memory when it cannot be saved."""
        with patch.object(queue.store, "save", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                queue.add_task(RM, auth_check)

        assert queue.get_all_tasks() == []


class TestTransitions:
    """Tests for approve, reject, execute and result recording."""

    def test_approve_then_execute_completes(
        self, queue: TaskQueue, queue_path: Path, auth_check: CheckResult
    ) -> None:
        """Test the full successful lifecycle is persisted."""
        task = queue.add_task(RM, auth_check)

        queue.approve_task(task.id)
        queue.mark_executing(task.id)
        done = queue.set_task_result(task.id, ExecutionResult(exit_code=0, output="ok"))

        assert done.status == TaskStatus.COMPLETED
        assert done.result == ExecutionResult(exit_code=0, output="ok")
        reloaded = TaskQueue(queue_path, "session-1").get_task(task.id)
        assert reloaded.status == TaskStatus.COMPLETED
        assert reloaded.result is not None
        assert reloaded.result.output == "ok"

    def test_failing_result_marks_failed(self, queue: TaskQueue, auth_check: CheckResult) -> None:
        """Test a non-zero exit code ends in failed."""
        task = queue.add_task(RM, auth_check)
        queue.approve_task(task.id)
        queue.mark_executing(task.id)

        done = queue.set_task_result(task.id, ExecutionResult(exit_code=1, error="exit status 1"))

        assert done.status == TaskStatus.FAILED

    def test_reject(self, queue: TaskQueue, auth_check: CheckResult) -> None:
        """Test rejecting a pending task."""
        task = queue.add_task(RM, auth_check)

        assert queue.reject_task(task.id).status == TaskStatus.REJECTED
        assert queue.get_pending_tasks() == []

    def test_rejected_task_cannot_be_approved(
        self, queue: TaskQueue, queue_path: Path, auth_check: CheckResult
    ) -> None:
        """Test an invalid transition changes neither memory nor disk."""
        task = queue.add_task(RM, auth_check)
        queue.reject_task(task.id)
        on_disk = queue_path.read_text()

        with pytest.raises(InvalidTransitionError) as exc_info:
            queue.approve_task(task.id)

        assert exc_info.value.current == "rejected"
        assert exc_info.value.target == "approved"
        assert queue.get_task(task.id).status == TaskStatus.REJECTED
        assert queue_path.read_text() == on_disk

    def test_pending_task_cannot_start_executing(
        self, queue: TaskQueue, auth_check: CheckResult
    ) -> None:
        """Test execution requires approval."""
        task = queue.add_task(RM, auth_check)

        with pytest.raises(InvalidTransitionError):
            queue.mark_executing(task.id)

    def test_result_requires_executing(self, queue: TaskQueue, auth_check: CheckResult) -> None:
        """Test a result cannot be attached to an approved task."""
        task = queue.add_task(RM, auth_check)
        queue.approve_task(task.id)

        with pytest.raises(InvalidTransitionError):
            queue.set_task_result(task.id, ExecutionResult())

        assert queue.get_task(task.id).result is None

    def test_unknown_task(self, queue: TaskQueue) -> None:
        """Test operations on an unknown ID raise TaskNotFoundError."""
        with pytest.raises(TaskNotFoundError) as exc_info:
            queue.approve_task("nope")

        assert exc_info.value.task_id == "nope"
        with pytest.raises(TaskNotFoundError):
            queue.get_task("nope")

    def test_failed_save_leaves_task_unchanged(
        self, queue: TaskQueue, queue_path: Path, auth_check: CheckResult
    ) -> None:
        """Test a transition that cannot be saved is not applied in memory."""
        task = queue.add_task(RM, auth_check)
        on_disk = queue_path.read_text()

        with patch.object(queue.store, "save", side_effect=PersistenceError("read-only fs")):
            with pytest.raises(PersistenceError):
                queue.approve_task(task.id)

        assert queue.get_task(task.id).status == TaskStatus.PENDING
        assert queue_path.read_text() == on_disk


class TestQueries:
    """Tests for the read accessors."""

    def test_filters(self, queue_path: Path, auth_check: CheckResult) -> None:
        """Test pending and per-session filters."""
        queue = TaskQueue(queue_path, "session-1")
        first = queue.add_task(RM, auth_check)
        second = queue.add_task(RM, auth_check)
        queue.reject_task(first.id)

        other = TaskQueue(queue_path, "session-2")
        third = other.add_task(RM, auth_check)

        assert [t.id for t in other.get_all_tasks()] == [first.id, second.id, third.id]
        assert [t.id for t in other.get_pending_tasks()] == [second.id, third.id]
        assert [t.id for t in other.get_tasks_by_session("session-2")] == [third.id]


class TestReload:
    """Tests for loading an existing queue file."""

    def test_round_trip_preserves_tasks(self, queue: TaskQueue, queue_path: Path) -> None:
        """Test IDs, statuses and timestamps survive a reload."""
        pending = queue.add_task(RM, CheckResult(requires_auth=True, warning="w", reason="r"))
        approved = queue.add_task(RM, CheckResult(requires_auth=True))
        queue.approve_task(approved.id)

        reloaded = TaskQueue(queue_path, "session-1")

        assert reloaded.get_all_tasks() == queue.get_all_tasks()
        assert reloaded.get_task(pending.id).check_result.warning == "w"
        assert reloaded.get_task(approved.id).status == TaskStatus.APPROVED

    @pytest.mark.parametrize(
        "content", ["{not json", "[]", '{"tasks": {}}', '{"tasks": [{"id": 1}]}']
    )
    def test_malformed_file_raises(self, queue_path: Path, content: str) -> None:
        """Test a corrupt queue file is reported, not silently replaced."""
        queue_path.parent.mkdir(parents=True)
        queue_path.write_text(content)

        with pytest.raises(PersistenceError):
            TaskQueue(queue_path, "session-1")

    def test_empty_tasks_list(self, queue_path: Path) -> None:
        """Test a file with no tasks loads as an empty queue."""
        queue_path.parent.mkdir(parents=True)
        queue_path.write_text('{"tasks": []}')

        assert TaskQueue(queue_path, "session-1").get_all_tasks() == []

    def test_no_temporary_files_left_behind(self, queue: TaskQueue, queue_path: Path) -> None:
        """Test the atomic write leaves only the queue file."""
        queue.add_task(RM, CheckResult(requires_auth=True))

        assert [p.name for p in queue_path.parent.iterdir()] == ["queue.json"]


class TestRecoverInterrupted:
    """Tests for failing tasks left executing by a dead process."""

    def test_stale_executing_task_is_failed(
        self, queue: TaskQueue, queue_path: Path, auth_check: CheckResult
    ) -> None:
        """Test an executing task older than the threshold becomes failed."""
        task = queue.add_task(RM, auth_check)
        queue.approve_task(task.id)
        queue.mark_executing(task.id)

        with patch(
            "shellpilot.queue.manager.utc_now", return_value=utc_now() + timedelta(hours=1)
        ):
            recovered = queue.recover_interrupted(timedelta(minutes=1))

        assert [t.id for t in recovered] == [task.id]
        reloaded = TaskQueue(queue_path, "session-1").get_task(task.id)
        assert reloaded.status == TaskStatus.FAILED
        assert reloaded.result == ExecutionResult(exit_code=1, error=INTERRUPTED_ERROR)

    def test_recent_executing_task_is_kept(
        self, queue: TaskQueue, auth_check: CheckResult
    ) -> None:
        """Test a task that may still be running is left alone."""
        task = queue.add_task(RM, auth_check)
        queue.approve_task(task.id)
        queue.mark_executing(task.id)

        assert queue.recover_interrupted(timedelta(minutes=1)) == []
        assert queue.get_task(task.id).status == TaskStatus.EXECUTING

    def test_other_statuses_untouched(self, queue: TaskQueue, auth_check: CheckResult) -> None:
        """Test pending and approved tasks are never recovered."""
        pending = queue.add_task(RM, auth_check)
        approved = queue.add_task(RM, auth_check)
        queue.approve_task(approved.id)

        assert queue.recover_interrupted(timedelta(0)) == []
        assert queue.get_task(pending.id).status == TaskStatus.PENDING
        assert queue.get_task(approved.id).status == TaskStatus.APPROVED
