# tests/unit/tasks/test_unit_registry.py — v1
"""Tests for tasks/registry.py — TaskRegistry state machine."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from feedforge.tasks.models import TaskStatus
from feedforge.tasks.registry import InvalidStateError, NotFoundError, TaskRegistry


class MutableClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def _ok(sink):
    sink.report(40, "work", "halfway")
    return {"done": True}


async def _boom(sink):
    raise RuntimeError("kaboom")


class TestCreateTask:
    def test_new_task_is_pending(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full", {"count": 2})
        task = reg.get_task(task_id)
        assert task is not None
        assert task.status is TaskStatus.PENDING
        assert task.progress == 0
        assert task.type == "full"
        assert task.options == {"count": 2}
        assert task.steps == []

    def test_ids_are_unique_and_increasing(self):
        reg = TaskRegistry()
        ids = [reg.create_task("fetch") for _ in range(3)]
        assert ids == ["task_1", "task_2", "task_3"]

    def test_unknown_task_is_none(self):
        assert TaskRegistry().get_task("task_99") is None
        assert TaskRegistry().get_task_status("task_99") is None


class TestStartTask:
    @pytest.mark.asyncio
    async def test_success_completes_with_result(self):
        clock = MutableClock()
        reg = TaskRegistry(clock=clock)
        task_id = reg.create_task("full")

        async def executor(sink):
            clock.advance(2)
            return await _ok(sink)

        result = await reg.start_task(task_id, executor)
        task = reg.get_task(task_id)
        assert result == {"done": True}
        assert task.status is TaskStatus.COMPLETED
        assert task.result == {"done": True}
        assert task.progress == 100
        assert task.duration_ms == 2000
        assert task.end_time is not None
        assert task.error is None

    @pytest.mark.asyncio
    async def test_failure_marks_failed_and_reraises(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        with pytest.raises(RuntimeError, match="kaboom"):
            await reg.start_task(task_id, _boom)
        task = reg.get_task(task_id)
        assert task.status is TaskStatus.FAILED
        assert task.error == "kaboom"
        assert task.error_type == "RuntimeError"
        assert task.result is None
        assert task.end_time is not None

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self):
        with pytest.raises(NotFoundError):
            await TaskRegistry().start_task("task_404", _ok)

    @pytest.mark.asyncio
    async def test_restart_completed_task_is_invalid(self):
        reg = TaskRegistry()
        task_id = reg.create_task("fetch")
        await reg.start_task(task_id, _ok)
        before = reg.get_task(task_id)

        with pytest.raises(InvalidStateError) as exc_info:
            await reg.start_task(task_id, _ok)
        assert exc_info.value.status is TaskStatus.COMPLETED
        assert "completed" in str(exc_info.value)
        assert reg.get_task(task_id) == before

    @pytest.mark.asyncio
    async def test_start_while_in_progress_is_invalid(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        seen: list[TaskStatus] = []

        async def executor(sink):
            with pytest.raises(InvalidStateError):
                await reg.start_task(task_id, _ok)
            seen.append(reg.get_task_status(task_id))
            return None

        await reg.start_task(task_id, executor)
        assert seen == [TaskStatus.IN_PROGRESS]

    @pytest.mark.asyncio
    async def test_cancelled_during_run_keeps_cancelled(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")

        async def executor(sink):
            reg.cancel_task(task_id)
            sink.report(90, "late", "ignored")
            return "partial"

        result = await reg.start_task(task_id, executor)
        task = reg.get_task(task_id)
        assert result == "partial"
        assert task.status is TaskStatus.CANCELLED
        assert task.result is None
        assert all(step.step != "late" for step in task.steps)

    @pytest.mark.asyncio
    async def test_exception_after_cancel_keeps_cancelled(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")

        async def executor(sink):
            reg.cancel_task(task_id)
            raise ValueError("after cancel")

        with pytest.raises(ValueError):
            await reg.start_task(task_id, executor)
        task = reg.get_task(task_id)
        assert task.status is TaskStatus.CANCELLED
        assert task.error is None

    @pytest.mark.asyncio
    async def test_asyncio_cancellation_marks_cancelled(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        started = asyncio.Event()

        async def executor(sink):
            started.set()
            await asyncio.sleep(10)

        runner = asyncio.create_task(reg.start_task(task_id, executor))
        await started.wait()
        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner
        assert reg.get_task_status(task_id) is TaskStatus.CANCELLED


class TestUpdateProgress:
    def test_pending_task_is_ignored(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        events = []
        reg.subscribe(events.append)
        assert reg.update_progress(task_id, 50, "fetch") is False
        assert reg.get_task(task_id).progress == 0
        assert events == []

    def test_unknown_task_is_ignored(self):
        assert TaskRegistry().update_progress("task_7", 10, "x") is False

    @pytest.mark.asyncio
    async def test_completed_task_is_ignored(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        await reg.start_task(task_id, _ok)
        events = []
        reg.subscribe(events.append)
        assert reg.update_progress(task_id, 10, "again") is False
        assert reg.get_task(task_id).progress == 100
        assert events == []

    @pytest.mark.asyncio
    async def test_clamps_and_upserts_steps(self):
        clock = MutableClock()
        reg = TaskRegistry(clock=clock)
        task_id = reg.create_task("full")
        snapshots = []

        async def executor(sink):
            reg.update_progress(task_id, -5, "fetch", "starting")
            snapshots.append(reg.get_task(task_id))
            clock.advance(1)
            reg.update_progress(task_id, 250, "store", "saving")
            clock.advance(1)
            reg.update_progress(task_id, 60, "fetch", "again")
            snapshots.append(reg.get_task(task_id))

        await reg.start_task(task_id, executor)
        first, last = snapshots
        assert first.progress == 0
        assert [s.step for s in last.steps] == ["fetch", "store"]
        assert last.steps[0].message == "again"
        assert last.progress == 60
        assert last.current_step.step == "fetch"


class TestCancelTask:
    def test_cancel_pending_is_noop(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        assert reg.cancel_task(task_id) is False
        assert reg.get_task_status(task_id) is TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_cancel_terminal_is_noop(self):
        reg = TaskRegistry()
        done = reg.create_task("full")
        failed = reg.create_task("full")
        await reg.start_task(done, _ok)
        with pytest.raises(RuntimeError):
            await reg.start_task(failed, _boom)

        assert reg.cancel_task(done) is False
        assert reg.cancel_task(failed) is False
        assert reg.get_task_status(done) is TaskStatus.COMPLETED
        assert reg.get_task_status(failed) is TaskStatus.FAILED

    def test_cancel_unknown_raises(self):
        with pytest.raises(NotFoundError):
            TaskRegistry().cancel_task("task_1")

    @pytest.mark.asyncio
    async def test_cancel_in_progress(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full")
        flags = []

        async def executor(sink):
            flags.append(reg.is_cancelled(task_id))
            flags.append(reg.cancel_task(task_id))
            flags.append(reg.is_cancelled(task_id))
            flags.append(reg.cancel_task(task_id))

        await reg.start_task(task_id, executor)
        assert flags == [False, True, True, False]


class TestQueries:
    @pytest.mark.asyncio
    async def test_stats_count_per_status(self):
        reg = TaskRegistry()
        reg.create_task("full")
        ok = reg.create_task("fetch")
        bad = reg.create_task("analyze")
        await reg.start_task(ok, _ok)
        with pytest.raises(RuntimeError):
            await reg.start_task(bad, _boom)

        stats = reg.get_stats()
        assert stats.total == 3
        assert stats.pending == 1
        assert stats.completed == 1
        assert stats.failed == 1
        assert stats.cancelled == 0

    def test_snapshots_do_not_leak_mutation(self):
        reg = TaskRegistry()
        task_id = reg.create_task("full", {"count": 1})
        snapshot = reg.get_task(task_id)
        snapshot.options["count"] = 99
        snapshot.status = TaskStatus.FAILED
        assert reg.get_task(task_id).options == {"count": 1}
        assert reg.get_task_status(task_id) is TaskStatus.PENDING

    def test_get_tasks_in_creation_order(self):
        reg = TaskRegistry()
        ids = [reg.create_task(t) for t in ("full", "fetch", "analyze")]
        assert [t.id for t in reg.get_tasks()] == ids


class TestCleanupTasks:
    @pytest.mark.asyncio
    async def test_evicts_only_old_terminal_tasks(self):
        clock = MutableClock()
        reg = TaskRegistry(clock=clock)
        old = reg.create_task("full")
        await reg.start_task(old, _ok)
        pending = reg.create_task("full")
        clock.advance(3600 + 1)
        fresh = reg.create_task("fetch")
        await reg.start_task(fresh, _ok)

        assert reg.cleanup_tasks(max_age_s=3600) == 1
        assert reg.get_task(old) is None
        assert reg.get_task(pending) is not None
        assert reg.get_task(fresh) is not None


class TestEvents:
    @pytest.mark.asyncio
    async def test_lifecycle_event_order(self):
        reg = TaskRegistry()
        kinds = []
        reg.subscribe(lambda e: kinds.append(e.kind))
        task_id = reg.create_task("full")
        await reg.start_task(task_id, _ok)
        assert kinds == ["created", "started", "progress", "completed"]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_registry(self):
        reg = TaskRegistry()

        def bad_listener(event):
            raise RuntimeError("listener bug")

        reg.subscribe(bad_listener)
        task_id = reg.create_task("full")
        await reg.start_task(task_id, _ok)
        assert reg.get_task_status(task_id) is TaskStatus.COMPLETED

    def test_unsubscribe(self):
        reg = TaskRegistry()
        events = []
        reg.subscribe(events.append)
        reg.unsubscribe(events.append)
        reg.create_task("full")
        assert events == []
