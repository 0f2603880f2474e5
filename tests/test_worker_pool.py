"""
Unit tests for the work-stealing WorkerPool.
"""

import threading
import time
from typing import List, Optional
from unittest.mock import patch

import pytest

from webcrawler.concurrent import (
    PoolTask,
    TaskStatus,
    WorkerPool,
    effective_parallelism,
    hardware_parallelism
)
from webcrawler.utils.errors import WorkerPoolError


class EventLog:
    """Thread-safe record of task names in execution order."""

    def __init__(self):
        self._entries: List[str] = []
        self._threads: List[str] = []
        self._lock = threading.Lock()

    def record(self, name: str) -> None:
        with self._lock:
            self._entries.append(name)
            self._threads.append(threading.current_thread().name)

    @property
    def entries(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    @property
    def threads(self) -> List[str]:
        with self._lock:
            return list(self._threads)


class TreeTask(PoolTask):
    """Records its name, then forks its children."""

    def __init__(self, name: str, log: EventLog, children: Optional[List[PoolTask]] = None):
        self.name = name
        self.log = log
        self.children = children or []

    def compute(self, context):
        self.log.record(self.name)
        for child in self.children:
            context.fork(child)


class FailingTask(PoolTask):
    def __init__(self, error: Exception):
        self.error = error

    def compute(self, context):
        raise self.error


def build_tree(prefix: str, log: EventLog, depth: int, fan_out: int) -> TreeTask:
    children = [] if depth == 0 else [
        build_tree(f"{prefix}.{i}", log, depth - 1, fan_out) for i in range(fan_out)
    ]
    return TreeTask(prefix, log, children)


class TestParallelism:
    """Test thread count selection."""

    def test_hardware_parallelism_is_positive(self):
        assert hardware_parallelism() >= 1

    def test_effective_parallelism_clamped_to_hardware(self):
        with patch("webcrawler.concurrent.worker_pool.hardware_parallelism", return_value=4):
            assert effective_parallelism(100) == 4
            assert effective_parallelism(2) == 2
            assert effective_parallelism(1) == 1

    def test_pool_uses_effective_parallelism(self):
        with patch("webcrawler.concurrent.worker_pool.hardware_parallelism", return_value=2):
            pool = WorkerPool(parallelism=16)
        assert pool.parallelism == 2
        assert pool.get_pool_stats()["parallelism"] == 2

    def test_invalid_parallelism_rejected(self):
        with pytest.raises(WorkerPoolError):
            WorkerPool(parallelism=0)


class TestWorkerPoolLifecycle:
    """Test start, submit and shutdown behavior."""

    def test_submit_before_start_rejected(self):
        pool = WorkerPool(parallelism=1)
        with pytest.raises(WorkerPoolError):
            pool.submit(TreeTask("a", EventLog()))

    def test_submit_after_shutdown_rejected(self):
        pool = WorkerPool(parallelism=1).start()
        pool.shutdown()
        with pytest.raises(WorkerPoolError):
            pool.submit(TreeTask("a", EventLog()))

    def test_shutdown_is_idempotent(self):
        pool = WorkerPool(parallelism=2).start()
        pool.shutdown()
        pool.shutdown()

    def test_context_manager_stops_workers(self):
        with WorkerPool(parallelism=2) as pool:
            handle = pool.submit(TreeTask("a", EventLog()))
            pool.join_all([handle])
        stats = pool.get_pool_stats()
        assert stats["worker_states"]["stopped"] == pool.parallelism
        assert stats["tasks_submitted"] == 1
        assert stats["total_tasks_completed"] == 1


class TestForkJoin:
    """Test that a handle joins its whole subtree."""

    def test_join_waits_for_all_descendants(self):
        log = EventLog()
        root = build_tree("r", log, depth=3, fan_out=3)

        with WorkerPool(parallelism=4) as pool:
            handle = pool.submit(root)
            pool.join_all([handle])
            assert handle.done()
            assert handle.status == TaskStatus.COMPLETED

        # 1 + 3 + 9 + 27 tasks
        assert len(log.entries) == 40
        assert len(set(log.entries)) == 40

    def test_join_all_over_several_roots(self):
        log = EventLog()
        roots = [build_tree(f"r{i}", log, depth=2, fan_out=2) for i in range(5)]

        with WorkerPool(parallelism=3) as pool:
            handles = [pool.submit(root) for root in roots]
            pool.join_all(handles)
            assert all(h.done() for h in handles)
            stats = pool.get_pool_stats()

        assert len(log.entries) == 5 * 7
        assert stats["tasks_submitted"] == 5
        assert stats["tasks_forked"] == 5 * 6

    def test_forked_children_run_after_parent_returns(self):
        log = EventLog()

        class ParentTask(PoolTask):
            def compute(self, context):
                context.fork(TreeTask("child", log))
                log.record("parent-done")

        with WorkerPool(parallelism=1) as pool:
            pool.join_all([pool.submit(ParentTask())])

        assert log.entries == ["parent-done", "child"]

    def test_fork_from_foreign_thread_rejected(self):
        errors = []

        class EscapingTask(PoolTask):
            def compute(self, context):
                def fork_elsewhere():
                    try:
                        context.fork(TreeTask("x", EventLog()))
                    except WorkerPoolError as e:
                        errors.append(e)

                thread = threading.Thread(target=fork_elsewhere)
                thread.start()
                thread.join()

        with WorkerPool(parallelism=1) as pool:
            pool.join_all([pool.submit(EscapingTask())])

        assert len(errors) == 1


class TestWorkStealing:
    """Test that idle workers take forked tasks from busy ones."""

    def test_idle_worker_steals_forked_child(self):
        child_started = threading.Event()
        child_threads = []

        class ChildTask(PoolTask):
            def compute(self, context):
                child_threads.append(threading.current_thread().name)
                child_started.set()

        class BlockingParent(PoolTask):
            def compute(self, context):
                context.fork(ChildTask())
                # Parent keeps its worker busy, so only a thief can run the child
                assert child_started.wait(timeout=5)
                child_threads.append(threading.current_thread().name)

        with patch("webcrawler.concurrent.worker_pool.hardware_parallelism", return_value=2):
            pool = WorkerPool(parallelism=2)

        with pool:
            handle = pool.submit(BlockingParent())
            pool.join_all([handle])
            stats = pool.get_pool_stats()

        child_thread, parent_thread = child_threads
        assert child_thread != parent_thread
        assert stats["tasks_stolen"] >= 1


class TestFailurePropagation:
    """Test that the first failure surfaces at join and cancels pending work."""

    def test_child_failure_reraised_at_root_join(self):
        log = EventLog()
        error = ValueError("boom")
        root = TreeTask("root", log, [TreeTask("ok", log), FailingTask(error)])

        with WorkerPool(parallelism=2) as pool:
            handle = pool.submit(root)
            with pytest.raises(ValueError) as exc_info:
                pool.join_all([handle])

        assert exc_info.value is error
        assert handle.done()
        assert handle.exception() is error

    def test_pending_tasks_in_failed_tree_are_cancelled(self):
        log = EventLog()
        # One worker pops LIFO: the failing task runs before its older sibling
        root = TreeTask("root", log, [TreeTask("sibling", log), FailingTask(RuntimeError("stop"))])

        with WorkerPool(parallelism=1) as pool:
            handle = pool.submit(root)
            with pytest.raises(RuntimeError):
                pool.join_all([handle])

        assert log.entries == ["root"]

    def test_failure_discards_pending_tasks_of_other_trees(self):
        log = EventLog()
        failing_root = TreeTask("bad", log, [FailingTask(KeyError("k"))])
        healthy_root = build_tree("good", log, depth=2, fan_out=2)

        # Submissions run FIFO, so the failing tree goes first
        with WorkerPool(parallelism=1) as pool:
            handles = [pool.submit(failing_root), pool.submit(healthy_root)]
            with pytest.raises(KeyError):
                pool.join_all(handles)
            assert all(h.done() for h in handles)
            assert pool.failed()
            stats = pool.get_pool_stats()

        assert log.entries == ["bad"]
        assert handles[1].status == TaskStatus.CANCELLED
        assert stats["tasks_cancelled"] == 1

    def test_running_task_finishes_but_its_forks_never_start(self):
        log = EventLog()
        slow_started = threading.Event()

        class SlowTask(PoolTask):
            def compute(self, context):
                slow_started.set()
                deadline = time.monotonic() + 5
                while not context.pool.failed() and time.monotonic() < deadline:
                    time.sleep(0.01)
                context.fork(TreeTask("child", log))
                log.record("in-flight-done")

        class GatedFailure(PoolTask):
            def compute(self, context):
                assert slow_started.wait(timeout=5)
                raise KeyError("k")

        with patch("webcrawler.concurrent.worker_pool.hardware_parallelism", return_value=2):
            pool = WorkerPool(parallelism=2)

        with pool:
            handles = [pool.submit(SlowTask()), pool.submit(GatedFailure())]
            with pytest.raises(KeyError):
                pool.join_all(handles)

        assert log.entries == ["in-flight-done"]
        assert handles[0].status == TaskStatus.COMPLETED

    def test_worker_errors_reported_in_stats(self):
        with WorkerPool(parallelism=1) as pool:
            with pytest.raises(ValueError):
                pool.join_all([pool.submit(FailingTask(ValueError("bad page")))])
            stats = pool.get_pool_stats()

        assert list(stats["worker_errors"].values()) == ["bad page"]
        assert stats["total_tasks_failed"] == 1

    def test_first_failure_in_handle_order_wins(self):
        first = ValueError("first")
        second = TypeError("second")

        with WorkerPool(parallelism=2) as pool:
            handles = [pool.submit(FailingTask(first)), pool.submit(FailingTask(second))]
            with pytest.raises(ValueError):
                pool.join_all(handles)


def join_in_background(pool, handles, timeout=10):
    """Run join_all on a helper thread so a lost wakeup fails the test instead of hanging it."""
    outcome = {}

    def target():
        try:
            pool.join_all(handles)
        except BaseException as e:
            outcome["error"] = e

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    thread.join(timeout)
    return thread, outcome


class ExitingTask(PoolTask):
    def compute(self, context):
        raise SystemExit("halt")


class TestInterpreterExitExceptions:
    """Test that SystemExit and friends are carried to the joiner like any other failure."""

    def test_system_exit_reraised_at_join(self):
        log = EventLog()
        root = TreeTask("A", log, [TreeTask("B", log), ExitingTask()])

        with WorkerPool(parallelism=1) as pool:
            handle = pool.submit(root)
            thread, outcome = join_in_background(pool, [handle])

            assert not thread.is_alive()
            assert isinstance(outcome["error"], SystemExit)
            assert handle.done()
            assert handle.status == TaskStatus.COMPLETED

        assert log.entries == ["A"]

    def test_worker_survives_system_exit(self):
        with WorkerPool(parallelism=1) as pool:
            thread, outcome = join_in_background(pool, [pool.submit(ExitingTask())])
            assert not thread.is_alive()
            stats = pool.get_pool_stats()

        assert isinstance(outcome["error"], SystemExit)
        assert stats["worker_states"]["stopped"] == 0
        assert stats["worker_states"]["idle"] == 1
        assert list(stats["worker_errors"].values()) == ["halt"]
