"""
Work-stealing worker pool for recursive crawl tasks.

Tasks submitted from outside the pool go through a shared submission queue.
Tasks forked by a running task are pushed onto the forking worker's own deque;
a worker pops its own deque LIFO and, when it runs dry, steals FIFO from the
other workers. Every submitted task gets a TaskHandle that completes only when
the task and everything it transitively forked have finished.

The first failure of any task fails the whole pool. Tasks already running
finish while every task not yet started is discarded; `join_all` then
re-raises the failure. A pool serves one crawl, so one failure aborts that crawl.
"""

import threading
from queue import Empty
from typing import Any, Dict, Iterable, List, Optional

import psutil

from webcrawler.utils.logging import get_logger
from webcrawler.utils.errors import WorkerPoolError
from .models import PoolTask, TaskStatus, WorkerState, WorkerStatus
from .thread_safe import ThreadSafeCounter, ThreadSafeDeque, ThreadSafeQueue


logger = get_logger(__name__)


def hardware_parallelism() -> int:
    """Number of logical CPUs available to the process."""
    return psutil.cpu_count(logical=True) or 1


def effective_parallelism(requested: int) -> int:
    """Clamp a requested thread count to the hardware parallelism."""
    return max(1, min(requested, hardware_parallelism()))


class TaskHandle:
    """Completion handle for a task and every task it forks."""

    def __init__(self, task: PoolTask, parent: Optional["TaskHandle"] = None):
        self.task = task
        self.parent = parent
        self.root: "TaskHandle" = parent.root if parent is not None else self
        self.status = TaskStatus.PENDING

        # One unit for the task itself plus one per unfinished child
        self._outstanding = ThreadSafeCounter(1)
        self._done = threading.Event()
        self._error: Optional[BaseException] = None
        self._error_lock = threading.Lock()

    def done(self) -> bool:
        """True once the task and its whole subtree have finished."""
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the subtree finishes.

        Args:
            timeout: Optional timeout in seconds

        Returns:
            True if the subtree finished within the timeout
        """
        return self._done.wait(timeout)

    def join(self) -> None:
        """
        Block until the subtree finishes, then re-raise its first failure.

        Raises:
            BaseException: The first exception raised by any task in the subtree
        """
        self._done.wait()
        error = self.exception()
        if error is not None:
            raise error

    def exception(self) -> Optional[BaseException]:
        """First failure recorded anywhere in this handle's tree, if any."""
        with self.root._error_lock:
            return self.root._error

    def _record_failure(self, error: BaseException) -> None:
        root = self.root
        with root._error_lock:
            if root._error is None:
                root._error = error

    def _retain(self) -> None:
        self._outstanding.increment()

    def _release(self) -> None:
        handle: Optional[TaskHandle] = self
        while handle is not None and handle._outstanding.decrement() == 0:
            handle._done.set()
            handle = handle.parent

    def __repr__(self) -> str:
        return f"TaskHandle(task={self.task!r}, status={self.status.value}, done={self.done()})"


class TaskContext:
    """Handed to PoolTask.compute; lets the running task fork children."""

    def __init__(self, pool: "WorkerPool", handle: TaskHandle, worker: "WorkerThread"):
        self.pool = pool
        self.handle = handle
        self.worker = worker

    def fork(self, task: PoolTask) -> TaskHandle:
        """
        Schedule ``task`` as a child of the running task without waiting for it.

        Args:
            task: Task to schedule

        Returns:
            Handle of the child task
        """
        if threading.current_thread() is not self.worker:
            raise WorkerPoolError("fork() must be called from the task's own worker thread")
        return self.pool._fork(self.handle, task, self.worker)


class WorkerThread(threading.Thread):
    """Worker thread that runs tasks from its own deque, the submission queue, or other workers."""

    def __init__(self, index: int, pool: "WorkerPool"):
        """
        Initialize worker thread.

        Args:
            index: Position of this worker in the pool
            pool: Pool this worker takes tasks from
        """
        super().__init__(name=f"{pool.name}-worker-{index}", daemon=True)

        self.index = index
        self.pool = pool
        self.deque = ThreadSafeDeque()
        self.status = WorkerStatus(worker_id=self.name)

    def run(self) -> None:
        """Main worker loop."""
        logger.debug(f"Worker {self.name} starting")
        self.status.state = WorkerState.IDLE
        self.status.update_activity()

        try:
            while True:
                handle = self.pool._next_handle(self)
                if handle is None:
                    break
                self._execute(handle)
        finally:
            self.status.state = WorkerState.STOPPED
            self.status.update_activity()
            logger.debug(f"Worker {self.name} stopped")

    def _execute(self, handle: TaskHandle) -> None:
        """
        Run one task and release its handle.

        Once any task in the pool has failed, tasks are discarded without running.
        Every exception, including SystemExit and KeyboardInterrupt, is recorded
        on the handle and re-raised to whoever joins it; the worker keeps running.
        """
        if self.pool.failed():
            handle.status = TaskStatus.CANCELLED
            self.pool._tasks_cancelled.increment()
            handle._release()
            return

        handle.status = TaskStatus.RUNNING
        self.status.start_task()
        try:
            handle.task.compute(TaskContext(self.pool, handle, self))
        except BaseException as e:
            handle.status = TaskStatus.FAILED
            handle._record_failure(e)
            self.pool._record_failure(e)
            self.status.fail_task(str(e))
            logger.debug(f"Worker {self.name} task {handle.task!r} failed: {e}")
        else:
            handle.status = TaskStatus.COMPLETED
            self.status.complete_task()
        finally:
            handle._release()


class WorkerPool:
    """
    Bounded-parallelism pool whose tasks can fork further tasks.

    Usage::

        with WorkerPool(parallelism=8) as pool:
            handles = [pool.submit(task) for task in tasks]
            pool.join_all(handles)
    """

    def __init__(self, parallelism: int, name: str = "crawler"):
        """
        Initialize worker pool.

        Args:
            parallelism: Requested number of worker threads, clamped to the hardware parallelism
            name: Prefix for worker thread names
        """
        if parallelism < 1:
            raise WorkerPoolError(
                "parallelism must be at least 1",
                {"parallelism": parallelism}
            )

        self.name = name
        self.parallelism = effective_parallelism(parallelism)

        self._submissions = ThreadSafeQueue()
        self._workers: List[WorkerThread] = [
            WorkerThread(index, self) for index in range(self.parallelism)
        ]

        # Guards _queued, _started and _shutdown; idle workers wait on it
        self._work_available = threading.Condition()
        self._queued = 0
        self._started = False
        self._shutdown = False

        self._tasks_submitted = ThreadSafeCounter()
        self._tasks_forked = ThreadSafeCounter()
        self._tasks_stolen = ThreadSafeCounter()
        self._tasks_cancelled = ThreadSafeCounter()

        # Set by the first task failure; no task starts after it
        self._failed = threading.Event()
        self._failure_lock = threading.Lock()

        logger.debug(f"WorkerPool {name} initialized with {self.parallelism} workers (requested {parallelism})")

    def start(self) -> "WorkerPool":
        """Start all worker threads."""
        with self._work_available:
            if self._shutdown:
                raise WorkerPoolError("Cannot start a pool that has been shut down")
            if self._started:
                return self
            self._started = True

        for worker in self._workers:
            worker.start()
        logger.debug(f"WorkerPool {self.name} started {len(self._workers)} workers")
        return self

    def submit(self, task: PoolTask) -> TaskHandle:
        """
        Submit a root task.

        Args:
            task: Task to run

        Returns:
            Handle that completes when the task and all of its forks finish

        Raises:
            WorkerPoolError: If the pool is not running
        """
        with self._work_available:
            if not self._started or self._shutdown:
                raise WorkerPoolError("Cannot submit tasks: pool is not running")

        handle = TaskHandle(task)
        self._tasks_submitted.increment()
        self._enqueue(handle, None)
        return handle

    def join_all(self, handles: Iterable[TaskHandle]) -> None:
        """
        Wait for every handle's subtree, then re-raise the first failure in handle order.

        After any failure the remaining subtrees settle quickly: tasks already
        running finish and nothing else starts.

        No task belonging to any of the handles is still running when this returns
        or raises.
        """
        handles = list(handles)
        for handle in handles:
            handle.wait()
        for handle in handles:
            handle.join()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop the workers once queued work has drained.

        Args:
            wait: Whether to wait for worker threads to exit
            timeout: Maximum seconds to wait for each worker
        """
        with self._work_available:
            if self._shutdown:
                return
            self._shutdown = True
            self._work_available.notify_all()
            started = self._started

        if wait and started:
            for worker in self._workers:
                worker.join(timeout=timeout)
                if worker.is_alive():
                    logger.warning(f"Worker {worker.name} did not shutdown within timeout")

        logger.debug(f"WorkerPool {self.name} shut down")

    def failed(self) -> bool:
        """True once any task run by this pool has raised."""
        return self._failed.is_set()

    def get_pool_stats(self) -> Dict[str, Any]:
        """Get pool statistics."""
        worker_states = {state.value: 0 for state in WorkerState}
        for worker in self._workers:
            worker_states[worker.status.state.value] += 1

        return {
            "parallelism": self.parallelism,
            "worker_states": worker_states,
            "tasks_submitted": self._tasks_submitted.get_value(),
            "tasks_forked": self._tasks_forked.get_value(),
            "tasks_stolen": self._tasks_stolen.get_value(),
            "tasks_cancelled": self._tasks_cancelled.get_value(),
            "total_tasks_completed": sum(w.status.tasks_completed for w in self._workers),
            "total_tasks_failed": sum(w.status.tasks_failed for w in self._workers),
            "worker_errors": {
                w.name: w.status.error_message for w in self._workers if w.status.error_message
            },
            "submission_queue": self._submissions.get_stats()
        }

    def __enter__(self) -> "WorkerPool":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)

    def _record_failure(self, error: BaseException) -> None:
        with self._failure_lock:
            if not self._failed.is_set():
                logger.debug(f"WorkerPool {self.name} failed, discarding pending tasks: {error!r}")
                self._failed.set()

    def _fork(self, parent: TaskHandle, task: PoolTask, worker: WorkerThread) -> TaskHandle:
        # Parent is still running, so its count is at least one here
        parent._retain()
        handle = TaskHandle(task, parent)
        self._tasks_forked.increment()
        self._enqueue(handle, worker)
        return handle

    def _enqueue(self, handle: TaskHandle, worker: Optional[WorkerThread]) -> None:
        if worker is not None:
            worker.deque.append(handle)
        else:
            self._submissions.put_nowait(handle)

        with self._work_available:
            self._queued += 1
            self._work_available.notify()

    def _next_handle(self, worker: WorkerThread) -> Optional[TaskHandle]:
        """Block until a task is available for ``worker``; None once the pool is shut down and drained."""
        while True:
            handle = self._take(worker)
            if handle is not None:
                return handle

            with self._work_available:
                while self._queued <= 0 and not self._shutdown:
                    self._work_available.wait()
                if self._queued <= 0 and self._shutdown:
                    return None

    def _take(self, worker: WorkerThread) -> Optional[TaskHandle]:
        handle = None
        try:
            handle = worker.deque.pop()
        except IndexError:
            try:
                handle = self._submissions.get_nowait()
            except Empty:
                handle = self._steal(worker)

        if handle is not None:
            with self._work_available:
                self._queued -= 1
        return handle

    def _steal(self, thief: WorkerThread) -> Optional[TaskHandle]:
        count = len(self._workers)
        for offset in range(1, count):
            victim = self._workers[(thief.index + offset) % count]
            try:
                handle = victim.deque.popleft()
            except IndexError:
                continue
            self._tasks_stolen.increment()
            thief.status.tasks_stolen += 1
            return handle
        return None
