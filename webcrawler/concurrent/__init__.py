"""
Concurrency primitives for the parallel crawler.

Main Components:
- WorkerPool: bounded, work-stealing pool whose tasks can fork subtasks
- TaskHandle: joins a submitted task together with everything it forked
- ThreadSafeSet / ThreadSafeCounterMap: shared crawl state containers
"""

from .models import PoolTask, TaskStatus, WorkerState, WorkerStatus
from .thread_safe import (
    ThreadSafeCounter,
    ThreadSafeCounterMap,
    ThreadSafeDeque,
    ThreadSafeQueue,
    ThreadSafeSet
)
from .worker_pool import (
    TaskContext,
    TaskHandle,
    WorkerPool,
    WorkerThread,
    effective_parallelism,
    hardware_parallelism
)

__all__ = [
    # Models
    'PoolTask',
    'TaskStatus',
    'WorkerState',
    'WorkerStatus',

    # Thread-safe utilities
    'ThreadSafeCounter',
    'ThreadSafeCounterMap',
    'ThreadSafeDeque',
    'ThreadSafeQueue',
    'ThreadSafeSet',

    # Pool
    'TaskContext',
    'TaskHandle',
    'WorkerPool',
    'WorkerThread',
    'effective_parallelism',
    'hardware_parallelism'
]
