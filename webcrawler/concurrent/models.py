"""
Data models for the worker pool.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .worker_pool import TaskContext


class TaskStatus(Enum):
    """Task execution status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class WorkerState(Enum):
    """Worker thread state."""
    STARTING = "starting"
    IDLE = "idle"
    WORKING = "working"
    STOPPED = "stopped"


class PoolTask(ABC):
    """
    Unit of work executed on a WorkerPool.

    ``compute`` runs once on a worker thread. It may fork further tasks through
    the context; those become part of this task's subtree and are awaited by
    whoever joins the subtree's root, not by ``compute`` itself.
    """

    @abstractmethod
    def compute(self, context: "TaskContext") -> None:
        pass


@dataclass
class WorkerStatus:
    """Status information for a worker thread."""
    worker_id: str
    state: WorkerState = WorkerState.STARTING
    tasks_completed: int = 0
    tasks_failed: int = 0
    tasks_stolen: int = 0
    last_activity: datetime = field(default_factory=datetime.now)
    error_message: Optional[str] = None

    def update_activity(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = datetime.now()

    def start_task(self) -> None:
        """Mark worker as working on a task."""
        self.state = WorkerState.WORKING
        self.update_activity()

    def complete_task(self) -> None:
        """Mark task as completed."""
        self.state = WorkerState.IDLE
        self.tasks_completed += 1
        self.update_activity()

    def fail_task(self, error_message: str) -> None:
        """Mark task as failed."""
        self.state = WorkerState.IDLE
        self.tasks_failed += 1
        self.error_message = error_message
        self.update_activity()
