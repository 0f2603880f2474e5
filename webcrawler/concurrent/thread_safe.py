"""
Thread-safe data structures shared between crawl workers.
"""

import queue
import threading
from collections import deque
from typing import Any, Dict, Hashable, List, Mapping, Set


class ThreadSafeCounter:
    """Thread-safe counter with atomic operations."""

    def __init__(self, initial_value: int = 0):
        """
        Initialize counter with initial value.

        Args:
            initial_value: Starting value for the counter
        """
        self._value = initial_value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """
        Atomically increment counter and return new value.

        Args:
            amount: Amount to increment by (default: 1)

        Returns:
            New counter value after increment
        """
        with self._lock:
            self._value += amount
            return self._value

    def decrement(self, amount: int = 1) -> int:
        """
        Atomically decrement counter and return new value.

        Args:
            amount: Amount to decrement by (default: 1)

        Returns:
            New counter value after decrement
        """
        with self._lock:
            self._value -= amount
            return self._value

    def get_value(self) -> int:
        """Get current counter value."""
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"ThreadSafeCounter(value={self.get_value()})"


class ThreadSafeCounterMap:
    """
    Thread-safe mapping of keys to non-negative counts.

    Each ``add`` is a single read-modify-write under the map lock, so concurrent
    additions to the same key are never lost and the final totals do not depend
    on the order in which callers merged.
    """

    def __init__(self):
        self._counts: Dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def add(self, key: Hashable, amount: int) -> int:
        """
        Atomically add ``amount`` to the count for ``key``.

        Args:
            key: Key to add to; created with ``amount`` if absent
            amount: Non-negative amount to add

        Returns:
            New count for the key
        """
        if amount < 0:
            raise ValueError(f"Counts only increase, got {amount} for {key!r}")
        with self._lock:
            total = self._counts.get(key, 0) + amount
            self._counts[key] = total
            return total

    def add_all(self, counts: Mapping[Hashable, int]) -> None:
        """Add every entry of ``counts``; each key is updated atomically."""
        for key, amount in counts.items():
            self.add(key, amount)

    def get(self, key: Hashable, default: int = 0) -> int:
        with self._lock:
            return self._counts.get(key, default)

    def snapshot(self) -> Dict[Hashable, int]:
        """Get a point-in-time copy of all counts."""
        with self._lock:
            return dict(self._counts)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def __repr__(self) -> str:
        return f"ThreadSafeCounterMap(size={len(self)})"


class ThreadSafeQueue:
    """Thread-safe FIFO queue that keeps put/get statistics."""

    def __init__(self, maxsize: int = 0):
        """
        Initialize thread-safe queue.

        Args:
            maxsize: Maximum queue size (0 for unlimited)
        """
        self._queue = queue.Queue(maxsize)
        self._lock = threading.Lock()
        self._put_count = 0
        self._get_count = 0

    def put_nowait(self, item: Any) -> None:
        """
        Put item into queue without blocking.

        Raises:
            queue.Full: If queue is full
        """
        self._queue.put_nowait(item)
        with self._lock:
            self._put_count += 1

    def get_nowait(self) -> Any:
        """
        Get item from queue without blocking.

        Raises:
            queue.Empty: If queue is empty
        """
        item = self._queue.get_nowait()
        with self._lock:
            self._get_count += 1
        return item

    def qsize(self) -> int:
        """Get approximate queue size."""
        return self._queue.qsize()

    def get_stats(self) -> dict:
        """Get queue statistics."""
        with self._lock:
            return {
                "size": self.qsize(),
                "put_count": self._put_count,
                "get_count": self._get_count,
                "pending_items": self._put_count - self._get_count
            }

    def __len__(self) -> int:
        return self.qsize()


class ThreadSafeSet:
    """Thread-safe set implementation."""

    def __init__(self):
        self._set: Set[Any] = set()
        self._lock = threading.Lock()

    def add(self, item: Any) -> bool:
        """
        Add item to set as a single check-and-insert.

        Of any number of threads racing to add the same item, exactly one
        receives True.

        Args:
            item: Item to add

        Returns:
            True if item was added (wasn't already present)
        """
        with self._lock:
            if item not in self._set:
                self._set.add(item)
                return True
            return False

    def contains(self, item: Any) -> bool:
        """Check if item is in set."""
        with self._lock:
            return item in self._set

    def __contains__(self, item: Any) -> bool:
        """Support 'in' operator."""
        return self.contains(item)

    def size(self) -> int:
        """Get set size."""
        with self._lock:
            return len(self._set)

    def __len__(self) -> int:
        return self.size()

    def copy(self) -> Set[Any]:
        """Get a copy of the set."""
        with self._lock:
            return self._set.copy()

    def __repr__(self) -> str:
        return f"ThreadSafeSet(size={self.size()})"


class ThreadSafeDeque:
    """Thread-safe double-ended queue implementation."""

    def __init__(self):
        self._deque = deque()
        self._lock = threading.Lock()

    def append(self, item: Any) -> None:
        """Add item to right end of deque."""
        with self._lock:
            self._deque.append(item)

    def pop(self) -> Any:
        """
        Remove and return item from right end.

        Raises:
            IndexError: If deque is empty
        """
        with self._lock:
            return self._deque.pop()

    def popleft(self) -> Any:
        """
        Remove and return item from left end.

        Raises:
            IndexError: If deque is empty
        """
        with self._lock:
            return self._deque.popleft()

    def __len__(self) -> int:
        with self._lock:
            return len(self._deque)

    def __bool__(self) -> bool:
        with self._lock:
            return bool(self._deque)

    def copy(self) -> List[Any]:
        """Get a copy of deque contents as a list."""
        with self._lock:
            return list(self._deque)
