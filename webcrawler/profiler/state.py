"""
Thread-safe ledger of measured call durations.
"""

import threading
from datetime import timedelta
from typing import Dict, TextIO


def format_duration(duration: timedelta) -> str:
    """Render a duration as ``<minutes>m <seconds>s <milliseconds>ms``."""
    total_ms = duration // timedelta(milliseconds=1)
    minutes, remainder_ms = divmod(total_ms, 60_000)
    seconds, millis = divmod(remainder_ms, 1000)
    return f"{minutes}m {seconds}s {millis}ms"


def operation_key(component_type: type, operation: str) -> str:
    """Ledger key for an operation of a component type."""
    return f"{component_type.__module__}.{component_type.__qualname__}#{operation}"


class ProfilingState:
    """Accumulates total elapsed time per (component type, operation)."""

    def __init__(self):
        self._durations: Dict[str, timedelta] = {}
        self._lock = threading.Lock()

    def record(self, component_type: type, operation: str, elapsed: timedelta) -> None:
        """
        Add ``elapsed`` to the total for an operation.

        Args:
            component_type: Class of the profiled component
            operation: Name of the measured operation
            elapsed: Duration of one call
        """
        key = operation_key(component_type, operation)
        with self._lock:
            self._durations[key] = self._durations.get(key, timedelta()) + elapsed

    def entries(self) -> Dict[str, timedelta]:
        """Snapshot of the ledger."""
        with self._lock:
            return dict(self._durations)

    def write(self, stream: TextIO) -> None:
        """Write one line per operation, sorted by key."""
        for key, duration in sorted(self.entries().items()):
            stream.write(f"{key} took {format_duration(duration)}\n")

    def __len__(self) -> int:
        with self._lock:
            return len(self._durations)
