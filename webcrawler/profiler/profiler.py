"""
Call-timing wrapper for crawler components.

Components declare the operations to measure in a ``MEASURED_OPERATIONS``
class attribute, or the names are passed explicitly when wrapping.
``Profiler.wrap`` returns a ProfilingInterceptor that exposes the component's interface, times every
measured call into a shared ProfilingState and forwards everything else
untouched.
"""

import functools
from datetime import timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Optional, TextIO, Union

from webcrawler.utils.clock import Clock, SystemClock
from webcrawler.utils.errors import ProfilingError
from webcrawler.utils.logging import get_logger
from .state import ProfilingState


logger = get_logger(__name__)

MEASURED_ATTRIBUTE = "MEASURED_OPERATIONS"


def measured_operations(delegate: Any) -> FrozenSet[str]:
    """Operation names a component declares in ``MEASURED_OPERATIONS``."""
    return frozenset(getattr(delegate, MEASURED_ATTRIBUTE, ()))


class ProfilingInterceptor:
    """Forwards attribute access to a delegate, timing calls to measured operations."""

    def __init__(self, clock: Clock, delegate: Any, state: ProfilingState, measured: FrozenSet[str]):
        self._clock = clock
        self._delegate = delegate
        self._state = state
        self._measured = measured

    @property
    def delegate(self) -> Any:
        return self._delegate

    def __getattr__(self, name: str) -> Any:
        attribute = getattr(self._delegate, name)
        if name not in self._measured or not callable(attribute):
            return attribute

        component_type = type(self._delegate)

        @functools.wraps(attribute)
        def timed(*args, **kwargs):
            start = self._clock.now()
            try:
                return attribute(*args, **kwargs)
            finally:
                self._state.record(component_type, name, self._clock.now() - start)

        return timed

    def __repr__(self) -> str:
        return f"ProfilingInterceptor({self._delegate!r})"


class Profiler:
    """Creates profiling wrappers and writes the collected timings."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self.state = ProfilingState()
        self.start_time = self.clock.now()

    def wrap(self, delegate: Any, measured: Optional[Iterable[str]] = None) -> ProfilingInterceptor:
        """
        Wrap a component so its measured operations are timed.

        Args:
            delegate: Component to wrap
            measured: Operation names to time; defaults to the delegate's
                ``MEASURED_OPERATIONS``

        Returns:
            Wrapper exposing the delegate's attributes

        Raises:
            ProfilingError: If no operation would be measured
        """
        operations = frozenset(measured) if measured is not None else measured_operations(delegate)
        if not operations:
            raise ProfilingError(
                f"{type(delegate).__name__} has no profiled operations",
                {"component": type(delegate).__qualname__}
            )

        missing = sorted(name for name in operations if not callable(getattr(delegate, name, None)))
        if missing:
            raise ProfilingError(
                f"{type(delegate).__name__} has no operations named {', '.join(missing)}",
                {"component": type(delegate).__qualname__, "missing": missing}
            )

        logger.debug(f"Profiling {type(delegate).__qualname__}: {', '.join(sorted(operations))}")
        return ProfilingInterceptor(self.clock, delegate, self.state, operations)

    def write_data(self, path: Union[str, Path]) -> None:
        """
        Append the profiling report to a file.

        Args:
            path: Report file path
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'a', encoding='utf-8') as f:
            self.write_data_to(f)
        logger.info(f"Profiling data written to {output_path}")

    def write_data_to(self, stream: TextIO) -> None:
        """Write the profiling report to an open text stream."""
        stream.write(f"Run at {format_datetime(self.start_time.astimezone(timezone.utc), usegmt=True)}\n")
        self.state.write(stream)
        stream.write("\n")
        stream.flush()
