"""
Timing instrumentation for crawler components.
"""

from .profiler import Profiler, ProfilingInterceptor, measured_operations
from .state import ProfilingState, format_duration

__all__ = [
    'Profiler', 'ProfilingInterceptor', 'ProfilingState',
    'format_duration', 'measured_operations'
]
