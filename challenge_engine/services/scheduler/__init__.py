"""
Scheduler abstraction for periodic tasks.

Provides:
- RuntimeScheduler ABC for in-process job execution
- AsyncioScheduler running jobs as tasks on the event loop
"""

from .asyncio_backend import AsyncioScheduler, seconds_until_next
from .base import RuntimeScheduler, ScheduledJob, ScheduleType

__all__ = [
    "AsyncioScheduler",
    "RuntimeScheduler",
    "ScheduledJob",
    "ScheduleType",
    "seconds_until_next",
]
