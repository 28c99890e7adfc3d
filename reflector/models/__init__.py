"""Data models for reflector."""

from reflector.models.activity import Subscription, Todo
from reflector.models.batch_job import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    BatchJob,
    BatchJobStatus,
)
from reflector.models.reflection import ReflectionRecord, reflection_id

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "BatchJob",
    "BatchJobStatus",
    "ReflectionRecord",
    "reflection_id",
    "Subscription",
    "Todo",
]
