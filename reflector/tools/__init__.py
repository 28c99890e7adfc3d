"""MCP tool implementations for reflector."""

from reflector.tools.batch_jobs import batch_job_details, batch_jobs_list
from reflector.tools.batch_status import batch_consume, batch_status
from reflector.tools.trigger import check_batches, submit_weekly, trigger_weekly_reflections

__all__ = [
    "batch_jobs_list",
    "batch_job_details",
    "batch_status",
    "batch_consume",
    "trigger_weekly_reflections",
    "submit_weekly",
    "check_batches",
]
