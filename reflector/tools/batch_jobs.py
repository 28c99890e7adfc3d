"""batch_jobs_list and batch_job_details tools for inspecting batch jobs."""

from reflector.errors import ReflectorError
from reflector.services import admin_service


async def batch_jobs_list(caller_id: str | None, limit: int = 10) -> dict:
    """List recent weekly reflection batch jobs.

    Args:
        caller_id: Identity of the caller; must be the administrator.
        limit: Maximum number of jobs to return (default: 10, max: 50).

    Returns:
        dict with:
            - success: True
            - jobs: Jobs ordered by submission time, newest first

    Example:
        >>> batch_jobs_list("octocat")
        {
            "success": True,
            "jobs": [
                {
                    "id": "batch_abc123",
                    "type": "weekly_reflection",
                    "week": 41,
                    "year": 2026,
                    "status": "completed",
                    "total_requests": 120,
                    "success_count": 118,
                    "error_count": 2
                }
            ]
        }
    """
    try:
        return await admin_service.list_jobs(caller_id, limit=limit)
    except ReflectorError as exc:
        return {"status": "error", "reason": str(exc)}


async def batch_job_details(caller_id: str | None, batch_id: str) -> dict:
    """Get the full record of one batch job, including per-record errors."""
    try:
        return await admin_service.get_job(caller_id, batch_id)
    except ReflectorError as exc:
        return {"status": "error", "reason": str(exc)}
