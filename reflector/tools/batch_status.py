"""batch_status and batch_consume tools for acting on one batch directly."""

from reflector.errors import ReflectorError
from reflector.services import admin_service


async def batch_status(caller_id: str | None, batch_id: str) -> dict:
    """Get the live external status of a batch without touching the stored job."""
    try:
        return await admin_service.check_status(caller_id, batch_id)
    except ReflectorError as exc:
        return {"status": "error", "reason": str(exc)}


async def batch_consume(caller_id: str | None, batch_id: str) -> dict:
    """Ingest a completed batch now instead of waiting for the next scheduled check.

    Args:
        caller_id: Identity of the caller; must be the administrator.
        batch_id: External batch id of a stored job.

    Returns:
        dict with success_count, error_count and per-record errors, or
        status "error" if the batch has not completed.
    """
    try:
        return await admin_service.consume_job(caller_id, batch_id)
    except ReflectorError as exc:
        return {"status": "error", "reason": str(exc)}
