"""Tools that start a submission or polling cycle."""

from datetime import datetime

from reflector.errors import ReflectorError
from reflector.services import admin_service, batch_submitter, poll_scheduler
from reflector.services.weeks import target_week


async def trigger_weekly_reflections(
    caller_id: str | None,
    week: int | None = None,
    year: int | None = None,
) -> dict:
    """Submit the weekly reflection batch on demand.

    Submission is idempotent per week: a week whose batch is pending or
    completed is not submitted again.

    Args:
        caller_id: Identity of the caller; must be the administrator.
        week: Sequential week number (default: last finished week).
        year: Year of the week (default: year of the last finished week).

    Returns:
        dict with status ("submitted", "skipped", "already_pending",
        "already_completed" or "error") and submission details.
    """
    try:
        return await admin_service.trigger_week(caller_id, week=week, year=year)
    except ReflectorError as exc:
        return {"status": "error", "reason": str(exc)}


async def submit_weekly(week: int | None = None, year: int | None = None) -> dict:
    """Scheduled weekly submission for the last finished week."""
    default_year, default_week = target_week(datetime.utcnow())
    if week is None:
        week = default_week
    if year is None:
        year = default_year
    return await batch_submitter.submit_week(week, year)


async def check_batches(scheduled_time: str | None = None, force: bool = False) -> dict:
    """Scheduled polling cycle over pending batches."""
    return await poll_scheduler.run(scheduled_time=scheduled_time, force=force)
