"""Pure decision logic for the batch polling state machine.

Nothing in this module performs I/O or reads the clock, so every transition
and the run-window guard can be tested with plain values.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from reflector.config import settings
from reflector.models.batch_job import BatchJobStatus
from reflector.services.openai_batch import ExternalBatchStatus

logger = logging.getLogger(__name__)

# External API status strings mapped onto stored job statuses
EXTERNAL_STATUS_MAP: dict[str, BatchJobStatus] = {
    "validating": BatchJobStatus.VALIDATING,
    "in_progress": BatchJobStatus.IN_PROGRESS,
    "finalizing": BatchJobStatus.IN_PROGRESS,
    "cancelling": BatchJobStatus.IN_PROGRESS,
    "completed": BatchJobStatus.COMPLETED,
    "failed": BatchJobStatus.FAILED,
    "expired": BatchJobStatus.FAILED,
    "cancelled": BatchJobStatus.CANCELLED,
}

RUNNING_STATUSES = frozenset({BatchJobStatus.VALIDATING, BatchJobStatus.IN_PROGRESS})


def map_external_status(external_status: str) -> BatchJobStatus | None:
    """Stored status for an external status string, or None if unknown."""
    return EXTERNAL_STATUS_MAP.get(external_status)


def initial_status(external_status: str) -> BatchJobStatus:
    """Status recorded for a freshly submitted batch."""
    mapped = map_external_status(external_status)
    if mapped is None or mapped not in RUNNING_STATUSES:
        return BatchJobStatus.PENDING
    return mapped


class JobAction(str, Enum):
    INGEST = "ingest"
    FAIL = "fail"
    WAIT = "wait"


class NotificationKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    STILL_PROCESSING = "still_processing"


@dataclass(frozen=True)
class Transition:
    """What to do with a job given its stored and external status."""

    action: JobAction
    # Status to write now; None leaves the stored status untouched
    next_status: BatchJobStatus | None
    notification: NotificationKind


def decide_transition(current: BatchJobStatus, external: ExternalBatchStatus) -> Transition:
    """Map ``(stored status, external status)`` to the next step for a job."""
    mapped = map_external_status(external.status)

    if mapped is BatchJobStatus.COMPLETED:
        if external.output_file_id or external.error_file_id:
            return Transition(JobAction.INGEST, BatchJobStatus.PROCESSING, NotificationKind.SUCCESS)
        logger.warning("Batch %s completed without result files", external.batch_id)
        return Transition(JobAction.WAIT, None, NotificationKind.STILL_PROCESSING)

    if mapped in (BatchJobStatus.FAILED, BatchJobStatus.CANCELLED):
        return Transition(JobAction.FAIL, mapped, NotificationKind.FAILURE)

    if mapped is None:
        logger.warning("Batch %s reported unknown status %r", external.batch_id, external.status)
        return Transition(JobAction.WAIT, None, NotificationKind.STILL_PROCESSING)

    next_status = mapped if mapped != current else None
    return Transition(JobAction.WAIT, next_status, NotificationKind.STILL_PROCESSING)


def last_submission_time(
    now: datetime,
    submit_weekday: int = settings.reflector_submit_weekday,
    submit_hour: int = settings.reflector_submit_hour,
) -> datetime:
    """Most recent scheduled submission at or before ``now``."""
    candidate = now.replace(hour=submit_hour, minute=0, second=0, microsecond=0)
    candidate -= timedelta(days=(now.weekday() - submit_weekday) % 7)
    if candidate > now:
        candidate -= timedelta(days=7)
    return candidate


def is_eligible_to_run(
    now: datetime,
    submit_weekday: int = settings.reflector_submit_weekday,
    submit_hour: int = settings.reflector_submit_hour,
    first_check_delay_hours: int = settings.reflector_first_check_delay_hours,
    poll_window_hours: int = settings.reflector_poll_window_hours,
) -> bool:
    """Whether a polling invocation at ``now`` falls inside the polling window.

    The window opens ``first_check_delay_hours`` after the weekly submission
    and closes ``poll_window_hours`` after it.
    """
    elapsed = now - last_submission_time(now, submit_weekday, submit_hour)
    return timedelta(hours=first_check_delay_hours) <= elapsed <= timedelta(hours=poll_window_hours)
