"""Administrator-only views over batch jobs."""

import logging
from datetime import datetime

from reflector.config import settings
from reflector.errors import BatchJobNotFound, BatchNotReady, InvalidArgument, PermissionDenied
from reflector.services.job_store import BatchJobStore, batch_job_store
from reflector.services.openai_batch import OpenAIBatchClient, batch_client
from reflector.services.poller import PollScheduler, poll_scheduler
from reflector.services.submitter import BatchSubmitter, batch_submitter
from reflector.services.weeks import target_week

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 50
MIN_YEAR = 2000
MAX_YEAR = 2100


class AdminService:
    """Operations gated on a single fixed administrator identity."""

    def __init__(
        self,
        store: BatchJobStore = batch_job_store,
        client: OpenAIBatchClient = batch_client,
        submitter: BatchSubmitter = batch_submitter,
        scheduler: PollScheduler = poll_scheduler,
        admin_id: str = settings.reflector_admin_id,
    ):
        self._store = store
        self._client = client
        self._submitter = submitter
        self._scheduler = scheduler
        self._admin_id = admin_id

    def authorize(self, caller_id: str | None, action: str) -> None:
        if not self._admin_id or caller_id != self._admin_id:
            logger.warning("Unauthorized %s attempt by %s", action, caller_id)
            raise PermissionDenied("Admin access required")

    async def list_jobs(self, caller_id: str | None, limit: int = settings.reflector_admin_list_limit) -> dict:
        """Most recent jobs, newest submission first."""
        self.authorize(caller_id, "list_jobs")
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        jobs = await self._store.list_recent(limit)
        logger.info("Found %d batch jobs", len(jobs))
        return {"success": True, "jobs": [job.to_summary() for job in jobs]}

    async def get_job(self, caller_id: str | None, batch_id: str | None) -> dict:
        """Full detail of one job, including per-record errors."""
        self.authorize(caller_id, "get_job")
        batch_id = _require_batch_id(batch_id)
        job = await self._store.get(batch_id)
        if job is None:
            raise BatchJobNotFound(batch_id)
        return {"success": True, "job": job.to_dict()}

    async def check_status(self, caller_id: str | None, batch_id: str | None) -> dict:
        """Live status from the external API. Does not modify the stored job."""
        self.authorize(caller_id, "check_status")
        batch_id = _require_batch_id(batch_id)
        external = await self._client.status(batch_id)
        logger.info("Batch %s status retrieved: %s", batch_id, external.status)
        return {"success": True, **external.to_dict()}

    async def consume_job(self, caller_id: str | None, batch_id: str | None, now: datetime | None = None) -> dict:
        """Ingest a completed batch on demand, regardless of the polling window.

        Re-consuming a completed job is safe: records are upserted and counts
        recomputed.
        """
        self.authorize(caller_id, "consume_job")
        batch_id = _require_batch_id(batch_id)

        job = await self._store.get(batch_id)
        if job is None:
            raise BatchJobNotFound(batch_id)

        external = await self._client.status(batch_id)
        if external.status != "completed" or not (external.output_file_id or external.error_file_id):
            raise BatchNotReady(batch_id, external.status)

        logger.info("Manual consume of batch %s by %s", batch_id, caller_id)
        result = await self._scheduler.consume(job, external, now or datetime.utcnow())
        return {
            "success": True,
            "batch_id": batch_id,
            "success_count": result.success_count,
            "error_count": result.error_count,
            "errors": result.error_dicts(),
        }

    async def trigger_week(
        self,
        caller_id: str | None,
        week: int | None = None,
        year: int | None = None,
        now: datetime | None = None,
    ) -> dict:
        """Submit a week's batch on demand, defaulting to the last finished week."""
        self.authorize(caller_id, "trigger_week")
        default_year, default_week = target_week(now or datetime.utcnow())
        if week is None:
            week = default_week
        if year is None:
            year = default_year
        if week < 1 or week > 53:
            raise InvalidArgument(f"week must be between 1 and 53, got {week}")
        if year < MIN_YEAR or year > MAX_YEAR:
            raise InvalidArgument(f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")
        logger.info("Manual trigger for week %d, %d by %s", week, year, caller_id)
        return await self._submitter.submit_week(week, year)


def _require_batch_id(batch_id: str | None) -> str:
    if not batch_id or not isinstance(batch_id, str):
        raise InvalidArgument("batch_id is required")
    return batch_id


# Global singleton instance
admin_service = AdminService()
