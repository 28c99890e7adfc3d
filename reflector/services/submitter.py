"""Weekly batch submission."""

import logging
import traceback

from reflector.config import settings
from reflector.models.batch_job import BatchJob, BatchJobStatus
from reflector.services.batch_requests import batch_requests_to_jsonl
from reflector.services.job_store import BatchJobStore, batch_job_store
from reflector.services.notifier import Notifier, deliver, get_notifier
from reflector.services.openai_batch import OpenAIBatchClient, batch_client
from reflector.services.request_builder import RequestBuilder, request_builder
from reflector.services.transitions import initial_status

logger = logging.getLogger(__name__)


class BatchSubmitter:
    """Submits one batch per week and records it in the job store.

    At most one job exists per ``(job_type, week, year)``. A week whose job is
    still pending or already completed is never resubmitted; a week whose job
    failed or was cancelled may be submitted again.
    """

    def __init__(
        self,
        builder: RequestBuilder = request_builder,
        client: OpenAIBatchClient = batch_client,
        store: BatchJobStore = batch_job_store,
        notifier: Notifier | None = None,
        job_type: str = settings.reflector_job_type,
    ):
        self._builder = builder
        self._client = client
        self._store = store
        self._notifier = notifier or get_notifier()
        self._job_type = job_type

    async def submit_week(self, week: int, year: int) -> dict:
        """Build and submit the batch for a week. Returns a result summary."""
        logger.info("Starting weekly reflection batch submission for week %d, %d", week, year)
        try:
            return await self._submit_week(week, year)
        except Exception as exc:
            logger.exception("Weekly reflection batch submission failed")
            await deliver(
                self._notifier.notify_error(
                    "Weekly Reflection Batch Submission Failed",
                    f"Week: {week}, {year}\nError: {exc}\n\n{traceback.format_exc()}",
                ),
                "submission error",
            )
            raise

    async def _submit_week(self, week: int, year: int) -> dict:
        existing = await self._store.find_by_logical_key(self._job_type, week, year)
        if existing is not None:
            if not existing.status.is_terminal:
                logger.info("Batch %s for week %d, %d is still pending", existing.id, week, year)
                return {"status": "already_pending", "job_id": existing.id, "week": week, "year": year}
            if existing.status == BatchJobStatus.COMPLETED:
                logger.info("Batch %s for week %d, %d already completed", existing.id, week, year)
                return {"status": "already_completed", "job_id": existing.id, "week": week, "year": year}
            # Free the logical key held by a failed or cancelled batch
            logger.info("Replacing %s batch %s for week %d, %d", existing.status.value, existing.id, week, year)
            await self._store.delete(existing.id)

        built = await self._builder.build_requests(week, year)
        if not built.requests:
            logger.info("No batch requests to submit")
            return {
                "status": "skipped",
                "reason": "no batch requests to submit",
                "week": week,
                "year": year,
                "eligible_users": len(built.eligible_user_ids),
                "skipped_users": built.skipped_user_ids,
            }

        submitted = await self._client.submit(
            batch_requests_to_jsonl(built.requests),
            metadata={"job_type": self._job_type, "week": str(week), "year": str(year)},
        )

        job = await self._store.create(
            BatchJob(
                id=submitted.batch_id,
                job_type=self._job_type,
                week=week,
                year=year,
                status=initial_status(submitted.status),
                external_status=submitted.status,
                total_requests=len(built.requests),
            )
        )
        logger.info(
            "Batch job %s saved for week %d, %d with %d requests",
            job.id, week, year, job.total_requests,
        )

        await deliver(
            self._notifier.notify_submitted(job, len(built.eligible_user_ids)),
            "submission",
        )

        return {
            "status": "submitted",
            "job_id": job.id,
            "week": week,
            "year": year,
            "eligible_users": len(built.eligible_user_ids),
            "requests_submitted": job.total_requests,
            "skipped_users": built.skipped_user_ids,
            "failed_users": built.failed_user_ids,
        }


# Global singleton instance
batch_submitter = BatchSubmitter()
