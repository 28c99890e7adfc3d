"""Scheduled polling of submitted batches.

Each invocation checks every non-terminal job once and moves it as far as the
external status allows. Waiting for a batch to finish is never done in
process: a job that is still running is simply left for the next scheduled
invocation, which is the only retry mechanism.
"""

import asyncio
import logging
import time
import traceback
from datetime import datetime, timedelta

from reflector.config import settings
from reflector.errors import TerminalExternalFailure
from reflector.models.batch_job import ACTIVE_STATUSES, BatchJob, BatchJobStatus
from reflector.services.ingestor import IngestionResult, ResultIngestor, result_ingestor
from reflector.services.job_store import BatchJobStore, batch_job_store
from reflector.services.notifier import Notifier, deliver, get_notifier
from reflector.services.openai_batch import ExternalBatchStatus, OpenAIBatchClient, batch_client
from reflector.services.transitions import JobAction, Transition, decide_transition, is_eligible_to_run

logger = logging.getLogger(__name__)


class PollScheduler:
    """Drives pending batch jobs toward a terminal status."""

    def __init__(
        self,
        store: BatchJobStore = batch_job_store,
        client: OpenAIBatchClient = batch_client,
        ingestor: ResultIngestor = result_ingestor,
        notifier: Notifier | None = None,
        retention_days: int = settings.reflector_retention_days,
        budget_seconds: float = settings.reflector_invocation_budget_seconds,
    ):
        self._store = store
        self._client = client
        self._ingestor = ingestor
        self._notifier = notifier or get_notifier()
        self._retention = timedelta(days=retention_days)
        self._budget_seconds = budget_seconds

    async def run(
        self,
        now: datetime | None = None,
        scheduled_time: str | None = None,
        force: bool = False,
    ) -> dict:
        """Run one polling cycle.

        Args:
            now: Current UTC time (defaults to the clock).
            scheduled_time: Trigger time reported by the scheduler, for notifications.
            force: Skip the run-window guard.

        Returns:
            Dict summarizing what happened to each job.
        """
        now = now or datetime.utcnow()
        if not force and not is_eligible_to_run(now):
            logger.info("Skipping batch check outside the polling window (%s)", now.isoformat())
            return {"status": "skipped", "reason": "outside polling window"}

        summary = {
            "status": "ok",
            "checked": 0,
            "completed": [],
            "failed": [],
            "still_processing": [],
            "errored": [],
            "deferred": [],
            "cleaned_up": 0,
        }

        try:
            pending = await self._store.list_by_status(ACTIVE_STATUSES)

            if not pending:
                logger.info("No pending batch jobs found")
                summary["cleaned_up"] = await self.cleanup(now)
                return summary

            await deliver(
                self._notifier.notify_attempt(len(pending), scheduled_time or now.isoformat()),
                "attempt",
            )
            logger.info("Found %d pending batch job(s)", len(pending))

            started = time.monotonic()
            for job in pending:
                remaining = self._budget_seconds - (time.monotonic() - started)
                if remaining <= 0:
                    logger.warning("Invocation budget spent, leaving batch %s for the next run", job.id)
                    summary["deferred"].append(job.id)
                    continue

                summary["checked"] += 1
                try:
                    async with asyncio.timeout(remaining):
                        outcome = await self.process_job(job, now)
                except TimeoutError:
                    logger.warning("Invocation budget ran out while checking batch %s, leaving it for the next run", job.id)
                    summary["deferred"].append(job.id)
                    continue
                except Exception:
                    # Job state is untouched; the next invocation retries it
                    logger.exception("Error processing batch %s", job.id)
                    summary["errored"].append(job.id)
                    continue
                summary[outcome].append(job.id)

            summary["cleaned_up"] = await self.cleanup(now)
            return summary
        except Exception as exc:
            logger.exception("Batch check cycle failed")
            await deliver(
                self._notifier.notify_error(
                    "Batch Check/Consume Failed",
                    f"Error: {exc}\n\nStack trace:\n{traceback.format_exc()}",
                ),
                "check error",
            )
            raise

    async def process_job(self, job: BatchJob, now: datetime) -> str:
        """Check one job's external status and apply the resulting transition.

        Returns the summary bucket the job falls into.
        """
        logger.info("Checking batch %s (status %s, week %d, %d)", job.id, job.status.value, job.week, job.year)
        external = await self._client.status(job.id)
        logger.info("Batch %s external status: %s", job.id, external.status)

        transition = decide_transition(job.status, external)

        if transition.action is JobAction.INGEST:
            await self.consume(job, external, now)
            return "completed"

        if transition.action is JobAction.FAIL:
            await self._fail(job, external, transition, now)
            return "failed"

        await self._wait(job, external, transition)
        return "still_processing"

    async def consume(self, job: BatchJob, external: ExternalBatchStatus, now: datetime) -> IngestionResult:
        """Ingest a completed batch and mark its job completed.

        If ingestion fails or is cancelled after the job was marked
        processing, the job is put back exactly as it was read, file ids and
        external status included.
        """
        logger.info("Batch %s completed, downloading results", job.id)
        # Download before any write so a failed download leaves the job as it was
        parsed = await self._ingestor.download(external.output_file_id, external.error_file_id)

        await self._store.update(
            job.id,
            status=BatchJobStatus.PROCESSING,
            external_status=external.status,
            output_file_id=external.output_file_id,
            error_file_id=external.error_file_id,
        )
        try:
            result = await self._ingestor.apply(parsed)
            await self._store.update(
                job.id,
                status=BatchJobStatus.COMPLETED,
                completed_at=now,
                success_count=result.success_count,
                error_count=result.error_count,
                errors=result.error_dicts(),
            )
        except BaseException:
            await self._store.update(
                job.id,
                status=job.status,
                external_status=job.external_status,
                output_file_id=job.output_file_id,
                error_file_id=job.error_file_id,
            )
            raise

        logger.info(
            "Batch %s consumed: %d succeeded, %d failed",
            job.id, result.success_count, result.error_count,
        )
        await deliver(
            self._notifier.notify_success(
                job,
                result.success_count,
                result.error_count,
                result.error_dicts() or None,
            ),
            "success",
        )
        return result

    async def _fail(
        self,
        job: BatchJob,
        external: ExternalBatchStatus,
        transition: Transition,
        now: datetime,
    ) -> None:
        failure = TerminalExternalFailure(job.id, external.status)
        logger.error("Batch %s: %s", job.id, failure)
        await self._store.update(
            job.id,
            status=transition.next_status,
            external_status=external.status,
            completed_at=now,
            error_message=str(failure),
            error_file_id=external.error_file_id,
        )
        await deliver(
            self._notifier.notify_error(
                f"Batch Job {failure.external_status}",
                f"Batch ID: {job.id}\nWeek: {job.week}, {job.year}\nError: {failure}",
            ),
            "failure",
        )

    async def _wait(self, job: BatchJob, external: ExternalBatchStatus, transition: Transition) -> None:
        logger.info("Batch %s still processing (%s)", job.id, external.status)
        if transition.next_status is not None:
            await self._store.update(
                job.id,
                status=transition.next_status,
                external_status=external.status,
            )
        await deliver(
            self._notifier.notify_still_processing(job, external.status),
            "still processing",
        )

    async def cleanup(self, now: datetime) -> int:
        """Delete terminal jobs older than the retention window."""
        removed = await self._store.delete_terminal_before(now - self._retention)
        if removed:
            logger.info("Cleaned up %d old batch jobs", removed)
        return removed


# Global singleton instance
poll_scheduler = PollScheduler()
