"""Durable storage for batch job records."""

from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, select, update

from reflector.db import SessionFactory, get_session
from reflector.errors import BatchJobNotFound
from reflector.models.batch_job import TERMINAL_STATUSES, BatchJob, BatchJobStatus


class BatchJobStore:
    """CRUD over ``BatchJob`` rows.

    Every call runs in its own transaction, so a job's state transition is
    committed on its own and never batched with another job's. Updates only
    touch the fields passed in (last write wins per field).
    """

    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    async def create(self, job: BatchJob) -> BatchJob:
        async with self._session_factory() as session:
            session.add(job)
            await session.flush()
        return job

    async def get(self, batch_id: str) -> BatchJob | None:
        async with self._session_factory() as session:
            return await session.get(BatchJob, batch_id)

    async def find_by_logical_key(self, job_type: str, week: int, year: int) -> BatchJob | None:
        """Find the job for one cycle, if any."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(BatchJob).where(
                    BatchJob.job_type == job_type,
                    BatchJob.week == week,
                    BatchJob.year == year,
                )
            )
            return result.scalar_one_or_none()

    async def list_by_status(self, statuses: Iterable[BatchJobStatus]) -> list[BatchJob]:
        """Jobs in any of the given statuses, oldest submission first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(BatchJob)
                .where(BatchJob.status.in_(list(statuses)))
                .order_by(BatchJob.submitted_at)
            )
            return list(result.scalars().all())

    async def list_recent(self, limit: int) -> list[BatchJob]:
        """Most recently submitted jobs first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(BatchJob).order_by(BatchJob.submitted_at.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def update(self, batch_id: str, **fields) -> None:
        """Write only the given fields of a job."""
        if not fields:
            return
        async with self._session_factory() as session:
            result = await session.execute(
                update(BatchJob).where(BatchJob.id == batch_id).values(**fields)
            )
            if result.rowcount == 0:
                raise BatchJobNotFound(batch_id)

    async def delete(self, batch_id: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(delete(BatchJob).where(BatchJob.id == batch_id))
            if result.rowcount == 0:
                raise BatchJobNotFound(batch_id)

    async def delete_terminal_before(self, cutoff: datetime) -> int:
        """Delete terminal jobs submitted before ``cutoff``. Returns rows deleted.

        Jobs still pending externally are never deleted, whatever their age.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                delete(BatchJob).where(
                    BatchJob.status.in_(list(TERMINAL_STATUSES)),
                    BatchJob.submitted_at < cutoff,
                )
            )
            return result.rowcount or 0


# Global singleton instance
batch_job_store = BatchJobStore()
