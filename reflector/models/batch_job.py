"""Batch job model for tracking submissions to the external batch API."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Column, Field, SQLModel


class BatchJobStatus(str, Enum):
    """States for batch jobs."""

    PENDING = "pending"
    VALIDATING = "validating"
    IN_PROGRESS = "in_progress"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {BatchJobStatus.COMPLETED, BatchJobStatus.FAILED, BatchJobStatus.CANCELLED}
)
ACTIVE_STATUSES = tuple(s for s in BatchJobStatus if s not in TERMINAL_STATUSES)


class BatchJob(SQLModel, table=True):
    """One submission to the external batch API covering a week of users."""

    __tablename__ = "batch_jobs"
    __table_args__ = (
        UniqueConstraint("job_type", "week", "year", name="uq_batch_jobs_logical_key"),
    )

    # External batch id assigned by the API
    id: str = Field(primary_key=True)

    job_type: str = Field(index=True)
    week: int = Field(ge=1)
    year: int

    status: BatchJobStatus = Field(default=BatchJobStatus.PENDING, index=True)
    external_status: str | None = Field(default=None)

    submitted_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    completed_at: datetime | None = Field(default=None)

    total_requests: int = Field(default=0, ge=0)
    success_count: int | None = Field(default=None)
    error_count: int | None = Field(default=None)
    errors: list[dict] | None = Field(default=None, sa_column=Column(JSON))

    output_file_id: str | None = Field(default=None)
    error_file_id: str | None = Field(default=None)
    error_message: str | None = Field(default=None)

    @property
    def logical_key(self) -> tuple[str, int, int]:
        return (self.job_type, self.week, self.year)

    def counts_within_total(self) -> bool:
        """Check that ingested counts never exceed the submitted request count."""
        return (self.success_count or 0) + (self.error_count or 0) <= self.total_requests

    def to_summary(self) -> dict:
        """Convert to the compact dict used by job listings."""
        return {
            "id": self.id,
            "type": self.job_type,
            "week": self.week,
            "year": self.year,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_requests": self.total_requests,
            "success_count": self.success_count,
            "error_count": self.error_count,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            **self.to_summary(),
            "external_status": self.external_status,
            "errors": self.errors or [],
            "error_message": self.error_message,
            "output_file_id": self.output_file_id,
            "error_file_id": self.error_file_id,
        }
