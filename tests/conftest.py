"""Pytest configuration and fixtures for reflector tests."""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

# Set test environment variables BEFORE importing reflector modules
# This ensures the Settings singleton loads with test values
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["RESEND_API_KEY"] = ""
os.environ["REFLECTOR_ADMIN_ID"] = ""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import reflector.models  # noqa: F401
from reflector.models.batch_job import BatchJob
from reflector.services.notifier import Notifier
from reflector.services.openai_batch import ExternalBatchStatus, SubmittedBatch


@pytest.fixture
async def db_engine():
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory with the same commit/rollback semantics as get_session()."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    @asynccontextmanager
    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _session


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and asserting on data directly."""
    async with session_factory() as session:
        yield session


class FakeBatchClient:
    """In-memory stand-in for OpenAIBatchClient.

    Values in ``statuses`` and ``files`` may be exceptions, which are raised
    instead of returned.
    """

    def __init__(self):
        self.statuses: dict = {}
        self.files: dict = {}
        self.submitted: list[tuple[str, dict | None]] = []
        self.status_calls: list[str] = []
        self.download_calls: list[str] = []
        self.submit_error: Exception | None = None
        self.next_batch_id = "batch_new"
        self.submit_status = "validating"
        self.status_delay = 0.0

    def set_status(self, batch_id: str, status: str, output_file_id=None, error_file_id=None) -> None:
        self.statuses[batch_id] = ExternalBatchStatus(
            batch_id=batch_id,
            status=status,
            output_file_id=output_file_id,
            error_file_id=error_file_id,
            request_counts={"total": 3, "completed": 2, "failed": 1},
        )

    async def submit(self, jsonl_content: str, metadata: dict | None = None) -> SubmittedBatch:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append((jsonl_content, metadata))
        return SubmittedBatch(batch_id=self.next_batch_id, status=self.submit_status)

    async def status(self, batch_id: str) -> ExternalBatchStatus:
        self.status_calls.append(batch_id)
        if self.status_delay:
            await asyncio.sleep(self.status_delay)
        value = self.statuses[batch_id]
        if isinstance(value, Exception):
            raise value
        return value

    async def download(self, file_id: str) -> str:
        self.download_calls.append(file_id)
        value = self.files[file_id]
        if isinstance(value, Exception):
            raise value
        return value


class RecordingNotifier(Notifier):
    """Notifier that records every call. Set ``fail`` to make each call raise."""

    def __init__(self, fail: bool = False):
        self.calls: list[tuple] = []
        self.fail = fail

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail:
            raise RuntimeError("mail channel down")

    def kinds(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def notify_attempt(self, pending_count, scheduled_time) -> None:
        self._record("attempt", pending_count, scheduled_time)

    async def notify_success(self, job: BatchJob, success_count, error_count, errors=None) -> None:
        self._record("success", job.id, success_count, error_count, errors)

    async def notify_error(self, subject, details) -> None:
        self._record("error", subject, details)

    async def notify_still_processing(self, job: BatchJob, external_status) -> None:
        self._record("still_processing", job.id, external_status)

    async def notify_submitted(self, job: BatchJob, eligible_users) -> None:
        self._record("submitted", job.id, eligible_users)


@pytest.fixture
def fake_client() -> FakeBatchClient:
    return FakeBatchClient()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store(session_factory):
    from reflector.services.job_store import BatchJobStore

    return BatchJobStore(session_factory=session_factory)


@pytest.fixture
def ingestor(fake_client, session_factory):
    from reflector.services.activity import ActivityService
    from reflector.services.ingestor import ResultIngestor

    return ResultIngestor(
        client=fake_client,
        activity=ActivityService(),
        session_factory=session_factory,
    )


@pytest.fixture
def request_builder(session_factory):
    from reflector.services.activity import ActivityService
    from reflector.services.request_builder import RequestBuilder

    return RequestBuilder(activity=ActivityService(), session_factory=session_factory)


# Note: Test environment variables are set at module import time (top of file)
# to ensure Settings singleton loads with test values before any reflector imports.
