"""Client for the OpenAI Batch API."""

import logging
from dataclasses import dataclass, field

import openai
from openai import AsyncOpenAI

from reflector.config import settings
from reflector.errors import ExternalAPIError, TransientExternalError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


@dataclass(frozen=True)
class SubmittedBatch:
    batch_id: str
    status: str


@dataclass(frozen=True)
class ExternalBatchStatus:
    """Status of a batch as reported by the external API."""

    batch_id: str
    status: str
    output_file_id: str | None = None
    error_file_id: str | None = None
    request_counts: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "batch_id": self.batch_id,
            "status": self.status,
            "output_file_id": self.output_file_id,
            "error_file_id": self.error_file_id,
            "request_counts": self.request_counts,
        }


def _translate(exc: openai.APIError, action: str) -> ExternalAPIError:
    if isinstance(exc, TRANSIENT_ERRORS):
        return TransientExternalError(f"{action} failed: {exc}")
    return ExternalAPIError(f"{action} failed: {exc}")


class OpenAIBatchClient:
    """Submit, poll and download OpenAI batches.

    Every call is bounded by the client timeout so a single invocation can
    never outlive the hosting platform's execution limit.
    """

    def __init__(self):
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazily initialize the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.reflector_external_timeout_seconds,
                max_retries=settings.reflector_external_max_retries,
            )
        return self._client

    async def submit(self, jsonl_content: str, metadata: dict | None = None) -> SubmittedBatch:
        """Upload the JSONL requests and create a batch from them."""
        try:
            upload = await self.client.files.create(
                file=("weekly_reflections.jsonl", jsonl_content.encode("utf-8")),
                purpose="batch",
            )
            batch = await self.client.batches.create(
                input_file_id=upload.id,
                endpoint=settings.reflector_batch_endpoint,
                completion_window=settings.reflector_completion_window,
                **({"metadata": metadata} if metadata else {}),
            )
        except openai.APIError as exc:
            raise _translate(exc, "Batch submission") from exc

        logger.info("Submitted batch %s (input file %s, status %s)", batch.id, upload.id, batch.status)
        return SubmittedBatch(batch_id=batch.id, status=batch.status)

    async def status(self, batch_id: str) -> ExternalBatchStatus:
        """Fetch the current status of a batch."""
        try:
            batch = await self.client.batches.retrieve(batch_id)
        except openai.APIError as exc:
            raise _translate(exc, f"Status check for {batch_id}") from exc

        counts = batch.request_counts
        return ExternalBatchStatus(
            batch_id=batch.id,
            status=batch.status,
            output_file_id=batch.output_file_id,
            error_file_id=batch.error_file_id,
            request_counts=(
                {"total": counts.total, "completed": counts.completed, "failed": counts.failed}
                if counts
                else {}
            ),
        )

    async def download(self, file_id: str) -> str:
        """Download a result file as text."""
        try:
            content = await self.client.files.content(file_id)
        except openai.APIError as exc:
            raise _translate(exc, f"Download of {file_id}") from exc
        return content.text


# Global singleton instance
batch_client = OpenAIBatchClient()
