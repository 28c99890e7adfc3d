"""Ingestion of completed batch output into weekly reflection records."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from reflector.db import SessionFactory, get_session
from reflector.errors import PerRecordError
from reflector.models.reflection import ReflectionRecord, reflection_id
from reflector.services.activity import ActivityService, activity_service
from reflector.services.batch_requests import WeekNotes, parse_batch_output, parse_custom_id
from reflector.services.openai_batch import OpenAIBatchClient, batch_client
from reflector.services.weeks import reflection_month

logger = logging.getLogger(__name__)

ParsedOutput = dict[str, WeekNotes | PerRecordError]


@dataclass
class IngestionResult:
    """Counts for one ingestion pass. Recomputed from scratch on every pass."""

    success_count: int = 0
    errors: list[PerRecordError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def error_dicts(self) -> list[dict]:
        return [error.to_dict() for error in self.errors]


class ResultIngestor:
    """Turns batch output into ``ReflectionRecord`` upserts.

    Never touches the ``BatchJob`` record; the caller owns job state.
    """

    def __init__(
        self,
        client: OpenAIBatchClient = batch_client,
        activity: ActivityService = activity_service,
        session_factory: SessionFactory = get_session,
    ):
        self._client = client
        self._activity = activity
        self._session_factory = session_factory

    async def download(self, output_file_id: str | None, error_file_id: str | None = None) -> ParsedOutput:
        """Download and parse the output file and, if present, the error file."""
        parsed: ParsedOutput = {}
        if error_file_id:
            parsed.update(parse_batch_output(await self._client.download(error_file_id)))
        if output_file_id:
            parsed.update(parse_batch_output(await self._client.download(output_file_id)))
        logger.info("Parsed %d batch results", len(parsed))
        return parsed

    async def apply(self, parsed: ParsedOutput) -> IngestionResult:
        """Upsert a reflection per successful entry, accumulating per-record errors."""
        result = IngestionResult()

        for custom_id, entry in parsed.items():
            if isinstance(entry, PerRecordError):
                logger.error("AI generation failed for %s: %s", custom_id, entry.message)
                result.errors.append(entry)
                continue

            try:
                await self._write_reflection(custom_id, entry)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Failed to write reflection for %s", custom_id)
                result.errors.append(PerRecordError(custom_id, str(exc) or type(exc).__name__))
                continue

            result.success_count += 1
            logger.info("Wrote reflection for %s", custom_id)

        return result

    async def ingest(self, output_file_id: str | None, error_file_id: str | None = None) -> IngestionResult:
        """Download, parse and apply a batch's results."""
        return await self.apply(await self.download(output_file_id, error_file_id))

    async def _write_reflection(self, custom_id: str, notes: WeekNotes) -> None:
        user_id, year, week = parse_custom_id(custom_id)
        now = datetime.utcnow()

        async with self._session_factory() as session:
            # Re-read the week rather than trusting the request snapshot
            todos = await self._activity.get_todos_for_week(session, user_id, week, year)
            await session.merge(
                ReflectionRecord(
                    id=reflection_id(user_id, year, week),
                    user_id=user_id,
                    year=year,
                    week=week,
                    month=reflection_month(year, week),
                    completed_todos=todos.completed,
                    incomplete_count=len(todos.incomplete),
                    notes=[note.model_dump() for note in notes.notes],
                    notes_generated_at=now,
                    updated_at=now,
                )
            )


# Global singleton instance
result_ingestor = ResultIngestor()
