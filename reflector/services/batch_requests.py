"""Batch request construction and batch output parsing for weekly reflections."""

import json
import logging
import re

from pydantic import BaseModel, Field, ValidationError

from reflector.config import settings
from reflector.errors import PerRecordError
from reflector.models.reflection import reflection_id

logger = logging.getLogger(__name__)


REFLECTION_SYSTEM_PROMPT = """You are a reflection assistant for a personal todo application. Given the todos a person completed during one work week (Monday to Friday), group related work into a small number of notes that help them see where their attention went.

Guidelines:
1. Group todos that belong to the same project, theme, or goal into one note
2. Each note gets a short title (2-6 words) and a 1-2 sentence summary written in second person
3. Combine the tags of grouped todos; do not invent tags
4. Mention unfinished work only when it changes the picture of the week
5. If previous week notes are given, point out continuity where it genuinely exists

Output format (JSON object):
{
  "notes": [
    {
      "title": "Short title",
      "summary": "One or two sentences about this group of work.",
      "tags": ["tag1", "tag2"]
    }
  ]
}

Only output valid JSON. No markdown, no explanations."""

HTML_TAG_PATTERN = re.compile(r"<[^>]+>")


class WeekNote(BaseModel):
    """One group of related work in a weekly reflection."""

    title: str
    summary: str
    tags: list[str] = Field(default_factory=list)


class WeekNotes(BaseModel):
    """The model's parsed answer for one user's week."""

    notes: list[WeekNote]


def format_custom_id(user_id: str, year: int, week: int) -> str:
    """Request identifier echoed back by the batch API."""
    return reflection_id(user_id, year, week)


def parse_custom_id(custom_id: str) -> tuple[str, int, int]:
    """Split a custom id back into ``(user_id, year, week)``."""
    parts = custom_id.rsplit("_", 2)
    if len(parts) != 3 or not parts[0]:
        raise ValueError(f"Malformed custom_id: {custom_id!r}")
    user_id, year, week = parts
    return user_id, int(year), int(week)


def _plain_text(html: str) -> str:
    return HTML_TAG_PATTERN.sub("", html or "").strip()


def _format_user_message(
    completed_todos: list[dict],
    incomplete_todos: list[dict],
    week: int,
    year: int,
    previous_notes: list[dict] | None,
) -> str:
    lines = [f"Week {week} of {year}.", "", "Completed todos:"]
    for todo in completed_todos:
        details = []
        if todo.get("tags"):
            details.append("tags: " + ", ".join(todo["tags"]))
        if todo.get("move_count"):
            details.append(f"rescheduled {todo['move_count']}x")
        if todo.get("completed_with_time_box"):
            details.append("time-boxed")
        suffix = f" ({'; '.join(details)})" if details else ""
        lines.append(f"- [{todo['date']}] {_plain_text(todo['text'])}{suffix}")

    lines.append("")
    lines.append(f"Incomplete todos: {len(incomplete_todos)}")

    if previous_notes:
        lines.append("")
        lines.append("Previous week notes:")
        for note in previous_notes:
            lines.append(f"- {note.get('title', '')}: {note.get('summary', '')}")

    return "\n".join(lines)


def build_batch_request(
    user_id: str,
    completed_todos: list[dict],
    incomplete_todos: list[dict],
    week: int,
    year: int,
    previous_notes: list[dict] | None = None,
) -> dict:
    """Build one batch API request line for a user's week."""
    return {
        "custom_id": format_custom_id(user_id, year, week),
        "method": "POST",
        "url": settings.reflector_batch_endpoint,
        "body": {
            "model": settings.reflector_batch_model,
            "temperature": settings.reflector_batch_temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": REFLECTION_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": _format_user_message(
                        completed_todos, incomplete_todos, week, year, previous_notes
                    ),
                },
            ],
        },
    }


def batch_requests_to_jsonl(requests: list[dict]) -> str:
    """Serialize request lines into the bulk JSONL upload format."""
    return "\n".join(json.dumps(request, ensure_ascii=False) for request in requests) + "\n"


def _parse_entry(custom_id: str, entry: dict) -> WeekNotes | PerRecordError:
    error = entry.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        return PerRecordError(custom_id, message or "Unknown batch error")

    response = entry.get("response") or {}
    if not isinstance(response, dict):
        return PerRecordError(custom_id, "Malformed response in batch output")
    status_code = response.get("status_code")
    body = response.get("body") or {}
    if status_code != 200:
        body_error = body.get("error") if isinstance(body, dict) else None
        message = body_error.get("message") if isinstance(body_error, dict) else None
        return PerRecordError(custom_id, message or f"Request failed with HTTP {status_code}")

    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return PerRecordError(custom_id, "Response is missing message content")

    try:
        return WeekNotes.model_validate_json(content or "")
    except ValidationError as exc:
        return PerRecordError(custom_id, f"Invalid notes in model response ({exc.error_count()} errors)")


def parse_batch_output(raw: str) -> dict[str, WeekNotes | PerRecordError]:
    """Parse batch output (or error) file content into per-request results.

    Lines that cannot be attributed to a request are logged and skipped.
    """
    results: dict[str, WeekNotes | PerRecordError] = {}
    for line_number, line in enumerate(raw.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            logger.warning("Skipping malformed batch output line %d", line_number)
            continue

        custom_id = entry.get("custom_id") if isinstance(entry, dict) else None
        if not custom_id or not isinstance(custom_id, str):
            logger.warning("Skipping batch output line %d without custom_id", line_number)
            continue

        results[custom_id] = _parse_entry(custom_id, entry)
    return results
