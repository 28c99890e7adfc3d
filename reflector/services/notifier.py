"""Operator notifications for batch submission and polling."""

import html
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Awaitable

import httpx

from reflector.config import settings
from reflector.models.batch_job import BatchJob

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
SUBJECT_PREFIX = "[Reflector]"


class Notifier(ABC):
    """Fire-and-forget channel for operator notifications."""

    @abstractmethod
    async def notify_attempt(self, pending_count: int, scheduled_time: str | None) -> None:
        ...

    @abstractmethod
    async def notify_success(
        self,
        job: BatchJob,
        success_count: int,
        error_count: int,
        errors: list[dict] | None = None,
    ) -> None:
        ...

    @abstractmethod
    async def notify_error(self, subject: str, details: str) -> None:
        ...

    @abstractmethod
    async def notify_still_processing(self, job: BatchJob, external_status: str) -> None:
        ...

    @abstractmethod
    async def notify_submitted(self, job: BatchJob, eligible_users: int) -> None:
        ...


async def deliver(notification: Awaitable[None], label: str) -> bool:
    """Await a notification, logging instead of raising if it fails."""
    try:
        await notification
        return True
    except Exception:
        logger.exception("Failed to send %s notification", label)
        return False


class LogNotifier(Notifier):
    """Writes notifications to the log. Used when no mail channel is configured."""

    async def notify_attempt(self, pending_count: int, scheduled_time: str | None) -> None:
        logger.info("Batch check started: %d pending job(s), scheduled %s", pending_count, scheduled_time)

    async def notify_success(self, job, success_count, error_count, errors=None) -> None:
        logger.info(
            "Batch %s (week %d, %d) consumed: %d succeeded, %d failed",
            job.id, job.week, job.year, success_count, error_count,
        )
        for error in errors or []:
            logger.info("  %s: %s", error["record_id"], error["message"])

    async def notify_error(self, subject: str, details: str) -> None:
        logger.error("%s: %s", subject, details)

    async def notify_still_processing(self, job, external_status) -> None:
        logger.info("Batch %s (week %d, %d) still processing: %s", job.id, job.week, job.year, external_status)

    async def notify_submitted(self, job, eligible_users) -> None:
        logger.info(
            "Batch %s submitted for week %d, %d: %d request(s) from %d eligible user(s)",
            job.id, job.week, job.year, job.total_requests, eligible_users,
        )


class EmailNotifier(Notifier):
    """Sends notifications as email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str = settings.resend_api_key,
        sender: str = settings.reflector_notify_from,
        recipient: str = settings.reflector_notify_to,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._sender = sender
        self._recipient = recipient
        self._transport = transport

    async def _send(self, subject: str, body: str) -> None:
        async with httpx.AsyncClient(
            timeout=settings.reflector_notify_timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "from": self._sender,
                    "to": self._recipient,
                    "subject": f"{SUBJECT_PREFIX} {subject}",
                    "html": f"<p><strong>Time:</strong> {datetime.utcnow().isoformat()}</p>{body}",
                },
            )
            response.raise_for_status()

    async def notify_attempt(self, pending_count, scheduled_time) -> None:
        await self._send(
            "Checking for Batch Results",
            f"<h2>Batch Check Started</h2>"
            f"<p><strong>Scheduled Time:</strong> {html.escape(str(scheduled_time))}</p>"
            f"<p><strong>Pending Batches Found:</strong> {pending_count}</p>",
        )

    async def notify_success(self, job, success_count, error_count, errors=None) -> None:
        error_section = ""
        if errors:
            items = "".join(
                f"<li><strong>{html.escape(e['record_id'])}</strong>: {html.escape(e['message'])}</li>"
                for e in errors
            )
            error_section = f"<h3>Errors ({error_count}):</h3><ul>{items}</ul>"

        await self._send(
            "Weekly Reflection Batch Completed",
            f"<h2>Weekly Reflection Batch Consumed</h2>"
            f"<p><strong>Batch ID:</strong> {html.escape(job.id)}</p>"
            f"<p><strong>Week:</strong> {job.week}, {job.year}</p>"
            f"<p><strong>Success:</strong> {success_count} users</p>"
            f"<p><strong>Errors:</strong> {error_count} users</p>"
            f"{error_section}",
        )

    async def notify_error(self, subject, details) -> None:
        await self._send(
            subject,
            f"<h2>Weekly Reflection Batch Error</h2><pre>{html.escape(details)}</pre>",
        )

    async def notify_still_processing(self, job, external_status) -> None:
        await self._send(
            "Batch Still Processing",
            f"<h2>Batch Still Processing</h2>"
            f"<p><strong>Batch ID:</strong> {html.escape(job.id)}</p>"
            f"<p><strong>Week:</strong> {job.week}, {job.year}</p>"
            f"<p><strong>External Status:</strong> {html.escape(external_status)}</p>",
        )

    async def notify_submitted(self, job, eligible_users) -> None:
        await self._send(
            "Weekly Reflection Batch Submitted",
            f"<h2>Weekly Reflection Batch Submitted</h2>"
            f"<p><strong>Batch ID:</strong> {html.escape(job.id)}</p>"
            f"<p><strong>Week:</strong> {job.week}, {job.year}</p>"
            f"<p><strong>Eligible Users:</strong> {eligible_users}</p>"
            f"<p><strong>Batch Requests:</strong> {job.total_requests}</p>",
        )


def get_notifier() -> Notifier:
    """Email when a mail channel is configured, otherwise the log."""
    if settings.resend_api_key and settings.reflector_notify_to:
        return EmailNotifier()
    return LogNotifier()
