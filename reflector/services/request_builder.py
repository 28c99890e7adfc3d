"""Builds one batch request per eligible user for a week."""

import logging
from dataclasses import dataclass, field

from reflector.db import SessionFactory, get_session
from reflector.services.activity import ActivityService, activity_service
from reflector.services.batch_requests import build_batch_request

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    eligible_user_ids: list[str] = field(default_factory=list)
    requests: list[dict] = field(default_factory=list)
    skipped_user_ids: list[str] = field(default_factory=list)
    failed_user_ids: list[str] = field(default_factory=list)


class RequestBuilder:
    """Resolves eligible users and turns each one's week into a request."""

    def __init__(
        self,
        activity: ActivityService = activity_service,
        session_factory: SessionFactory = get_session,
    ):
        self._activity = activity
        self._session_factory = session_factory

    async def get_eligible_user_ids(self) -> list[str]:
        async with self._session_factory() as session:
            return await self._activity.get_eligible_user_ids(session)

    async def build_requests(self, week: int, year: int) -> BuildResult:
        """Build requests for every eligible user with completed work that week.

        Users without completed todos are skipped. A user whose data cannot be
        loaded is logged and skipped without affecting anyone else.
        """
        result = BuildResult(eligible_user_ids=await self.get_eligible_user_ids())
        logger.info("Found %d users with active subscriptions", len(result.eligible_user_ids))

        for user_id in result.eligible_user_ids:
            try:
                request = await self._build_for_user(user_id, week, year)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to build request for user %s", user_id)
                result.failed_user_ids.append(user_id)
                continue

            if request is None:
                result.skipped_user_ids.append(user_id)
            else:
                result.requests.append(request)

        logger.info(
            "Built %d batch requests (%d skipped, %d failed)",
            len(result.requests), len(result.skipped_user_ids), len(result.failed_user_ids),
        )
        return result

    async def _build_for_user(self, user_id: str, week: int, year: int) -> dict | None:
        async with self._session_factory() as session:
            todos = await self._activity.get_todos_for_week(session, user_id, week, year)
            if not todos.completed:
                return None
            previous_notes = await self._activity.get_previous_week_notes(session, user_id, week, year)

        return build_batch_request(
            user_id,
            todos.completed,
            todos.incomplete,
            week,
            year,
            previous_notes=previous_notes,
        )


# Global singleton instance
request_builder = RequestBuilder()
