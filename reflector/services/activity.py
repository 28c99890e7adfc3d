"""Read access to users' subscriptions and weekly todo activity."""

import re
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reflector.config import settings
from reflector.models.activity import Subscription, Todo
from reflector.models.reflection import ReflectionRecord, reflection_id
from reflector.services.weeks import week1_start, week_date_range

TAG_PATTERN = re.compile(r'<span[^>]*data-tag="([^"]+)"[^>]*>')
URL_PATTERN = re.compile(r"https?://", re.IGNORECASE)


def extract_tags(html: str) -> list[str]:
    """Extract tag pill values from a todo's HTML description."""
    return TAG_PATTERN.findall(html or "")


@dataclass
class WeekTodos:
    """Snapshot of one user's todos for a week."""

    completed: list[dict] = field(default_factory=list)
    incomplete: list[dict] = field(default_factory=list)


def completed_snapshot(todo: Todo) -> dict:
    """Serialize a completed todo into the snapshot stored on reflections."""
    return {
        "date": todo.date.date().isoformat(),
        "text": todo.description,
        "created_at": todo.created_at.isoformat(),
        "completed_at": (todo.completed_at or todo.updated_at).isoformat(),
        "move_count": todo.move_count or 0,
        "completed_with_time_box": bool(todo.sessions),
        "has_url": bool(URL_PATTERN.search(todo.description or "")),
        "tags": extract_tags(todo.description),
    }


def incomplete_snapshot(todo: Todo) -> dict:
    return {
        "date": todo.date.date().isoformat(),
        "text": todo.description,
        "move_count": todo.move_count or 0,
        "tags": extract_tags(todo.description),
    }


class ActivityService:
    """Queries over the todo application's data for one reflection cycle."""

    async def get_eligible_user_ids(self, session: AsyncSession) -> list[str]:
        """Users whose subscription currently entitles them to reflections."""
        result = await session.execute(
            select(Subscription.user_id)
            .where(Subscription.status.in_(settings.reflector_active_subscription_statuses))
            .order_by(Subscription.user_id)
        )
        return list(result.scalars().all())

    async def get_todos_for_week(
        self,
        session: AsyncSession,
        user_id: str,
        week: int,
        year: int,
    ) -> WeekTodos:
        """Load completed and incomplete todos scheduled Monday-Friday of a week."""
        monday, friday = week_date_range(year, week)
        start = datetime.combine(monday, time.min)
        end = datetime.combine(friday + timedelta(days=1), time.min)

        result = await session.execute(
            select(Todo)
            .where(
                Todo.user_id == user_id,
                Todo.date >= start,
                Todo.date < end,
            )
            .order_by(Todo.date, Todo.created_at)
        )

        week_todos = WeekTodos()
        for todo in result.scalars().all():
            if todo.completed:
                week_todos.completed.append(completed_snapshot(todo))
            else:
                week_todos.incomplete.append(incomplete_snapshot(todo))
        return week_todos

    async def get_previous_week_notes(
        self,
        session: AsyncSession,
        user_id: str,
        week: int,
        year: int,
    ) -> list[dict] | None:
        """Notes from the user's prior week, used for continuity in the prompt."""
        if week > 1:
            prev_year, prev_week = year, week - 1
        else:
            # Last week of the previous year
            prev_year = year - 1
            prev_week = (week1_start(year) - week1_start(prev_year)).days // 7

        record = await session.get(ReflectionRecord, reflection_id(user_id, prev_year, prev_week))
        if record is None or not record.notes:
            return None
        return record.notes


# Global singleton instance
activity_service = ActivityService()
