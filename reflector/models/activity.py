"""Read-only views of the todo application's user data.

These tables are owned by the todo application; the reflector only reads them
to decide who is eligible and what each user did during a week.
"""

from datetime import datetime

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class Todo(SQLModel, table=True):
    """A single todo item scheduled on a weekday."""

    __tablename__ = "todos"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    description: str = Field(default="")  # HTML, may contain tag pills and links
    completed: bool = Field(default=False)
    date: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = Field(default=None)
    move_count: int = Field(default=0)
    # Focus sessions: [{"minutes": int, "deep_focus": bool, "created_at": str}]
    sessions: list[dict] | None = Field(default=None, sa_column=Column(JSON))


class Subscription(SQLModel, table=True):
    """Billing subscription state per user."""

    __tablename__ = "subscriptions"

    user_id: str = Field(primary_key=True)
    status: str = Field(index=True)
    current_period_end: datetime | None = Field(default=None)
