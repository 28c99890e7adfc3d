"""Weekly reflection record produced by batch ingestion."""

from datetime import datetime

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


def reflection_id(user_id: str, year: int, week: int) -> str:
    """Deterministic record id for one user's week."""
    return f"{user_id}_{year}_{week}"


class ReflectionRecord(SQLModel, table=True):
    """AI-generated notes for one user's week, keyed by user/year/week."""

    __tablename__ = "reflections"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    year: int
    week: int
    month: int = Field(ge=1, le=12)

    completed_todos: list[dict] = Field(default_factory=list, sa_column=Column(JSON))
    incomplete_count: int = Field(default=0)
    notes: list[dict] = Field(default_factory=list, sa_column=Column(JSON))

    notes_generated_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "year": self.year,
            "week": self.week,
            "month": self.month,
            "completed_todos": self.completed_todos,
            "incomplete_count": self.incomplete_count,
            "notes": self.notes,
            "notes_generated_at": self.notes_generated_at.isoformat() if self.notes_generated_at else None,
            "updated_at": self.updated_at.isoformat(),
        }
