"""Factory Boy factories for generating test data."""

import json
import random
from datetime import datetime, timedelta
from uuid import uuid4

import factory
from faker import Faker

from reflector.models.activity import Subscription, Todo
from reflector.models.batch_job import BatchJob, BatchJobStatus

fake = Faker()

# Week 42 of 2026 runs Monday 12 October to Friday 16 October
WEEK = 42
YEAR = 2026
MONDAY = datetime(2026, 10, 12)
# Saturday 21:00 UTC, three hours after the weekly submission
POLL_TIME = datetime(2026, 10, 17, 21, 0)


class BatchJobFactory(factory.Factory):
    """Factory for generating BatchJob instances."""

    class Meta:
        model = BatchJob

    id = factory.Sequence(lambda n: f"batch_{n:06d}")
    job_type = "weekly_reflection"
    week = factory.Sequence(lambda n: n % 52 + 1)
    year = YEAR
    status = BatchJobStatus.IN_PROGRESS
    external_status = factory.LazyAttribute(lambda o: o.status.value)
    submitted_at = factory.LazyFunction(
        lambda: POLL_TIME - timedelta(hours=3, minutes=random.randint(0, 59))
    )
    completed_at = None
    total_requests = 3
    success_count = None
    error_count = None
    errors = None


class CompletedBatchJobFactory(BatchJobFactory):
    """Factory for batch jobs that were consumed successfully."""

    status = BatchJobStatus.COMPLETED
    completed_at = factory.LazyAttribute(lambda o: o.submitted_at + timedelta(hours=6))
    success_count = factory.LazyAttribute(lambda o: o.total_requests)
    error_count = 0
    errors = factory.LazyFunction(list)


class SubscriptionFactory(factory.Factory):
    """Factory for generating Subscription instances."""

    class Meta:
        model = Subscription

    user_id = factory.LazyFunction(lambda: f"{fake.user_name()}{random.randint(100, 999)}")
    status = "active"
    current_period_end = factory.LazyFunction(lambda: POLL_TIME + timedelta(days=30))


class TodoFactory(factory.Factory):
    """Factory for generating Todo instances inside week 42 of 2026."""

    class Meta:
        model = Todo

    id = factory.LazyFunction(lambda: uuid4().hex)
    user_id = factory.LazyFunction(fake.user_name)
    description = factory.LazyFunction(lambda: f"<p>{fake.sentence()}</p>")
    completed = True
    date = factory.LazyFunction(lambda: MONDAY + timedelta(days=random.randint(0, 4), hours=9))
    created_at = factory.LazyAttribute(lambda o: o.date - timedelta(days=1))
    updated_at = factory.LazyAttribute(lambda o: o.date + timedelta(hours=3))
    completed_at = factory.LazyAttribute(lambda o: o.date + timedelta(hours=2) if o.completed else None)
    move_count = 0
    sessions = None


class IncompleteTodoFactory(TodoFactory):
    """Factory for todos left open at the end of the week."""

    completed = False
    move_count = factory.LazyFunction(lambda: random.randint(0, 3))


def notes_content(n: int = 2) -> str:
    """Model response content with ``n`` notes."""
    return json.dumps({
        "notes": [
            {
                "title": fake.catch_phrase(),
                "summary": fake.sentence(),
                "tags": [fake.word()],
            }
            for _ in range(n)
        ]
    })


def success_line(custom_id: str, content: str | None = None) -> dict:
    """One successful entry of a batch output file."""
    return {
        "id": f"batch_req_{uuid4().hex[:12]}",
        "custom_id": custom_id,
        "response": {
            "status_code": 200,
            "request_id": uuid4().hex,
            "body": {
                "choices": [
                    {
                        "index": 0,
                        "message": {"role": "assistant", "content": content or notes_content()},
                        "finish_reason": "stop",
                    }
                ],
            },
        },
        "error": None,
    }


def error_line(custom_id: str, message: str = "Rate limit reached") -> dict:
    """One failed entry of a batch output or error file."""
    return {
        "id": f"batch_req_{uuid4().hex[:12]}",
        "custom_id": custom_id,
        "response": None,
        "error": {"code": "batch_request_failed", "message": message},
    }


def to_jsonl(lines: list[dict]) -> str:
    return "\n".join(json.dumps(line) for line in lines) + "\n"
