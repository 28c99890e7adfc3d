"""Integration tests for eligibility and weekly activity queries."""

from datetime import datetime, timedelta

from factories import MONDAY, IncompleteTodoFactory, SubscriptionFactory, TodoFactory
from reflector.models.reflection import ReflectionRecord
from reflector.services.activity import ActivityService, extract_tags


class TestExtractTags:
    """Tests for tag pill extraction."""

    def test_extracts_tags(self):
        """Test data-tag values are pulled from span pills."""
        html = (
            '<p>Plan <span class="tag" data-tag="work">work</span> and '
            '<span data-tag="health" class="tag">health</span></p>'
        )
        assert extract_tags(html) == ["work", "health"]

    def test_no_tags(self):
        """Test plain descriptions have no tags."""
        assert extract_tags("<p>Buy milk</p>") == []
        assert extract_tags("") == []


class TestActivityService:
    """Integration tests for ActivityService."""

    async def test_eligible_users(self, db_session):
        """Test only active and trialing subscriptions are eligible, in stable order."""
        db_session.add_all([
            SubscriptionFactory(user_id="carol", status="active"),
            SubscriptionFactory(user_id="alice", status="trialing"),
            SubscriptionFactory(user_id="bob", status="canceled"),
            SubscriptionFactory(user_id="dave", status="past_due"),
        ])
        await db_session.commit()

        assert await ActivityService().get_eligible_user_ids(db_session) == ["alice", "carol"]

    async def test_week_boundaries(self, db_session):
        """Test only todos dated Monday 00:00 to Friday 23:59 are included."""
        db_session.add_all([
            TodoFactory(id="monday_midnight", user_id="alice", date=MONDAY),
            TodoFactory(id="friday_late", user_id="alice", date=MONDAY + timedelta(days=4, hours=23, minutes=59)),
            TodoFactory(id="saturday", user_id="alice", date=MONDAY + timedelta(days=5)),
            TodoFactory(id="previous_sunday", user_id="alice", date=MONDAY - timedelta(hours=1)),
            TodoFactory(id="other_user", user_id="bob", date=MONDAY + timedelta(days=1)),
        ])
        await db_session.commit()

        week = await ActivityService().get_todos_for_week(db_session, "alice", 42, 2026)

        assert [todo["date"] for todo in week.completed] == ["2026-10-12", "2026-10-16"]
        assert week.incomplete == []

    async def test_completed_and_incomplete_split(self, db_session):
        """Test todos are split by completion with their snapshot fields."""
        db_session.add_all([
            TodoFactory(
                user_id="alice",
                date=MONDAY + timedelta(hours=9),
                description='<p>Read https://example.com <span data-tag="learning">learning</span></p>',
                move_count=1,
                sessions=[{"minutes": 25, "deep_focus": True, "created_at": "2026-10-12T09:30:00"}],
            ),
            IncompleteTodoFactory(user_id="alice", date=MONDAY + timedelta(days=2, hours=9), move_count=3),
        ])
        await db_session.commit()

        week = await ActivityService().get_todos_for_week(db_session, "alice", 42, 2026)

        assert len(week.completed) == 1
        snapshot = week.completed[0]
        assert snapshot["tags"] == ["learning"]
        assert snapshot["has_url"] is True
        assert snapshot["completed_with_time_box"] is True
        assert snapshot["move_count"] == 1

        assert len(week.incomplete) == 1
        assert week.incomplete[0]["move_count"] == 3

    async def test_previous_week_notes(self, db_session):
        """Test the prior week's notes are returned for continuity."""
        db_session.add(
            ReflectionRecord(
                id="alice_2026_41",
                user_id="alice",
                year=2026,
                week=41,
                month=10,
                notes=[{"title": "Billing", "summary": "Started billing.", "tags": []}],
                updated_at=datetime(2026, 10, 11),
            )
        )
        await db_session.commit()

        service = ActivityService()
        notes = await service.get_previous_week_notes(db_session, "alice", 42, 2026)
        assert notes[0]["title"] == "Billing"
        assert await service.get_previous_week_notes(db_session, "bob", 42, 2026) is None

    async def test_previous_week_across_year_boundary(self, db_session):
        """Test week 1 looks back to the last week of the previous year."""
        db_session.add(
            ReflectionRecord(
                id="alice_2025_52",
                user_id="alice",
                year=2025,
                week=52,
                month=12,
                notes=[{"title": "Year end", "summary": "Wrapped up.", "tags": []}],
                updated_at=datetime(2025, 12, 27),
            )
        )
        await db_session.commit()

        notes = await ActivityService().get_previous_week_notes(db_session, "alice", 1, 2026)
        assert notes[0]["title"] == "Year end"
