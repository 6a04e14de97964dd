"""
Unit tests for DashboardService

Tests overview aggregation, updates filtering/pagination, and dense monthly
series against a fake session factory.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from app.errors import BadRequestError
from app.services.dashboard_service import DashboardService, OVERVIEW_QUERIES


def _update_row(**overrides):
    fields = dict(
        id=1,
        user_id=10,
        user_name="Ada",
        user_email="ada@example.com",
        topic_id=3,
        topic_title="Algebra",
        payment_status="completed",
        enrolled_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        total_progress=Decimal("66.6"),
        total_watch_time=3725,
        total_count=45,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestOverview:
    """Test overview statistics"""

    async def test_overview_formats_every_aggregate(self, make_session_factory):
        factory = make_session_factory(
            ("COUNT(*) AS total_users", [SimpleNamespace(total_users=10, verified_users=7)]),
            ("AS total_topics FROM topics", [SimpleNamespace(total_topics=4)]),
            ("AS total_enrollments", [SimpleNamespace(total_enrollments=20, completed_topics=3, topics_in_progress=2)]),
            ("total_watch_time_seconds", [SimpleNamespace(total_watch_time_seconds=Decimal("3725"))]),
            ("AS new_users_this_month", [SimpleNamespace(new_users_this_month=2)]),
            ("AS enrollments_this_month", [SimpleNamespace(enrollments_this_month=5)]),
            ("AS last_month FROM users", [SimpleNamespace(current_month=3, last_month=2)]),
            ("AS last_month FROM user_topics", [SimpleNamespace(current_month=0, last_month=0)]),
            ("AS completed FROM user_topics", [SimpleNamespace(total=4, completed=1)]),
            ("AS average_rating", [SimpleNamespace(average_rating=Decimal("4.5"))]),
        )

        overview = await DashboardService(factory).get_overview()

        assert overview["totalUsers"] == 10
        assert overview["verifiedUsers"] == 7
        assert overview["totalTopics"] == 4
        assert overview["totalEnrollments"] == 20
        assert overview["enrolledTopics"] == 20
        assert overview["completedTopics"] == 3
        assert overview["topicsInProgress"] == 2
        assert overview["totalWatchTime"] == "1h 2m"
        assert overview["totalWatchTimeSeconds"] == 3725
        assert overview["newUsersThisMonth"] == 2
        assert overview["enrollmentsThisMonth"] == 5
        assert overview["userGrowth"] == "+50.0%"
        assert overview["enrollmentGrowth"] == "+0.0%"
        assert overview["completionRate"] == "25.0%"
        assert overview["averageRating"] == "4.5"

    async def test_overview_runs_each_query_once(self, make_session_factory):
        factory = make_session_factory()

        overview = await DashboardService(factory).get_overview()

        assert len(factory.executed) == len(OVERVIEW_QUERIES)
        # Empty database still yields a fully populated object
        assert overview["totalUsers"] == 0
        assert overview["totalWatchTime"] == "0h 0m"
        assert overview["completionRate"] == "0.0%"
        assert overview["averageRating"] == "0.0"


class TestUpdates:
    """Test enrollment/subscription updates"""

    async def test_invalid_tab_runs_no_query(self, make_session_factory):
        factory = make_session_factory()

        with pytest.raises(BadRequestError) as exc_info:
            await DashboardService(factory).get_updates(tab="invalid")

        assert exc_info.value.status_code == 400
        assert factory.executed == []

    async def test_invalid_month_runs_no_query(self, make_session_factory):
        factory = make_session_factory()

        with pytest.raises(BadRequestError, match="Invalid month format"):
            await DashboardService(factory).get_updates(month="2024-13")

        assert factory.executed == []

    async def test_enrolled_tab_with_month(self, make_session_factory):
        factory = make_session_factory(("FROM user_topics ut", [_update_row()]))

        result = await DashboardService(factory).get_updates(tab="enrolled", month="2024-1", page=2, limit=20)

        sql, params = factory.executed[0]
        assert "ut.payment_status IN ('completed', 'active', 'pending', 'processing')" in sql
        assert "TO_CHAR(ut.enrolled_at, 'YYYY-MM') = :month" in sql
        assert params["month"] == "2024-01"
        assert params["limit"] == 20
        assert params["offset"] == 20

        assert result["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalCount": 45,
            "limit": 20,
            "hasNextPage": True,
            "hasPrevPage": True,
        }
        assert result["filters"] == {"tab": "enrolled", "month": "2024-1", "fromDate": None, "toDate": None}

    async def test_row_mapping(self, make_session_factory):
        factory = make_session_factory(("FROM user_topics ut", [_update_row()]))

        result = await DashboardService(factory).get_updates()
        entry = result["data"][0]

        assert entry["userName"] == "Ada"
        assert entry["topicTitle"] == "Algebra"
        assert entry["progress"] == 67
        assert entry["watchTime"] == "1h 2m"
        assert entry["watchTimeSeconds"] == 3725
        assert entry["subscriptionStartDate"].startswith("2024-01-15")
        assert entry["subscriptionEndDate"].startswith("2025-01-15")

    async def test_missing_joins_use_placeholders(self, make_session_factory):
        factory = make_session_factory(
            ("FROM user_topics ut", [_update_row(user_name=None, user_email=None, topic_title=None, payment_status="pending")])
        )

        entry = (await DashboardService(factory).get_updates())["data"][0]

        assert entry["userName"] == "N/A"
        assert entry["userEmail"] == "N/A"
        assert entry["topicTitle"] == "Untitled Topic"
        assert entry["subscriptionStartDate"] is None
        assert entry["subscriptionValidDays"] is None
        assert entry["isSubscriptionActive"] is False

    async def test_date_range_takes_priority_over_month(self, make_session_factory):
        factory = make_session_factory()

        result = await DashboardService(factory).get_updates(
            tab="subscription",
            month="2024-05",
            from_date=date(2024, 1, 1),
            to_date=date(2024, 3, 31),
        )

        sql, params = factory.executed[0]
        assert "ut.payment_status = 'subscription'" in sql
        assert "BETWEEN :from_date AND :to_date" in sql
        assert "month" not in params
        assert params["from_date"] == date(2024, 1, 1)
        assert result["filters"]["fromDate"] == "2024-01-01"
        assert result["data"] == []
        assert result["pagination"]["totalPages"] == 0
        assert result["pagination"]["hasNextPage"] is False


class TestMonthlySeries:
    """Test earnings and growth series"""

    async def test_earnings_dense_and_bound(self, make_session_factory):
        factory = make_session_factory(
            ("AS total_earnings", [SimpleNamespace(month_number=2, total_earnings=Decimal("99.90"))])
        )

        series = await DashboardService(factory).get_monthly_earnings(year="2024", months="3")

        assert series == [
            {"month": "Jan", "value": 0},
            {"month": "Feb", "value": 99.9},
            {"month": "Mar", "value": 0},
        ]
        _, params = factory.executed[0]
        assert params == {"year": 2024, "months": 3}

    async def test_earnings_defaults(self, make_session_factory):
        factory = make_session_factory()

        series = await DashboardService(factory).get_monthly_earnings(year="not-a-year", months="0")

        assert len(series) == 12
        _, params = factory.executed[0]
        assert params["year"] == datetime.now().year

    async def test_growth_merges_users_and_enrollments(self, make_session_factory):
        factory = make_session_factory(
            ("AS revenue", [
                SimpleNamespace(month_number=1, enrollments=4, revenue=Decimal("400")),
                SimpleNamespace(month_number=2, enrollments=6, revenue=Decimal("600.5")),
            ]),
            ("AS new_users", [SimpleNamespace(month_number=3, new_users=9)]),
        )

        series = await DashboardService(factory).get_monthly_growth(year="2024", months="3")

        assert [point["growth"] for point in series] == ["N/A", "+50.0%", "-100.0%"]
        assert series[1]["revenue"] == 600.5
        assert series[2]["users"] == 9
        assert series[2]["enrollments"] == 0
        assert len(factory.executed) == 2
