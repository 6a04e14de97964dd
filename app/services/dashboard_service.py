"""
Dashboard Statistics Service

Aggregate queries behind the admin dashboard:
- Overview statistics (ten independent aggregates run concurrently)
- Paginated enrollment/subscription updates with subscription validity
- Dense monthly earnings series
- Monthly growth report (new users, enrollments, revenue, growth)

All SQL runs through bound parameters; the session factory is injected so
independent queries can each use their own pooled connection.
"""
import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.errors import BadRequestError
from app.services.formatting import (
    build_earnings_series,
    build_growth_series,
    build_pagination,
    clamp_months,
    format_growth,
    format_percentage,
    format_rating,
    format_watch_time,
    isoformat,
    parse_int_param,
    parse_year_month,
    subscription_window,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)

VALID_TABS = ("enrolled", "subscription")

# Overview aggregates, keyed by the name used when unpacking results
OVERVIEW_QUERIES = {
    "users": """
        SELECT
            COUNT(*) AS total_users,
            COUNT(*) FILTER (WHERE is_verified = true) AS verified_users
        FROM users
    """,
    "topics": """
        SELECT COUNT(*) AS total_topics
        FROM topics
        WHERE status = 'published'
    """,
    "enrollments": """
        SELECT
            COUNT(*) AS total_enrollments,
            COUNT(DISTINCT topic_id) FILTER (WHERE payment_status = 'completed') AS completed_topics,
            COUNT(DISTINCT topic_id) FILTER (
                WHERE payment_status IN ('pending', 'processing', 'active')
            ) AS topics_in_progress
        FROM user_topics
        WHERE payment_status IS NOT NULL
    """,
    "watch_time": """
        SELECT COALESCE(SUM(watch_time), 0) AS total_watch_time_seconds
        FROM user_topic_progress
    """,
    "new_users": """
        SELECT COUNT(*) AS new_users_this_month
        FROM users
        WHERE DATE_TRUNC('month', created_at) = DATE_TRUNC('month', CURRENT_TIMESTAMP)
    """,
    "enrollments_this_month": """
        SELECT COUNT(*) AS enrollments_this_month
        FROM user_topics
        WHERE DATE_TRUNC('month', enrolled_at) = DATE_TRUNC('month', CURRENT_TIMESTAMP)
    """,
    "user_growth": """
        SELECT
            COUNT(*) FILTER (
                WHERE DATE_TRUNC('month', created_at) = DATE_TRUNC('month', CURRENT_TIMESTAMP)
            ) AS current_month,
            COUNT(*) FILTER (
                WHERE DATE_TRUNC('month', created_at) = DATE_TRUNC('month', CURRENT_TIMESTAMP - INTERVAL '1 month')
            ) AS last_month
        FROM users
    """,
    "enrollment_growth": """
        SELECT
            COUNT(*) FILTER (
                WHERE DATE_TRUNC('month', enrolled_at) = DATE_TRUNC('month', CURRENT_TIMESTAMP)
            ) AS current_month,
            COUNT(*) FILTER (
                WHERE DATE_TRUNC('month', enrolled_at) = DATE_TRUNC('month', CURRENT_TIMESTAMP - INTERVAL '1 month')
            ) AS last_month
        FROM user_topics
    """,
    "completion": """
        SELECT
            COUNT(DISTINCT topic_id) AS total,
            COUNT(DISTINCT topic_id) FILTER (WHERE payment_status = 'completed') AS completed
        FROM user_topics
        WHERE payment_status IS NOT NULL
    """,
    "rating": """
        SELECT COALESCE(AVG(rating), 0) AS average_rating
        FROM topic_reviews
        WHERE is_approved = true
    """,
}


class DashboardService:
    """Dashboard analytics over users, topics, enrollments and progress"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _fetch_one(self, query: str, params: Optional[Dict[str, Any]] = None):
        async with self.session_factory() as session:
            result = await session.execute(text(query), params or {})
            return result.fetchone()

    async def _fetch_all(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        async with self.session_factory() as session:
            result = await session.execute(text(query), params or {})
            return result.fetchall()

    async def get_overview(self) -> Dict[str, Any]:
        """
        Flat statistics object for the dashboard landing page.

        Runs every aggregate in OVERVIEW_QUERIES concurrently and formats
        growth, completion rate, rating and watch time strings.

        Returns:
            dict: camelCase statistics (totalUsers, userGrowth, ...)
        """
        names = list(OVERVIEW_QUERIES)
        rows = await asyncio.gather(*(self._fetch_one(OVERVIEW_QUERIES[name]) for name in names))
        results = dict(zip(names, rows))

        users = results["users"]
        enrollments = results["enrollments"]
        user_growth = results["user_growth"]
        enrollment_growth = results["enrollment_growth"]
        completion = results["completion"]

        total_enrollments = to_int(getattr(enrollments, "total_enrollments", 0))
        watch_time_seconds = to_int(getattr(results["watch_time"], "total_watch_time_seconds", 0))

        return {
            "totalUsers": to_int(getattr(users, "total_users", 0)),
            "verifiedUsers": to_int(getattr(users, "verified_users", 0)),
            "totalTopics": to_int(getattr(results["topics"], "total_topics", 0)),
            "totalEnrollments": total_enrollments,
            "enrolledTopics": total_enrollments,
            "completedTopics": to_int(getattr(enrollments, "completed_topics", 0)),
            "topicsInProgress": to_int(getattr(enrollments, "topics_in_progress", 0)),
            "totalWatchTime": format_watch_time(watch_time_seconds),
            "totalWatchTimeSeconds": watch_time_seconds,
            "newUsersThisMonth": to_int(getattr(results["new_users"], "new_users_this_month", 0)),
            "enrollmentsThisMonth": to_int(
                getattr(results["enrollments_this_month"], "enrollments_this_month", 0)
            ),
            "userGrowth": format_growth(
                to_int(getattr(user_growth, "current_month", 0)),
                to_int(getattr(user_growth, "last_month", 0)),
            ),
            "enrollmentGrowth": format_growth(
                to_int(getattr(enrollment_growth, "current_month", 0)),
                to_int(getattr(enrollment_growth, "last_month", 0)),
            ),
            "completionRate": format_percentage(
                to_int(getattr(completion, "completed", 0)),
                to_int(getattr(completion, "total", 0)),
            ),
            "averageRating": format_rating(to_float(getattr(results["rating"], "average_rating", 0))),
        }

    async def get_updates(
        self,
        tab: str = "enrolled",
        month: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """
        Paginated enrollments (tab=enrolled) or subscriptions (tab=subscription).

        A complete fromDate/toDate range takes priority over month. The total
        row count comes from a window function in the same query.

        Raises:
            BadRequestError: Unknown tab or malformed month
        """
        if tab not in VALID_TABS:
            raise BadRequestError('Invalid tab. Must be either "enrolled" or "subscription"')

        if tab == "enrolled":
            conditions = ["ut.payment_status IN ('completed', 'active', 'pending', 'processing')"]
        else:
            conditions = ["ut.payment_status = 'subscription'"]
        params: Dict[str, Any] = {"limit": limit, "offset": (page - 1) * limit}

        if from_date and to_date:
            conditions.append("DATE(ut.enrolled_at) BETWEEN :from_date AND :to_date")
            params["from_date"] = from_date
            params["to_date"] = to_date
        elif month:
            parsed = parse_year_month(month)
            if parsed is None:
                raise BadRequestError("Invalid month format. Expected YYYY-MM")
            conditions.append("TO_CHAR(ut.enrolled_at, 'YYYY-MM') = :month")
            params["month"] = f"{parsed[0]:04d}-{parsed[1]:02d}"

        query = f"""
            SELECT
                ut.id,
                ut.user_id,
                u.name AS user_name,
                u.email AS user_email,
                ut.topic_id,
                t.title AS topic_title,
                ut.payment_status,
                ut.enrolled_at,
                COALESCE(utp.total_progress, 0) AS total_progress,
                COALESCE(utp.total_watch_time, 0) AS total_watch_time,
                COUNT(*) OVER() AS total_count
            FROM user_topics ut
            LEFT JOIN users u ON ut.user_id = u.id
            LEFT JOIN topics t ON ut.topic_id = t.id
            LEFT JOIN (
                SELECT
                    user_id,
                    topic_id,
                    AVG(progress) AS total_progress,
                    SUM(watch_time) AS total_watch_time
                FROM user_topic_progress
                GROUP BY user_id, topic_id
            ) utp ON ut.user_id = utp.user_id AND ut.topic_id = utp.topic_id
            WHERE {" AND ".join(conditions)}
            ORDER BY ut.enrolled_at DESC
            LIMIT :limit OFFSET :offset
        """

        rows = await self._fetch_all(query, params)

        total_count = to_int(rows[0].total_count) if rows else 0
        now = datetime.now(timezone.utc)

        return {
            "data": [self._format_update_row(row, now) for row in rows],
            "pagination": build_pagination(page, limit, total_count),
            "filters": {
                "tab": tab,
                "month": month or None,
                "fromDate": isoformat(from_date),
                "toDate": isoformat(to_date),
            },
        }

    @staticmethod
    def _format_update_row(row: Any, now: datetime) -> Dict[str, Any]:
        watch_time_seconds = to_int(row.total_watch_time)
        return {
            "id": row.id,
            "userId": row.user_id,
            "userName": row.user_name or "N/A",
            "userEmail": row.user_email or "N/A",
            "topicId": row.topic_id,
            "topicTitle": row.topic_title or "Untitled Topic",
            "paymentStatus": row.payment_status,
            "enrolledAt": isoformat(row.enrolled_at),
            "progress": round(to_float(row.total_progress)),
            "watchTime": format_watch_time(watch_time_seconds),
            "watchTimeSeconds": watch_time_seconds,
            **subscription_window(row.enrolled_at, row.payment_status, now=now),
        }

    async def get_monthly_earnings(
        self, year: Optional[str] = None, months: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Revenue per calendar month of the target year.

        Sums topic prices of completed, paid and subscription enrollments.
        Always returns exactly `months` entries (clamped 1-12), zero-filled.
        """
        target_year = parse_int_param(year, datetime.now().year)
        num_months = clamp_months(months)

        rows = await self._fetch_all(
            """
            SELECT
                CAST(EXTRACT(MONTH FROM ut.enrolled_at) AS INTEGER) AS month_number,
                COALESCE(SUM(t.price), 0) AS total_earnings
            FROM user_topics ut
            LEFT JOIN topics t ON ut.topic_id = t.id
            WHERE ut.payment_status IN ('completed', 'paid', 'subscription')
              AND CAST(EXTRACT(YEAR FROM ut.enrolled_at) AS INTEGER) = :year
              AND CAST(EXTRACT(MONTH FROM ut.enrolled_at) AS INTEGER) <= :months
            GROUP BY month_number
            ORDER BY month_number ASC
            """,
            {"year": target_year, "months": num_months},
        )

        earnings_by_month = {to_int(row.month_number): row.total_earnings for row in rows}
        return build_earnings_series(earnings_by_month, num_months)

    async def get_monthly_growth(
        self, year: Optional[str] = None, months: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Monthly growth report: new users, enrollments, revenue and
        month-over-month enrollment growth.

        New users and enrollment stats are aggregated independently and
        merged by month number, so a month present on one side only still
        shows up.
        """
        target_year = parse_int_param(year, datetime.now().year)
        num_months = clamp_months(months)
        params = {"year": target_year, "months": num_months}

        enrollment_rows, user_rows = await asyncio.gather(
            self._fetch_all(
                """
                SELECT
                    CAST(EXTRACT(MONTH FROM ut.enrolled_at) AS INTEGER) AS month_number,
                    COUNT(*) AS enrollments,
                    COALESCE(SUM(t.price), 0) AS revenue
                FROM user_topics ut
                LEFT JOIN topics t ON ut.topic_id = t.id
                WHERE ut.payment_status IN ('completed', 'paid', 'subscription')
                  AND CAST(EXTRACT(YEAR FROM ut.enrolled_at) AS INTEGER) = :year
                  AND CAST(EXTRACT(MONTH FROM ut.enrolled_at) AS INTEGER) <= :months
                GROUP BY month_number
                """,
                params,
            ),
            self._fetch_all(
                """
                SELECT
                    CAST(EXTRACT(MONTH FROM created_at) AS INTEGER) AS month_number,
                    COUNT(*) AS new_users
                FROM users
                WHERE CAST(EXTRACT(YEAR FROM created_at) AS INTEGER) = :year
                  AND CAST(EXTRACT(MONTH FROM created_at) AS INTEGER) <= :months
                GROUP BY month_number
                """,
                params,
            ),
        )

        enrollments_by_month = {
            to_int(row.month_number): (to_int(row.enrollments), to_float(row.revenue))
            for row in enrollment_rows
        }
        users_by_month = {to_int(row.month_number): to_int(row.new_users) for row in user_rows}

        return build_growth_series(users_by_month, enrollments_by_month, num_months)
