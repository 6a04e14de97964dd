"""
Monthly Segment Reports

Three report shapes selected by segment:
- earnings: one row per payment transaction
- topics: one row per topic with enrollment counts and average progress
- enrolled: one row per enrollment with watch progress

Each segment runs its row query and its totals query concurrently, and can be
rendered to CSV with a fixed header.

CSV quoting wraps text fields in double quotes but does not escape quotes or
commas inside them. Consumers splitting naively on commas will misread such
fields.
"""
import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.errors import BadRequestError
from app.services.formatting import isoformat, month_label, parse_year_month, to_float, to_int

logger = logging.getLogger(__name__)

SEGMENTS = ("earnings", "topics", "enrolled")

ALL_TIME_LABEL = "All Time"

CSV_HEADERS = {
    "earnings": (
        "User ID,User Name,User Email,Topic ID,Topic Title,Amount,"
        "Transaction Status,Payment Status,Date"
    ),
    "topics": (
        "Topic ID,Topic Title,Description,Price,Total Enrollments,"
        "Completed Enrollments,Average Progress"
    ),
    "enrolled": (
        "User ID,User Name,User Email,Topic ID,Topic Title,Payment Status,"
        "Enrollment Status,Progress,Watch Time (seconds),Enrolled At"
    ),
}

MONTH_FILTER = (
    "AND CAST(EXTRACT(YEAR FROM ut.enrolled_at) AS INTEGER) = :year "
    "AND CAST(EXTRACT(MONTH FROM ut.enrolled_at) AS INTEGER) = :month"
)

EARNINGS_ROWS = """
    SELECT
        u.id AS user_id,
        u.name AS user_name,
        u.email AS user_email,
        t.id AS topic_id,
        t.title AS topic_title,
        ut.payment_status,
        ut.enrolled_at,
        COALESCE(t.price, 0) AS amount,
        CASE
            WHEN ut.payment_status IN ('completed', 'paid') THEN 'Success'
            WHEN ut.payment_status = 'pending' THEN 'Pending'
            ELSE 'Other'
        END AS transaction_status
    FROM user_topics ut
    JOIN users u ON ut.user_id = u.id
    JOIN topics t ON ut.topic_id = t.id
    WHERE ut.payment_status IN ('completed', 'paid', 'pending')
    {month_filter}
    ORDER BY ut.enrolled_at DESC
"""

EARNINGS_TOTALS = """
    SELECT
        COUNT(*) AS total_transactions,
        COUNT(DISTINCT ut.topic_id) AS total_topics,
        COUNT(*) FILTER (WHERE ut.payment_status IN ('completed', 'paid', 'pending')) AS total_enrolled,
        COUNT(*) FILTER (WHERE ut.payment_status = 'subscription') AS total_subscribed
    FROM user_topics ut
    WHERE ut.payment_status IN ('completed', 'paid', 'pending', 'subscription')
    {month_filter}
"""

TOPICS_ROWS = """
    SELECT
        t.id AS topic_id,
        t.title AS topic_title,
        t.description,
        COALESCE(t.price, 0) AS price,
        COUNT(DISTINCT ut.user_id) FILTER (
            WHERE ut.payment_status IN ('completed', 'paid', 'pending', 'subscription')
        ) AS total_enrollments,
        COUNT(DISTINCT ut.user_id) FILTER (
            WHERE ut.payment_status IN ('completed', 'paid')
        ) AS completed_enrollments,
        COALESCE(AVG(utp.progress), 0) AS average_progress
    FROM topics t
    LEFT JOIN user_topics ut ON t.id = ut.topic_id {month_filter}
    LEFT JOIN user_topic_progress utp ON t.id = utp.topic_id
    GROUP BY t.id, t.title, t.description, t.price
    ORDER BY total_enrollments DESC
"""

TOPICS_TOTALS = """
    SELECT
        COUNT(DISTINCT t.id) AS total_topics,
        COUNT(DISTINCT ut.user_id) FILTER (
            WHERE ut.payment_status IN ('completed', 'paid', 'pending')
        ) AS total_enrolled,
        COUNT(DISTINCT ut.id) FILTER (WHERE ut.payment_status IN ('completed', 'paid')) AS total_transactions,
        COUNT(DISTINCT ut.user_id) FILTER (WHERE ut.payment_status = 'subscription') AS total_subscribed
    FROM topics t
    LEFT JOIN user_topics ut ON t.id = ut.topic_id {month_filter}
"""

ENROLLED_ROWS = """
    SELECT
        u.id AS user_id,
        u.name AS user_name,
        u.email AS user_email,
        t.id AS topic_id,
        t.title AS topic_title,
        ut.payment_status,
        ut.enrolled_at,
        COALESCE(utp.progress, 0) AS progress,
        COALESCE(utp.watch_time, 0) AS watch_time,
        CASE
            WHEN ut.payment_status IN ('completed', 'paid') THEN 'Active'
            WHEN ut.payment_status = 'pending' THEN 'Pending'
            ELSE 'Other'
        END AS enrollment_status
    FROM user_topics ut
    JOIN users u ON ut.user_id = u.id
    JOIN topics t ON ut.topic_id = t.id
    LEFT JOIN user_topic_progress utp ON ut.user_id = utp.user_id AND ut.topic_id = utp.topic_id
    WHERE ut.payment_status IN ('completed', 'paid', 'pending', 'active', 'processing')
    {month_filter}
    ORDER BY ut.enrolled_at DESC
"""

ENROLLED_TOTALS = """
    SELECT
        COUNT(*) AS total_enrolled,
        COUNT(DISTINCT ut.topic_id) AS total_topics,
        COUNT(*) FILTER (WHERE ut.payment_status IN ('completed', 'paid')) AS total_transactions,
        COUNT(*) FILTER (WHERE ut.payment_status = 'subscription') AS total_subscribed
    FROM user_topics ut
    WHERE ut.payment_status IN ('completed', 'paid', 'pending', 'active', 'processing', 'subscription')
    {month_filter}
"""

SEGMENT_QUERIES = {
    "earnings": (EARNINGS_ROWS, EARNINGS_TOTALS),
    "topics": (TOPICS_ROWS, TOPICS_TOTALS),
    "enrolled": (ENROLLED_ROWS, ENROLLED_TOTALS),
}


def _earnings_row(row: Any) -> Dict[str, Any]:
    return {
        "userId": row.user_id,
        "userName": row.user_name,
        "userEmail": row.user_email,
        "topicId": row.topic_id,
        "topicTitle": row.topic_title,
        "amount": to_float(row.amount),
        "transactionStatus": row.transaction_status,
        "paymentStatus": row.payment_status,
        "date": isoformat(row.enrolled_at),
    }


def _topics_row(row: Any) -> Dict[str, Any]:
    return {
        "topicId": row.topic_id,
        "topicTitle": row.topic_title,
        "description": row.description,
        "price": to_float(row.price),
        "totalEnrollments": to_int(row.total_enrollments),
        "completedEnrollments": to_int(row.completed_enrollments),
        "averageProgress": f"{to_float(row.average_progress):.1f}",
    }


def _enrolled_row(row: Any) -> Dict[str, Any]:
    return {
        "userId": row.user_id,
        "userName": row.user_name,
        "userEmail": row.user_email,
        "topicId": row.topic_id,
        "topicTitle": row.topic_title,
        "paymentStatus": row.payment_status,
        "enrollmentStatus": row.enrollment_status,
        "progress": f"{to_float(row.progress):.1f}",
        "watchTime": to_int(row.watch_time),
        "enrolledAt": isoformat(row.enrolled_at),
    }


ROW_FORMATTERS = {
    "earnings": _earnings_row,
    "topics": _topics_row,
    "enrolled": _enrolled_row,
}


def _plain(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _quoted(value: Any) -> str:
    # Wrapped only, embedded quotes/commas are left as-is
    return f'"{_plain(value)}"'


def _csv_line(segment: str, row: Dict[str, Any]) -> str:
    if segment == "earnings":
        fields = [
            _plain(row["userId"]), _quoted(row["userName"]), _quoted(row["userEmail"]),
            _plain(row["topicId"]), _quoted(row["topicTitle"]), _plain(row["amount"]),
            _plain(row["transactionStatus"]), _plain(row["paymentStatus"]), _plain(row["date"]),
        ]
    elif segment == "topics":
        fields = [
            _plain(row["topicId"]), _quoted(row["topicTitle"]), _quoted(row["description"]),
            _plain(row["price"]), _plain(row["totalEnrollments"]),
            _plain(row["completedEnrollments"]), _plain(row["averageProgress"]),
        ]
    else:
        fields = [
            _plain(row["userId"]), _quoted(row["userName"]), _quoted(row["userEmail"]),
            _plain(row["topicId"]), _quoted(row["topicTitle"]), _plain(row["paymentStatus"]),
            _plain(row["enrollmentStatus"]), _plain(row["progress"]), _plain(row["watchTime"]),
            _plain(row["enrolledAt"]),
        ]
    return ",".join(fields)


def render_csv(segment: str, rows: List[Dict[str, Any]]) -> str:
    """
    Render report rows as CSV text with the segment's fixed header.

    Args:
        segment: earnings, topics or enrolled
        rows: reportData entries as produced by ReportService

    Returns:
        str: header plus one newline-terminated line per row
    """
    lines = [CSV_HEADERS[segment]]
    lines.extend(_csv_line(segment, row) for row in rows)
    return "\n".join(lines) + "\n"


def csv_filename(segment: str, label: str) -> str:
    """e.g. ("topics", "May 2024") -> "topics_report_May_2024.csv" """
    return f"{segment}_report_{label.replace(' ', '_')}.csv"


class ReportService:
    """Segment reports over enrollments, topics and progress"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _fetch_all(self, query: str, params: Dict[str, Any]) -> List[Any]:
        async with self.session_factory() as session:
            result = await session.execute(text(query), params)
            return result.fetchall()

    async def _fetch_one(self, query: str, params: Dict[str, Any]):
        async with self.session_factory() as session:
            result = await session.execute(text(query), params)
            return result.fetchone()

    async def get_monthly_report(self, segment: Optional[str], month: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the report for one segment, optionally restricted to a month.

        Args:
            segment: earnings, topics or enrolled
            month: Optional "YYYY-MM" filter on the enrollment date

        Returns:
            dict: segment, month label, four totals and reportData rows

        Raises:
            BadRequestError: Missing/unknown segment or malformed month
        """
        if not segment or segment not in SEGMENTS:
            raise BadRequestError("Valid segment parameter required: earnings, topics, or enrolled")

        month_filter = ""
        label = ALL_TIME_LABEL
        params: Dict[str, Any] = {}

        if month:
            parsed = parse_year_month(month)
            if parsed is None:
                raise BadRequestError("Invalid month format. Expected YYYY-MM")
            params["year"], params["month"] = parsed
            month_filter = MONTH_FILTER
            label = month_label(*parsed)

        rows_query, totals_query = SEGMENT_QUERIES[segment]
        rows, totals = await asyncio.gather(
            self._fetch_all(rows_query.format(month_filter=month_filter), params),
            self._fetch_one(totals_query.format(month_filter=month_filter), params),
        )

        formatter = ROW_FORMATTERS[segment]

        return {
            "segment": segment,
            "month": label,
            "totalPaymentTransactions": to_int(getattr(totals, "total_transactions", 0)),
            "totalTopics": to_int(getattr(totals, "total_topics", 0)),
            "totalEnrolled": to_int(getattr(totals, "total_enrolled", 0)),
            "totalSubscribed": to_int(getattr(totals, "total_subscribed", 0)),
            "reportData": [formatter(row) for row in rows],
        }
