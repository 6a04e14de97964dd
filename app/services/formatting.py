"""
Dashboard Formatting Helpers

Pure functions shared by the dashboard, report and homepage services:
- Growth percentages with zero-baseline handling
- Watch time, percentage and rating strings
- Dense month series for charts
- One-year subscription validity windows
- Pagination metadata and display ids
"""
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

SUBSCRIPTION_ELIGIBLE_STATUSES = {"completed", "subscription"}

SECONDS_PER_DAY = 24 * 60 * 60

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def format_growth(current: int, previous: int) -> str:
    """
    Format month-over-month growth as a signed one-decimal percentage.

    Rules:
        previous > 0:             (current - previous) / previous * 100
        previous == 0, current > 0: "+100.0%"
        both zero:                "+0.0%"

    Args:
        current: Count for the current period
        previous: Count for the previous period

    Returns:
        str: e.g. "+12.5%", "-33.3%"
    """
    if previous > 0:
        growth = (current - previous) / previous * 100
        sign = "+" if growth >= 0 else ""
        return f"{sign}{growth:.1f}%"
    if current > 0:
        return "+100.0%"
    return "+0.0%"


def format_watch_time(seconds: Optional[float]) -> str:
    """Render seconds as "{hours}h {minutes}m" (floor division)"""
    if not seconds:
        return "0h 0m"
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h {minutes}m"


def format_percentage(numerator: int, denominator: int) -> str:
    """numerator/denominator as a one-decimal percentage, "0.0%" for an empty denominator"""
    if denominator <= 0:
        return "0.0%"
    return f"{numerator / denominator * 100:.1f}%"


def format_rating(average: Optional[float]) -> str:
    return f"{float(average or 0):.1f}"


def to_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_int_param(value: Optional[str], default: int) -> int:
    """Parse an integer query parameter, falling back to default when missing or unparsable"""
    if value is None or str(value).strip() == "":
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed or default


def clamp_months(months: Optional[str]) -> int:
    """Number of months to report, clamped to 1-12 (default 12)"""
    return min(max(parse_int_param(months, 12), 1), 12)


def parse_year_month(value: str) -> Optional[Tuple[int, int]]:
    """
    Parse a "YYYY-MM" string.

    Returns:
        (year, month) tuple, or None if the value is malformed or the month
        is outside 1-12
    """
    match = _MONTH_PATTERN.match(value.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def month_label(year: int, month: int) -> str:
    """e.g. (2024, 5) -> "May 2024" """
    return f"{MONTH_NAMES[month - 1]} {year}"


def build_earnings_series(rows: Mapping[int, Any], months: int) -> List[Dict[str, Any]]:
    """
    Dense earnings series for the first `months` calendar months.

    Args:
        rows: month number (1-12) -> summed earnings
        months: Length of the series (already clamped)

    Returns:
        list: [{"month": "Jan", "value": 120.5}, ...], zero-filled
    """
    series = []
    for index in range(months):
        value = rows.get(index + 1)
        series.append({
            "month": MONTH_NAMES[index],
            "value": round(to_float(value), 2) if value is not None else 0,
        })
    return series


def build_growth_series(
    users_by_month: Mapping[int, int],
    enrollments_by_month: Mapping[int, Tuple[int, float]],
    months: int,
) -> List[Dict[str, Any]]:
    """
    Dense growth report merging new users with (enrollments, revenue) per month.

    A month present in only one of the inputs still appears. Growth compares
    each month's enrollment count with the previous entry in the series; the
    first entry has no prior month and is always "N/A".
    """
    series = []
    previous_enrollments = 0

    for index in range(months):
        month_number = index + 1
        enrollments, revenue = enrollments_by_month.get(month_number, (0, 0.0))
        users = users_by_month.get(month_number, 0)

        growth = "N/A" if index == 0 else format_growth(enrollments, previous_enrollments)

        series.append({
            "month": MONTH_NAMES[index],
            "users": users,
            "enrollments": enrollments,
            "revenue": round(to_float(revenue), 2),
            "growth": growth,
        })
        previous_enrollments = enrollments

    return series


def add_one_year(start: datetime) -> datetime:
    """Same calendar date one year later; Feb 29 maps to Feb 28"""
    try:
        return start.replace(year=start.year + 1)
    except ValueError:
        return start.replace(year=start.year + 1, day=28)


def subscription_window(
    enrolled_at: Optional[datetime],
    payment_status: Optional[str],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    One-year subscription validity derived from the enrollment timestamp.

    Only completed and subscription enrollments carry a window; every other
    status returns null dates and an inactive flag.

    Args:
        enrolled_at: Enrollment timestamp (naive values are treated as UTC)
        payment_status: Enrollment payment status
        now: Reference time, defaults to the current UTC time

    Returns:
        dict with subscriptionStartDate, subscriptionEndDate (ISO strings),
        subscriptionValidDays and isSubscriptionActive
    """
    if enrolled_at is None or payment_status not in SUBSCRIPTION_ELIGIBLE_STATUSES:
        return {
            "subscriptionStartDate": None,
            "subscriptionEndDate": None,
            "subscriptionValidDays": None,
            "isSubscriptionActive": False,
        }

    now = _as_utc(now or datetime.now(timezone.utc))
    start = _as_utc(enrolled_at)
    end = add_one_year(start)

    remaining_days = (end - now).total_seconds() / SECONDS_PER_DAY
    valid_days = max(0, math.ceil(remaining_days))

    return {
        "subscriptionStartDate": start.isoformat(),
        "subscriptionEndDate": end.isoformat(),
        "subscriptionValidDays": valid_days,
        "isSubscriptionActive": start <= now <= end,
    }


def build_pagination(page: int, limit: int, total_count: int) -> Dict[str, Any]:
    total_pages = math.ceil(total_count / limit) if limit > 0 else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalCount": total_count,
        "limit": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def display_id(prefix: str, value: Optional[int]) -> Optional[str]:
    """Zero-padded public id, e.g. ("faq", 7) -> "faq_007" """
    if value is None:
        return None
    return f"{prefix}_{value:03d}"


def isoformat(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
