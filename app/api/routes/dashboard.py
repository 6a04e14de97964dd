"""
Dashboard Data API Endpoints

Provides aggregated statistics, enrollment updates, earnings charts and
monthly reports (JSON or CSV download) for the admin dashboard.
"""
import logging
from datetime import date
from typing import Dict, Any, List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.api.deps import get_dashboard_service, get_report_service
from app.errors import APIError, server_error
from app.services.dashboard_service import DashboardService
from app.services.report_service import ReportService, csv_filename, render_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

TRUTHY_VALUES = {"true", "1", "yes"}


# Pydantic models

class OverviewStats(BaseModel):
    """Dashboard overview statistics"""
    total_users: int = Field(..., alias="totalUsers")
    verified_users: int = Field(..., alias="verifiedUsers")
    total_topics: int = Field(..., alias="totalTopics")
    total_enrollments: int = Field(..., alias="totalEnrollments")
    enrolled_topics: int = Field(..., alias="enrolledTopics")
    completed_topics: int = Field(..., alias="completedTopics")
    topics_in_progress: int = Field(..., alias="topicsInProgress")
    total_watch_time: str = Field(..., alias="totalWatchTime")
    total_watch_time_seconds: int = Field(..., alias="totalWatchTimeSeconds")
    new_users_this_month: int = Field(..., alias="newUsersThisMonth")
    enrollments_this_month: int = Field(..., alias="enrollmentsThisMonth")
    user_growth: str = Field(..., alias="userGrowth")
    enrollment_growth: str = Field(..., alias="enrollmentGrowth")
    completion_rate: str = Field(..., alias="completionRate")
    average_rating: str = Field(..., alias="averageRating")


class OverviewResponse(BaseModel):
    """Dashboard overview response"""
    success: bool
    data: OverviewStats


class EarningsPoint(BaseModel):
    """One month of the earnings chart"""
    month: str
    value: float


class GrowthPoint(BaseModel):
    """One month of the growth report"""
    month: str
    users: int
    enrollments: int
    revenue: float
    growth: str


class GrowthReportResponse(BaseModel):
    """Monthly growth report response"""
    success: bool
    data: List[GrowthPoint]


# API Endpoints

@router.get("/overview", response_model=OverviewResponse)
async def get_dashboard_overview(
    service: DashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    """
    Get dashboard overview statistics.

    Returns user, topic and enrollment counts, total watch time,
    month-over-month growth, completion rate and average rating.
    """
    try:
        return {"success": True, "data": await service.get_overview()}
    except APIError:
        raise
    except Exception as e:
        raise server_error("getting dashboard overview", e)


@router.get("/updates")
async def get_dashboard_updates(
    tab: str = Query("enrolled", description="enrolled or subscription"),
    month: Optional[str] = Query(None, description="Month filter (YYYY-MM)"),
    from_date: Optional[date] = Query(None, alias="fromDate", description="Range start (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, alias="toDate", description="Range end (YYYY-MM-DD)"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Rows per page"),
    service: DashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    """
    Get user enrollments or subscriptions with filters and pagination.

    A complete fromDate/toDate range takes priority over month. Each row
    carries its watch time and one-year subscription validity window.

    Raises:
        400: Invalid tab or month
    """
    try:
        result = await service.get_updates(
            tab=tab,
            month=month,
            from_date=from_date,
            to_date=to_date,
            page=page,
            limit=limit,
        )
        return {"success": True, **result}
    except APIError:
        raise
    except Exception as e:
        raise server_error("getting dashboard updates", e)


@router.get("/earnings", response_model=List[EarningsPoint])
async def get_monthly_earnings(
    year: Optional[str] = Query(None, description="Year (default current year)"),
    months: Optional[str] = Query(None, description="Number of months 1-12 (default 12)"),
    service: DashboardService = Depends(get_dashboard_service),
) -> List[Dict[str, Any]]:
    """
    Get monthly earnings for the chart.

    Returns a bare array (no success envelope) of exactly `months` entries,
    zero-filled for months without revenue.
    """
    try:
        return await service.get_monthly_earnings(year=year, months=months)
    except APIError:
        raise
    except Exception as e:
        raise server_error("getting monthly earnings", e)


@router.get("/reports/monthly", response_model=GrowthReportResponse)
async def get_monthly_growth_report(
    year: Optional[str] = Query(None, description="Year (default current year)"),
    months: Optional[str] = Query(None, description="Number of months 1-12 (default 12)"),
    service: DashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    """Get monthly users, enrollments, revenue and enrollment growth"""
    try:
        return {"success": True, "data": await service.get_monthly_growth(year=year, months=months)}
    except APIError:
        raise
    except Exception as e:
        raise server_error("getting monthly growth report", e)


@router.get("/reports/monthlyReport")
async def get_monthly_segment_report(
    segment: Optional[str] = Query(None, description="earnings, topics or enrolled"),
    month: Optional[str] = Query(None, description="Month filter (YYYY-MM)"),
    download: Optional[str] = Query(None, description="true to download as CSV"),
    service: ReportService = Depends(get_report_service),
):
    """
    Generate a monthly report for one segment.

    With download=true the rows are returned as a CSV attachment named
    {segment}_report_{month}.csv instead of JSON.

    Raises:
        400: Missing or invalid segment, malformed month
    """
    try:
        report = await service.get_monthly_report(segment=segment, month=month)
    except APIError:
        raise
    except Exception as e:
        raise server_error("generating monthly report", e)

    if (download or "").strip().lower() in TRUTHY_VALUES:
        filename = csv_filename(report["segment"], report["month"])
        logger.info(f"Serving {filename} ({len(report['reportData'])} rows)")
        return Response(
            content=render_csv(report["segment"], report["reportData"]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return {"success": True, "data": report}
