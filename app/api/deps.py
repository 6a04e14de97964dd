"""
Service Dependencies

Build request-scoped services around the shared session factory so routes
never reach for a global connection handle.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.database import get_session_factory
from app.services.dashboard_service import DashboardService
from app.services.homepage_service import HomepageService
from app.services.report_service import ReportService


def get_dashboard_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> DashboardService:
    return DashboardService(session_factory)


def get_report_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> ReportService:
    return ReportService(session_factory)


def get_homepage_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> HomepageService:
    return HomepageService(session_factory)
