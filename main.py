"""
Academy Dashboard Backend API Server

FastAPI application for the training platform's admin dashboard.
Serves dashboard statistics, monthly reports and homepage content.
"""
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from datetime import datetime, timezone
import time

from app.api.routes import dashboard, homepage
from app.database import check_db_connection, engine
from app.errors import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Checks the database on startup and disposes the pool on shutdown.
    """
    # Startup
    logger.info("Starting Academy Dashboard API server...")

    if await check_db_connection():
        logger.info("Database connection established")
    else:
        logger.warning("Database unreachable at startup, requests will fail until it is available")

    yield

    # Shutdown
    logger.info("Shutting down Academy Dashboard API server...")
    await engine.dispose()
    logger.info("Database pool disposed")


# Create FastAPI application
app = FastAPI(
    title="Academy Dashboard API",
    description="Admin dashboard statistics, reports and homepage content",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration_ms:.2f}ms"
    )

    return response


register_exception_handlers(app)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns server status, database reachability and version information.
    """
    database_ok = await check_db_connection()
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": API_VERSION,
        "service": "academy-dashboard-api"
    }


# Include routers
app.include_router(dashboard.router)
app.include_router(homepage.router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """API root endpoint"""
    return {
        "name": "Academy Dashboard API",
        "version": API_VERSION,
        "description": "Admin dashboard statistics, reports and homepage content",
        "docs": "/api/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info"
    )
