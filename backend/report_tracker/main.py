"""
Report Tracker - FastAPI Application

Main entry point for the Report Tracker backend.

Architecture:
- Link store → ReportingLink (organization/project pairing + schedule)
- ReportingLink → Compliance Classifier → status tier for display
- Submission → Submission Recorder → history, streak, next due date
- Cadence Rule computes every due date (daily / weekly / monthly)
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routers import (
    auth_router,
    organizations_router,
    projects_router,
    expectations_router,
    links_router,
    collected_data_router,
)
from .database import init_db
from .models.schedule import InvalidSchedule
from .services.compliance import LinkNotFound, StoreUnavailable

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Report Tracker",
    description="""
    Report Tracker - Reporting Compliance Service

    Tracks recurring reporting obligations between organizations and projects.

    ## Scheduling
    - **daily**: due at the end of the current day
    - **weekly**: due at the end of the next chosen weekday (never today)
    - **monthly**: due at the end of the chosen day of month, clamped to short months

    ## Compliance
    Each link is classified against the current time as
    no-schedule, overdue, due-today, due-soon or on-track.
    Submissions keep the 12 most recent entries and an on-time streak.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(organizations_router)
app.include_router(projects_router)
app.include_router(expectations_router)
app.include_router(links_router)
app.include_router(collected_data_router)


# =============================================================================
# DOMAIN ERROR HANDLERS
# =============================================================================

@app.exception_handler(InvalidSchedule)
async def invalid_schedule_handler(request: Request, exc: InvalidSchedule):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(LinkNotFound)
async def link_not_found_handler(request: Request, exc: LinkNotFound):
    return JSONResponse(status_code=404, content={"detail": exc.args[0]})


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Storage temporarily unavailable"})


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Report Tracker",
        "version": "1.0.0",
        "description": "Reporting Compliance Service",
        "docs": "/docs",
        "intervals": ["none", "daily", "weekly", "monthly"],
        "statuses": ["no-schedule", "overdue", "due-today", "due-soon", "on-track"],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m report_tracker.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
