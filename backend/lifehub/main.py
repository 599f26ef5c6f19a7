"""
LifeHub - task dependency, time tracking and productivity analytics service.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from lifehub.container import build_container
from lifehub.routes import analytics, dependencies, habits, tasks, templates, time_tracking
from lifehub.exceptions import register_exception_handlers
from lifehub.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting LifeHub API...")
    # Tests install their own container before startup
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container()
    logger.info("Stores initialized")
    yield
    logger.info("Shutting down LifeHub API...")


app = FastAPI(
    title="LifeHub",
    description="Task dependencies, time tracking and habit/productivity analytics",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(templates.router, prefix="/templates", tags=["Templates"])
app.include_router(dependencies.router, prefix="/dependencies", tags=["Dependencies"])
app.include_router(time_tracking.router, prefix="/time-tracking", tags=["Time Tracking"])
app.include_router(habits.router, tags=["Habits"])
app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
