"""
ARQ Worker for background task processing.

This worker handles:
- collect_daily_productivity: appends the day's productivity data point
  (cron, once per day near midnight)

Usage:
    arq lifehub.worker.WorkerSettings
"""

from datetime import date

from arq import cron
from arq.connections import RedisSettings

from lifehub.config import get_settings
from lifehub.container import build_container
from lifehub.logging_config import setup_logging, get_logger

# Initialize logging for the worker
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


def parse_redis_url(url: str) -> RedisSettings:
    """Parse redis URL into RedisSettings."""
    # redis://localhost:6380/0 -> host=localhost, port=6380, database=0
    url = url.replace("redis://", "")
    database = 0
    if "/" in url:
        url, db_part = url.split("/", 1)
        database = int(db_part or 0)
    if ":" in url:
        host, port = url.split(":")
        return RedisSettings(host=host, port=int(port), database=database)
    return RedisSettings(host=url, database=database)


async def collect_daily_productivity(ctx: dict, day: str | None = None) -> str:
    """
    ARQ job: aggregate one day's productivity into the log.

    Args:
        ctx: ARQ context holding the container
        day: ISO date to collect; defaults to today

    Returns:
        Status message
    """
    container = ctx["container"]
    target = date.fromisoformat(day) if day else None
    point = await container.aggregator.collect(target)
    message = f"Collected productivity for {point.date}: score={point.productivity_score}"
    logger.info(message)
    return message


async def startup(ctx: dict) -> None:
    """Worker startup - build the stores."""
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")
    if settings.storage_backend == "memory":
        logger.warning(
            "Worker is using the in-memory storage backend; it cannot see the API's data. "
            "Set LIFEHUB_STORAGE_BACKEND=sql and share LIFEHUB_DATABASE_URL with the API."
        )
    ctx["container"] = build_container(settings)


async def shutdown(ctx: dict) -> None:
    """Worker shutdown - cleanup."""
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [collect_daily_productivity]
    cron_jobs = [
        cron(
            collect_daily_productivity,
            hour=settings.productivity_cron_hour,
            minute=settings.productivity_cron_minute,
            run_at_startup=False,
        )
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = parse_redis_url(settings.redis_url)
    max_jobs = 10
    job_timeout = 300  # 5 minutes max per job
