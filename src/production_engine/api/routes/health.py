"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from production_engine.config import settings
from production_engine.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)

LEDGER_TABLE = "late_video_notifications"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool]


class ReadinessResponse(BaseModel):
    """Readiness check response.

    `ledger` is False when the database is reachable but the late video
    ledger table is missing, i.e. migrations have not been applied.
    """

    ready: bool
    database: bool
    ledger: bool
    redis: bool


def _check_database() -> tuple[bool, bool]:
    from sqlalchemy import inspect

    from production_engine.db.session import engine, init_db

    try:
        init_db()
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False, False
    try:
        return True, inspect(engine).has_table(LEDGER_TABLE)
    except Exception as e:
        logger.error("ledger_health_check_failed", error=str(e))
        return True, False


def _check_broker() -> bool:
    import redis

    try:
        redis.from_url(settings.redis_url).ping()
        return True
    except redis.RedisError as e:
        logger.error("redis_health_check_failed", error=str(e))
        return False


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Verifies the API is running and lists the optional features switched on.",
)
async def health_check() -> HealthResponse:
    from production_engine import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={
            "late_check": settings.late_check_enabled,
            "email_alerts": bool(settings.alert_email_smtp_host and settings.alert_email_from),
            "discord_alerts": bool(settings.alert_discord_webhook_url),
        },
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Verifies the database, the late video ledger and the Celery broker.",
)
async def readiness_check() -> ReadinessResponse:
    """Ready when views can be loaded and late checks can be queued and recorded."""
    database_ok, ledger_ok = _check_database()
    redis_ok = _check_broker()

    return ReadinessResponse(
        ready=database_ok and ledger_ok and redis_ok,
        database=database_ok,
        ledger=ledger_ok,
        redis=redis_ok,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="Simple liveness check for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness check: is the process alive?"""
    return {"status": "alive"}
