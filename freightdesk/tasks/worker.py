"""
ARQ worker configuration and job definitions.

Run worker with: arq freightdesk.tasks.worker.WorkerSettings
"""

from typing import Any

from arq import cron
from arq.connections import RedisSettings

from freightdesk.config import settings
from freightdesk.core.database import AsyncSessionLocal
from freightdesk.core.logging import configure_logging, get_logger
from freightdesk.services.refresh_token_store import RefreshTokenStore
from freightdesk.tasks.token_jobs import cleanup_refresh_tokens_job

logger = get_logger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    """Worker startup - initialize shared resources."""
    configure_logging()
    ctx["refresh_token_store"] = RefreshTokenStore(AsyncSessionLocal)
    logger.info("arq_worker_starting", redis_url=settings.ARQ_REDIS_URL)


async def shutdown(ctx: dict[str, Any]) -> None:
    """Worker shutdown - cleanup resources."""
    logger.info("arq_worker_shutdown")


class WorkerSettings:
    """ARQ worker configuration."""

    # Redis connection from settings
    redis_settings = RedisSettings.from_dsn(settings.ARQ_REDIS_URL)

    # Worker behavior
    max_jobs = 10
    job_timeout = 300  # 5 minutes max per job
    keep_result = settings.ARQ_KEEP_RESULT

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Daily retention sweep (UTC)
    cron_jobs = [
        cron(
            cleanup_refresh_tokens_job,
            hour={settings.REFRESH_TOKEN_CLEANUP_HOUR},
            minute={0},
            max_tries=3,
            unique=True,
        ),
    ]
