"""Refresh token retention jobs for arq worker."""

from typing import Any

from arq import Retry
from sqlalchemy.exc import SQLAlchemyError

from freightdesk.config import settings
from freightdesk.core.logging import bind_context, get_logger
from freightdesk.services.refresh_token_store import RefreshTokenStore

logger = get_logger(__name__)


async def cleanup_refresh_tokens_job(ctx: dict[str, Any]) -> dict[str, int]:
    """
    Delete refresh tokens past their retention window.

    Expired tokens and deactivated (consumed, revoked, turned-in) tokens are
    kept for a few days so reuse of a recently rotated token is still
    recognised as reuse rather than as an unknown token.

    Args:
        ctx: ARQ context dict, holding the token store set up at worker startup

    Returns:
        dict with the number of deleted rows

    Raises:
        Retry: If the database operation fails
    """
    bind_context(task="refresh_token_cleanup")
    store: RefreshTokenStore = ctx["refresh_token_store"]

    try:
        deleted = await store.delete_old_tokens(
            expired_for_days=settings.REFRESH_TOKEN_RETENTION_EXPIRED_DAYS,
            deactivated_for_days=settings.REFRESH_TOKEN_RETENTION_DEACTIVATED_DAYS,
        )
    except SQLAlchemyError as e:
        logger.error(
            "refresh_token_cleanup_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise Retry(defer=ctx.get("job_try", 1) * 60) from e

    return {"deleted": deleted}
