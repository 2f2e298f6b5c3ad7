#!/usr/bin/env python3
"""
Delete refresh tokens past their retention window, once.

The arq worker runs the same sweep daily. Use this after an outage of the
worker, or to check how many rows a sweep would remove.

Usage:
    # Dry run (shows how many rows would be deleted)
    python scripts/cleanup_refresh_tokens.py --dry-run

    # Delete with the configured retention
    python scripts/cleanup_refresh_tokens.py --confirm

    # Override retention
    python scripts/cleanup_refresh_tokens.py --expired-days 1 --deactivated-days 1 --confirm
"""

import argparse
import asyncio
import sys

from freightdesk.config import settings
from freightdesk.core.database import AsyncSessionLocal, engine
from freightdesk.core.logging import configure_logging
from freightdesk.services.refresh_token_store import RefreshTokenStore


async def run(expired_days: int, deactivated_days: int, dry_run: bool) -> int:
    store = RefreshTokenStore(AsyncSessionLocal)
    try:
        if dry_run:
            count = await store.count_old_tokens(expired_days, deactivated_days)
            print(f"Would delete {count} refresh tokens")
        else:
            count = await store.delete_old_tokens(expired_days, deactivated_days)
            print(f"Deleted {count} refresh tokens")
    finally:
        await engine.dispose()
    return count


def main() -> int:
    parser = argparse.ArgumentParser(description="Delete refresh tokens past retention")
    parser.add_argument(
        "--expired-days",
        type=int,
        default=settings.REFRESH_TOKEN_RETENTION_EXPIRED_DAYS,
        help="Delete tokens expired for more than this many days",
    )
    parser.add_argument(
        "--deactivated-days",
        type=int,
        default=settings.REFRESH_TOKEN_RETENTION_DEACTIVATED_DAYS,
        help="Delete tokens consumed, revoked or turned in more than this many days ago",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Only count matching rows")
    mode.add_argument("--confirm", action="store_true", help="Actually delete")
    args = parser.parse_args()

    if args.expired_days < 0 or args.deactivated_days < 0:
        parser.error("retention periods must be non-negative")

    configure_logging()
    asyncio.run(run(args.expired_days, args.deactivated_days, args.dry_run))
    return 0


if __name__ == "__main__":
    sys.exit(main())
