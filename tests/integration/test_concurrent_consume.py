"""
Concurrent consume races against a real database.

Each attempt uses its own session (and, on SQLite, its own connection), so
these exercise the row lock and conditional update rather than any
in-process ordering.
"""

import asyncio
import uuid
from collections import Counter
from datetime import timedelta

import pytest

from freightdesk.core.security import generate_refresh_token
from freightdesk.models.user import Users
from freightdesk.services.refresh_token_store import ConsumeFailureReason, RefreshTokenStore

RACE_ITERATIONS = 40


async def _issue(store: RefreshTokenStore, user_id: str, clock) -> str:
    _, token_hash = generate_refresh_token()
    await store.issue(
        user_id=user_id,
        family_id=str(uuid.uuid4()),
        token_hash=token_hash,
        fingerprint="fp1",
        expires_at=clock.now() + timedelta(days=30),
    )
    return token_hash


@pytest.mark.integration
class TestConcurrentConsume:
    async def test_two_racers_exactly_one_wins(self, store, clock, test_user: Users):
        for _ in range(RACE_ITERATIONS):
            token_hash = await _issue(store, test_user.user_id, clock)

            first, second = await asyncio.gather(
                store.consume_token(token_hash),
                store.consume_token(token_hash),
            )

            outcomes = sorted([first, second], key=lambda r: not r.success)
            assert outcomes[0].success
            assert not outcomes[1].success
            assert outcomes[1].failure_reason == ConsumeFailureReason.ALREADY_CONSUMED

    async def test_many_racers_exactly_one_wins(self, store, clock, test_user: Users):
        for _ in range(RACE_ITERATIONS // 4):
            token_hash = await _issue(store, test_user.user_id, clock)

            results = await asyncio.gather(*(store.consume_token(token_hash) for _ in range(6)))

            reasons = Counter(r.failure_reason for r in results)
            assert reasons[ConsumeFailureReason.NONE] == 1
            assert reasons[ConsumeFailureReason.ALREADY_CONSUMED] == 5

    async def test_consume_racing_revoke_never_leaves_active(
        self, store, clock, test_user: Users
    ):
        for _ in range(RACE_ITERATIONS // 2):
            token_hash = await _issue(store, test_user.user_id, clock)
            stored = await store.get_by_token_hash(token_hash)
            assert stored is not None

            consumed, revoked = await asyncio.gather(
                store.consume_token(token_hash),
                store.revoke_family(stored.family_id),
            )

            after = await store.get_by_token_hash(token_hash)
            assert after is not None and not after.is_active
            if consumed.success:
                assert revoked == 0
            else:
                assert revoked == 1
                assert consumed.failure_reason == ConsumeFailureReason.ALREADY_REVOKED
