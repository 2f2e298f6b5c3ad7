"""
Refresh token store - transactional state machine for refresh tokens.

Every operation opens its own short transaction. Mutual exclusion between
concurrent requests comes entirely from the database: the token row is read
with SELECT ... FOR UPDATE and leaves ``active`` through a conditional
UPDATE, so for any one token hash at most one consume ever succeeds.

Outcomes of consume_token() are values, not exceptions; the caller decides
how to respond (rotate, reject, or revoke the family). Database errors
propagate after the transaction rolls back and are never retried here, since
retrying a consume on a rotated secret would itself look like reuse.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freightdesk.core.clock import Clock, as_naive_utc, system_clock, utcnow
from freightdesk.core.logging import get_logger
from freightdesk.models.refresh_token import RefreshTokens, TokenStatus

logger = get_logger(__name__)


class ConsumeFailureReason(str, Enum):
    """Why a consume attempt did not succeed"""

    NONE = "none"
    NOT_FOUND = "not_found"
    ALREADY_CONSUMED = "already_consumed"
    ALREADY_REVOKED = "already_revoked"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class ConsumeTokenResult:
    """
    Outcome of consume_token().

    On success ``token`` is a detached snapshot of the row as it was before it
    was consumed, so the caller can carry its family, fingerprint and expiry
    into the replacement token. On failure ``family_id`` is set whenever the
    row was found.
    """

    success: bool
    token: RefreshTokens | None = None
    failure_reason: ConsumeFailureReason = ConsumeFailureReason.NONE
    family_id: str | None = None

    @classmethod
    def succeeded(cls, token: RefreshTokens) -> "ConsumeTokenResult":
        return cls(success=True, token=token, family_id=token.family_id)

    @classmethod
    def failed(
        cls, reason: ConsumeFailureReason, family_id: str | None = None
    ) -> "ConsumeTokenResult":
        return cls(success=False, failure_reason=reason, family_id=family_id)


def _failure_for_inactive(token: RefreshTokens) -> ConsumeTokenResult:
    """Map a row that has already left ``active`` to its failure outcome."""
    if token.status == TokenStatus.CONSUMED:
        return ConsumeTokenResult.failed(ConsumeFailureReason.ALREADY_CONSUMED, token.family_id)
    # revoked and turned_in are both dead ends for the presenter
    return ConsumeTokenResult.failed(ConsumeFailureReason.ALREADY_REVOKED, token.family_id)


class RefreshTokenStore:
    """Persistence and state transitions for refresh tokens."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def _select_for_update(
        self, session: AsyncSession, token_hash: str
    ) -> RefreshTokens | None:
        result = await session.execute(
            select(RefreshTokens)
            .where(RefreshTokens.token_hash == token_hash)  # type: ignore[arg-type]
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _revoke_active_in_family(
        self,
        session: AsyncSession,
        family_id: str,
        now: datetime,
        exclude_id: str | None = None,
    ) -> int:
        stmt = (
            update(RefreshTokens)
            .where(RefreshTokens.family_id == family_id)  # type: ignore[arg-type]
            .where(RefreshTokens.status == TokenStatus.ACTIVE.value)  # type: ignore[arg-type]
        )
        if exclude_id is not None:
            stmt = stmt.where(RefreshTokens.id != exclude_id)  # type: ignore[arg-type]
        result = await session.execute(
            stmt.values(status=TokenStatus.REVOKED.value, deactivated_at=now).execution_options(
                synchronize_session=False
            )
        )
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def issue(
        self,
        user_id: str,
        family_id: str,
        token_hash: str,
        fingerprint: str,
        expires_at: datetime,
    ) -> RefreshTokens:
        """
        Insert a new active token.

        Used both for a brand-new family and for a rotated token, which must
        reuse its predecessor's family_id and expires_at.

        Args:
            user_id: Owning user
            family_id: New uuid for a sign-in, inherited on rotation
            token_hash: Hash of the secret handed to the client
            fingerprint: Client binding captured now
            expires_at: Absolute family expiry

        Returns:
            The stored row
        """
        token = RefreshTokens(
            user_id=user_id,
            family_id=family_id,
            token_hash=token_hash,
            fingerprint=fingerprint,
            status=TokenStatus.ACTIVE.value,
            expires_at=as_naive_utc(expires_at),
            created_at=utcnow(self._clock),
        )
        async with self._session_factory() as session, session.begin():
            session.add(token)

        logger.info(
            "refresh_token_issued",
            token_id=token.id,
            user_id=user_id,
            family_id=family_id,
            expires_at=token.expires_at.isoformat(),
        )
        return token

    async def get_by_token_hash(self, token_hash: str) -> RefreshTokens | None:
        """Look up a token row by hash without changing it."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(RefreshTokens).where(RefreshTokens.token_hash == token_hash)  # type: ignore[arg-type]
            )
            return result.scalar_one_or_none()

    async def consume_token(self, token_hash: str) -> ConsumeTokenResult:
        """
        Exchange an active token: mark it consumed so it can be replaced.

        Checks, in order: not found, already consumed, already revoked (or
        turned in), expired. Non-success outcomes write nothing.

        If two callers race on the same hash, the row lock and the conditional
        update guarantee exactly one sees success; the other sees
        ALREADY_CONSUMED.

        Args:
            token_hash: Hash of the presented secret

        Returns:
            ConsumeTokenResult
        """
        async with self._session_factory() as session, session.begin():
            token = await self._select_for_update(session, token_hash)

            if token is None:
                return ConsumeTokenResult.failed(ConsumeFailureReason.NOT_FOUND)

            if not token.is_active:
                return _failure_for_inactive(token)

            now = utcnow(self._clock)
            if now > token.expires_at:
                return ConsumeTokenResult.failed(ConsumeFailureReason.EXPIRED, token.family_id)

            snapshot = RefreshTokens(**token.model_dump())

            result = await session.execute(
                update(RefreshTokens)
                .where(RefreshTokens.id == token.id)  # type: ignore[arg-type]
                .where(RefreshTokens.status == TokenStatus.ACTIVE.value)  # type: ignore[arg-type]
                .values(status=TokenStatus.CONSUMED.value, deactivated_at=now)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount != 1:  # type: ignore[attr-defined]
                # Another transaction moved the row out of active first
                latest = await self._select_for_update(session, token_hash)
                if latest is None:
                    return ConsumeTokenResult.failed(ConsumeFailureReason.NOT_FOUND)
                if latest.is_active:
                    raise RuntimeError(f"Refresh token {latest.id} still active after lost update")
                return _failure_for_inactive(latest)

        return ConsumeTokenResult.succeeded(snapshot)

    async def revoke_family(self, family_id: str) -> int:
        """
        Revoke every active token in a family.

        Idempotent: a fully revoked family is left untouched.

        Args:
            family_id: Family to shut down

        Returns:
            Number of rows moved from active to revoked
        """
        async with self._session_factory() as session, session.begin():
            count = await self._revoke_active_in_family(session, family_id, utcnow(self._clock))

        logger.info("refresh_token_family_revoked", family_id=family_id, revoked_count=count)
        return count

    async def turn_in(self, token_hash: str) -> bool:
        """
        Voluntarily relinquish a token (sign-out).

        Marks the token turned_in and revokes every other active token in its
        family, atomically. Unknown hashes are ignored, and a token that has
        already left active keeps its terminal state, so repeated calls are
        harmless.

        Args:
            token_hash: Hash of the presented secret

        Returns:
            True if this call moved the token to turned_in
        """
        async with self._session_factory() as session, session.begin():
            token = await self._select_for_update(session, token_hash)

            if token is None:
                logger.debug("refresh_token_turn_in_not_found")
                return False

            now = utcnow(self._clock)
            turned_in = False
            if token.is_active:
                token.status = TokenStatus.TURNED_IN.value
                token.deactivated_at = now
                await session.flush()
                turned_in = True

            revoked = await self._revoke_active_in_family(
                session, token.family_id, now, exclude_id=token.id
            )

        logger.info(
            "refresh_token_turned_in",
            token_id=token.id,
            family_id=token.family_id,
            turned_in=turned_in,
            revoked_count=revoked,
        )
        return turned_in

    def _retention_cutoffs(
        self, expired_for_days: int, deactivated_for_days: int
    ) -> tuple[datetime, datetime]:
        if expired_for_days < 0 or deactivated_for_days < 0:
            raise ValueError("Retention periods must be non-negative")

        now = utcnow(self._clock)
        return (
            now - timedelta(days=expired_for_days),
            now - timedelta(days=deactivated_for_days),
        )

    @staticmethod
    def _past_retention(
        expired_before: datetime, deactivated_before: datetime
    ) -> ColumnElement[bool]:
        return or_(
            RefreshTokens.expires_at < expired_before,  # type: ignore[arg-type]
            RefreshTokens.deactivated_at < deactivated_before,  # type: ignore[arg-type,operator]
        )

    async def count_old_tokens(self, expired_for_days: int, deactivated_for_days: int) -> int:
        """Number of tokens delete_old_tokens() would remove right now."""
        expired_before, deactivated_before = self._retention_cutoffs(
            expired_for_days, deactivated_for_days
        )
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(RefreshTokens)
                .where(self._past_retention(expired_before, deactivated_before))
            )
            return int(result.scalar() or 0)

    async def delete_old_tokens(self, expired_for_days: int, deactivated_for_days: int) -> int:
        """
        Delete tokens long past expiry or deactivation.

        Pure retention hygiene; has no bearing on the security state machine.

        Args:
            expired_for_days: Delete tokens expired for more than this many days
            deactivated_for_days: Delete tokens deactivated for more than this many days

        Returns:
            The number of tokens deleted

        Raises:
            ValueError: If either period is negative
        """
        expired_before, deactivated_before = self._retention_cutoffs(
            expired_for_days, deactivated_for_days
        )

        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(RefreshTokens)
                .where(self._past_retention(expired_before, deactivated_before))
                .execution_options(synchronize_session=False)
            )
            count = int(result.rowcount or 0)  # type: ignore[attr-defined]

        logger.info(
            "refresh_tokens_cleaned_up",
            deleted_count=count,
            expired_before=expired_before.isoformat(),
            deactivated_before=deactivated_before.isoformat(),
        )
        return count
