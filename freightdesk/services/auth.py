"""
Authentication service - sign-in, refresh token rotation and sign-out.

Refresh flow:
1. Hash the presented secret and fingerprint the current request
2. Consume the stored token (single use, atomic)
3. On reuse of a consumed or revoked token, revoke the whole family
4. On fingerprint mismatch, revoke the whole family even though the secret
   itself was valid; the presenter is not the client it was issued to
5. Otherwise issue the replacement in the same family with the same
   absolute expiry, and a fresh access token built from current account data

Every rejection surfaces as InvalidCredentialError or ExpiredCredentialError.
Which check failed is only visible in the server log.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from freightdesk.config import settings
from freightdesk.core.clock import Clock, system_clock
from freightdesk.core.exceptions import ExpiredCredentialError, InvalidCredentialError
from freightdesk.core.fingerprint import FingerprintProvider
from freightdesk.core.logging import get_logger
from freightdesk.core.security import create_access_token, generate_refresh_token, hash_refresh_token
from freightdesk.services.identity import IdentityService, Principal
from freightdesk.services.refresh_token_store import ConsumeFailureReason, RefreshTokenStore

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Credentials handed back to the client after sign-in or refresh."""

    access_token: str
    refresh_token: str
    principal: Principal


def issue_access_token(principal: Principal) -> str:
    """Default access-credential issuer: a signed JWT with the principal's claims."""
    return create_access_token(
        user_id=principal.user_id,
        role=principal.role,
        email=principal.email,
        customer_id=principal.customer_id,
        pilot_id=principal.pilot_id,
    )


class AuthService:
    """Coordinates identity checks, the token store and reuse detection."""

    def __init__(
        self,
        store: RefreshTokenStore,
        identity: IdentityService,
        fingerprints: FingerprintProvider,
        clock: Clock = system_clock,
        refresh_lifetime: timedelta | None = None,
        access_token_issuer: Callable[[Principal], str] = issue_access_token,
    ) -> None:
        self._store = store
        self._identity = identity
        self._fingerprints = fingerprints
        self._clock = clock
        self._refresh_lifetime = refresh_lifetime or timedelta(
            days=settings.REFRESH_TOKEN_EXPIRE_DAYS
        )
        self._issue_access_token = access_token_issuer

    async def _start_session(self, principal: Principal) -> AuthResult:
        """Open a new token family for a freshly authenticated principal."""
        fingerprint = self._fingerprints.current()
        refresh_token, token_hash = generate_refresh_token()

        await self._store.issue(
            user_id=principal.user_id,
            family_id=str(uuid.uuid4()),
            token_hash=token_hash,
            fingerprint=fingerprint.value,
            expires_at=self._clock.now() + self._refresh_lifetime,
        )

        return AuthResult(
            access_token=self._issue_access_token(principal),
            refresh_token=refresh_token,
            principal=principal,
        )

    async def sign_up(self, email: str, password: str, nickname: str) -> AuthResult:
        """
        Create a customer account and sign it in.

        Raises:
            AccountExistsError: E-mail already registered
            AccountCreationError: Password rejected by policy
        """
        logger.info("sign_up_attempt")
        principal = await self._identity.create_customer(email, password, nickname)
        return await self._start_session(principal)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with e-mail and password.

        Raises:
            InvalidCredentialError: Unknown e-mail or wrong password
        """
        principal = await self._identity.verify_credentials(email, password)
        if principal is None:
            raise InvalidCredentialError("Invalid email or password")

        logger.info("signed_in", user_id=principal.user_id, role=principal.role)
        return await self._start_session(principal)

    async def refresh(self, refresh_token: str) -> AuthResult:
        """
        Exchange a refresh token for a new access token and its replacement.

        A refresh token is single use. Clients must never retry a refresh
        with the same secret: a second presentation is treated as theft.

        Raises:
            InvalidCredentialError: Unknown, reused, revoked or transplanted token
            ExpiredCredentialError: Family reached its absolute expiry
        """
        current_fingerprint = self._fingerprints.current()
        token_hash = hash_refresh_token(refresh_token)

        result = await self._store.consume_token(token_hash)

        if not result.success:
            reason = result.failure_reason

            if reason in (
                ConsumeFailureReason.ALREADY_CONSUMED,
                ConsumeFailureReason.ALREADY_REVOKED,
            ) and result.family_id:
                logger.warning(
                    "refresh_token_reuse_detected",
                    family_id=result.family_id,
                    reason=reason.value,
                )
                await self._store.revoke_family(result.family_id)
                raise InvalidCredentialError()

            if reason == ConsumeFailureReason.EXPIRED:
                logger.warning("refresh_token_expired", family_id=result.family_id)
                raise ExpiredCredentialError()

            logger.warning("refresh_token_not_found", reason=reason.value)
            raise InvalidCredentialError()

        stored = result.token
        if stored is None:
            raise ValueError("Successful consume must carry the consumed token")

        if current_fingerprint.value != stored.fingerprint:
            logger.warning(
                "refresh_token_fingerprint_mismatch",
                family_id=stored.family_id,
                user_id=stored.user_id,
                expected=stored.fingerprint,
                actual=current_fingerprint.value,
            )
            await self._store.revoke_family(stored.family_id)
            raise InvalidCredentialError()

        principal = await self._identity.find_principal_by_id(stored.user_id)
        if principal is None:
            logger.warning("refresh_token_user_missing", user_id=stored.user_id)
            raise InvalidCredentialError()

        new_refresh_token, new_token_hash = generate_refresh_token()
        new_token = await self._store.issue(
            user_id=stored.user_id,
            family_id=stored.family_id,
            token_hash=new_token_hash,
            fingerprint=current_fingerprint.value,
            expires_at=stored.expires_at,  # never extended by rotation
        )

        logger.info(
            "refresh_token_rotated",
            token_id=new_token.id,
            user_id=stored.user_id,
            family_id=stored.family_id,
        )

        return AuthResult(
            access_token=self._issue_access_token(principal),
            refresh_token=new_refresh_token,
            principal=principal,
        )

    async def sign_out(self, refresh_token: str) -> None:
        """
        Turn in a refresh token.

        Always returns normally. A fingerprint mismatch is treated as a
        compromised token: the family is revoked and nothing is turned in.
        """
        current_fingerprint = self._fingerprints.current()
        token_hash = hash_refresh_token(refresh_token)

        stored = await self._store.get_by_token_hash(token_hash)

        if stored is not None and stored.fingerprint != current_fingerprint.value:
            logger.warning(
                "refresh_token_fingerprint_mismatch",
                operation="sign_out",
                family_id=stored.family_id,
                user_id=stored.user_id,
                expected=stored.fingerprint,
                actual=current_fingerprint.value,
            )
            await self._store.revoke_family(stored.family_id)
            return

        await self._store.turn_in(token_hash)

        if stored is None:
            logger.debug("sign_out_token_not_found")
        else:
            logger.info("signed_out", user_id=stored.user_id, family_id=stored.family_id)
