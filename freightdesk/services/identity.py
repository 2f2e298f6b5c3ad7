"""
Identity service - account creation, credential checks and principal lookup.

The principal (role plus linked customer/pilot profile) is loaded fresh on
every call, so tokens issued on refresh reflect the account as it is now
rather than as it was at sign-in.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freightdesk.config import UserRole
from freightdesk.core.clock import Clock, system_clock, utcnow
from freightdesk.core.exceptions import AccountCreationError, AccountExistsError
from freightdesk.core.logging import get_logger
from freightdesk.core.security import get_password_hash, validate_password_strength, verify_password
from freightdesk.models.customer import Customers
from freightdesk.models.pilot import Pilots
from freightdesk.models.user import Users

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Principal:
    """An authenticated user with its current role and linked profiles."""

    user_id: str
    email: str
    role: str
    customer_id: str | None = None
    pilot_id: str | None = None
    nickname: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityService:
    """Users, roles and profiles."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def _load_principal(self, session: AsyncSession, user: Users) -> Principal:
        if user.role not in UserRole.ALL:
            raise ValueError(f"User {user.user_id} has unknown role {user.role!r}")

        customer = (
            await session.execute(
                select(Customers).where(Customers.user_id == user.user_id)  # type: ignore[arg-type]
            )
        ).scalar_one_or_none()
        pilot = (
            await session.execute(
                select(Pilots).where(Pilots.user_id == user.user_id)  # type: ignore[arg-type]
            )
        ).scalar_one_or_none()

        return Principal(
            user_id=user.user_id,
            email=user.email,
            role=user.role,
            customer_id=customer.customer_id if customer else None,
            pilot_id=pilot.pilot_id if pilot else None,
            nickname=customer.nickname if customer else None,
        )

    async def verify_credentials(self, email: str, password: str) -> Principal | None:
        """
        Check an e-mail/password pair.

        Unknown e-mail and wrong password are indistinguishable to the caller.

        Returns:
            Principal on success, None otherwise
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Users).where(Users.email == normalize_email(email))  # type: ignore[arg-type]
            )
            user = result.scalar_one_or_none()

            if user is None:
                logger.warning("sign_in_unknown_email")
                return None

            if not verify_password(password, user.password):
                logger.warning("sign_in_bad_password", user_id=user.user_id)
                return None

            return await self._load_principal(session, user)

    async def find_principal_by_id(self, user_id: str) -> Principal | None:
        """Load a user's current principal, or None if the user no longer exists."""
        async with self._session_factory() as session:
            user = await session.get(Users, user_id)
            if user is None:
                return None
            return await self._load_principal(session, user)

    async def _create_user(
        self,
        email: str,
        password: str,
        role: str,
        profile: Customers | Pilots | None = None,
    ) -> Principal:
        email = normalize_email(email)

        is_valid, error_message = validate_password_strength(password)
        if not is_valid:
            raise AccountCreationError(error_message)

        async with self._session_factory() as session:
            existing = await session.execute(
                select(Users.user_id).where(Users.email == email)  # type: ignore[arg-type,call-overload]
            )
            if existing.first() is not None:
                logger.warning("account_create_email_exists", role=role)
                raise AccountExistsError()

            user = Users(
                email=email,
                role=role,
                password=get_password_hash(password),
                created_at=utcnow(self._clock),
            )
            try:
                session.add(user)
                # User row must exist before the profile's foreign key
                await session.flush()
                if profile is not None:
                    profile.user_id = user.user_id
                    session.add(profile)
                await session.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent sign-up for the same e-mail
                await session.rollback()
                logger.warning("account_create_conflict", role=role, error=str(e.orig))
                raise AccountExistsError() from e

            principal = await self._load_principal(session, user)

        logger.info("account_created", user_id=principal.user_id, role=role)
        return principal

    async def create_customer(self, email: str, password: str, nickname: str) -> Principal:
        """Create a customer account (public sign-up)."""
        return await self._create_user(
            email, password, UserRole.CUSTOMER, Customers(user_id="", nickname=nickname)
        )

    async def create_pilot(
        self,
        email: str,
        password: str,
        short_name: str,
        full_name: str,
        bio: str,
        avatar_url: str | None = None,
    ) -> Principal:
        """Create a pilot account (administrator provisioning)."""
        pilot = Pilots(
            user_id="",
            short_name=short_name,
            full_name=full_name,
            bio=bio,
            avatar_url=avatar_url,
        )
        return await self._create_user(email, password, UserRole.PILOT, pilot)

    async def create_admin(self, email: str, password: str) -> Principal:
        """Create an administrator account."""
        return await self._create_user(email, password, UserRole.ADMINISTRATOR)
