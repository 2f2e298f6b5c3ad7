"""
Security utilities for authentication.

This module provides:
- Password hashing and verification using bcrypt
- JWT access token generation and verification
- Opaque refresh token generation and hashing
"""

import base64
import hashlib
import re
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from freightdesk.config import settings

ACCESS_TOKEN_TYPE = "access"


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """
    Validate password meets security requirements.

    Requirements:
    - At least 8 characters
    - Contains at least one uppercase letter
    - Contains at least one lowercase letter
    - Contains at least one digit
    - Contains at least one special character

    Args:
        password: The password to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one digit"

    if not re.search(r'[!@#$%^&*(),.?":{}|<>_\-+=\[\]\\\/~`]', password):
        return False, "Password must contain at least one special character"

    return True, None


def _prepare_password_for_bcrypt(password: str) -> str:
    """
    Prepare password for bcrypt by handling long passwords.

    Bcrypt has a 72 byte limit. For passwords longer than 72 bytes,
    we SHA256 hash them first and encode as base64.
    """
    password_bytes = password.encode("utf-8")

    if len(password_bytes) <= 72:
        return password

    # SHA256 produces 32 bytes, base64 encoding produces 44 chars (well under 72)
    hashed = hashlib.sha256(password_bytes).digest()
    return base64.b64encode(hashed).decode("ascii")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The bcrypt hashed password

    Returns:
        True if password matches, False otherwise
    """
    prepared_password = _prepare_password_for_bcrypt(plain_password)
    return bcrypt.checkpw(prepared_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        The bcrypt hashed password
    """
    prepared_password = _prepare_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(prepared_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def create_access_token(
    user_id: str,
    role: str,
    email: str | None = None,
    customer_id: str | None = None,
    pilot_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Role and linked profile ids are passed in by the caller on every issuance,
    so a refreshed token always reflects the current account state.

    Args:
        user_id: The user ID to encode as "sub"
        role: The user's single role
        email: Optional e-mail claim
        customer_id: Linked customer profile, if any
        pilot_id: Linked pilot profile, if any
        expires_delta: Optional custom expiration time (defaults to settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    issued_at = datetime.now(UTC)

    payload: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "jti": str(uuid.uuid4()),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "type": ACCESS_TOKEN_TYPE,  # Custom claim to distinguish token types
    }
    if email:
        payload["email"] = email
    if customer_id:
        payload["customer_id"] = customer_id
    if pilot_id:
        payload["pilot_id"] = pilot_id

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> dict[str, Any] | None:
    """
    Verify and decode a JWT access token.

    Args:
        token: The JWT token to verify

    Returns:
        Decoded claims if token is valid, None otherwise
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"verify_exp": True, "verify_signature": True, "require": ["exp", "sub"]},
        )
    except jwt.PyJWTError:
        # Expired, bad signature, wrong audience/issuer, malformed
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None

    return payload


def hash_refresh_token(token: str) -> str:
    """
    Derive the storage/lookup form of a refresh token.

    Args:
        token: The opaque refresh token presented by a client

    Returns:
        64-character lowercase hex SHA-256 digest
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_refresh_token(nbytes: int | None = None) -> tuple[str, str]:
    """
    Create a cryptographically secure refresh token and its hash.

    The token is handed to the client once; only the hash is ever stored.

    Args:
        nbytes: Random bytes of entropy (defaults to settings.REFRESH_TOKEN_BYTES, minimum 32)

    Returns:
        Tuple of (URL-safe token string, token hash)
    """
    if nbytes is None:
        nbytes = settings.REFRESH_TOKEN_BYTES
    if nbytes < 32:
        raise ValueError("Refresh tokens need at least 32 bytes of entropy")

    # 32 random bytes encode to 43 URL-safe base64 characters
    token = secrets.token_urlsafe(nbytes)
    return token, hash_refresh_token(token)
