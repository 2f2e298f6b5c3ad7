"""
SQLModel-based RefreshToken model for token rotation.

This module defines the refresh_tokens table backing the rotation and
reuse-detection protocol.

Security features:
- Stores hashed tokens (never plaintext)
- Tracks token family for reuse detection
- Binds each token to the client fingerprint it was issued to
- Absolute expiry fixed at the family's first issuance

State machine:
    active ──> consumed    (exchanged for its replacement)
           ──> revoked     (security intervention, whole family)
           ──> turned_in   (voluntary sign-out)

All three exits are terminal: once a row leaves ``active`` its status and
deactivated_at never change again.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKeyConstraint, Index
from sqlmodel import Field, SQLModel

from freightdesk.models.user import new_id


class TokenStatus(str, Enum):
    """Lifecycle states of a refresh token"""

    ACTIVE = "active"
    CONSUMED = "consumed"
    REVOKED = "revoked"
    TURNED_IN = "turned_in"


class RefreshTokens(SQLModel, table=True):
    """
    Database table for refresh tokens.

    One row per issued secret. Every token descended from one sign-in shares
    family_id and expires_at.
    """

    __tablename__ = "refresh_tokens"

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
            name="fk_refresh_tokens_user_id",
        ),
        Index("idx_refresh_tokens_user_id", "user_id"),
        Index("idx_refresh_tokens_token_hash", "token_hash", unique=True),
        Index("idx_refresh_tokens_family_id", "family_id"),
    )

    # Primary key
    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)

    # Owner
    user_id: str = Field(max_length=36)

    # All tokens generated from the same initial sign-in share a family_id
    family_id: str = Field(max_length=36)

    # SHA-256 hex of the secret (never store plaintext!)
    token_hash: str = Field(max_length=64)

    # Client binding captured at issuance
    fingerprint: str = Field(max_length=1000)

    status: str = Field(default=TokenStatus.ACTIVE.value, max_length=16)

    # Naive UTC timestamps
    expires_at: datetime = Field(sa_type=DateTime())
    created_at: datetime = Field(sa_type=DateTime())
    deactivated_at: datetime | None = Field(default=None, sa_type=DateTime())

    @property
    def is_active(self) -> bool:
        return self.status == TokenStatus.ACTIVE
