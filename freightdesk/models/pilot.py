"""
SQLModel-based Pilot profile model.

Pilots fulfil deliveries. Pilot accounts are provisioned by administrators,
never through public sign-up.
"""

from sqlalchemy import ForeignKeyConstraint, Index
from sqlmodel import Field, SQLModel

from freightdesk.models.user import new_id


class Pilots(SQLModel, table=True):
    """Database table for pilot profiles."""

    __tablename__ = "pilots"

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
            name="fk_pilots_user_id",
        ),
        Index("idx_pilots_user_id", "user_id", unique=True),
    )

    pilot_id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(max_length=36)
    short_name: str = Field(max_length=30)
    full_name: str = Field(max_length=100)
    bio: str = Field(default="", max_length=2000)
    avatar_url: str | None = Field(default=None, max_length=500)
