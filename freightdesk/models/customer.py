"""
SQLModel-based Customer profile model.

A customer is the booking side of the platform. The profile row is created
together with its user at sign-up and carries the public nickname.
"""

from sqlalchemy import ForeignKeyConstraint, Index
from sqlmodel import Field, SQLModel

from freightdesk.models.user import new_id


class Customers(SQLModel, table=True):
    """Database table for customer profiles."""

    __tablename__ = "customers"

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
            name="fk_customers_user_id",
        ),
        Index("idx_customers_user_id", "user_id", unique=True),
    )

    customer_id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(max_length=36)
    nickname: str = Field(max_length=50)
