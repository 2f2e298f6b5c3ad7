"""
SQLModel-based User models with inheritance for security

This module defines the Users database model using SQLModel, which combines
SQLAlchemy and Pydantic functionality. The inheritance structure is:

UserBase (shared public fields)
    └─> Users (database table, adds credential fields)

Roles are stored on the user row; every user holds exactly one role
(see freightdesk.config.UserRole). Customer and pilot profiles live in their
own tables and link back through user_id.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, func
from sqlmodel import Field, SQLModel


def new_id() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class UserBase(SQLModel):
    """
    Base model with shared public fields for Users.

    These fields are safe to expose via the API.
    """

    email: str = Field(max_length=254)
    role: str = Field(max_length=20)


class Users(UserBase, table=True):
    """
    Database table for users.

    Internal/sensitive fields (should NOT be exposed via public API):
    - password: bcrypt hash (highly sensitive)
    """

    __tablename__ = "users"

    __table_args__ = (Index("idx_users_email", "email", unique=True),)

    # Primary key
    user_id: str = Field(default_factory=new_id, primary_key=True, max_length=36)

    # Authentication (highly sensitive - never expose)
    password: str = Field(max_length=255)

    created_at: datetime | None = Field(
        default=None, sa_type=DateTime(), sa_column_kwargs={"server_default": func.now()}
    )
