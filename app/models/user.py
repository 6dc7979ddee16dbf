"""
SQLModel-based User models with inheritance for security

This module defines the Users database model using SQLModel, which combines
SQLAlchemy and Pydantic functionality. The inheritance structure is:

UserBase (shared public fields)
    ├─> Users (database table, adds internal/sensitive fields)
    └─> CurrentUserResponse/AdminUserRow/... (API schemas, defined in app/schemas)

Users are created on first Discord login and kept fresh on every later login.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, Column, DateTime, Enum, Index
from sqlmodel import Field, SQLModel

from app.config import UserRole


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (columns are timezone-naive)."""
    return datetime.now(UTC).replace(tzinfo=None)


def enum_column(enum_cls: type[StrEnum], name: str) -> Enum:
    """Enum column type storing member values (e.g. "client"), not member names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        length=32,
    )


class UserBase(SQLModel):
    """
    Base model with shared public fields for Users.

    These fields are safe to expose via the API.
    """

    display_name: str = Field(max_length=100)
    avatar_url: str | None = Field(default=None, max_length=255)
    role: UserRole = Field(default=UserRole.REGULAR, sa_type=enum_column(UserRole, "user_role"))


class Users(UserBase, table=True):
    """
    Database table for users with internal and sensitive fields.

    Internal/sensitive fields (should NOT be exposed via public API):
    - email: Privacy-sensitive
    - discord_guilds: Cached Discord guild list from the last client login
    - deleted_at: Soft delete (ban) marker
    """

    __tablename__ = "users"

    __table_args__ = (
        Index("idx_users_discord_id", "discord_id", unique=True),
        Index("idx_users_deleted_at", "deleted_at"),
    )

    # Primary key (opaque random id)
    id: str = Field(primary_key=True, max_length=64)

    # Discord snowflake, unique and immutable once set
    discord_id: str = Field(max_length=32)

    # Contact info (privacy-sensitive)
    email: str | None = Field(default=None, max_length=255)
    email_is_verified: bool = Field(default=False)

    # Guilds where the user can manage the server, cached at login
    discord_guilds: list[dict[str, Any]] | None = Field(default=None, sa_column=Column(JSON))
    discord_guilds_updated_at: datetime | None = Field(default=None, sa_type=DateTime())

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
    deleted_at: datetime | None = Field(default=None, sa_type=DateTime())
