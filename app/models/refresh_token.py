"""
SQLModel-based RefreshToken model for JWT authentication.

One row per issued refresh token. The row id is embedded in the signed
refresh JWT and is the revocation handle: the JWT alone never authorizes a
refresh, the row must still be active.

Security features:
- Soft revocation (revoked_at) so rotation history is kept for auditing
- Intent column separating client and admin sessions
- User agent, IP and device name tracking for the "active devices" view
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKeyConstraint, Index
from sqlmodel import Field, SQLModel

from app.config import TokenIntent
from app.models.user import enum_column, utcnow


class RefreshTokens(SQLModel, table=True):
    """
    Database table for refresh tokens.

    A record is active iff revoked_at IS NULL AND expires_at > now.
    Rows are never hard-deleted.
    """

    __tablename__ = "refresh_tokens"

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
            name="fk_refresh_tokens_user_id",
        ),
        Index("idx_refresh_tokens_user_id", "user_id"),
        Index("idx_refresh_tokens_expires_at", "expires_at"),
    )

    # Primary key, also the id embedded in the refresh JWT
    id: str = Field(primary_key=True, max_length=64)

    # User reference
    user_id: str = Field(foreign_key="users.id", max_length=64)

    # Which trust boundary issued the token
    intent: TokenIntent = Field(sa_type=enum_column(TokenIntent, "token_intent"))

    # Expiration
    expires_at: datetime = Field(sa_type=DateTime())

    # Security tracking
    user_agent: str | None = Field(default=None, max_length=512)
    ip_address: str | None = Field(default=None, max_length=45)  # Supports IPv6
    device_name: str | None = Field(default=None, max_length=100)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime())
    last_used_at: datetime | None = Field(default=None, sa_type=DateTime())

    # Revocation (set means revoked)
    revoked_at: datetime | None = Field(default=None, sa_type=DateTime())
