"""
Refresh token persistence.

Manages the refresh_tokens lifecycle: create, look up if active, soft revoke
(single and bulk), last-used bookkeeping and the active session listing.

Revocation is a conditional UPDATE guarded by "revoked_at IS NULL", evaluated
atomically by the database. Only the first of several concurrent revokes of
the same row reports success, which is what makes rotation single-use.
"""

from datetime import datetime

from sqlalchemy import ColumnElement, select, update

from app.config import TokenIntent
from app.core.context import RequestContext
from app.core.jwt import generate_secure_token
from app.models.refresh_token import RefreshTokens
from app.models.user import utcnow
from app.schemas.auth import DeviceInfo, SessionResponse


def _is_active(now: datetime) -> tuple[ColumnElement[bool], ColumnElement[bool]]:
    """SQL predicate for an active record."""
    return (
        RefreshTokens.revoked_at.is_(None),  # type: ignore[union-attr]
        RefreshTokens.expires_at > now,  # type: ignore[arg-type]
    )


async def create_refresh_token(
    ctx: RequestContext,
    user_id: str,
    expires_at: datetime,
    intent: TokenIntent,
    device_info: DeviceInfo | None = None,
) -> str:
    """
    Create a refresh token record.

    Args:
        ctx: Request context
        user_id: Owning user id
        expires_at: Expiry (naive UTC)
        intent: Trust boundary issuing the token
        device_info: Optional device metadata

    Returns:
        The new record id, to embed in the signed refresh token
    """
    token_id = generate_secure_token(32)

    ctx.db.add(
        RefreshTokens(
            id=token_id,
            user_id=user_id,
            intent=intent,
            expires_at=expires_at,
            user_agent=device_info.user_agent if device_info else None,
            ip_address=device_info.ip_address if device_info else None,
            device_name=device_info.device_name if device_info else None,
        )
    )
    await ctx.db.commit()

    return token_id


async def find_refresh_token(ctx: RequestContext, token_id: str) -> RefreshTokens | None:
    """
    Find an active refresh token record by id.

    Returns:
        The record, or None if it does not exist, is revoked or has expired
    """
    result = await ctx.db.execute(
        select(RefreshTokens)
        .where(RefreshTokens.id == token_id, *_is_active(utcnow()))  # type: ignore[arg-type]
        .limit(1)
    )
    return result.scalar_one_or_none()


async def revoke_refresh_token(ctx: RequestContext, token_id: str) -> bool:
    """
    Revoke a refresh token record (soft delete).

    Idempotent: revoking an already revoked record changes nothing.

    Returns:
        True if this call revoked the record, False if it was missing or already revoked
    """
    result = await ctx.db.execute(
        update(RefreshTokens)
        .where(
            RefreshTokens.id == token_id,  # type: ignore[arg-type]
            RefreshTokens.revoked_at.is_(None),  # type: ignore[union-attr]
        )
        .values(revoked_at=utcnow())
    )
    await ctx.db.commit()

    return result.rowcount > 0  # type: ignore[attr-defined]


async def revoke_all_user_tokens(ctx: RequestContext, user_id: str) -> int:
    """
    Revoke every active refresh token of a user (logout from all devices).

    Returns:
        Number of records revoked
    """
    result = await ctx.db.execute(
        update(RefreshTokens)
        .where(RefreshTokens.user_id == user_id, *_is_active(utcnow()))  # type: ignore[arg-type]
        .values(revoked_at=utcnow())
    )
    await ctx.db.commit()

    return result.rowcount  # type: ignore[attr-defined, no-any-return]


async def update_last_used(ctx: RequestContext, token_id: str) -> None:
    """Record that a refresh token was just presented. Bookkeeping only."""
    await ctx.db.execute(
        update(RefreshTokens)
        .where(RefreshTokens.id == token_id)  # type: ignore[arg-type]
        .values(last_used_at=utcnow())
    )
    await ctx.db.commit()


async def get_user_sessions(ctx: RequestContext, user_id: str) -> list[SessionResponse]:
    """
    List a user's active sessions, oldest first.

    Only record metadata is returned, never token material.
    """
    result = await ctx.db.execute(
        select(RefreshTokens)
        .where(RefreshTokens.user_id == user_id, *_is_active(utcnow()))  # type: ignore[arg-type]
        .order_by(RefreshTokens.created_at)  # type: ignore[arg-type]
    )
    return [SessionResponse.model_validate(token) for token in result.scalars().all()]
