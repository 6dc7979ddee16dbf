"""
User service: the current user's own record and admin moderation.

Bans are soft deletes (deleted_at). SUPER_ADMIN accounts cannot be
re-roled or banned through this service.
"""

import math

from sqlalchemy import func, or_, select, update

from app.config import UserRole
from app.core.context import RequestContext
from app.core.exceptions import BadRequestException, NotFoundException
from app.models.user import Users, utcnow
from app.schemas.user import (
    DEFAULT_PAGE_SIZE,
    AdminMutationResult,
    AdminUserDetail,
    AdminUserListResponse,
    AdminUserRow,
    CurrentUserResponse,
)


async def _get_user(ctx: RequestContext, user_id: str) -> Users | None:
    result = await ctx.db.execute(
        select(Users).where(Users.id == user_id).limit(1)  # type: ignore[arg-type]
    )
    return result.scalar_one_or_none()


# ===== Current user =====


async def get_current_user(ctx: RequestContext, user_id: str) -> CurrentUserResponse:
    """
    Get the authenticated user's record, used to populate UI state after login.

    Raises:
        NotFoundException: No such user
    """
    user = await _get_user(ctx, user_id)
    if user is None:
        raise NotFoundException()
    return CurrentUserResponse.model_validate(user)


async def update_current_user_display_name(
    ctx: RequestContext, user_id: str, display_name: str
) -> str:
    """
    Update the authenticated user's display name.

    Note that the next Discord login overwrites it with the Discord username.

    Returns:
        The new display name
    """
    user = await _get_user(ctx, user_id)
    if user is None:
        raise NotFoundException()

    user.display_name = display_name
    user.updated_at = utcnow()
    await ctx.db.commit()

    return display_name


# ===== Admin moderation =====


async def get_user(ctx: RequestContext, user_id: str) -> AdminUserDetail | None:
    """Get a user for the admin detail view, including banned users."""
    user = await _get_user(ctx, user_id)
    if user is None:
        return None
    return AdminUserDetail.model_validate(user)


async def get_users(
    ctx: RequestContext,
    search: str | None = None,
    role: UserRole | None = None,
    include_deleted: bool = False,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> AdminUserListResponse:
    """
    List users for the admin table, newest first.

    Args:
        ctx: Request context
        search: Substring matched against id, display name, Discord id and email
        role: Only users with this role
        include_deleted: Include banned users
        page: 1-based page number
        limit: Page size

    Returns:
        One page of users plus totals
    """
    conditions = []
    if not include_deleted:
        conditions.append(Users.deleted_at.is_(None))  # type: ignore[union-attr]
    if role is not None:
        conditions.append(Users.role == role)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Users.id.like(pattern),  # type: ignore[attr-defined]
                Users.display_name.like(pattern),  # type: ignore[attr-defined]
                Users.discord_id.like(pattern),  # type: ignore[attr-defined]
                Users.email.like(pattern),  # type: ignore[union-attr]
            )
        )

    count_query = select(func.count()).select_from(Users).where(*conditions)
    total = (await ctx.db.execute(count_query)).scalar_one()

    query = (
        select(Users)
        .where(*conditions)
        .order_by(Users.created_at.desc())  # type: ignore[attr-defined]
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await ctx.db.execute(query)

    return AdminUserListResponse(
        users=[AdminUserRow.model_validate(user) for user in result.scalars().all()],
        total=total,
        total_pages=math.ceil(total / limit),
        page=page,
    )


async def update_user_role(
    ctx: RequestContext, user_id: str, role: UserRole
) -> AdminMutationResult:
    """
    Change a user's role. Takes effect on the user's next access token.

    Raises:
        NotFoundException: No such user
        BadRequestException: Target is a SUPER_ADMIN
    """
    user = await _get_user(ctx, user_id)
    if user is None:
        raise NotFoundException()

    if user.role == UserRole.SUPER_ADMIN:
        raise BadRequestException(message_key="global_exception_forbidden")

    previous_role = user.role
    user.role = role
    user.updated_at = utcnow()
    await ctx.db.commit()

    ctx.log.info(
        "user_role_updated",
        user_id=user_id,
        previous_role=str(previous_role),
        role=str(role),
        tags=["user", "admin"],
    )
    return AdminMutationResult(success=True, id=user_id)


async def ban_user(ctx: RequestContext, user_id: str) -> AdminMutationResult:
    """
    Ban (soft delete) a user.

    A banned user cannot log in or rotate refresh tokens. Issued access
    tokens stay valid until they expire; pair with revoke_all_user_sessions
    to also drop the session records.

    Raises:
        NotFoundException: No such user
        BadRequestException: Target is a SUPER_ADMIN, or already banned
    """
    user = await _get_user(ctx, user_id)
    if user is None:
        raise NotFoundException()

    if user.role == UserRole.SUPER_ADMIN:
        raise BadRequestException(message_key="global_exception_forbidden")

    if user.deleted_at is not None:
        raise BadRequestException(message_key="global_exception_conflict")

    user.deleted_at = utcnow()
    await ctx.db.commit()

    ctx.log.info("user_banned", user_id=user_id, tags=["user", "admin"])
    return AdminMutationResult(success=True, id=user_id)


async def unban_user(ctx: RequestContext, user_id: str) -> AdminMutationResult:
    """
    Lift a ban.

    Raises:
        NotFoundException: No such user, or the user is not banned
    """
    result = await ctx.db.execute(
        update(Users)
        .where(
            Users.id == user_id,  # type: ignore[arg-type]
            Users.deleted_at.is_not(None),  # type: ignore[union-attr]
        )
        .values(deleted_at=None)
    )
    await ctx.db.commit()

    if result.rowcount == 0:  # type: ignore[attr-defined]
        raise NotFoundException()

    ctx.log.info("user_unbanned", user_id=user_id, tags=["user", "admin"])
    return AdminMutationResult(success=True, id=user_id)
