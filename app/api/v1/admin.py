"""
Admin RPC endpoints.

Authentication for the admin panel (admin-intent tokens, role gated) and
session and user moderation over any user.
"""

from fastapi import APIRouter

from app.api.dependencies import RpcContext
from app.core.rpc import run_rpc
from app.schemas.auth import (
    HandleDiscordCallbackRequest,
    RefreshAccessTokenRequest,
    RevokeAnyUserSessionRequest,
    RevokeSessionRequest,
    UserIdRequest,
    ValidateAccessTokenRequest,
)
from app.schemas.rpc import RpcMeta, RpcResult
from app.schemas.user import GetUsersRequest, UpdateUserRoleRequest
from app.services import auth_admin
from app.services import user as user_service

router = APIRouter(prefix="/rpc/admin", tags=["Admin"])


# ===== Auth =====


@router.post("/auth/initiateDiscordOAuth")
async def initiate_discord_oauth(ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, auth_admin.initiate_discord_oauth)


@router.post("/auth/handleDiscordCallback")
async def handle_discord_callback(body: HandleDiscordCallbackRequest, ctx: RpcContext) -> RpcResult:
    """Complete the Discord login. Fails with FORBIDDEN for non-admin users."""
    return await run_rpc(
        ctx,
        lambda c: auth_admin.handle_discord_callback(
            c, body.code, body.code_verifier, body.device_info()
        ),
    )


@router.post("/auth/validateAccessToken")
async def validate_access_token(body: ValidateAccessTokenRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_admin.validate_access_token(c, body.token))


@router.post("/auth/refreshAccessToken")
async def refresh_access_token(body: RefreshAccessTokenRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(
        ctx,
        lambda c: auth_admin.refresh_access_token(c, body.refresh_token, body.device_info()),
    )


@router.post("/auth/revokeSession")
async def revoke_session(body: RevokeSessionRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_admin.revoke_session(c, body.refresh_token))


@router.post("/auth/getAnyUserSessions")
async def get_any_user_sessions(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_admin.get_any_user_sessions(c, body.user_id))


@router.post("/auth/revokeAnyUserSession")
async def revoke_any_user_session(body: RevokeAnyUserSessionRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_admin.revoke_any_user_session(c, body.token_id))


@router.post("/auth/revokeAllUserSessions")
async def revoke_all_user_sessions(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_admin.revoke_all_user_sessions(c, body.user_id))


# ===== Users =====


@router.post("/users/getUser")
async def get_user(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: user_service.get_user(c, body.user_id))


@router.post("/users/getUsers")
async def get_users(body: GetUsersRequest, ctx: RpcContext) -> RpcResult:
    """Paginated user list, newest first. meta.count carries the total."""
    result = await run_rpc(
        ctx,
        lambda c: user_service.get_users(
            c,
            search=body.search,
            role=body.role,
            include_deleted=body.include_deleted,
            page=body.page,
            limit=body.limit,
        ),
    )
    if result.ok:
        result.meta = RpcMeta(count=result.data.total)
    return result


@router.post("/users/updateUserRole")
async def update_user_role(body: UpdateUserRoleRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: user_service.update_user_role(c, body.user_id, body.role))


@router.post("/users/banUser")
async def ban_user(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: user_service.ban_user(c, body.user_id))


@router.post("/users/unbanUser")
async def unban_user(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: user_service.unban_user(c, body.user_id))
