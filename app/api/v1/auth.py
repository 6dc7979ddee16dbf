"""
Client authentication RPC endpoints.

This module provides endpoints for:
- Discord login (authorization URL, callback)
- Token validation
- Token refresh (with rotation)
- Logout from one device or all devices
- Listing active sessions
"""

from fastapi import APIRouter

from app.api.dependencies import RpcContext
from app.core.rpc import run_rpc
from app.schemas.auth import (
    HandleDiscordCallbackRequest,
    RefreshAccessTokenRequest,
    RevokeSessionRequest,
    UserIdRequest,
    ValidateAccessTokenRequest,
)
from app.schemas.rpc import RpcResult
from app.services import auth_client

router = APIRouter(prefix="/rpc/auth", tags=["Authentication"])


@router.post("/initiateDiscordOAuth")
async def initiate_discord_oauth(ctx: RpcContext) -> RpcResult:
    """Start the Discord login. The caller keeps state and code_verifier for the callback."""
    return await run_rpc(ctx, auth_client.initiate_discord_oauth)


@router.post("/handleDiscordCallback")
async def handle_discord_callback(body: HandleDiscordCallbackRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(
        ctx,
        lambda c: auth_client.handle_discord_callback(
            c, body.code, body.code_verifier, body.device_info()
        ),
    )


@router.post("/validateAccessToken")
async def validate_access_token(body: ValidateAccessTokenRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_client.validate_access_token(c, body.token))


@router.post("/refreshAccessToken")
async def refresh_access_token(body: RefreshAccessTokenRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(
        ctx,
        lambda c: auth_client.refresh_access_token(c, body.refresh_token, body.device_info()),
    )


@router.post("/revokeSession")
async def revoke_session(body: RevokeSessionRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_client.revoke_session(c, body.refresh_token))


@router.post("/revokeAllSessions")
async def revoke_all_sessions(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    """Logout everywhere. The frontend passes the authenticated user's own id."""
    return await run_rpc(ctx, lambda c: auth_client.revoke_all_sessions(c, body.user_id))


@router.post("/getUserSessions")
async def get_user_sessions(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: auth_client.get_user_sessions(c, body.user_id))
