"""
Current user RPC endpoints
"""

from fastapi import APIRouter

from app.api.dependencies import RpcContext
from app.core.rpc import run_rpc
from app.schemas.auth import UserIdRequest
from app.schemas.rpc import RpcResult
from app.schemas.user import UpdateDisplayNameRequest
from app.services import user as user_service

router = APIRouter(prefix="/rpc/users", tags=["Users"])


@router.post("/getCurrentUser")
async def get_current_user(body: UserIdRequest, ctx: RpcContext) -> RpcResult:
    return await run_rpc(ctx, lambda c: user_service.get_current_user(c, body.user_id))


@router.post("/updateCurrentUserDisplayName")
async def update_current_user_display_name(
    body: UpdateDisplayNameRequest, ctx: RpcContext
) -> RpcResult:
    return await run_rpc(
        ctx,
        lambda c: user_service.update_current_user_display_name(
            c, body.user_id, body.display_name
        ),
    )
