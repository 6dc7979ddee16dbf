"""
RPC boundary: runs a service call and converts its outcome to an RpcResult.

Error handling:
- HttpException: converted to RpcFailure with its error code and a translated message
- InternalException: logged with full context, replaced by a generic SERVER_ERROR
- Anything else: logged as unexpected, replaced by a generic SERVER_ERROR

Raw internal error detail never reaches the caller.

Example:
    @router.post("/validateAccessToken")
    async def validate_access_token(body: ValidateAccessTokenRequest, ctx: RpcContext):
        return await run_rpc(ctx, lambda c: auth_client.validate_access_token(c, body.token))
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from app.core.context import RequestContext
from app.core.exceptions import HttpException, InternalException
from app.schemas.rpc import RpcError, RpcFailure, RpcMeta, RpcResult, RpcSuccess

T = TypeVar("T")


def to_rpc_failure(exception: BaseException, ctx: RequestContext) -> RpcFailure:
    """
    Convert an exception to an RpcFailure with a translated message.

    Args:
        exception: Exception raised by the service call
        ctx: Request context (logger, locale, translator)

    Returns:
        RpcFailure envelope safe to send to the client
    """
    if isinstance(exception, HttpException):
        return RpcFailure(
            error=RpcError(
                code=exception.error_code,
                message=ctx.message(exception.message_key),
            )
        )

    log = ctx.log.bind(context="RPC")

    if isinstance(exception, InternalException):
        metadata: dict[str, Any] = dict(exception.metadata or {})
        if exception.context is not None:
            metadata["source"] = exception.context.source
            metadata["action"] = exception.context.action
        log.error(
            exception.message,
            cause=repr(exception.cause) if exception.cause is not None else None,
            exception_name=type(exception).__name__,
            exception_tags=exception.tags,
            metadata=metadata,
            tags=["rpc", "service"],
        )
    else:
        log.error("Unexpected exception", exc_info=exception, tags=["rpc"])

    return RpcFailure(
        error=RpcError(
            code="SERVER_ERROR",
            message=ctx.message("global_exception_internalServerError"),
        )
    )


async def run_rpc(
    ctx: RequestContext,
    fn: Callable[[RequestContext], Awaitable[T]],
    meta: RpcMeta | None = None,
) -> RpcResult:
    """
    Run a service call and wrap the outcome.

    On failure the request's pending database changes are rolled back;
    anything the service already committed stays committed.

    Args:
        ctx: Request context
        fn: Service call taking the context
        meta: Optional pagination metadata for the success envelope

    Returns:
        RpcSuccess with the call's result, or RpcFailure
    """
    try:
        data = await fn(ctx)
    except Exception as exception:
        await ctx.db.rollback()
        return to_rpc_failure(exception, ctx)

    return RpcSuccess[Any](data=data, meta=meta)
