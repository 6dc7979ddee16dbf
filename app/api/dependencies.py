"""
Shared FastAPI dependencies for the RPC endpoints.

RpcContext builds a RequestContext around the request's database session,
reading the trace id from X-Request-Id and the locale from Accept-Language.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import RequestContext, create_request_context
from app.core.database import get_db
from app.core.logging import clear_request_context, set_request_context


def parse_accept_language(accept_language: str | None) -> str | None:
    """
    Pick the preferred language tag from an Accept-Language header.

    Example:
        parse_accept_language("es-MX,es;q=0.9,en;q=0.8") -> "es-MX"
    """
    if not accept_language:
        return None
    first = accept_language.split(",")[0].split(";")[0].strip()
    if not first or first == "*":
        return None
    return first


async def get_rpc_context(
    db: Annotated[AsyncSession, Depends(get_db)],
    x_request_id: Annotated[str | None, Header()] = None,
    accept_language: Annotated[str | None, Header()] = None,
) -> AsyncGenerator[RequestContext, None]:
    set_request_context(x_request_id)
    try:
        yield create_request_context(
            db,
            request_id=x_request_id,
            locale=parse_accept_language(accept_language),
        )
    finally:
        clear_request_context()


RpcContext = Annotated[RequestContext, Depends(get_rpc_context)]
