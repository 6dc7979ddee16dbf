"""
RPC result envelope.

Every RPC operation replies with either
    {"ok": true, "data": ..., "meta": ...}
or
    {"ok": false, "error": {"code": ..., "message": ..., "context": null, "details": null}}
"""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class RpcMeta(BaseModel):
    count: int | None = None
    next_cursor: str | None = None
    previous_cursor: str | None = None


class RpcSuccess(BaseModel, Generic[T]):
    ok: Literal[True] = True
    data: T
    meta: RpcMeta | None = None


class RpcError(BaseModel):
    code: str
    message: str
    context: dict[str, Any] | None = None
    details: dict[str, Any] | None = None


class RpcFailure(BaseModel):
    ok: Literal[False] = False
    error: RpcError


RpcResult = RpcSuccess[Any] | RpcFailure
