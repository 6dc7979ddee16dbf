"""
Request context passed to all service functions.

Carries the per-request dependencies: database session, settings, locale,
structured logger and translator. Services never reach for process-wide
globals, so tests can build a context around a throwaway session and a
capturing logger.

Example:
    async def get_user(ctx: RequestContext, user_id: str) -> Users | None:
        ctx.log.info("fetching_user", user_id=user_id)
        result = await ctx.db.execute(select(Users).where(Users.id == user_id))
        return result.scalar_one_or_none()
"""

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings
from app.core.i18n import DEFAULT_LOCALE, MessageKey, get_message
from app.core.logging import get_logger

Translator = Callable[[MessageKey, str], str]


@dataclass
class RequestContext:
    """Per-request dependencies for service code."""

    db: AsyncSession
    settings: Settings
    log: structlog.stdlib.BoundLogger
    locale: str = DEFAULT_LOCALE
    id: str | None = None
    translate: Translator = field(default=get_message)

    def message(self, key: MessageKey) -> str:
        """Translate a message key into the request's locale."""
        return self.translate(key, self.locale)


def create_request_context(
    db: AsyncSession,
    request_id: str | None = None,
    locale: str | None = None,
    *,
    app_settings: Settings | None = None,
    translate: Translator = get_message,
) -> RequestContext:
    """
    Create a RequestContext for one RPC call.

    Args:
        db: Database session scoped to the request
        request_id: Trace id correlating logs across services
        locale: Client locale, defaults to settings.DEFAULT_LOCALE
        app_settings: Settings override (tests)
        translate: Translator override (tests)

    Returns:
        RequestContext with a logger bound to the trace id
    """
    resolved = app_settings or settings
    return RequestContext(
        db=db,
        settings=resolved,
        log=get_logger("app.rpc", request_id=request_id, service="api"),
        locale=locale or resolved.DEFAULT_LOCALE,
        id=request_id,
        translate=translate,
    )
