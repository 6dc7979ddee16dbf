"""
FastAPI Application - Offerwall API
Auth and user RPC backend for the offerwall client and admin frontends
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown events"""
    # Startup
    configure_logging()
    logger.info(
        "api_starting",
        environment=settings.ENVIRONMENT,
        database=settings.DATABASE_URL.split("@")[1] if "@" in settings.DATABASE_URL else "configured",
    )
    yield
    # Shutdown
    logger.info("api_shutting_down")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Authentication and session backend for the offerwall",
    version=settings.VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)

# Configure CORS (both frontends are always allowed)
cors_origins = list(dict.fromkeys([*settings.CORS_ORIGINS, settings.WEB_URL, settings.WEB_ADMIN_URL]))
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint"""
    return {"status": "healthy"}


# Import and include routers
from app.api.v1 import router as api_v1_router  # noqa: E402

app.include_router(api_v1_router, prefix=settings.API_V1_STR)
