"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from enum import StrEnum

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Offerwall API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = Field(default=False)
    API_V1_STR: str = "/api/v1"

    # Security
    JWT_SECRET: str

    # Discord OAuth
    DISCORD_CLIENT_ID: str = ""
    DISCORD_CLIENT_SECRET: str = ""
    DISCORD_OAUTH_REDIRECT_URL: str = "http://localhost:5173/auth/callback"
    DISCORD_API_URL: str = "https://discord.com/api/v10"
    DISCORD_AUTHORIZE_URL: str = "https://discord.com/oauth2/authorize"
    DISCORD_HTTP_TIMEOUT: float = 10.0

    # CORS
    # Allow str because it can be a comma-separated string in .env
    CORS_ORIGINS: str | list[str] = Field(
        default=["http://localhost:5173", "http://localhost:5174"]
    )

    # Frontends
    WEB_URL: str = "http://localhost:5173"
    WEB_ADMIN_URL: str = "http://localhost:5174"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # i18n
    DEFAULT_LOCALE: str = "en"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


# Create global settings instance

load_dotenv()
settings = Settings()  # type: ignore[call-arg]


# Token lifetimes (seconds). Shared with the frontends for cookie max-age.
ACCESS_TOKEN_EXPIRE_SECONDS = 15 * 60
REFRESH_TOKEN_EXPIRE_SECONDS = 7 * 24 * 60 * 60

JWT_ALGORITHM = "HS256"

# Discord permission bit for MANAGE_GUILD
MANAGE_GUILD_PERMISSION = 0x20

DISCORD_OAUTH_SCOPES = ("identify", "email", "guilds")


class UserRole(StrEnum):
    """User roles, lowest to highest privilege"""

    REGULAR = "REGULAR"
    MODERATOR = "MODERATOR"
    SUPPORT = "SUPPORT"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


# Roles allowed to authenticate through the admin panel
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


class TokenIntent(StrEnum):
    """Trust boundary that issued a refresh token"""

    CLIENT = "client"
    ADMIN = "admin"
