"""
Pydantic schemas for user endpoints (current user and admin moderation)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import UserRole

DISPLAY_NAME_MIN_LENGTH = 3
DISPLAY_NAME_MAX_LENGTH = 50

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100


class CurrentUserResponse(BaseModel):
    """The authenticated user's own record"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    discord_id: str
    role: UserRole
    display_name: str
    avatar_url: str | None = None
    email: str | None = None
    email_is_verified: bool
    created_at: datetime
    updated_at: datetime


class AdminUserRow(BaseModel):
    """Minimal user row for the admin users table"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    discord_id: str
    role: UserRole
    display_name: str
    avatar_url: str | None = None
    email: str | None = None
    created_at: datetime
    deleted_at: datetime | None = None


class AdminUserDetail(AdminUserRow):
    """Full user record for the admin detail view"""

    email_is_verified: bool
    updated_at: datetime
    discord_guilds_updated_at: datetime | None = None


class AdminUserListResponse(BaseModel):
    """Schema for paginated user list"""

    users: list[AdminUserRow]
    total: int
    total_pages: int
    page: int


class AdminMutationResult(BaseModel):
    success: bool
    id: str


# ===== RPC request bodies =====


class UpdateDisplayNameRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    display_name: str = Field(
        ..., min_length=DISPLAY_NAME_MIN_LENGTH, max_length=DISPLAY_NAME_MAX_LENGTH
    )

    @field_validator("display_name", mode="before")
    @classmethod
    def strip_display_name(cls, v: object) -> object:
        """Trim surrounding whitespace before the length check."""
        return v.strip() if isinstance(v, str) else v


class GetUsersRequest(BaseModel):
    search: str | None = Field(default=None, max_length=100)
    role: UserRole | None = None
    include_deleted: bool = False
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class UpdateUserRoleRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: UserRole
