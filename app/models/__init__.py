"""
SQLModel tables.

Importing this package registers every table with SQLModel.metadata.
"""

from app.models.refresh_token import RefreshTokens
from app.models.user import Users

__all__ = [
    "RefreshTokens",
    "Users",
]
