"""
User model for MongoDB using Beanie ODM.
"""

from datetime import datetime
from typing import Optional
from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field, field_validator
from shared.constants import UserRole


class User(Document):
    """User document model."""

    name: str = Field(..., max_length=100)
    email: Indexed(str, unique=True)  # type: ignore
    role: UserRole = Field(default=UserRole.USER)
    avatar_url: Optional[str] = None

    # Settings
    is_active: bool = Field(default=True)
    is_verified: bool = Field(default=False)

    # Learning
    active_learning_path_id: Optional[PydanticObjectId] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_login_at: Optional[datetime] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    class Settings:
        name = "users"
        indexes = [
            "role",
            "created_at",
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ada Lovelace",
                "email": "ada@example.com",
                "role": "user",
            }
        }
