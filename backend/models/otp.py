"""
One-time password model.
Codes expire through a MongoDB TTL index on ``created_at``.
"""

from datetime import datetime
from beanie import Document, Indexed
from pydantic import Field, field_validator
from pymongo import ASCENDING, IndexModel

from config.settings import settings


class Otp(Document):
    """OTP document model."""

    email: Indexed(str)  # type: ignore
    otp: str = Field(..., min_length=6, max_length=6)
    attempts: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    class Settings:
        name = "otps"
        indexes = [
            IndexModel(
                [("created_at", ASCENDING)],
                name="otp_ttl",
                expireAfterSeconds=settings.otp_ttl_seconds,
            ),
        ]
