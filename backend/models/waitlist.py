"""
Waitlist model for Pro plan sign-ups.
"""

from datetime import datetime
from beanie import Document, Indexed
from pydantic import Field, field_validator
from shared.constants import WaitlistSource


class Waitlist(Document):
    """Waitlist entry."""

    email: Indexed(str, unique=True)  # type: ignore
    source: WaitlistSource = Field(default=WaitlistSource.HOMEPAGE)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    class Settings:
        name = "waitlist"
        indexes = [
            "source",
            "created_at",
        ]
