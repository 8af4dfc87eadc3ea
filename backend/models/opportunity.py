"""
Opportunity model (hackathons, internships, fellowships, ...).
"""

from datetime import datetime, timezone
from typing import Optional, List
from beanie import Document, Indexed, PydanticObjectId, before_event, Insert, Replace, Save
from pydantic import Field, field_validator
from pymongo import ASCENDING, DESCENDING

from shared.constants import OpportunityType, OpportunityStatus
from backend.utils import unique_slug, make_excerpt


class Opportunity(Document):
    """Opportunity document model."""

    title: str = Field(..., max_length=200)
    slug: Indexed(str, unique=True) = ""  # type: ignore
    description: str
    excerpt: Optional[str] = Field(default=None, max_length=500)
    type: OpportunityType = Field(default=OpportunityType.OTHER)
    organization: Optional[str] = None
    link: str

    # Dates
    deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Details
    stipend: str = ""
    location: str = "Remote"
    eligibility: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    cover_image: str = ""

    author_id: PydanticObjectId
    status: OpportunityStatus = Field(default=OpportunityStatus.ACTIVE)
    featured: bool = Field(default=False)
    views: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("deadline", "start_date", "end_date")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)

    @before_event(Insert)
    def assign_slug(self):
        if not self.slug:
            self.slug = unique_slug(self.title)

    @before_event(Insert, Replace, Save)
    def refresh_derived_fields(self):
        if not self.excerpt:
            self.excerpt = make_excerpt(self.description)
        self.status = derive_status(self.status, self.deadline, self.start_date)
        self.updated_at = datetime.utcnow()

    @classmethod
    async def get_featured(cls, limit: int = 5) -> List["Opportunity"]:
        return await cls.find({
            "featured": True,
            "status": {"$in": [OpportunityStatus.ACTIVE.value, OpportunityStatus.UPCOMING.value]},
        }).sort([("deadline", ASCENDING)]).limit(limit).to_list()

    @classmethod
    async def get_active(cls) -> List["Opportunity"]:
        """Active opportunities whose deadline has not passed, featured first."""
        return await cls.find({
            "status": OpportunityStatus.ACTIVE.value,
            "$or": [{"deadline": {"$gte": datetime.utcnow()}}, {"deadline": None}],
        }).sort([("featured", DESCENDING), ("deadline", ASCENDING)]).to_list()

    class Settings:
        name = "opportunities"
        indexes = [
            "author_id",
            "tags",
            [("status", ASCENDING), ("deadline", ASCENDING)],
            [("type", ASCENDING), ("status", ASCENDING)],
            [("featured", ASCENDING), ("status", ASCENDING)],
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Smart India Hackathon 2025",
                "type": "hackathon",
                "organization": "AICTE",
                "link": "https://sih.gov.in",
                "deadline": "2025-09-30T23:59:00",
                "tags": ["hackathon", "india"],
            }
        }


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Dates are stored as naive UTC like every other timestamp."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def derive_status(
    status: OpportunityStatus,
    deadline: Optional[datetime],
    start_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> OpportunityStatus:
    """
    Status implied by the dates.

    Past deadline closes the opportunity and a future start date makes it
    upcoming. An upcoming one becomes active only once its start date has
    passed. Anything else keeps the stored status.
    """
    if deadline is None:
        return status

    now = now or datetime.utcnow()
    if deadline < now:
        return OpportunityStatus.CLOSED
    if start_date is not None and start_date > now:
        return OpportunityStatus.UPCOMING
    if status == OpportunityStatus.UPCOMING and start_date is not None:
        return OpportunityStatus.ACTIVE
    return status
