"""
Course model: groups imported lectures (free resources) into a course.
"""

import re
from datetime import datetime
from typing import Optional, List, Tuple
from beanie import Document, Indexed, PydanticObjectId, before_event, Insert, Replace, Save
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, DESCENDING

from shared.constants import ResourceCategory, CourseLevel
from backend.utils import slugify, format_total_duration, round_half_up
from .free_resource import FreeResource


class CourseOverview(BaseModel):
    """AI-generated course overview."""
    summary: str = ""
    learning_objectives: List[str] = Field(default_factory=list)
    key_topics: List[str] = Field(default_factory=list)
    recommended_path: str = ""
    generated_at: Optional[datetime] = None


class Course(Document):
    """Course document model."""

    name: str = Field(..., max_length=200)
    slug: Indexed(str, unique=True) = ""  # type: ignore
    provider: str  # "Harvard edX", "freeCodeCamp"
    description: str = Field(default="", max_length=2000)
    thumbnail: str = ""

    # Classification
    category: ResourceCategory
    level: CourseLevel = Field(default=CourseLevel.BEGINNER)
    target_audience: str = ""
    prerequisites: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    # Statistics
    lecture_count: int = Field(default=0)
    total_duration: str = ""  # "8h 30m"
    average_score: int = Field(default=0, ge=0, le=100)

    ai_overview: Optional[CourseOverview] = None

    # Metadata
    is_active: bool = Field(default=True)
    is_featured: bool = Field(default=False)
    external_url: Optional[str] = None
    added_by: Optional[PydanticObjectId] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip().lower() for tag in v if tag.strip()]

    @before_event(Insert, Replace, Save)
    def refresh_slug(self):
        self.slug = course_slug(self.provider, self.name)
        self.updated_at = datetime.utcnow()

    async def get_lectures(self, active_only: bool = True) -> List[FreeResource]:
        """Lectures of this course in lecture order."""
        query = {"course_id": self.id}
        if active_only:
            query["is_active"] = True
        return await FreeResource.find(query).sort([("lecture_order", ASCENDING)]).to_list()

    async def update_stats(self) -> "Course":
        """Recompute lecture count, average score and total duration."""
        lectures = await self.get_lectures()
        if lectures:
            self.lecture_count, self.average_score, self.total_duration = summarize_lectures(
                [(lecture.code_learnn_score, lecture.duration) for lecture in lectures]
            )
        await self.save()
        return self

    @classmethod
    async def find_by_category(cls, category: str, page: int = 1, limit: int = 10) -> List["Course"]:
        return await cls.find({"is_active": True, "category": category}).sort(
            [("is_featured", DESCENDING), ("average_score", DESCENDING)]
        ).skip((page - 1) * limit).limit(limit).to_list()

    @classmethod
    async def get_featured(cls, limit: int = 5) -> List["Course"]:
        return await cls.find({"is_active": True, "is_featured": True}).sort(
            [("average_score", DESCENDING)]
        ).limit(limit).to_list()

    @classmethod
    async def search(cls, query: str, page: int = 1, limit: int = 10) -> List["Course"]:
        pattern = {"$regex": re.escape(query), "$options": "i"}
        return await cls.find({
            "is_active": True,
            "$or": [
                {"name": pattern},
                {"provider": pattern},
                {"description": pattern},
                {"tags": pattern},
            ],
        }).sort([("average_score", DESCENDING)]).skip((page - 1) * limit).limit(limit).to_list()

    class Settings:
        name = "courses"
        indexes = [
            "category",
            "is_active",
            [("is_featured", DESCENDING), ("average_score", DESCENDING)],
        ]


def course_slug(provider: str, name: str) -> str:
    """``Harvard edX`` + ``CS50 C`` -> ``harvard-edx-cs50-c``."""
    return slugify(f"{provider}-{name}")


def summarize_lectures(lectures: List[Tuple[Optional[int], Optional[str]]]) -> Tuple[int, int, str]:
    """(score, duration) pairs -> (count, rounded average score, total duration)."""
    count = len(lectures)
    if count == 0:
        return 0, 0, ""
    total_score = sum(score or 0 for score, _ in lectures)
    return count, round_half_up(total_score / count), format_total_duration(d for _, d in lectures)
