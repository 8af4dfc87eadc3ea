"""
Curated learning path model (modules of lessons).
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional, List
from beanie import Document, Indexed, PydanticObjectId, before_event, Insert, Replace, Save
from pydantic import BaseModel, Field, computed_field
from pymongo import DESCENDING

from shared.constants import LearningPathDomain, LearningPathLevel, LessonType
from backend.utils import slugify


class Lesson(BaseModel):
    title: str
    type: LessonType = Field(default=LessonType.VIDEO)
    duration: Optional[str] = None
    resource_url: Optional[str] = None
    is_completed: bool = Field(default=False)


class PathModule(BaseModel):
    """A module groups lessons inside a learning path."""
    title: str
    description: Optional[str] = None
    duration: str = "1h"  # "2h 15m"
    order: int = 0
    is_locked: bool = False
    lessons: List[Lesson] = Field(default_factory=list)


class Instructor(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    avatar: Optional[str] = None


class LearningPath(Document):
    """Learning path document model."""

    title: str = Field(..., max_length=100)
    slug: Indexed(str, unique=True) = ""  # type: ignore
    description: str = Field(..., max_length=500)
    long_description: Optional[str] = Field(default=None, max_length=2000)

    domain: LearningPathDomain = Field(default=LearningPathDomain.OTHER)
    level: LearningPathLevel = Field(default=LearningPathLevel.BEGINNER)
    tags: List[str] = Field(default_factory=list)
    duration: str = "10 hours"

    modules: List[PathModule] = Field(default_factory=list)
    outcomes: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)

    # Access
    is_pro: bool = Field(default=False)
    is_published: bool = Field(default=False)

    # Engagement
    rating: float = Field(default=0, ge=0, le=5)
    rating_count: int = Field(default=0)
    enrolled_count: int = Field(default=0)

    thumbnail: Optional[str] = None
    instructor: Optional[Instructor] = None
    created_by: Optional[PydanticObjectId] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @computed_field
    @property
    def module_count(self) -> int:
        return len(self.modules)

    @before_event(Insert, Replace, Save)
    def refresh_slug(self):
        self.slug = slugify(self.title)
        self.updated_at = datetime.utcnow()

    @classmethod
    async def get_by_domain(cls, domain: str) -> List["LearningPath"]:
        return await cls.find({"domain": domain, "is_published": True}).sort(
            [("enrolled_count", DESCENDING)]
        ).to_list()

    @classmethod
    async def search(
        cls,
        query: str,
        domain: Optional[str] = None,
        level: Optional[str] = None,
        is_pro: Optional[bool] = None,
        limit: int = 20,
    ) -> List["LearningPath"]:
        """Published paths whose title, description or tags match ``query``."""
        return await cls.find(
            published_query(domain=domain, level=level, is_pro=is_pro, search=query)
        ).sort([("enrolled_count", DESCENDING)]).limit(limit).to_list()

    class Settings:
        name = "learning_paths"
        indexes = [
            "domain",
            "level",
            "is_published",
            [("enrolled_count", DESCENDING)],
        ]


def published_query(
    domain: Optional[str] = None,
    level: Optional[str] = None,
    is_pro: Optional[bool] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    """Mongo filter for published paths."""
    query: Dict[str, Any] = {"is_published": True}
    if domain:
        query["domain"] = domain
    if level:
        query["level"] = level
    if is_pro is not None:
        query["is_pro"] = is_pro
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}, {"tags": pattern}]
    return query
