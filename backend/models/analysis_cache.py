"""
Persistent cache of YouTube video/playlist analyses.
Only programming tutorials are stored; entries double as a browsable catalogue.
"""

import re
from datetime import datetime
from typing import Optional, List, Dict, Any
from beanie import Document, Indexed, UpdateResponse
from pydantic import Field, field_validator
from pymongo import ASCENDING, DESCENDING

from shared.constants import AnalysisType


class YouTubeAnalysisCache(Document):
    """Analysis cache document model."""

    youtube_id: Indexed(str, unique=True)  # type: ignore
    type: AnalysisType = Field(default=AnalysisType.VIDEO)
    title: str
    channel_name: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[str] = None

    # Auto categorization
    category: str = "other"
    subcategory: str = ""
    tags: List[str] = Field(default_factory=list)

    analysis_data: Dict[str, Any] = Field(default_factory=dict)

    usage_count: int = Field(default=1)
    last_accessed_at: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("category", "subcategory")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.lower()

    @classmethod
    async def find_by_youtube_id(cls, youtube_id: str) -> Optional["YouTubeAnalysisCache"]:
        """Fetch an entry and count the hit."""
        return await cls.find_one({"youtube_id": youtube_id}).update(
            {"$inc": {"usage_count": 1}, "$set": {"last_accessed_at": datetime.utcnow()}},
            response_type=UpdateResponse.NEW_DOCUMENT,
        )

    @classmethod
    async def search(
        cls,
        query: str,
        page: int = 1,
        limit: int = 20,
        category: Optional[str] = None,
        type: Optional[str] = None,
    ) -> List["YouTubeAnalysisCache"]:
        pattern = {"$regex": re.escape(query), "$options": "i"}
        filters: Dict[str, Any] = {"$or": [{"title": pattern}, {"tags": pattern}, {"channel_name": pattern}]}
        if category:
            filters["category"] = category.lower()
        if type:
            filters["type"] = type
        return await cls.find(filters).sort([("usage_count", DESCENDING)]).skip(
            (page - 1) * limit
        ).limit(limit).to_list()

    @classmethod
    async def browse_by_category(
        cls,
        category: str,
        subcategory: Optional[str] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> List["YouTubeAnalysisCache"]:
        filters: Dict[str, Any] = {"category": category.lower()}
        if subcategory:
            filters["subcategory"] = subcategory.lower()
        if type:
            filters["type"] = type
        return await cls.find(filters).sort([("usage_count", DESCENDING)]).skip(
            (page - 1) * limit
        ).limit(limit).to_list()

    @classmethod
    async def get_category_tree(cls) -> List[Dict[str, Any]]:
        """Categories with their subcategories, counts and total usage."""
        pipeline = [
            {
                "$group": {
                    "_id": {"category": "$category", "subcategory": "$subcategory"},
                    "count": {"$sum": 1},
                    "total_usage": {"$sum": "$usage_count"},
                }
            },
            {
                "$group": {
                    "_id": "$_id.category",
                    "subcategories": {
                        "$push": {
                            "name": "$_id.subcategory",
                            "count": "$count",
                            "total_usage": "$total_usage",
                        }
                    },
                    "total_count": {"$sum": "$count"},
                    "total_usage": {"$sum": "$total_usage"},
                }
            },
            {"$sort": {"total_usage": -1}},
        ]
        return await cls.aggregate(pipeline).to_list()

    @classmethod
    async def get_popular(cls, limit: int = 10) -> List["YouTubeAnalysisCache"]:
        return await cls.find().sort([("usage_count", DESCENDING)]).limit(limit).to_list()

    class Settings:
        name = "youtube_analysis_cache"
        indexes = [
            [("category", ASCENDING), ("subcategory", ASCENDING)],
            [("usage_count", DESCENDING)],
        ]
