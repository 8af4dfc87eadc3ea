"""
Saved video model: a user's bookmark of an analyzed YouTube video.
Deletion is soft (``deleted_at``).
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from shared.constants import SavedVideoPathStatus
from .user_learning_path import UserLearningPath


class SavedVideo(Document):
    """Saved video document model."""

    user_id: PydanticObjectId
    video_id: str  # YouTube id

    # Snapshot of the analysis at save time
    title: str
    channel: Optional[str] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None
    analyzed_data: Dict[str, Any] = Field(default_factory=dict)
    inferred_skills: List[str] = Field(default_factory=list)
    inferred_careers: List[str] = Field(default_factory=list)
    code_learnn_score: int = Field(default=0, ge=0, le=100)
    category: Optional[str] = None
    subcategory: Optional[str] = None

    # Learning path link
    added_to_path_id: Optional[PydanticObjectId] = None
    path_status: SavedVideoPathStatus = Field(default=SavedVideoPathStatus.NOT_ADDED)
    is_completed: bool = Field(default=False)
    completed_at: Optional[datetime] = None

    saved_at: datetime = Field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = None

    @classmethod
    async def get_user_videos(
        cls,
        user_id: PydanticObjectId,
        limit: int = 20,
        skip: int = 0,
        in_path: Optional[bool] = None,
        include_deleted: bool = False,
    ) -> List["SavedVideo"]:
        query: Dict[str, Any] = {"user_id": user_id}
        if not include_deleted:
            query["deleted_at"] = None
        if in_path is True:
            query["added_to_path_id"] = {"$ne": None}
        elif in_path is False:
            query["added_to_path_id"] = None

        return await cls.find(query).sort([("saved_at", DESCENDING)]).skip(skip).limit(limit).to_list()

    @classmethod
    async def get_video_with_analysis(cls, user_id: PydanticObjectId, video_id: str) -> Optional["SavedVideo"]:
        return await cls.find_one({"user_id": user_id, "video_id": video_id, "deleted_at": None})

    @classmethod
    async def is_video_saved(cls, user_id: PydanticObjectId, video_id: str) -> bool:
        return await cls.get_video_with_analysis(user_id, video_id) is not None

    @classmethod
    async def soft_delete(cls, user_id: PydanticObjectId, video_id: str) -> Optional["SavedVideo"]:
        """Hide the video and detach it from any learning path."""
        video = await cls.get_video_with_analysis(user_id, video_id)
        if not video:
            return None
        if video.added_to_path_id:
            await UserLearningPath.remove_video_from_path(video.added_to_path_id, video.video_id)
        video.deleted_at = datetime.utcnow()
        video.added_to_path_id = None
        video.path_status = SavedVideoPathStatus.NOT_ADDED
        await video.save()
        return video

    @classmethod
    async def restore(cls, user_id: PydanticObjectId, video_id: str) -> Optional["SavedVideo"]:
        video = await cls.find_one({"user_id": user_id, "video_id": video_id, "deleted_at": {"$ne": None}})
        if not video:
            return None
        video.deleted_at = None
        await video.save()
        return video

    @classmethod
    async def count_for_user(cls, user_id: PydanticObjectId) -> int:
        return await cls.find({"user_id": user_id, "deleted_at": None}).count()

    @classmethod
    async def get_unassigned_videos(cls, user_id: PydanticObjectId, limit: int = 10) -> List["SavedVideo"]:
        return await cls.find(
            {"user_id": user_id, "added_to_path_id": None, "deleted_at": None}
        ).sort([("saved_at", DESCENDING)]).limit(limit).to_list()

    class Settings:
        name = "saved_videos"
        indexes = [
            IndexModel([("user_id", ASCENDING), ("video_id", ASCENDING)], unique=True),
            [("user_id", ASCENDING), ("saved_at", DESCENDING)],
            [("user_id", ASCENDING), ("added_to_path_id", ASCENDING)],
        ]
