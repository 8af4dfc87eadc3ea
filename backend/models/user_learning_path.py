"""
User-built learning path assembled from saved videos.
"""

from datetime import datetime
from typing import Optional, List
from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING

from backend.utils import round_half_up


class PathItem(BaseModel):
    video_id: str
    saved_video_id: Optional[PydanticObjectId] = None
    title: str
    order: int = 0
    is_completed: bool = False
    completed_at: Optional[datetime] = None


class UserLearningPath(Document):
    """User learning path document model."""

    user_id: PydanticObjectId
    title: str = Field(..., max_length=200)
    description: str = ""
    is_auto_created: bool = False
    items: List[PathItem] = Field(default_factory=list)
    progress: int = Field(default=0, ge=0, le=100)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    deleted_at: Optional[datetime] = None

    def add_item(self, video_id: str, title: str, saved_video_id: Optional[PydanticObjectId] = None) -> bool:
        """Append a video unless it is already in the path."""
        if any(item.video_id == video_id for item in self.items):
            return False
        self.items.append(PathItem(
            video_id=video_id,
            saved_video_id=saved_video_id,
            title=title,
            order=len(self.items),
        ))
        self.progress = items_progress(self.items)
        return True

    def complete_item(self, video_id: str) -> bool:
        for item in self.items:
            if item.video_id == video_id and not item.is_completed:
                item.is_completed = True
                item.completed_at = datetime.utcnow()
                self.progress = items_progress(self.items)
                return True
        return False

    def remove_item(self, video_id: str) -> bool:
        remaining = without_item(self.items, video_id)
        if len(remaining) == len(self.items):
            return False
        self.items = remaining
        self.progress = items_progress(self.items)
        return True

    @classmethod
    async def create_auto_path(cls, user_id: PydanticObjectId, saved_video) -> "UserLearningPath":
        """Path created automatically around a user's first saved video."""
        path = cls(
            user_id=user_id,
            title="My Learning Path",
            description="Created automatically from your saved videos",
            is_auto_created=True,
        )
        path.add_item(saved_video.video_id, saved_video.title, saved_video.id)
        await path.insert()
        return path

    @classmethod
    async def add_video_to_path(cls, path_id: PydanticObjectId, saved_video) -> Optional["UserLearningPath"]:
        path = await cls.get(path_id)
        if not path:
            return None
        if path.add_item(saved_video.video_id, saved_video.title, saved_video.id):
            path.updated_at = datetime.utcnow()
            await path.save()
        return path

    @classmethod
    async def remove_video_from_path(cls, path_id: PydanticObjectId, video_id: str) -> Optional["UserLearningPath"]:
        path = await cls.get(path_id)
        if not path:
            return None
        if path.remove_item(video_id):
            path.updated_at = datetime.utcnow()
            await path.save()
        return path

    class Settings:
        name = "user_learning_paths"
        indexes = [
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
        ]


def without_item(items: List[PathItem], video_id: str) -> List[PathItem]:
    """Items minus ``video_id``, renumbered from zero."""
    remaining = [item for item in items if item.video_id != video_id]
    for order, item in enumerate(remaining):
        item.order = order
    return remaining


def items_progress(items: List[PathItem]) -> int:
    if not items:
        return 0
    completed = sum(1 for item in items if item.is_completed)
    return round_half_up(completed / len(items) * 100)
