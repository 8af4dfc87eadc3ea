"""
User-built learning path endpoints.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from beanie import PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import DESCENDING

from backend.models import UserLearningPath, SavedVideo, User
from backend.api.dependencies import get_current_user, internal_error
from backend.services import ServiceError
from shared.constants import SavedVideoPathStatus


router = APIRouter(prefix="/user-learning-paths", tags=["user-learning-paths"])


class CreatePathRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    video_ids: List[str] = Field(default_factory=list, description="Saved video ids to start with")


async def get_owned_path(path_id: PydanticObjectId, user: User) -> UserLearningPath:
    path = await UserLearningPath.find_one({"_id": path_id, "user_id": user.id, "deleted_at": None})
    if not path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Learning path not found"
        )
    return path


@router.get("", summary="Current user's learning paths")
async def list_paths(current_user: User = Depends(get_current_user)):
    try:
        paths = await UserLearningPath.find(
            {"user_id": current_user.id, "deleted_at": None}
        ).sort([("created_at", DESCENDING)]).to_list()
        return {"data": paths}
    except Exception as e:
        raise internal_error("fetch learning paths", e)


@router.post(
    "",
    response_model=UserLearningPath,
    status_code=status.HTTP_201_CREATED,
    summary="Create a learning path from saved videos"
)
async def create_path(request: CreatePathRequest, current_user: User = Depends(get_current_user)):
    try:
        path = UserLearningPath(user_id=current_user.id, title=request.title, description=request.description)
        videos = []
        for video_id in request.video_ids:
            video = await SavedVideo.get_video_with_analysis(current_user.id, video_id)
            if video and path.add_item(video.video_id, video.title, video.id):
                videos.append(video)
        await path.insert()

        for video in videos:
            video.added_to_path_id = path.id
            video.path_status = SavedVideoPathStatus.IN_PATH
            await video.save()
        return path
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("create learning path", e)


@router.get("/{path_id}", response_model=UserLearningPath, summary="Get a learning path")
async def get_path(path_id: PydanticObjectId, current_user: User = Depends(get_current_user)):
    return await get_owned_path(path_id, current_user)


@router.post(
    "/{path_id}/items/{video_id}/complete",
    response_model=UserLearningPath,
    summary="Mark a video in the path as watched"
)
async def complete_item(
    path_id: PydanticObjectId,
    video_id: str,
    current_user: User = Depends(get_current_user),
):
    path = await get_owned_path(path_id, current_user)
    if not any(item.video_id == video_id for item in path.items):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video is not part of this learning path"
        )

    if path.complete_item(video_id):
        path.updated_at = datetime.utcnow()
        await path.save()

        saved: Optional[SavedVideo] = await SavedVideo.get_video_with_analysis(current_user.id, video_id)
        if saved and not saved.is_completed:
            saved.is_completed = True
            saved.completed_at = datetime.utcnow()
            saved.path_status = SavedVideoPathStatus.COMPLETED
            await saved.save()
    return path


@router.delete("/{path_id}", summary="Delete a learning path")
async def delete_path(path_id: PydanticObjectId, current_user: User = Depends(get_current_user)):
    """Soft delete; the path's videos go back to the unassigned list."""
    path = await get_owned_path(path_id, current_user)
    path.deleted_at = datetime.utcnow()
    await path.save()

    await SavedVideo.find({"user_id": current_user.id, "added_to_path_id": path.id}).update(
        {"$set": {"added_to_path_id": None, "path_status": SavedVideoPathStatus.NOT_ADDED.value}}
    )
    if current_user.active_learning_path_id == path.id:
        current_user.active_learning_path_id = None
        await current_user.save()
    return {"success": True, "message": "Learning path deleted successfully"}
