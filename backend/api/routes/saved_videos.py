"""
Saved video endpoints: a user's bookmarks of analyzed YouTube videos.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from beanie import PydanticObjectId
from pydantic import BaseModel, Field
from pymongo.errors import DuplicateKeyError
from loguru import logger

from backend.models import SavedVideo, UserLearningPath, User
from backend.api.dependencies import get_current_user, internal_error
from backend.services import ServiceError
from shared.constants import SavedVideoPathStatus


router = APIRouter(prefix="/saved-videos", tags=["saved-videos"])


class SaveVideoRequest(BaseModel):
    video_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    channel: Optional[str] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None
    analyzed_data: Dict[str, Any] = Field(default_factory=dict)
    inferred_skills: List[str] = Field(default_factory=list)
    inferred_careers: List[str] = Field(default_factory=list)
    code_learnn_score: int = Field(default=0, ge=0, le=100)
    category: Optional[str] = None
    subcategory: Optional[str] = None


def video_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Saved video not found"
    )


async def attach_to_first_path(user: User, video: SavedVideo) -> Optional[UserLearningPath]:
    """The first saved video of a user starts an automatic learning path."""
    if await UserLearningPath.find_one({"user_id": user.id, "deleted_at": None}):
        return None

    path = await UserLearningPath.create_auto_path(user.id, video)
    video.added_to_path_id = path.id
    video.path_status = SavedVideoPathStatus.IN_PATH
    await video.save()

    user.active_learning_path_id = path.id
    await user.save()
    logger.info(f"Created automatic learning path {path.id} for user {user.id}")
    return path


@router.get("", summary="List saved videos")
async def list_saved_videos(
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    in_path: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
):
    try:
        videos = await SavedVideo.get_user_videos(current_user.id, limit=limit, skip=skip, in_path=in_path)
        total = await SavedVideo.count_for_user(current_user.id)
        return {"data": videos, "total": total}
    except Exception as e:
        raise internal_error("fetch saved videos", e)


@router.get("/unassigned", summary="Saved videos not yet in a learning path")
async def unassigned_videos(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
):
    try:
        return {"data": await SavedVideo.get_unassigned_videos(current_user.id, limit)}
    except Exception as e:
        raise internal_error("fetch unassigned videos", e)


@router.get("/check/{video_id}", summary="Whether a video is saved")
async def check_saved(video_id: str, current_user: User = Depends(get_current_user)):
    return {"video_id": video_id, "is_saved": await SavedVideo.is_video_saved(current_user.id, video_id)}


@router.get("/{video_id}", response_model=SavedVideo, summary="Saved video with its analysis")
async def get_saved_video(video_id: str, current_user: User = Depends(get_current_user)):
    video = await SavedVideo.get_video_with_analysis(current_user.id, video_id)
    if not video:
        raise video_not_found()
    return video


@router.post("", status_code=status.HTTP_201_CREATED, summary="Save a video")
async def save_video(request: SaveVideoRequest, current_user: User = Depends(get_current_user)):
    """
    Save an analyzed video.

    Saving a previously removed video restores it with a fresh snapshot.
    """
    try:
        if await SavedVideo.is_video_saved(current_user.id, request.video_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Video is already saved"
            )

        restored = await SavedVideo.restore(current_user.id, request.video_id)
        if restored:
            for field, value in request.model_dump().items():
                setattr(restored, field, value)
            restored.saved_at = datetime.utcnow()
            await restored.save()
            return {"data": restored, "restored": True, "learning_path": None}

        video = SavedVideo(user_id=current_user.id, **request.model_dump())
        await video.insert()
        path = await attach_to_first_path(current_user, video)
        return {"data": video, "restored": False, "learning_path": path}

    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Video is already saved"
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("save video", e)


@router.put("/{video_id}/add-to-path/{path_id}", response_model=SavedVideo, summary="Add a saved video to a learning path")
async def add_to_path(
    video_id: str,
    path_id: PydanticObjectId,
    current_user: User = Depends(get_current_user),
):
    video = await SavedVideo.get_video_with_analysis(current_user.id, video_id)
    if not video:
        raise video_not_found()

    path = await UserLearningPath.find_one({"_id": path_id, "user_id": current_user.id, "deleted_at": None})
    if not path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Learning path not found"
        )

    try:
        await UserLearningPath.add_video_to_path(path.id, video)
        video.added_to_path_id = path.id
        video.path_status = SavedVideoPathStatus.IN_PATH
        await video.save()
        return video
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("add video to path", e)


@router.post("/{video_id}/restore", response_model=SavedVideo, summary="Restore a removed video")
async def restore_video(video_id: str, current_user: User = Depends(get_current_user)):
    video = await SavedVideo.restore(current_user.id, video_id)
    if not video:
        raise video_not_found()
    return video


@router.delete("/{video_id}", summary="Remove a saved video")
async def delete_saved_video(video_id: str, current_user: User = Depends(get_current_user)):
    video = await SavedVideo.soft_delete(current_user.id, video_id)
    if not video:
        raise video_not_found()
    return {"success": True, "message": "Video removed"}
