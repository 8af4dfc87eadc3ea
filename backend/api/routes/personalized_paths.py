"""
AI-personalized learning path endpoints.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from beanie import PydanticObjectId
from pydantic import BaseModel, Field
from loguru import logger

from backend.models import PersonalizedPath, FreeResource, UserContext, User
from backend.api.dependencies import get_current_user, ensure_owner, internal_error
from backend.services import personalized_path_service, ServiceError
from shared.constants import PathStatus


router = APIRouter(prefix="/personalized-paths", tags=["personalized-paths"])


class GeneratePathRequest(BaseModel):
    goal: str = Field(..., min_length=3, max_length=500)
    user_context: UserContext = Field(default_factory=UserContext)


class CompleteResourceRequest(BaseModel):
    milestone_index: int = Field(..., ge=0)
    resource_id: PydanticObjectId


class StatusUpdateRequest(BaseModel):
    status: PathStatus


async def get_owned_path(path_id: PydanticObjectId, user: User) -> PersonalizedPath:
    path = await PersonalizedPath.get(path_id)
    if not path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Learning path not found"
        )
    ensure_owner(path.user_id, user, "access")
    return path


@router.post(
    "/generate",
    response_model=PersonalizedPath,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a personalized learning path"
)
async def generate_path(request: GeneratePathRequest, current_user: User = Depends(get_current_user)):
    """Ask the LLM to arrange Vault resources into milestones for the user's goal."""
    try:
        return await personalized_path_service.generate_path(
            current_user.id, request.goal.strip(), request.user_context
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("generate learning path", e)


@router.get("/my-paths", summary="Current user's personalized paths")
async def my_paths(
    status_filter: Optional[PathStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
):
    try:
        paths = await PersonalizedPath.get_user_paths(
            current_user.id, status_filter.value if status_filter else None
        )
        return {"data": paths}
    except Exception as e:
        raise internal_error("fetch learning paths", e)


@router.get("/{path_id}", response_model=PersonalizedPath, summary="Get a personalized path")
async def get_path(path_id: PydanticObjectId, current_user: User = Depends(get_current_user)):
    path = await get_owned_path(path_id, current_user)
    path.last_accessed_at = datetime.utcnow()
    await path.save()
    return path


@router.get("/{path_id}/next", summary="Next resource to study")
async def next_resource(path_id: PydanticObjectId, current_user: User = Depends(get_current_user)):
    path = await get_owned_path(path_id, current_user)
    upcoming = path.get_next_resource()
    if upcoming is None:
        return {"completed": True, "next": None, "resource": None}

    resource = await FreeResource.get(upcoming.resource_id)
    return {"completed": False, "next": upcoming, "resource": resource}


@router.post(
    "/{path_id}/complete-resource",
    response_model=PersonalizedPath,
    summary="Mark a resource in a milestone as completed"
)
async def complete_resource(
    path_id: PydanticObjectId,
    request: CompleteResourceRequest,
    current_user: User = Depends(get_current_user),
):
    path = await get_owned_path(path_id, current_user)
    if request.milestone_index >= len(path.milestones):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Milestone index out of range"
        )

    try:
        path = await path.complete_resource(request.milestone_index, request.resource_id)
        if path.status == PathStatus.COMPLETED:
            logger.success(f"User {current_user.id} completed path {path.id}")
        return path
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("update progress", e)


@router.put("/{path_id}/status", response_model=PersonalizedPath, summary="Change path status")
async def update_status(
    path_id: PydanticObjectId,
    request: StatusUpdateRequest,
    current_user: User = Depends(get_current_user),
):
    path = await get_owned_path(path_id, current_user)
    path.status = request.status
    if request.status == PathStatus.COMPLETED and path.completed_at is None:
        path.completed_at = datetime.utcnow()
    path.updated_at = datetime.utcnow()
    await path.save()
    return path


@router.delete("/{path_id}", summary="Delete a personalized path")
async def delete_path(path_id: PydanticObjectId, current_user: User = Depends(get_current_user)):
    path = await get_owned_path(path_id, current_user)
    await path.delete()
    return {"success": True, "message": "Learning path deleted successfully"}
