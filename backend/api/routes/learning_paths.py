"""
Curated learning path endpoints.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from beanie import PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING
from loguru import logger

from backend.models import LearningPath, PathModule, Instructor, User
from backend.models.learning_path import published_query
from backend.api.dependencies import get_current_user, ensure_owner, internal_error
from backend.services import ServiceError
from backend.utils import page_skip, pagination_meta, slugify
from shared.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    LearningPathDomain,
    LearningPathLevel,
)


router = APIRouter(prefix="/learning-paths", tags=["learning-paths"])


SORT_FIELDS = {
    "popular": [("enrolled_count", DESCENDING)],
    "rating": [("rating", DESCENDING)],
    "newest": [("created_at", DESCENDING)],
    "title": [("title", ASCENDING)],
}


class LearningPathCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    long_description: Optional[str] = Field(None, max_length=2000)
    domain: LearningPathDomain = LearningPathDomain.OTHER
    level: LearningPathLevel = LearningPathLevel.BEGINNER
    tags: List[str] = Field(default_factory=list)
    duration: str = "10 hours"
    modules: List[PathModule] = Field(default_factory=list)
    outcomes: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    is_pro: bool = False
    is_published: bool = False
    thumbnail: Optional[str] = None
    instructor: Optional[Instructor] = None


class LearningPathUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    long_description: Optional[str] = Field(None, max_length=2000)
    domain: Optional[LearningPathDomain] = None
    level: Optional[LearningPathLevel] = None
    tags: Optional[List[str]] = None
    duration: Optional[str] = None
    modules: Optional[List[PathModule]] = None
    outcomes: Optional[List[str]] = None
    prerequisites: Optional[List[str]] = None
    is_pro: Optional[bool] = None
    is_published: Optional[bool] = None
    thumbnail: Optional[str] = None
    instructor: Optional[Instructor] = None


async def get_path_or_404(path_id: PydanticObjectId) -> LearningPath:
    path = await LearningPath.get(path_id)
    if not path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Learning path not found"
        )
    return path


@router.get("", summary="List published learning paths")
async def list_learning_paths(
    domain: Optional[LearningPathDomain] = None,
    level: Optional[LearningPathLevel] = None,
    is_pro: Optional[bool] = None,
    search: Optional[str] = None,
    sort: str = Query("popular", pattern="^(popular|rating|newest|title)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        query = published_query(
            domain=domain.value if domain else None,
            level=level.value if level else None,
            is_pro=is_pro,
            search=search,
        )
        paths = await LearningPath.find(query).sort(SORT_FIELDS[sort]).skip(
            page_skip(page, limit)
        ).limit(limit).to_list()
        total = await LearningPath.find(query).count()
        return {"data": paths, "pagination": pagination_meta(page, limit, total, len(paths))}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("fetch learning paths", e)


@router.get("/domains", summary="Domains with published path counts")
async def list_domains():
    try:
        counts = await LearningPath.aggregate([
            {"$match": {"is_published": True}},
            {"$group": {"_id": "$domain", "count": {"$sum": 1}}},
        ]).to_list()
        by_domain = {row["_id"]: row["count"] for row in counts}
        return {
            "data": [
                {"id": domain.value, "count": by_domain.get(domain.value, 0)}
                for domain in LearningPathDomain
            ]
        }
    except Exception as e:
        raise internal_error("fetch domains", e)


@router.get("/search", summary="Search published learning paths")
async def search_learning_paths(
    q: str = Query(..., min_length=1),
    domain: Optional[LearningPathDomain] = None,
    level: Optional[LearningPathLevel] = None,
    is_pro: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        paths = await LearningPath.search(
            q,
            domain=domain.value if domain else None,
            level=level.value if level else None,
            is_pro=is_pro,
            limit=limit,
        )
        return {"data": paths}
    except Exception as e:
        raise internal_error("search learning paths", e)


@router.get("/domain/{domain}", summary="Published paths of one domain")
async def learning_paths_by_domain(domain: LearningPathDomain):
    try:
        return {"data": await LearningPath.get_by_domain(domain.value)}
    except Exception as e:
        raise internal_error("fetch learning paths", e)


@router.get("/{id_or_slug}", response_model=LearningPath, summary="Get learning path by ID or slug")
async def get_learning_path(id_or_slug: str):
    if PydanticObjectId.is_valid(id_or_slug):
        path = await LearningPath.get(PydanticObjectId(id_or_slug))
    else:
        path = await LearningPath.find_one({"slug": id_or_slug})

    if not path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Learning path not found"
        )
    return path


@router.post(
    "",
    response_model=LearningPath,
    status_code=status.HTTP_201_CREATED,
    summary="Create a learning path"
)
async def create_learning_path(
    request: LearningPathCreateRequest,
    current_user: User = Depends(get_current_user),
):
    try:
        if await LearningPath.find_one({"slug": slugify(request.title)}):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A learning path with this title already exists"
            )
        path = LearningPath(**request.model_dump(), created_by=current_user.id)
        await path.insert()
        logger.info(f"Learning path {path.id} created by {current_user.id}")
        return path
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("create learning path", e)


@router.put("/{path_id}", response_model=LearningPath, summary="Update a learning path")
async def update_learning_path(
    path_id: PydanticObjectId,
    request: LearningPathUpdateRequest,
    current_user: User = Depends(get_current_user),
):
    path = await get_path_or_404(path_id)
    ensure_owner(path.created_by, current_user, "update")

    try:
        for field in request.model_fields_set:
            setattr(path, field, getattr(request, field))
        await path.save()
        return path
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("update learning path", e)


@router.delete("/{path_id}", summary="Delete a learning path")
async def delete_learning_path(
    path_id: PydanticObjectId,
    current_user: User = Depends(get_current_user),
):
    path = await get_path_or_404(path_id)
    ensure_owner(path.created_by, current_user, "delete")
    await path.delete()
    logger.info(f"Learning path {path_id} deleted by {current_user.id}")
    return {"success": True, "message": "Learning path deleted successfully"}


@router.post("/{path_id}/enroll", summary="Enroll in a learning path")
async def enroll(path_id: PydanticObjectId, current_user: User = Depends(get_current_user)):
    path = await get_path_or_404(path_id)
    await path.inc({LearningPath.enrolled_count: 1})

    current_user.active_learning_path_id = path.id
    await current_user.save()

    return {"success": True, "enrolled_count": path.enrolled_count}
