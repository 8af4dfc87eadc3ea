"""
Free resource (Vault) endpoints.
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from beanie import PydanticObjectId
from pydantic import BaseModel, Field

from backend.models import FreeResource, User, VideoStatistics, YouTubeAnalysisCache
from backend.api.dependencies import verify_admin, internal_error
from backend.services import free_resource_service, ServiceError
from shared.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AnalysisType,
    ResourceCategory,
    ResourceLevel,
)


router = APIRouter(prefix="/free-resources", tags=["free-resources"])


class AnalyzeRequest(BaseModel):
    url: str = Field(..., min_length=1, description="YouTube video or playlist URL")


class ResourceCreateRequest(BaseModel):
    youtube_id: str
    title: str = Field(..., max_length=300)
    category: ResourceCategory
    description: str = Field(default="", max_length=2000)
    thumbnail: Optional[str] = None
    channel_name: Optional[str] = None
    channel_id: Optional[str] = None
    duration: Optional[str] = None
    subcategory: Optional[str] = None
    level: ResourceLevel = ResourceLevel.BEGINNER
    tags: List[str] = Field(default_factory=list)
    statistics: Optional[VideoStatistics] = None
    is_featured: bool = False


class ResourceUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=2000)
    thumbnail: Optional[str] = None
    category: Optional[ResourceCategory] = None
    subcategory: Optional[str] = None
    level: Optional[ResourceLevel] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    lecture_order: Optional[int] = None
    lecture_number: Optional[str] = None


class AddFromAnalysisRequest(BaseModel):
    analysis_result: Dict[str, Any]
    category: ResourceCategory
    additional_data: Dict[str, Any] = Field(default_factory=dict)


@router.get("", summary="List resources")
async def list_resources(
    category: Optional[str] = Query(None, description="Category id or 'all'"),
    level: Optional[ResourceLevel] = None,
    search: Optional[str] = None,
    sort_by: str = Query("code_learnn_score", pattern="^(code_learnn_score|created_at|title|statistics\\.view_count)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    featured: bool = False,
):
    try:
        return await free_resource_service.get_resources(
            category=category,
            level=level.value if level else None,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
            featured=featured,
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("fetch resources", e)


@router.get("/search", summary="Search resources")
async def search_resources(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        return {"data": await FreeResource.search(q, page=page, limit=limit)}
    except Exception as e:
        raise internal_error("search resources", e)


@router.get("/categories", summary="Categories with resource statistics")
async def get_categories():
    try:
        return {"data": await free_resource_service.get_category_stats()}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("fetch categories", e)


@router.get("/category/{category}", summary="Resources of one category")
async def get_by_category(
    category: ResourceCategory,
    level: Optional[ResourceLevel] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        return await free_resource_service.get_by_category(
            category.value, level=level.value if level else None, page=page, limit=limit
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("fetch resources", e)


@router.post("/analyze", summary="Analyze a YouTube video or playlist")
async def analyze(request: AnalyzeRequest):
    """Score a video (or a playlist sample) with the AI evaluator."""
    try:
        return await free_resource_service.analyze_video(request.url.strip())
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("analyze video", e)


@router.get("/cached", summary="Browse previously analyzed tutorials")
async def browse_cached(
    search: Optional[str] = None,
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    type: Optional[AnalysisType] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        return await free_resource_service.get_cached_analyses(
            search=search,
            category=category,
            subcategory=subcategory,
            type=type.value if type else None,
            page=page,
            limit=limit,
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("browse cached analyses", e)


@router.get("/cached/popular", summary="Most requested analyses")
async def popular_cached(limit: int = Query(10, ge=1, le=50)):
    try:
        return {"data": await YouTubeAnalysisCache.get_popular(limit)}
    except Exception as e:
        raise internal_error("fetch popular analyses", e)


@router.get("/{resource_id}", response_model=FreeResource, summary="Get resource by ID")
async def get_resource(resource_id: PydanticObjectId):
    return await free_resource_service.get_by_id(resource_id)


@router.post(
    "",
    response_model=FreeResource,
    status_code=status.HTTP_201_CREATED,
    summary="Create a resource (admin)"
)
async def create_resource(request: ResourceCreateRequest, admin: User = Depends(verify_admin)):
    data = request.model_dump(exclude_none=True)
    data["added_by"] = admin.id
    try:
        return await free_resource_service.create_resource(data)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("create resource", e)


@router.post(
    "/add-from-analysis",
    response_model=FreeResource,
    status_code=status.HTTP_201_CREATED,
    summary="Add an analyzed video to the Vault (admin)"
)
async def add_from_analysis(request: AddFromAnalysisRequest, admin: User = Depends(verify_admin)):
    additional = {**request.additional_data, "added_by": admin.id}
    try:
        return await free_resource_service.add_from_analysis(
            request.analysis_result, request.category.value, additional
        )
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("add resource from analysis", e)


@router.put("/{resource_id}", response_model=FreeResource, summary="Update a resource (admin)")
async def update_resource(
    resource_id: PydanticObjectId,
    request: ResourceUpdateRequest,
    admin: User = Depends(verify_admin),
):
    try:
        return await free_resource_service.update_resource(resource_id, request.model_dump(exclude_unset=True))
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("update resource", e)


@router.delete("/{resource_id}", summary="Delete a resource (admin)")
async def delete_resource(resource_id: PydanticObjectId, admin: User = Depends(verify_admin)):
    await free_resource_service.delete_resource(resource_id)
    return {"success": True, "message": "Resource deleted successfully"}


@router.post("/{resource_id}/refresh", response_model=FreeResource, summary="Refresh YouTube statistics (admin)")
async def refresh_statistics(resource_id: PydanticObjectId, admin: User = Depends(verify_admin)):
    return await free_resource_service.refresh_statistics(resource_id)


@router.post("/{resource_id}/evaluate", response_model=FreeResource, summary="Re-run the AI evaluation (admin)")
async def re_evaluate(resource_id: PydanticObjectId, admin: User = Depends(verify_admin)):
    return await free_resource_service.re_evaluate(resource_id)
