"""
Course endpoints.
"""

from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from beanie import PydanticObjectId
from pydantic import Field, model_validator
from pymongo import DESCENDING
from loguru import logger

from backend.models import Course, User
from backend.api.dependencies import verify_admin, internal_error
from backend.services import bulk_import_service, CourseData, ServiceError
from backend.utils import page_skip, pagination_meta
from shared.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ResourceCategory


router = APIRouter(prefix="/courses", tags=["courses"])


class CourseImportRequest(CourseData):
    """Course metadata plus the lectures to import (URLs or a playlist)."""
    category: ResourceCategory = ResourceCategory.OTHER
    video_urls: List[str] = Field(default_factory=list)
    playlist_id: Optional[str] = None
    analyze_with_ai: bool = True

    @model_validator(mode="after")
    def require_source(self):
        if not self.video_urls and not self.playlist_id:
            raise ValueError("Either video_urls or playlist_id is required")
        return self


async def run_import(request: CourseImportRequest):
    """Background job; failures are only logged."""
    course_data = CourseData(**request.model_dump(include=set(CourseData.model_fields)))
    try:
        if request.playlist_id:
            result = await bulk_import_service.import_playlist(
                request.playlist_id, course_data, request.analyze_with_ai, request.category
            )
        else:
            result = await bulk_import_service.import_course(
                course_data, request.video_urls, request.analyze_with_ai, request.category
            )
        logger.success(
            f"Course import '{result.course.name}' finished: "
            f"{len(result.successful)} imported, {len(result.failed)} failed"
        )
    except Exception as e:
        logger.error(f"Course import '{request.name}' failed: {e}")


@router.get("", summary="List courses")
async def list_courses(
    category: Optional[ResourceCategory] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        if search:
            courses = await Course.search(search, page, limit)
            return {"data": courses}

        query = {"is_active": True}
        if category:
            query["category"] = category.value
        courses = await Course.find(query).sort(
            [("is_featured", DESCENDING), ("average_score", DESCENDING)]
        ).skip(page_skip(page, limit)).limit(limit).to_list()
        total = await Course.find(query).count()
        return {"data": courses, "pagination": pagination_meta(page, limit, total, len(courses))}
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("fetch courses", e)


@router.get("/featured", summary="Featured courses")
async def featured_courses(limit: int = Query(5, ge=1, le=20)):
    try:
        return {"data": await Course.get_featured(limit)}
    except Exception as e:
        raise internal_error("fetch featured courses", e)


@router.get("/{slug}", summary="Get course with its lectures")
async def get_course(slug: str):
    course = await Course.find_one({"slug": slug, "is_active": True})
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found"
        )

    lectures = await course.get_lectures()
    return {"course": course, "lectures": lectures}


@router.post(
    "/import",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Import a course from YouTube (admin)"
)
async def import_course(
    request: CourseImportRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(verify_admin),
):
    """Runs the import in the background; progress shows up in the logs."""
    background_tasks.add_task(run_import, request)
    logger.info(f"Admin {admin.id} started import of course '{request.name}'")
    return {
        "success": True,
        "message": "Import started",
        "lectures": len(request.video_urls) if not request.playlist_id else None,
    }


@router.post("/{course_id}/refresh-stats", response_model=Course, summary="Recompute course statistics (admin)")
async def refresh_stats(course_id: PydanticObjectId, admin: User = Depends(verify_admin)):
    course = await Course.get(course_id)
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found"
        )
    try:
        return await course.update_stats()
    except Exception as e:
        raise internal_error("refresh course statistics", e)
