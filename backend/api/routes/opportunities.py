"""
Opportunity endpoints (hackathons, internships, fellowships, ...).
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from beanie import PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING
from loguru import logger

from backend.models import Opportunity, User
from backend.models.opportunity import naive_utc
from backend.api.dependencies import get_current_user, ensure_owner, internal_error
from backend.services import ServiceError
from backend.utils import page_skip, pagination_meta
from shared.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, OpportunityType, OpportunityStatus


router = APIRouter(prefix="/opportunities", tags=["opportunities"])


DATE_FIELDS = {"deadline", "start_date", "end_date"}

SORTS = {
    "-created_at": [("created_at", DESCENDING)],
    "deadline": [("deadline", ASCENDING)],
}


class OpportunityCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    type: OpportunityType = OpportunityType.OTHER
    organization: Optional[str] = None
    link: str
    deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    stipend: str = ""
    location: str = "Remote"
    eligibility: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    cover_image: str = ""
    status: OpportunityStatus = OpportunityStatus.ACTIVE
    featured: bool = False


class OpportunityUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    type: Optional[OpportunityType] = None
    organization: Optional[str] = None
    link: Optional[str] = None
    deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    stipend: Optional[str] = None
    location: Optional[str] = None
    eligibility: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    cover_image: Optional[str] = None
    status: Optional[OpportunityStatus] = None
    featured: Optional[bool] = None


def list_query(
    type: Optional[str] = None,
    status: Optional[str] = "active",
    search: Optional[str] = None,
    tag: Optional[str] = None,
    location: Optional[str] = None,
) -> Dict[str, Any]:
    """Mongo filter for the public listing; ``status="all"`` disables the status filter."""
    query: Dict[str, Any] = {}
    if type:
        query["type"] = type
    if status and status != "all":
        query["status"] = status
    if tag:
        query["tags"] = tag.lower()
    if location:
        query["location"] = {"$regex": re.escape(location), "$options": "i"}
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"organization": pattern},
            {"tags": pattern},
        ]
    return query


async def get_opportunity_or_404(opportunity_id: PydanticObjectId) -> Opportunity:
    opportunity = await Opportunity.get(opportunity_id)
    if not opportunity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Opportunity not found"
        )
    return opportunity


@router.get("", summary="List opportunities")
async def list_opportunities(
    type: Optional[OpportunityType] = None,
    status_filter: str = Query("active", alias="status", pattern="^(active|closed|upcoming|all)$"),
    search: Optional[str] = None,
    tag: Optional[str] = None,
    location: Optional[str] = None,
    sort: str = Query("-created_at", pattern="^(-created_at|deadline)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    try:
        query = list_query(
            type=type.value if type else None,
            status=status_filter,
            search=search,
            tag=tag,
            location=location,
        )
        opportunities = await Opportunity.find(query).sort(SORTS[sort]).skip(
            page_skip(page, limit)
        ).limit(limit).to_list()
        total = await Opportunity.find(query).count()
        return {
            "data": opportunities,
            "pagination": pagination_meta(page, limit, total, len(opportunities)),
        }
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("fetch opportunities", e)


@router.get("/featured", summary="Featured opportunities")
async def featured_opportunities(limit: int = Query(5, ge=1, le=20)):
    try:
        return {"data": await Opportunity.get_featured(limit)}
    except Exception as e:
        raise internal_error("fetch featured opportunities", e)


@router.get("/active", summary="Open opportunities, featured first")
async def active_opportunities():
    try:
        return {"data": await Opportunity.get_active()}
    except Exception as e:
        raise internal_error("fetch active opportunities", e)


@router.get("/types", summary="Opportunity types")
async def opportunity_types():
    return {"data": [t.value for t in OpportunityType]}


@router.get("/user/my-opportunities", summary="Opportunities posted by the current user")
async def my_opportunities(current_user: User = Depends(get_current_user)):
    try:
        opportunities = await Opportunity.find({"author_id": current_user.id}).sort(
            [("created_at", DESCENDING)]
        ).to_list()
        return {"data": opportunities}
    except Exception as e:
        raise internal_error("fetch your opportunities", e)


@router.get("/{slug_or_id}", response_model=Opportunity, summary="Get opportunity by slug or ID")
async def get_opportunity(slug_or_id: str):
    """Each view increments the view counter."""
    if PydanticObjectId.is_valid(slug_or_id):
        opportunity = await Opportunity.get(PydanticObjectId(slug_or_id))
    else:
        opportunity = await Opportunity.find_one({"slug": slug_or_id})

    if not opportunity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Opportunity not found"
        )

    await opportunity.inc({Opportunity.views: 1})
    return opportunity


@router.post(
    "",
    response_model=Opportunity,
    status_code=status.HTTP_201_CREATED,
    summary="Post an opportunity"
)
async def create_opportunity(
    request: OpportunityCreateRequest,
    current_user: User = Depends(get_current_user),
):
    try:
        opportunity = Opportunity(**request.model_dump(), author_id=current_user.id)
        await opportunity.insert()
        logger.info(f"Opportunity {opportunity.slug} posted by {current_user.id}")
        return opportunity
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("create opportunity", e)


@router.put("/{opportunity_id}", response_model=Opportunity, summary="Update an opportunity")
async def update_opportunity(
    opportunity_id: PydanticObjectId,
    request: OpportunityUpdateRequest,
    current_user: User = Depends(get_current_user),
):
    opportunity = await get_opportunity_or_404(opportunity_id)
    ensure_owner(opportunity.author_id, current_user, "update")

    try:
        for field in request.model_fields_set:
            value = getattr(request, field)
            if field in DATE_FIELDS:
                value = naive_utc(value)
            setattr(opportunity, field, value)
        if "description" in request.model_fields_set and "excerpt" not in request.model_fields_set:
            opportunity.excerpt = None
        await opportunity.save()
        return opportunity
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise internal_error("update opportunity", e)


@router.delete("/{opportunity_id}", summary="Delete an opportunity")
async def delete_opportunity(
    opportunity_id: PydanticObjectId,
    current_user: User = Depends(get_current_user),
):
    opportunity = await get_opportunity_or_404(opportunity_id)
    ensure_owner(opportunity.author_id, current_user, "delete")
    await opportunity.delete()
    logger.info(f"Opportunity {opportunity_id} deleted by {current_user.id}")
    return {"success": True, "message": "Opportunity deleted successfully"}
