"""
Pro waitlist endpoints.
"""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr
from pymongo.errors import DuplicateKeyError
from loguru import logger

from backend.models import Waitlist
from backend.api.dependencies import internal_error
from shared.constants import WaitlistSource


router = APIRouter(prefix="/waitlist", tags=["waitlist"])


class WaitlistRequest(BaseModel):
    email: EmailStr
    source: WaitlistSource = WaitlistSource.HOMEPAGE


def already_on_list() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "already_exists": True, "message": "You're already on the waitlist!"},
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Join the waitlist")
async def join_waitlist(request: WaitlistRequest):
    """Joining twice is not an error; the second call answers 200 with ``already_exists``."""
    email = request.email.lower()
    try:
        if await Waitlist.find_one({"email": email}):
            return already_on_list()

        await Waitlist(email=email, source=request.source).insert()
        logger.info(f"Waitlist sign-up from {request.source.value}")
        return {"success": True, "already_exists": False, "message": "Successfully joined the waitlist!"}

    except DuplicateKeyError:
        return already_on_list()
    except HTTPException:
        raise
    except Exception as e:
        raise internal_error("join waitlist", e)


@router.get("/count", summary="Number of waitlist sign-ups")
async def waitlist_count():
    try:
        return {"count": await Waitlist.count()}
    except Exception as e:
        raise internal_error("count waitlist", e)
