"""
Authentication endpoints: passwordless login with emailed one-time codes.
"""

import secrets
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from loguru import logger
from pymongo import DESCENDING

from config.settings import settings
from backend.models import User, Otp
from backend.api.dependencies import get_current_user, token_for_user
from backend.services import email_service, generate_otp, ServiceError
from shared.constants import UserRole


router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class SendOtpRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)


class UpdateMeRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    avatar_url: Optional[str] = None
    is_verified: bool
    active_learning_path_id: Optional[str] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            avatar_url=user.avatar_url,
            is_verified=user.is_verified,
            active_learning_path_id=str(user.active_learning_path_id) if user.active_learning_path_id else None,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")
    user: UserResponse


def is_email_allowed(email: str) -> bool:
    """Whitelist check; an empty whitelist lets everyone in."""
    allowed = settings.allowed_email_list
    return not allowed or email.lower() in allowed


def cooldown_remaining(created_at: datetime, now: Optional[datetime] = None) -> int:
    """Seconds left before another code may be sent, 0 when allowed."""
    now = now or datetime.utcnow()
    elapsed = (now - created_at).total_seconds()
    return max(0, int(settings.otp_resend_cooldown_seconds - elapsed + 0.999))


def not_whitelisted() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="This email is not on the access list yet. Join the waitlist to get early access."
    )


async def latest_otp(email: str) -> Optional[Otp]:
    return await Otp.find({"email": email}).sort([("created_at", DESCENDING)]).first_or_none()


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account"
)
async def register(request: RegisterRequest):
    """Create an account. Sign-in happens through ``/auth/send-otp``."""
    email = request.email.lower()
    if not is_email_allowed(email):
        raise not_whitelisted()

    try:
        if await User.find_one({"email": email}):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists"
            )

        user = User(name=request.name.strip(), email=email)
        await user.insert()
        logger.info(f"Registered user {user.id} ({email})")
        return UserResponse.from_user(user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration failed for {email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post(
    "/send-otp",
    summary="Email a one-time login code"
)
async def send_otp(request: SendOtpRequest):
    """
    Send a 6-digit code to a registered, whitelisted email.

    A new code can be requested once per cooldown window; older codes are
    replaced. If the email cannot be delivered the code is discarded.
    """
    email = request.email.lower()
    if not is_email_allowed(email):
        raise not_whitelisted()

    user = await User.find_one({"email": email})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account found for this email. Please register first."
        )

    previous = await latest_otp(email)
    if previous:
        wait = cooldown_remaining(previous.created_at)
        if wait > 0:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Please wait {wait} seconds before requesting a new code"
            )

    await Otp.find({"email": email}).delete()
    code = generate_otp()
    await Otp(email=email, otp=code).insert()

    try:
        await email_service.send_otp_email(email, code)
    except ServiceError as e:
        await Otp.find({"email": email}).delete()
        logger.error(f"Could not deliver OTP to {email}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send verification email. Please try again later."
        )

    return {"success": True, "message": "Verification code sent to your email"}


@router.post(
    "/verify-otp",
    response_model=TokenResponse,
    summary="Exchange a one-time code for a JWT"
)
async def verify_otp(request: VerifyOtpRequest):
    email = request.email.lower()

    record = await latest_otp(email)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Code expired or not found. Please request a new one."
        )

    if record.attempts >= settings.otp_max_attempts:
        await Otp.find({"email": email}).delete()
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed attempts. Please request a new code."
        )

    if not secrets.compare_digest(record.otp, request.otp):
        record.attempts += 1
        await record.save()
        remaining = max(0, settings.otp_max_attempts - record.attempts)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid code. {remaining} attempts remaining."
        )

    await Otp.find({"email": email}).delete()

    user = await User.find_one({"email": email})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    user.is_verified = True
    user.last_login_at = datetime.utcnow()
    await user.save()
    logger.info(f"User {user.id} signed in")

    return TokenResponse(
        access_token=token_for_user(user),
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.from_user(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user"
)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_user(current_user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update current user"
)
async def update_me(request: UpdateMeRequest, current_user: User = Depends(get_current_user)):
    update_data = request.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)
    current_user.updated_at = datetime.utcnow()
    await current_user.save()
    return UserResponse.from_user(current_user)


@router.get(
    "/logout",
    summary="Log out"
)
async def logout():
    """Tokens are stateless; the client drops its token."""
    return {"success": True, "message": "Logged out"}
