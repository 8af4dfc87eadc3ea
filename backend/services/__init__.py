"""
Services module exports.
"""

from .base_service import (
    BaseService,
    ServiceError,
    NotFoundError,
    InvalidRequestError,
    ConflictError,
    ConfigurationError,
    ExternalAPIError,
    QuotaExceededError,
)
from .youtube_service import youtube_service, YouTubeService
from .groq_service import groq_service, GroqService
from .free_resource_service import free_resource_service, FreeResourceService
from .bulk_import_service import bulk_import_service, BulkImportService, CourseData
from .email_service import email_service, EmailService, generate_otp
from .personalized_path_service import personalized_path_service, PersonalizedPathService
from .opportunity_status_service import opportunity_status_service, OpportunityStatusService

__all__ = [
    "BaseService",
    "ServiceError",
    "NotFoundError",
    "InvalidRequestError",
    "ConflictError",
    "ConfigurationError",
    "ExternalAPIError",
    "QuotaExceededError",
    "youtube_service",
    "YouTubeService",
    "groq_service",
    "GroqService",
    "free_resource_service",
    "FreeResourceService",
    "bulk_import_service",
    "BulkImportService",
    "CourseData",
    "email_service",
    "EmailService",
    "generate_otp",
    "personalized_path_service",
    "PersonalizedPathService",
    "opportunity_status_service",
    "OpportunityStatusService",
]
