"""
Constants module exports.
"""

from .categories import (
    ResourceCategory,
    RESOURCE_CATEGORIES,
    CATEGORY_KEYWORDS,
    map_to_category,
    get_category_info,
)

from .common import (
    UserRole,
    ResourceLevel,
    CourseLevel,
    QualityTier,
    Recommendation,
    EvaluationConfidence,
    CRelation,
    LearningPathDomain,
    LearningPathLevel,
    LessonType,
    OpportunityType,
    OpportunityStatus,
    PathStatus,
    LearnerLevel,
    SavedVideoPathStatus,
    AnalysisType,
    WaitlistSource,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)

__all__ = [
    # Categories
    "ResourceCategory",
    "RESOURCE_CATEGORIES",
    "CATEGORY_KEYWORDS",
    "map_to_category",
    "get_category_info",
    # Common
    "UserRole",
    "ResourceLevel",
    "CourseLevel",
    "QualityTier",
    "Recommendation",
    "EvaluationConfidence",
    "CRelation",
    "LearningPathDomain",
    "LearningPathLevel",
    "LessonType",
    "OpportunityType",
    "OpportunityStatus",
    "PathStatus",
    "LearnerLevel",
    "SavedVideoPathStatus",
    "AnalysisType",
    "WaitlistSource",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]
