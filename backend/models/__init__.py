"""
MongoDB models export.
"""

from .user import User
from .otp import Otp
from .waitlist import Waitlist
from .free_resource import (
    FreeResource,
    VideoStatistics,
    ScoreBreakdown,
    ScorePenalties,
    CommentAnalysisSummary,
    EnhancedDescription,
    AiAnalysis,
)
from .course import Course, CourseOverview
from .learning_path import LearningPath, PathModule, Lesson, Instructor
from .opportunity import Opportunity
from .personalized_path import (
    PersonalizedPath,
    Milestone,
    MilestoneResource,
    UserContext,
    GenerationInfo,
    NextResource,
)
from .saved_video import SavedVideo
from .user_learning_path import UserLearningPath, PathItem
from .analysis_cache import YouTubeAnalysisCache

__all__ = [
    # Users and auth
    "User",
    "Otp",
    "Waitlist",
    # Vault
    "FreeResource",
    "VideoStatistics",
    "ScoreBreakdown",
    "ScorePenalties",
    "CommentAnalysisSummary",
    "EnhancedDescription",
    "AiAnalysis",
    "YouTubeAnalysisCache",
    # Courses
    "Course",
    "CourseOverview",
    # Learning paths
    "LearningPath",
    "PathModule",
    "Lesson",
    "Instructor",
    "PersonalizedPath",
    "Milestone",
    "MilestoneResource",
    "UserContext",
    "GenerationInfo",
    "NextResource",
    "UserLearningPath",
    "PathItem",
    # Saved videos
    "SavedVideo",
    # Opportunities
    "Opportunity",
]


# List of all document models for Beanie initialization
DOCUMENT_MODELS = [
    User,
    Otp,
    Waitlist,
    FreeResource,
    YouTubeAnalysisCache,
    Course,
    LearningPath,
    PersonalizedPath,
    UserLearningPath,
    SavedVideo,
    Opportunity,
]
