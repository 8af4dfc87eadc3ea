"""
Common constants used across the application.
"""

from enum import Enum


# User roles
class UserRole(str, Enum):
    """User role in the system."""
    USER = "user"
    ADMIN = "admin"


# Resource levels
class ResourceLevel(str, Enum):
    """Difficulty level of a free resource."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CourseLevel(str, Enum):
    """Difficulty level of a course."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL_LEVELS = "all-levels"


# Scoring
class QualityTier(str, Enum):
    """Bucket derived from the CodeLearnn score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    BELOW_AVERAGE = "below_average"
    POOR = "poor"
    NOT_APPLICABLE = "not_applicable"


class Recommendation(str, Enum):
    """LLM overall recommendation."""
    STRONGLY_RECOMMEND = "strongly_recommend"
    RECOMMEND = "recommend"
    NEUTRAL = "neutral"
    CAUTION = "caution"
    AVOID = "avoid"
    NOT_APPLICABLE = "not_applicable"


class EvaluationConfidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CRelation(str, Enum):
    """How a lecture relates to the C language."""
    SPECIFICALLY_FOR_C = "specifically-for-c"
    RELATED_TO_C = "related-to-c"
    GENERAL_PROGRAMMING = "general-programming"


# Learning paths
class LearningPathDomain(str, Enum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"
    MOBILE = "mobile"
    DEVOPS = "devops"
    DATA_SCIENCE = "data-science"
    AI_ML = "ai-ml"
    SECURITY = "security"
    OTHER = "other"


class LearningPathLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class LessonType(str, Enum):
    VIDEO = "video"
    ARTICLE = "article"
    QUIZ = "quiz"
    PROJECT = "project"


# Opportunities
class OpportunityType(str, Enum):
    HACKATHON = "hackathon"
    FELLOWSHIP = "fellowship"
    INTERNSHIP = "internship"
    JOB = "job"
    SCHOLARSHIP = "scholarship"
    COMPETITION = "competition"
    OTHER = "other"


class OpportunityStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    UPCOMING = "upcoming"


# Personalized paths
class PathStatus(str, Enum):
    """Lifecycle of a personalized learning path."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class LearnerLevel(str, Enum):
    COMPLETE_BEGINNER = "complete-beginner"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Saved videos
class SavedVideoPathStatus(str, Enum):
    """Where a saved video sits relative to the user's learning path."""
    NOT_ADDED = "not_added"
    IN_PATH = "in_path"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class AnalysisType(str, Enum):
    VIDEO = "video"
    PLAYLIST = "playlist"


# Waitlist
class WaitlistSource(str, Enum):
    HOMEPAGE = "homepage"
    PRO_MODAL = "pro-modal"
    NAVBAR = "navbar"


# Pagination
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100
