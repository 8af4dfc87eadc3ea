"""
API routes exports.
"""

from . import (
    health,
    auth,
    free_resources,
    courses,
    learning_paths,
    opportunities,
    personalized_paths,
    saved_videos,
    user_learning_paths,
    waitlist,
)

__all__ = [
    "health",
    "auth",
    "free_resources",
    "courses",
    "learning_paths",
    "opportunities",
    "personalized_paths",
    "saved_videos",
    "user_learning_paths",
    "waitlist",
]
