"""
Resource category constants.
Contains the Vault categories and the mapping from free-form LLM categories.
"""

from enum import Enum
from typing import Dict, List, Optional


class ResourceCategory(str, Enum):
    """Categories a free resource or course can belong to."""
    WEB_DEV = "web-dev"
    JAVA = "java"
    JAVASCRIPT = "javascript"
    DATA_SCIENCE = "data-science"
    PYTHON = "python"
    DSA = "dsa"
    DEVOPS = "devops"
    MOBILE = "mobile"
    C_PROGRAMMING = "c-programming"
    OTHER = "other"


# Categories shown in the Vault, in display order
RESOURCE_CATEGORIES: List[Dict[str, str]] = [
    {"id": "web-dev", "name": "Web Development", "icon": "🌐"},
    {"id": "java", "name": "Java", "icon": "☕"},
    {"id": "data-science", "name": "Data Science", "icon": "📊"},
    {"id": "python", "name": "Python", "icon": "🐍"},
    {"id": "c-programming", "name": "C Programming", "icon": "⚡"},
    {"id": "dsa", "name": "DSA", "icon": "🔢"},
    {"id": "devops", "name": "DevOps", "icon": "⚙️"},
    {"id": "mobile", "name": "Mobile Dev", "icon": "📱"},
    {"id": "other", "name": "Other", "icon": "📚"},
]


# Ordered: the first matching rule wins
CATEGORY_KEYWORDS: List[tuple] = [
    (ResourceCategory.WEB_DEV, ["web", "frontend", "backend", "react", "node", "javascript"]),
    (ResourceCategory.PYTHON, ["python"]),
    (ResourceCategory.JAVA, ["java"]),
    (ResourceCategory.DATA_SCIENCE, ["data", "ml", "machine learning", "ai"]),
    (ResourceCategory.DSA, ["dsa", "algorithm", "data structure"]),
    (ResourceCategory.DEVOPS, ["devops", "docker", "kubernetes", "cloud"]),
    (ResourceCategory.MOBILE, ["mobile", "android", "ios", "flutter"]),
]


def map_to_category(detected_category: Optional[str]) -> ResourceCategory:
    """Map a free-form detected category onto the Vault categories."""
    if not detected_category:
        return ResourceCategory.OTHER

    cat = detected_category.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in cat for keyword in keywords):
            return category
    return ResourceCategory.OTHER


def get_category_info(category_id: str) -> Optional[Dict[str, str]]:
    """Get display info for a category id."""
    for category in RESOURCE_CATEGORIES:
        if category["id"] == category_id:
            return category
    return None
