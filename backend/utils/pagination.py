"""
Pagination metadata shared by list endpoints.
"""

from typing import Any, Dict


def page_skip(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination_meta(page: int, limit: int, total: int, returned: int) -> Dict[str, Any]:
    """``pages`` rounds up; ``has_more`` is true while items remain past this page."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": -(-total // limit) if limit else 0,
        "has_more": page_skip(page, limit) + returned < total,
    }
