"""Pytest fixtures for the CodeLearnn backend tests."""

import json
from typing import Callable

import httpx
import pytest

from backend.models import VideoStatistics
from backend.services.youtube_service import VideoComment, VideoDetails


@pytest.fixture
def video():
    """A typical programming tutorial."""
    return VideoDetails(
        id="dQw4w9WgXcQ",
        title="C Programming Tutorial for Beginners",
        description="Learn C from scratch: variables, loops, pointers.",
        channel_id="UC123",
        channel_title="freeCodeCamp.org",
        thumbnails={"medium": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/mqdefault.jpg"}},
        duration="3:46:13",
        duration_raw="PT3H46M13S",
        tags=["C", "programming", "tutorial"],
        statistics=VideoStatistics(view_count=100_000, like_count=5_000, comment_count=500),
    )


@pytest.fixture
def comments():
    """Comments covering praise, an outdated report and a confused viewer."""
    return [
        VideoComment(id="c1", text="best tutorial ever, thank you so much", like_count=12),
        VideoComment(id="c2", text="This is outdated and doesn't work anymore", like_count=4),
        VideoComment(id="c3", text="I am confused, how do I run this?", like_count=6),
    ]


@pytest.fixture
def evaluation_reply():
    """A Groq chat completion carrying a JSON verdict."""
    verdict = {
        "isProgrammingTutorial": True,
        "detectedCategory": "c programming",
        "contentQuality": 8,
        "teachingClarity": 8,
        "practicalValue": 8,
        "upToDateScore": 8,
        "commentSentiment": 8,
        "evaluationConfidence": "high",
        "overallRecommendation": "recommend",
        "strengths": ["Clear explanations"],
        "weaknesses": ["Long"],
        "redFlags": [],
        "recommendedFor": "Beginners",
        "notRecommendedFor": "Experts",
        "summary": "Solid introduction to C.",
    }
    return {"choices": [{"message": {"content": json.dumps(verdict)}}]}


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""
    def factory(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return factory
