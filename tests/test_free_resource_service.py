"""Tests for free resource helpers and playlist aggregation."""

import asyncio

import pytest

from backend.models import ScoreBreakdown
from backend.services import FreeResourceService, InvalidRequestError
from backend.services.free_resource_service import (
    extract_tags,
    playlist_recommendation,
    playlist_summary,
    summarize_playlist,
)
from backend.services.scoring import VideoEvaluation
from backend.services.youtube_service import PlaylistDetails, VideoDetails
from shared.constants import Recommendation


def evaluated(video_id, score, programming=True, category="python", strengths=()):
    video = VideoDetails(id=video_id, title=f"Video {video_id}", duration="10:00")
    evaluation = VideoEvaluation(
        is_programming_tutorial=programming,
        detected_category=category,
        code_learnn_score=score,
        breakdown=ScoreBreakdown(content_quality=8, teaching_clarity=6),
        strengths=list(strengths),
    )
    return video, evaluation


class TestTags:
    """Tag extraction for new resources."""

    def test_lowercases_and_dedupes(self):
        tags = extract_tags("Python", ["python", "Django", "Web", "a", "b", "c"], ["FastAPI"])
        assert tags == ["fastapi", "python", "django", "web", "a", "b"]

    def test_limited_to_ten(self):
        tags = extract_tags(None, [f"t{i}" for i in range(5)], [f"x{i}" for i in range(10)])
        assert len(tags) == 10


class TestPlaylistRecommendation:
    """Recommendation for a sampled playlist."""

    def test_mostly_non_programming_is_caution(self):
        assert playlist_recommendation(90, 3, 5) == Recommendation.CAUTION

    def test_score_thresholds(self):
        assert playlist_recommendation(80, 0, 5) == Recommendation.STRONGLY_RECOMMEND
        assert playlist_recommendation(70, 0, 5) == Recommendation.RECOMMEND
        assert playlist_recommendation(55, 0, 5) == Recommendation.NEUTRAL
        assert playlist_recommendation(39, 0, 5) == Recommendation.AVOID

    def test_summary_warns_about_non_programming(self):
        summary = playlist_summary("Mixed", 10, 0, 1, 3, 4)
        assert "Warning" in summary
        assert "(3/4)" in summary


class TestSummarizePlaylist:
    """Aggregating per-video evaluations."""

    def test_aggregates_programming_videos_only(self):
        playlist = PlaylistDetails(id="PL1", title="Learn Python", video_count=12)
        analyses = [
            evaluated("v1", 80, strengths=["Clear", "Practical"]),
            evaluated("v2", 71, strengths=["Clear"]),
            evaluated("v3", 0, programming=False, category="music"),
        ]
        videos = [video for video, _ in analyses]

        result = summarize_playlist(playlist, videos, analyses)
        evaluation = result["evaluation"]

        assert result["is_playlist"] is True
        assert evaluation["code_learnn_score"] == 76
        assert evaluation["quality_tier"] == "good"
        assert evaluation["recommendation"] == "recommend"
        assert evaluation["is_programming_playlist"] is True
        assert evaluation["breakdown"]["content_quality"] == 8
        assert evaluation["strengths"] == ["Clear", "Practical"]
        assert evaluation["detected_categories"] == ["python", "python"]
        assert evaluation["non_programming_videos"] == [{"title": "Video v3", "detected_category": "music"}]
        assert len(evaluation["video_analyses"]) == 3
        assert result["playlist_data"]["analyzed_count"] == 3
        assert result["aggregate_stats"]["avg_duration_minutes"] == 10
        assert result["aggregate_stats"]["non_programming_video_count"] == 1

    def test_no_programming_videos(self):
        playlist = PlaylistDetails(id="PL2", title="Songs", video_count=2)
        analyses = [evaluated("v1", 0, programming=False), evaluated("v2", 0, programming=False)]

        evaluation = summarize_playlist(playlist, [v for v, _ in analyses], analyses)["evaluation"]
        assert evaluation["code_learnn_score"] == 0
        assert evaluation["recommendation"] == "caution"
        assert evaluation["is_programming_playlist"] is False


class TestAnalyzeValidation:
    """URL validation before anything is fetched."""

    def test_invalid_url(self):
        service = FreeResourceService()
        with pytest.raises(InvalidRequestError):
            asyncio.run(service.analyze_video("not a url"))

    def test_categories(self):
        categories = FreeResourceService.get_categories()
        assert categories
        assert all("id" in category for category in categories)
