"""Tests for the logic behind the document models."""

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from beanie import PydanticObjectId

from backend.models import (
    AiAnalysis,
    EnhancedDescription,
    FreeResource,
    Milestone,
    MilestoneResource,
    PathItem,
    SavedVideo,
    UserLearningPath,
)
from backend.models.course import course_slug, summarize_lectures
from backend.models.learning_path import published_query
from backend.models.opportunity import derive_status, naive_utc
from backend.models.personalized_path import (
    calculate_progress,
    complete_milestone_resource,
    find_next_resource,
)
from backend.models.user_learning_path import items_progress, without_item
from backend.services.scoring import VideoEvaluation
from shared.constants import OpportunityStatus, QualityTier, SavedVideoPathStatus


NOW = datetime(2025, 6, 1, 12, 0, 0)
USER_ID = PydanticObjectId("64b7f0c2a1b2c3d4e5f60718")
PATH_ID = PydanticObjectId("64b7f0c2a1b2c3d4e5f60719")


def milestone(order, *resource_ids, completed=()):
    return Milestone(
        title=f"Milestone {order + 1}",
        order=order,
        resources=[
            MilestoneResource(resource_id=rid, order=i, is_completed=rid in completed)
            for i, rid in enumerate(resource_ids)
        ],
    )


class TestOpportunityStatus:
    """Status derived from the dates."""

    def test_past_deadline_closes(self):
        status = derive_status(OpportunityStatus.ACTIVE, NOW - timedelta(days=1), None, now=NOW)
        assert status == OpportunityStatus.CLOSED

    def test_future_start_is_upcoming(self):
        status = derive_status(
            OpportunityStatus.ACTIVE, NOW + timedelta(days=30), NOW + timedelta(days=5), now=NOW
        )
        assert status == OpportunityStatus.UPCOMING

    def test_started_upcoming_becomes_active(self):
        status = derive_status(
            OpportunityStatus.UPCOMING, NOW + timedelta(days=30), NOW - timedelta(days=1), now=NOW
        )
        assert status == OpportunityStatus.ACTIVE

    def test_upcoming_without_start_date_is_kept(self):
        status = derive_status(OpportunityStatus.UPCOMING, NOW + timedelta(days=30), None, now=NOW)
        assert status == OpportunityStatus.UPCOMING

    def test_open_active_stays_active(self):
        status = derive_status(OpportunityStatus.ACTIVE, NOW + timedelta(days=30), None, now=NOW)
        assert status == OpportunityStatus.ACTIVE

    def test_no_deadline_keeps_status(self):
        assert derive_status(OpportunityStatus.UPCOMING, None, None, now=NOW) == OpportunityStatus.UPCOMING
        assert derive_status(OpportunityStatus.CLOSED, None, None, now=NOW) == OpportunityStatus.CLOSED

    def test_naive_utc(self):
        aware = datetime(2025, 6, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert naive_utc(aware) == datetime(2025, 6, 1, 12, 0)
        assert naive_utc(NOW) == NOW
        assert naive_utc(None) is None


class TestCourseStats:
    """Course slug and lecture statistics."""

    def test_course_slug(self):
        assert course_slug("Harvard edX", "CS50 C") == "harvard-edx-cs50-c"

    def test_summarize_lectures(self):
        count, average, total = summarize_lectures([(80, "1:05:30"), (71, "12:40"), (None, "2h 15m")])
        assert count == 3
        assert average == 50
        assert total == "3h 33m"

    def test_summarize_no_lectures(self):
        assert summarize_lectures([]) == (0, 0, "")


class TestPersonalizedPathProgress:
    """Milestone completion and progress."""

    def test_progress_rounds(self):
        a, b, c = PydanticObjectId(), PydanticObjectId(), PydanticObjectId()
        milestones = [milestone(0, a, b, completed={a}), milestone(1, c)]
        assert calculate_progress(milestones, 3) == (1, 0, 33)

    def test_progress_with_no_resources(self):
        assert calculate_progress([], 0) == (0, 0, 0)

    def test_complete_resource_completes_milestone(self):
        a, b = PydanticObjectId(), PydanticObjectId()
        milestones = [milestone(0, a, b, completed={a})]

        assert complete_milestone_resource(milestones, 0, b, now=NOW) is True
        assert milestones[0].is_completed is True
        assert milestones[0].completed_at == NOW

    def test_complete_resource_is_idempotent(self):
        a = PydanticObjectId()
        milestones = [milestone(0, a)]

        assert complete_milestone_resource(milestones, 0, a) is True
        assert complete_milestone_resource(milestones, 0, a) is False

    def test_complete_resource_out_of_range(self):
        a = PydanticObjectId()
        milestones = [milestone(0, a)]
        assert complete_milestone_resource(milestones, 3, a) is False
        assert complete_milestone_resource(milestones, 0, PydanticObjectId()) is False

    def test_next_resource_in_milestone_order(self):
        a, b, c = PydanticObjectId(), PydanticObjectId(), PydanticObjectId()
        milestones = [milestone(1, c), milestone(0, a, b, completed={a})]

        upcoming = find_next_resource(milestones)
        assert upcoming.resource_id == b
        assert upcoming.milestone_index == 0

    def test_no_next_resource_when_done(self):
        a = PydanticObjectId()
        assert find_next_resource([milestone(0, a, completed={a})]) is None


class TestUserPathProgress:
    """Progress of user-built paths."""

    def test_items_progress(self):
        items = [
            PathItem(video_id="v1", title="One", is_completed=True),
            PathItem(video_id="v2", title="Two"),
            PathItem(video_id="v3", title="Three", is_completed=True),
        ]
        assert items_progress(items) == 67

    def test_empty_path(self):
        assert items_progress([]) == 0

    def test_remove_item_renumbers(self):
        path = SimpleNamespace(items=[
            PathItem(video_id="v1", title="One", order=0, is_completed=True),
            PathItem(video_id="v2", title="Two", order=1),
            PathItem(video_id="v3", title="Three", order=2),
        ], progress=33)

        assert UserLearningPath.remove_item(path, "v2") is True
        assert [(item.video_id, item.order) for item in path.items] == [("v1", 0), ("v3", 1)]
        assert path.progress == 50

    def test_remove_missing_item(self):
        items = [PathItem(video_id="v1", title="One")]
        path = SimpleNamespace(items=items, progress=0)

        assert UserLearningPath.remove_item(path, "v9") is False
        assert path.items is items

    def test_without_item(self):
        items = [PathItem(video_id="v1", title="One", order=0), PathItem(video_id="v2", title="Two", order=1)]
        assert [(item.video_id, item.order) for item in without_item(items, "v1")] == [("v2", 0)]


class TestSavedVideoSoftDelete:
    """Removing a bookmark also removes it from the learning path."""

    @pytest.fixture
    def saved(self, monkeypatch):
        async def save():
            pass

        video = SimpleNamespace(
            video_id="dQw4w9WgXcQ",
            added_to_path_id=PATH_ID,
            path_status=SavedVideoPathStatus.IN_PATH,
            deleted_at=None,
            save=save,
        )
        removed = []

        async def get_video_with_analysis(user_id, video_id):
            return video if video_id == video.video_id else None

        async def remove_video_from_path(path_id, video_id):
            removed.append((path_id, video_id))

        monkeypatch.setattr(SavedVideo, "get_video_with_analysis", get_video_with_analysis)
        monkeypatch.setattr(UserLearningPath, "remove_video_from_path", remove_video_from_path)
        return SimpleNamespace(video=video, removed=removed)

    def test_detaches_from_path(self, saved):
        video = asyncio.run(SavedVideo.soft_delete(USER_ID, "dQw4w9WgXcQ"))

        assert saved.removed == [(PATH_ID, "dQw4w9WgXcQ")]
        assert video.added_to_path_id is None
        assert video.path_status == SavedVideoPathStatus.NOT_ADDED
        assert video.deleted_at is not None

    def test_unassigned_video_touches_no_path(self, saved):
        saved.video.added_to_path_id = None
        asyncio.run(SavedVideo.soft_delete(USER_ID, "dQw4w9WgXcQ"))

        assert saved.removed == []

    def test_unknown_video(self, saved):
        assert asyncio.run(SavedVideo.soft_delete(USER_ID, "missing")) is None


class TestUpdateAiAnalysis:
    """Storing a fresh evaluation on a Vault resource."""

    def test_stamps_evaluation_time_and_keeps_description(self):
        async def save():
            pass

        enhanced = EnhancedDescription(topics_covered=["pointers"])
        resource = SimpleNamespace(
            ai_analysis=AiAnalysis(enhanced_description=enhanced),
            code_learnn_score=0,
            quality_tier=QualityTier.AVERAGE,
            save=save,
        )
        evaluation = VideoEvaluation(
            code_learnn_score=81,
            quality_tier=QualityTier.EXCELLENT,
            evaluated_at=datetime(2020, 1, 1),
        )
        before = datetime.utcnow()

        asyncio.run(FreeResource.update_ai_analysis(resource, evaluation))

        assert resource.code_learnn_score == 81
        assert resource.quality_tier == QualityTier.EXCELLENT
        assert resource.ai_analysis.evaluated_at >= before
        assert resource.ai_analysis.enhanced_description == enhanced


class TestLearningPathQuery:
    """Filter used for listing and searching published paths."""

    def test_defaults_to_published(self):
        assert published_query() == {"is_published": True}

    def test_filters_and_escaped_search(self):
        query = published_query(domain="backend", level="advanced", is_pro=False, search="c++")

        assert query["domain"] == "backend"
        assert query["level"] == "advanced"
        assert query["is_pro"] is False
        assert query["$or"][0] == {"title": {"$regex": r"c\+\+", "$options": "i"}}
        assert len(query["$or"]) == 3
