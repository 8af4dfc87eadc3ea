"""Tests for course import helpers."""

import asyncio
import importlib
from types import SimpleNamespace

import pytest

from backend.models import Course, EnhancedDescription, FreeResource
from backend.services.base_service import InvalidRequestError, NotFoundError
from backend.services.bulk_import_service import BulkImportService, CourseData, determine_c_relation
from backend.services.scoring import VideoEvaluation
from backend.services.youtube_service import VideoDetails
from shared.constants import CRelation, ResourceCategory


bulk_import_module = importlib.import_module("backend.services.bulk_import_service")


class TestCRelation:
    """Classifying lectures of a C course."""

    def test_keyword_in_title(self, video):
        assert determine_c_relation(video, None, None) == CRelation.SPECIFICALLY_FOR_C

    def test_keyword_in_description(self):
        video = VideoDetails(id="x", title="Pointers explained", description="Part of our Learn C series")
        assert determine_c_relation(video, None, None) == CRelation.SPECIFICALLY_FOR_C

    def test_detected_category(self):
        video = VideoDetails(id="x", title="Memory layout")
        evaluation = VideoEvaluation(detected_category="C Programming")
        assert determine_c_relation(video, evaluation, None) == CRelation.SPECIFICALLY_FOR_C

    def test_enhanced_description_relevance(self):
        video = VideoDetails(id="x", title="Memory layout")
        enhanced = EnhancedDescription(c_relevance="specifically-for-c: covers malloc")
        assert determine_c_relation(video, None, enhanced) == CRelation.SPECIFICALLY_FOR_C

    def test_programming_tutorial_is_related(self):
        video = VideoDetails(id="x", title="Big O notation")
        evaluation = VideoEvaluation(detected_category="dsa")
        assert determine_c_relation(video, evaluation, None) == CRelation.RELATED_TO_C

    def test_everything_else_is_general(self):
        video = VideoDetails(id="x", title="Big O notation")
        evaluation = VideoEvaluation(is_programming_tutorial=False, detected_category="music")
        assert determine_c_relation(video, evaluation, None) == CRelation.GENERAL_PROGRAMMING
        assert determine_c_relation(video, None, None) == CRelation.GENERAL_PROGRAMMING


class FakeQuery:
    """Stands in for a Beanie find query over pending resources."""

    def __init__(self, items, remaining):
        self.items = items
        self.remaining = remaining
        self.limit_value = None

    def limit(self, n):
        self.limit_value = n
        return self

    async def to_list(self):
        return self.items[:self.limit_value]

    async def count(self):
        return self.remaining


@pytest.fixture
def sleeps(monkeypatch):
    """Record every delay the import service waits for."""
    calls = []

    async def fake_sleep(seconds):
        calls.append(seconds)

    monkeypatch.setattr(bulk_import_module, "asyncio", SimpleNamespace(sleep=fake_sleep))
    return calls


@pytest.fixture
def importer(monkeypatch):
    """A service whose database and network steps are replaced with recorders."""
    course = Course.model_construct(
        name="CS50", provider="Harvard", category=ResourceCategory.C_PROGRAMMING, slug="harvard-cs50"
    )
    service = BulkImportService(youtube=SimpleNamespace(), groq=SimpleNamespace(), rate_limit_delay=2)
    service.lectures = []
    service.overviews = []

    async def create_course(course_data, category):
        return course

    async def analyze_and_save_video(url, course, order, lecture_number, analyze_with_ai, category):
        if "bad" in url:
            raise ValueError(f"Invalid YouTube URL: {url}")
        service.lectures.append((order, lecture_number))
        return SimpleNamespace(youtube_id=url[-11:], title=f"Video {order}", code_learnn_score=70)

    async def generate_course_overview(course, lectures):
        service.overviews.append(len(lectures))
        return None

    async def noop(self):
        return self

    service.create_course = create_course
    service.analyze_and_save_video = analyze_and_save_video
    service.generate_course_overview = generate_course_overview
    monkeypatch.setattr(Course, "update_stats", noop)
    monkeypatch.setattr(Course, "save", noop)
    return service


COURSE = CourseData(name="CS50", provider="Harvard")
GOOD_A = "https://youtu.be/aaaaaaaaaaa"
GOOD_B = "https://youtu.be/bbbbbbbbbbb"
BAD = "https://example.com/bad"


class TestImportCourse:
    """Sequential lecture import."""

    def test_failed_lecture_is_skipped(self, importer, sleeps):
        result = asyncio.run(importer.import_course(COURSE, [GOOD_A, BAD, GOOD_B]))

        assert [lecture.lecture_number for lecture in result.successful] == ["Lecture 1", "Lecture 3"]
        assert [lecture.video_id for lecture in result.successful] == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
        assert len(result.failed) == 1
        assert result.failed[0].url == BAD
        assert result.failed[0].lecture_number == "Lecture 2"
        assert "Invalid YouTube URL" in result.failed[0].error
        assert result.total_processed == 3

    def test_lecture_order_follows_position(self, importer, sleeps):
        asyncio.run(importer.import_course(COURSE, [GOOD_A, BAD, GOOD_B]))

        assert importer.lectures == [(1, "Lecture 1"), (3, "Lecture 3")]

    def test_delay_between_lectures_even_after_failures(self, importer, sleeps):
        asyncio.run(importer.import_course(COURSE, [BAD, BAD, GOOD_A]))

        assert sleeps == [2, 2]

    def test_single_lecture_does_not_wait(self, importer, sleeps):
        asyncio.run(importer.import_course(COURSE, [GOOD_A]))

        assert sleeps == []

    def test_overview_after_successful_import(self, importer, sleeps):
        asyncio.run(importer.import_course(COURSE, [GOOD_A, BAD, GOOD_B]))

        assert importer.overviews == [2]

    def test_no_overview_when_everything_failed(self, importer, sleeps):
        result = asyncio.run(importer.import_course(COURSE, [BAD, BAD]))

        assert result.successful == []
        assert result.total_processed == 2
        assert importer.overviews == []

    def test_no_overview_without_ai(self, importer, sleeps):
        asyncio.run(importer.import_course(COURSE, [GOOD_A], analyze_with_ai=False))

        assert importer.overviews == []


class TestUpdatePendingScores:
    """Batch evaluation of resources imported without AI."""

    @pytest.fixture
    def pending(self, monkeypatch):
        updated = []

        def resource(youtube_id):
            async def update_ai_analysis(evaluation):
                updated.append((youtube_id, evaluation.code_learnn_score))

            return SimpleNamespace(youtube_id=youtube_id, title=f"Video {youtube_id}",
                                   update_ai_analysis=update_ai_analysis)

        queries = []

        def find(query):
            queries.append(query)
            return FakeQuery([resource("good1"), resource("gone"), resource("good2")], remaining=7)

        monkeypatch.setattr(FreeResource, "find", find)
        return SimpleNamespace(updated=updated, queries=queries)

    @pytest.fixture
    def scorer(self):
        async def get_video_details(video_id):
            if video_id == "gone":
                raise NotFoundError(f"Video not found: {video_id}")
            return VideoDetails(id=video_id, title="Pointers")

        async def get_video_comments(video_id):
            return []

        async def evaluate_video_quality(video, comments):
            return VideoEvaluation(code_learnn_score=64)

        return BulkImportService(
            youtube=SimpleNamespace(get_video_details=get_video_details, get_video_comments=get_video_comments),
            groq=SimpleNamespace(evaluate_video_quality=evaluate_video_quality),
        )

    def test_counts(self, scorer, pending, sleeps):
        result = asyncio.run(scorer.update_pending_scores(batch_size=10, delay=1))

        assert (result.analyzed, result.failed, result.remaining) == (2, 1, 7)
        assert pending.updated == [("good1", 64), ("good2", 64)]
        assert sleeps == [1, 1]

    def test_batch_size_limits_the_batch(self, scorer, pending, sleeps):
        result = asyncio.run(scorer.update_pending_scores(batch_size=1, delay=0))

        assert (result.analyzed, result.failed) == (1, 0)
        assert sleeps == []

    def test_category_filter(self, scorer, pending, sleeps):
        asyncio.run(scorer.update_pending_scores(batch_size=1, delay=0, category="c-programming"))

        assert pending.queries[0] == {"ai_analysis.evaluated_at": None, "category": "c-programming"}

    def test_zero_batch_size_rejected(self, scorer, pending, sleeps):
        with pytest.raises(InvalidRequestError):
            asyncio.run(scorer.update_pending_scores(batch_size=0))
        assert pending.queries == []
