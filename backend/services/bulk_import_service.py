"""
Bulk import of courses and lectures.

Walks a list of YouTube URLs one at a time: fetch metadata and comments,
score with the LLM, write the lecture, sleep, move on. A failing lecture is
recorded and skipped.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field
from pymongo.errors import DuplicateKeyError

from config.settings import settings
from backend.models import Course, CourseOverview, EnhancedDescription, FreeResource
from shared.constants import CRelation, CourseLevel, ResourceCategory
from .base_service import BaseService, ConflictError, InvalidRequestError
from .groq_service import GroqService, groq_service, parse_json_response
from .scoring import VideoEvaluation
from .youtube_service import VideoComment, VideoDetails, YouTubeService, youtube_service


C_SPECIFIC_KEYWORDS = ["c programming", "c language", "programming in c", "learn c", "c tutorial", "c basics"]

PENDING_EVALUATION_QUERY = {"ai_analysis.evaluated_at": None}

ENHANCED_DESCRIPTION_SYSTEM_PROMPT = """You are an educational content analyst for CodeLearnn. You analyze programming tutorial videos and write helpful descriptions for learners.

For C programming content you must:
1. Identify whether the video is SPECIFICALLY about the C language or RELATED to C (general programming concepts useful for C)
2. Explain what learners will gain from watching
3. List the specific topics covered
4. Explain how it benefits someone learning C and programming basics

Respond in JSON format only."""


class CourseData(BaseModel):
    """Course metadata supplied to an import."""
    name: str
    provider: str
    description: str = ""
    level: CourseLevel = CourseLevel.BEGINNER
    target_audience: str = ""
    tags: List[str] = Field(default_factory=list)
    external_url: Optional[str] = None


class ImportedLecture(BaseModel):
    lecture_number: str
    video_id: str
    title: str
    score: int


class FailedLecture(BaseModel):
    url: str
    lecture_number: str
    error: str


class ImportResult(BaseModel):
    course: Course
    successful: List[ImportedLecture] = Field(default_factory=list)
    failed: List[FailedLecture] = Field(default_factory=list)
    total_processed: int = 0


class ScoreUpdateResult(BaseModel):
    analyzed: int = 0
    failed: int = 0
    remaining: int = 0


def determine_c_relation(
    video: VideoDetails,
    evaluation: Optional[VideoEvaluation],
    enhanced: Optional[EnhancedDescription],
) -> CRelation:
    """Classify a lecture as C-specific, C-related or general programming."""
    title = (video.title or "").lower()
    description = (video.description or "").lower()
    detected = (evaluation.detected_category if evaluation else "").lower()

    if any(kw in title or kw in description for kw in C_SPECIFIC_KEYWORDS) or "c programming" in detected:
        return CRelation.SPECIFICALLY_FOR_C
    if enhanced and enhanced.c_relevance and "specifically" in enhanced.c_relevance:
        return CRelation.SPECIFICALLY_FOR_C
    if evaluation and evaluation.is_programming_tutorial:
        return CRelation.RELATED_TO_C
    return CRelation.GENERAL_PROGRAMMING


def build_enhanced_description_prompt(
    video: VideoDetails,
    comments: Sequence[VideoComment],
    evaluation: VideoEvaluation,
    course: Course,
) -> str:
    top_comments = sorted(comments, key=lambda c: c.like_count or 0, reverse=True)[:10]
    comment_lines = "\n- ".join(c.text[:200] for c in top_comments) or "No comments available"

    return f"""Analyze this programming tutorial video and write a helpful description for learners:

COURSE CONTEXT:
Course: {course.name}
Provider: {course.provider}
Target Audience: {course.target_audience or "Beginners learning programming"}

VIDEO METADATA:
Title: {video.title}
Channel: {video.channel_title}
Duration: {video.duration}
Description (first 500 chars): {video.description[:500] or "N/A"}

AI EVALUATION SUMMARY:
{evaluation.summary or "N/A"}
Quality Score: {evaluation.code_learnn_score}/100
Detected Category: {evaluation.detected_category or "N/A"}

TOP COMMENTS FROM VIEWERS:
- {comment_lines}

Respond with JSON:
{{
  "whatYouWillLearn": ["3-5 specific things learners will gain"],
  "topicsCovered": ["specific programming topics covered"],
  "cRelevance": "specifically-for-c OR related-to-c, with a short explanation",
  "learningBenefits": "2-3 sentences on why a C beginner should watch this",
  "suggestedPrerequisites": ["what to know before watching"],
  "keyTakeaways": ["2-3 main takeaways"]
}}"""


def _strings(value: Any) -> List[str]:
    return [str(v) for v in value] if isinstance(value, list) else []


class BulkImportService(BaseService):
    """Sequential course importer with a fixed delay between lectures."""

    def __init__(
        self,
        youtube: Optional[YouTubeService] = None,
        groq: Optional[GroqService] = None,
        rate_limit_delay: Optional[float] = None,
    ):
        super().__init__("BulkImportService")
        self.youtube = youtube or youtube_service
        self.groq = groq or groq_service
        self.rate_limit_delay = settings.import_delay_seconds if rate_limit_delay is None else rate_limit_delay

    async def import_course(
        self,
        course_data: CourseData,
        video_urls: List[str],
        analyze_with_ai: bool = True,
        category: ResourceCategory = ResourceCategory.OTHER,
    ) -> ImportResult:
        """Create a course and import its lectures in order."""
        logger.info(f"Starting course import: {course_data.name} with {len(video_urls)} videos")

        course = await self.create_course(course_data, category)
        result = ImportResult(course=course)

        for index, url in enumerate(video_urls):
            lecture_number = f"Lecture {index + 1}"
            try:
                logger.info(f"Processing video {index + 1}/{len(video_urls)}: {url}")
                resource = await self.analyze_and_save_video(
                    url, course, index + 1, lecture_number, analyze_with_ai, category
                )
                result.successful.append(ImportedLecture(
                    lecture_number=lecture_number,
                    video_id=resource.youtube_id,
                    title=resource.title,
                    score=resource.code_learnn_score,
                ))
            except Exception as e:
                logger.error(f"Failed to import video {url}: {e}")
                result.failed.append(FailedLecture(url=url, lecture_number=lecture_number, error=str(e)))

            result.total_processed = index + 1
            if index < len(video_urls) - 1:
                await asyncio.sleep(self.rate_limit_delay)

        await course.update_stats()

        if result.successful and analyze_with_ai:
            overview = await self.generate_course_overview(course, result.successful)
            if overview:
                course.ai_overview = overview
                await course.save()

        logger.success(
            f"Course import complete: {len(result.successful)} successful, {len(result.failed)} failed"
        )
        return result

    async def create_course(self, course_data: CourseData, category: ResourceCategory) -> Course:
        course = Course(category=category, **course_data.model_dump())
        try:
            await course.insert()
        except DuplicateKeyError:
            raise ConflictError(f"Course '{course_data.name}' by {course_data.provider} already exists")
        logger.info(f"Created course: {course.slug}")
        return course

    async def analyze_and_save_video(
        self,
        url: str,
        course: Course,
        order: int,
        lecture_number: str,
        analyze_with_ai: bool = True,
        category: ResourceCategory = ResourceCategory.OTHER,
    ) -> FreeResource:
        """Import one lecture; an already-curated video is re-linked to the course."""
        video_id = self.youtube.extract_video_id(url)
        if not video_id:
            raise InvalidRequestError(f"Invalid YouTube URL: {url}")

        existing = await FreeResource.find_one({"youtube_id": video_id})
        if existing:
            existing.course_id = course.id
            existing.lecture_order = order
            existing.lecture_number = lecture_number
            await existing.save()
            return existing

        video = await self.youtube.get_video_details(video_id)
        comments = await self.youtube.get_video_comments(video_id, 30)

        evaluation: Optional[VideoEvaluation] = None
        enhanced: Optional[EnhancedDescription] = None
        c_relation: Optional[CRelation] = None

        if analyze_with_ai:
            evaluation = await self.groq.evaluate_video_quality(video, comments)
            enhanced = await self.generate_enhanced_description(video, comments, evaluation, course)
            c_relation = determine_c_relation(video, evaluation, enhanced)

        resource = FreeResource(
            youtube_id=video_id,
            title=video.title,
            description=video.description[:500],
            thumbnail=video.best_thumbnail,
            channel_name=video.channel_title,
            channel_id=video.channel_id,
            duration=video.duration,
            published_at=video.published_at,
            tags=video.tags[:10],
            statistics=video.statistics,
            category=category,
            course_id=course.id,
            lecture_order=order,
            lecture_number=lecture_number,
            c_relation=c_relation,
        )
        if evaluation:
            resource.code_learnn_score = evaluation.code_learnn_score
            resource.quality_tier = evaluation.quality_tier
            resource.ai_analysis = evaluation.to_ai_analysis()
            resource.ai_analysis.enhanced_description = enhanced

        await resource.insert()
        logger.info(f"Created lecture: {lecture_number} - {resource.title}")
        return resource

    async def generate_enhanced_description(
        self,
        video: VideoDetails,
        comments: Sequence[VideoComment],
        evaluation: VideoEvaluation,
        course: Course,
    ) -> Optional[EnhancedDescription]:
        try:
            response = await self.groq.chat(
                [
                    {"role": "system", "content": ENHANCED_DESCRIPTION_SYSTEM_PROMPT},
                    {"role": "user", "content": build_enhanced_description_prompt(video, comments, evaluation, course)},
                ],
                temperature=0.3,
                max_tokens=1000,
            )
        except Exception as e:
            logger.warning(f"Failed to generate enhanced description for {video.id}: {e}")
            return None

        parsed = parse_json_response(response)
        if parsed is None:
            logger.warning(f"Enhanced description for {video.id} was not valid JSON")
            return None

        return EnhancedDescription(
            what_you_will_learn=_strings(parsed.get("whatYouWillLearn")),
            topics_covered=_strings(parsed.get("topicsCovered")),
            c_relevance=parsed.get("cRelevance") or "",
            learning_benefits=parsed.get("learningBenefits") or "",
            suggested_prerequisites=_strings(parsed.get("suggestedPrerequisites")),
            key_takeaways=_strings(parsed.get("keyTakeaways")),
        )

    async def generate_course_overview(
        self,
        course: Course,
        lectures: List[ImportedLecture],
    ) -> Optional[CourseOverview]:
        lecture_list = "\n".join(
            f"{i + 1}. {lecture.title} (Score: {lecture.score}/100)" for i, lecture in enumerate(lectures)
        )
        prompt = f"""Generate an overview for this course:

Course: {course.name}
Provider: {course.provider}
Category: {course.category.value}
Target Audience: {course.target_audience or "Beginners"}

Lectures:
{lecture_list}

Respond with JSON:
{{
  "summary": "2-3 sentence course summary",
  "learningObjectives": ["what students will achieve"],
  "keyTopics": ["main topics covered"],
  "recommendedPath": "how to approach this course"
}}"""

        try:
            response = await self.groq.chat(
                [
                    {"role": "system", "content": "You are an educational content curator. Generate a course overview in JSON format."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=800,
            )
        except Exception as e:
            logger.warning(f"Failed to generate course overview: {e}")
            return None

        parsed = parse_json_response(response)
        if parsed is None:
            logger.warning("Course overview was not valid JSON")
            return None

        return CourseOverview(
            summary=parsed.get("summary") or "",
            learning_objectives=_strings(parsed.get("learningObjectives")),
            key_topics=_strings(parsed.get("keyTopics")),
            recommended_path=parsed.get("recommendedPath") or "",
            generated_at=datetime.utcnow(),
        )

    async def import_playlist(
        self,
        playlist_id: str,
        course_data: CourseData,
        analyze_with_ai: bool = True,
        category: ResourceCategory = ResourceCategory.OTHER,
    ) -> ImportResult:
        """Import every video of a playlist as a course, in playlist order."""
        items = await self.youtube.get_playlist_items(playlist_id, max_videos=None)
        if not items:
            raise InvalidRequestError(f"Playlist {playlist_id} is empty or private")

        urls = [f"https://www.youtube.com/watch?v={item.video_id}" for item in items]
        logger.info(f"Playlist {playlist_id}: {len(urls)} videos to import")
        return await self.import_course(course_data, urls, analyze_with_ai, category)

    async def update_pending_scores(
        self,
        batch_size: Optional[int] = None,
        delay: Optional[float] = None,
        category: Optional[str] = None,
    ) -> ScoreUpdateResult:
        """Evaluate up to ``batch_size`` resources that were imported without AI."""
        batch_size = settings.score_update_batch_size if batch_size is None else batch_size
        if batch_size < 1:
            raise InvalidRequestError("batch_size must be at least 1")
        delay = settings.score_update_delay_seconds if delay is None else delay

        query: Dict[str, Any] = dict(PENDING_EVALUATION_QUERY)
        if category:
            query["category"] = category

        resources = await FreeResource.find(query).limit(batch_size).to_list()
        logger.info(f"Found {len(resources)} videos to analyze")

        result = ScoreUpdateResult()
        for index, resource in enumerate(resources):
            logger.info(f"[{index + 1}/{len(resources)}] {resource.title[:50]}")
            try:
                video = await self.youtube.get_video_details(resource.youtube_id)
                comments = await self.youtube.get_video_comments(resource.youtube_id)
                evaluation = await self.groq.evaluate_video_quality(video, comments)
                await resource.update_ai_analysis(evaluation)
                logger.success(f"Score for {resource.youtube_id}: {evaluation.code_learnn_score}/100")
                result.analyzed += 1
            except Exception as e:
                logger.error(f"Error analyzing {resource.youtube_id}: {e}")
                result.failed += 1

            if index < len(resources) - 1:
                await asyncio.sleep(delay)

        result.remaining = await FreeResource.find(query).count()
        return result


# Global instance
bulk_import_service = BulkImportService()
