"""
Free resource service: the Vault's business logic.

Orchestrates the YouTube client, the AI evaluator and the database, and keeps
the persistent analysis cache of programming tutorials.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from beanie import PydanticObjectId
from loguru import logger
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from backend.models import FreeResource, YouTubeAnalysisCache
from backend.models.free_resource import search_clauses
from backend.utils import page_skip, pagination_meta, parse_clock_minutes, round_half_up
from shared.constants import (
    AnalysisType,
    DEFAULT_PAGE_SIZE,
    QualityTier,
    RESOURCE_CATEGORIES,
    Recommendation,
    map_to_category,
)
from .base_service import BaseService, ConflictError, InvalidRequestError, NotFoundError
from .groq_service import GroqService, groq_service
from .scoring import VideoEvaluation, playlist_quality_tier
from .youtube_service import PlaylistDetails, VideoDetails, YouTubeService, youtube_service


PLAYLIST_FETCH_LIMIT = 15
PLAYLIST_SAMPLE_SIZE = 5
BREAKDOWN_FIELDS = (
    "content_quality",
    "teaching_clarity",
    "practical_value",
    "up_to_date_score",
    "comment_sentiment",
    "engagement",
)


def extract_tags(detected_category: Optional[str], video_tags: Iterable[str], technologies: Iterable[str] = ()) -> List[str]:
    """Lower-cased, de-duplicated tags: technologies, category, first five video tags."""
    tags: List[str] = []
    candidates = list(technologies)
    if detected_category:
        candidates.append(detected_category)
    candidates.extend(list(video_tags)[:5])
    for tag in candidates:
        tag = tag.lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:10]


def playlist_recommendation(average_score: int, non_programming: int, sampled: int) -> Recommendation:
    if non_programming > sampled / 2:
        return Recommendation.CAUTION
    if average_score >= 80:
        return Recommendation.STRONGLY_RECOMMEND
    if average_score >= 70:
        return Recommendation.RECOMMEND
    if average_score < 40:
        return Recommendation.AVOID
    return Recommendation.NEUTRAL


def playlist_summary(
    title: str,
    video_count: int,
    average_score: int,
    programming: int,
    non_programming: int,
    sampled: int,
) -> str:
    summary = f'"{title}" is a playlist with {video_count} videos. '

    if non_programming > programming:
        summary += f"Warning: Most analyzed videos ({non_programming}/{sampled}) are not programming tutorials. "
    elif non_programming > 0:
        summary += f"Note: {non_programming} of {sampled} analyzed videos are not programming content. "

    if average_score >= 70:
        summary += f"The programming tutorials have a good average quality score of {average_score}/100."
    elif average_score >= 50:
        summary += f"The programming tutorials have an average quality score of {average_score}/100."
    elif average_score > 0:
        summary += f"The programming tutorials have a below-average quality score of {average_score}/100."

    return summary


def _unique(values: Iterable[str], limit: int) -> List[str]:
    result: List[str] = []
    for value in values:
        if value not in result:
            result.append(value)
    return result[:limit]


def summarize_playlist(
    playlist: PlaylistDetails,
    videos: List[VideoDetails],
    analyses: List[tuple],
) -> Dict[str, Any]:
    """
    Aggregate per-video evaluations of a playlist sample.

    ``analyses`` holds ``(VideoDetails, VideoEvaluation)`` pairs for the
    sampled videos that were evaluated successfully.
    """
    programming = [(video, ev) for video, ev in analyses if ev.is_programming_tutorial]
    non_programming = [(video, ev) for video, ev in analyses if not ev.is_programming_tutorial]
    sampled = min(PLAYLIST_SAMPLE_SIZE, len(videos))

    breakdown = {field: 0 for field in BREAKDOWN_FIELDS}
    if programming:
        for field in BREAKDOWN_FIELDS:
            total = sum(getattr(ev.breakdown, field) or 0 for _, ev in programming)
            breakdown[field] = round_half_up(total / len(programming))

    average_score = (
        round_half_up(sum(ev.code_learnn_score for _, ev in programming) / len(programming))
        if programming else 0
    )
    quality_tier: QualityTier = playlist_quality_tier(average_score)
    recommendation = playlist_recommendation(average_score, len(non_programming), sampled)

    average_duration = (
        sum(parse_clock_minutes(video.duration) for video in videos) / len(videos) if videos else 0
    )

    return {
        "is_new": True,
        "is_playlist": True,
        "playlist_data": {
            "playlist_id": playlist.id,
            "title": playlist.title,
            "description": (playlist.description or "")[:500],
            "thumbnail": playlist.thumbnail,
            "channel_name": playlist.channel_title,
            "channel_id": playlist.channel_id,
            "video_count": playlist.video_count,
            "analyzed_count": sampled,
            "published_at": playlist.published_at.isoformat() if playlist.published_at else None,
        },
        "aggregate_stats": {
            "total_views": sum(video.statistics.view_count for video in videos),
            "total_likes": sum(video.statistics.like_count for video in videos),
            "avg_duration_minutes": round_half_up(average_duration),
            "programming_video_count": len(programming),
            "non_programming_video_count": len(non_programming),
        },
        "evaluation": {
            "code_learnn_score": average_score,
            "quality_tier": quality_tier.value,
            "recommendation": recommendation.value,
            "is_programming_playlist": len(programming) > len(non_programming),
            "breakdown": breakdown,
            "strengths": _unique((s for _, ev in programming for s in ev.strengths), 5),
            "weaknesses": _unique((w for _, ev in programming for w in ev.weaknesses), 5),
            "red_flags": _unique((r for _, ev in programming for r in ev.red_flags), 3),
            "detected_categories": [ev.detected_category for _, ev in programming if ev.detected_category],
            "video_analyses": [
                {
                    "video_id": video.id,
                    "title": video.title,
                    "thumbnail": (video.thumbnails.get("medium") or {}).get("url"),
                    "duration": video.duration,
                    "score": ev.code_learnn_score,
                    "is_programming_tutorial": ev.is_programming_tutorial,
                    "detected_category": ev.detected_category,
                    "recommendation": ev.recommendation.value,
                    "breakdown": ev.breakdown.model_dump(),
                    "strengths": ev.strengths[:2],
                    "weaknesses": ev.weaknesses[:2],
                    "summary": ev.summary[:150],
                }
                for video, ev in analyses
            ],
            "non_programming_videos": [
                {"title": video.title, "detected_category": ev.detected_category}
                for video, ev in non_programming[:3]
            ],
            "summary": playlist_summary(
                playlist.title,
                playlist.video_count,
                average_score,
                len(programming),
                len(non_programming),
                sampled,
            ),
        },
        "message": "Playlist analyzed successfully",
    }


class FreeResourceService(BaseService):
    """Business logic for free resources."""

    def __init__(self, youtube: Optional[YouTubeService] = None, groq: Optional[GroqService] = None):
        super().__init__("FreeResourceService")
        self.youtube = youtube or youtube_service
        self.groq = groq or groq_service

    @staticmethod
    def get_categories() -> List[Dict[str, str]]:
        return RESOURCE_CATEGORIES

    # Queries

    async def get_resources(
        self,
        category: Optional[str] = None,
        level: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "code_learnn_score",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        featured: bool = False,
    ) -> Dict[str, Any]:
        """Active resources with filters and pagination; weaknesses are hidden."""
        query: Dict[str, Any] = {"is_active": True}
        if category and category != "all":
            query["category"] = category
        if level:
            query["level"] = level
        if featured:
            query["is_featured"] = True
        if search:
            query["$or"] = search_clauses(search)

        skip = page_skip(page, limit)
        direction = DESCENDING if sort_order == "desc" else ASCENDING

        resources = await FreeResource.find(query).sort([(sort_by, direction)]).skip(skip).limit(limit).to_list()
        total = await FreeResource.find(query).count()

        for resource in resources:
            resource.ai_analysis.weaknesses = []

        return {
            "data": resources,
            "pagination": pagination_meta(page, limit, total, len(resources)),
        }

    async def get_by_category(self, category: str, **options) -> Dict[str, Any]:
        return await self.get_resources(category=category, **options)

    async def get_by_id(self, resource_id: PydanticObjectId) -> FreeResource:
        resource = await FreeResource.get(resource_id)
        if not resource:
            raise NotFoundError("Resource not found")
        return resource

    async def get_category_stats(self) -> List[Dict[str, Any]]:
        """Per-category resource count, average score and total views."""
        pipeline = [
            {"$match": {"is_active": True}},
            {
                "$group": {
                    "_id": "$category",
                    "count": {"$sum": 1},
                    "avg_score": {"$avg": "$code_learnn_score"},
                    "total_views": {"$sum": "$statistics.view_count"},
                }
            },
            {"$sort": {"count": -1}},
        ]
        stats = {row["_id"]: row for row in await FreeResource.aggregate(pipeline).to_list()}

        result = []
        for category in RESOURCE_CATEGORIES:
            row = stats.get(category["id"], {})
            result.append({
                **category,
                "count": row.get("count", 0),
                "avg_score": round_half_up(row.get("avg_score") or 0),
                "total_views": row.get("total_views", 0),
            })
        return result

    # Analysis

    async def analyze_video(self, url: str) -> Dict[str, Any]:
        """
        Analyze a video (or delegate a playlist URL to ``analyze_playlist``).

        Order of lookups: persistent analysis cache, curated collection, then a
        fresh YouTube fetch and LLM evaluation.
        """
        if self.youtube.is_playlist_url(url):
            return await self.analyze_playlist(url)

        video_id = self.youtube.extract_video_id(url)
        if not video_id:
            raise InvalidRequestError("Invalid YouTube URL")

        logger.info(f"Analyzing video: {video_id}")

        cached = await self._cached_analysis(video_id)
        if cached:
            logger.info(f"Analysis cache hit for video {video_id}")
            return {
                "is_new": False,
                "is_playlist": False,
                "from_cache": True,
                "cache_usage_count": cached.usage_count,
                "video_data": {
                    "youtube_id": cached.youtube_id,
                    "title": cached.title,
                    "thumbnail": cached.thumbnail,
                    "channel_name": cached.channel_name,
                    "duration": cached.duration,
                    "category": cached.category,
                    "subcategory": cached.subcategory,
                    "tags": cached.tags,
                },
                "evaluation": cached.analysis_data.get("evaluation"),
                "engagement": cached.analysis_data.get("engagement"),
                "message": "Analysis retrieved from cache",
            }

        existing = await FreeResource.find_one({"youtube_id": video_id})
        if existing:
            logger.info(f"Video {video_id} already exists in the collection")
            return {
                "is_new": False,
                "is_playlist": False,
                "resource": existing,
                "message": "This video is already in our curated collection",
            }

        try:
            video = await self.youtube.get_video_details(video_id)
            comments = await self.youtube.get_video_comments(video_id, 30)
            evaluation = await self.groq.evaluate_video_quality(video, comments)
        except Exception as e:
            self.handle_error(e, "analyze_video")

        engagement = self.youtube.calculate_engagement(video.statistics)
        evaluation_data = evaluation.model_dump(mode="json")
        engagement_data = engagement.model_dump()

        if evaluation.is_programming_tutorial:
            await self._save_video_to_cache(video, evaluation, evaluation_data, engagement_data)
        else:
            logger.info(f"Video {video_id} is not a programming tutorial, not caching")

        return {
            "is_new": True,
            "is_playlist": False,
            "video_data": {
                "youtube_id": video_id,
                "title": video.title,
                "description": video.description[:500],
                "thumbnail": video.best_thumbnail,
                "channel_name": video.channel_title,
                "channel_id": video.channel_id,
                "duration": video.duration,
                "published_at": video.published_at.isoformat() if video.published_at else None,
                "tags": video.tags[:10],
                "statistics": video.statistics.model_dump(mode="json"),
            },
            "evaluation": evaluation_data,
            "engagement": engagement_data,
            "message": "Video analyzed successfully",
        }

    async def analyze_playlist(self, url: str) -> Dict[str, Any]:
        """Evaluate a sample of a playlist and aggregate the results."""
        playlist_id = self.youtube.extract_playlist_id(url)
        if not playlist_id:
            raise InvalidRequestError("Invalid playlist URL")

        logger.info(f"Analyzing playlist: {playlist_id}")

        cached = await self._cached_analysis(playlist_id)
        if cached:
            logger.info(f"Analysis cache hit for playlist {playlist_id}")
            return {
                "is_new": False,
                "is_playlist": True,
                "from_cache": True,
                "cache_usage_count": cached.usage_count,
                "playlist_data": {
                    "playlist_id": cached.youtube_id,
                    "title": cached.title,
                    "thumbnail": cached.thumbnail,
                    "channel_name": cached.channel_name,
                    "category": cached.category,
                    "subcategory": cached.subcategory,
                    "tags": cached.tags,
                },
                "evaluation": cached.analysis_data.get("evaluation"),
                "aggregate_stats": cached.analysis_data.get("aggregate_stats"),
                "message": "Playlist analysis retrieved from cache",
            }

        try:
            playlist = await self.youtube.get_playlist_details(playlist_id)
            items = await self.youtube.get_playlist_items(playlist_id, PLAYLIST_FETCH_LIMIT)
            if not items:
                raise NotFoundError("Playlist is empty or private")
            videos = await self.youtube.get_multiple_video_details([item.video_id for item in items])
        except Exception as e:
            self.handle_error(e, "analyze_playlist")

        analyses = []
        for video in videos[:PLAYLIST_SAMPLE_SIZE]:
            try:
                comments = await self.youtube.get_video_comments(video.id, 20)
                analyses.append((video, await self.groq.evaluate_video_quality(video, comments)))
            except Exception as e:
                logger.warning(f"Failed to analyze playlist video {video.id}: {e}")

        result = summarize_playlist(playlist, videos, analyses)

        if result["evaluation"]["is_programming_playlist"]:
            await self._save_playlist_to_cache(playlist, result)
        else:
            logger.info(f"Playlist {playlist_id} is not a programming playlist, not caching")

        return result

    async def _cached_analysis(self, youtube_id: str) -> Optional[YouTubeAnalysisCache]:
        try:
            return await YouTubeAnalysisCache.find_by_youtube_id(youtube_id)
        except Exception as e:
            logger.warning(f"Analysis cache lookup failed for {youtube_id}: {e}")
            return None

    async def _save_video_to_cache(
        self,
        video: VideoDetails,
        evaluation: VideoEvaluation,
        evaluation_data: Dict[str, Any],
        engagement_data: Dict[str, Any],
    ):
        category = map_to_category(evaluation.detected_category).value
        try:
            await YouTubeAnalysisCache(
                youtube_id=video.id,
                type=AnalysisType.VIDEO,
                title=video.title,
                channel_name=video.channel_title,
                thumbnail=video.best_thumbnail,
                duration=video.duration,
                category=category,
                tags=extract_tags(evaluation.detected_category, video.tags),
                analysis_data={"evaluation": evaluation_data, "engagement": engagement_data},
            ).insert()
            logger.info(f"Cached analysis of video {video.id} [{category}]")
        except DuplicateKeyError:
            pass
        except Exception as e:
            logger.warning(f"Failed to cache video {video.id}: {e}")

    async def _save_playlist_to_cache(self, playlist: PlaylistDetails, result: Dict[str, Any]):
        detected = result["evaluation"]["detected_categories"]
        counts = Counter(map_to_category(category).value for category in detected)
        category = counts.most_common(1)[0][0] if counts else "other"
        tags = _unique((c.lower() for c in detected), 10)

        try:
            await YouTubeAnalysisCache(
                youtube_id=playlist.id,
                type=AnalysisType.PLAYLIST,
                title=playlist.title,
                channel_name=playlist.channel_title,
                thumbnail=playlist.thumbnail,
                duration=f"{result['aggregate_stats']['avg_duration_minutes']} min avg",
                category=category,
                tags=tags,
                analysis_data={
                    "evaluation": result["evaluation"],
                    "aggregate_stats": result["aggregate_stats"],
                },
            ).insert()
            logger.info(f"Cached analysis of playlist {playlist.id} [{category}]")
        except DuplicateKeyError:
            pass
        except Exception as e:
            logger.warning(f"Failed to cache playlist {playlist.id}: {e}")

    async def get_cached_analyses(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Browse the analysis cache by search text or category."""
        if search:
            entries = await YouTubeAnalysisCache.search(search, page, limit, category, type)
        elif category:
            entries = await YouTubeAnalysisCache.browse_by_category(category, subcategory, type, page, limit)
        else:
            entries = await YouTubeAnalysisCache.get_popular(limit)
        return {"data": entries, "categories": await YouTubeAnalysisCache.get_category_tree()}

    # Mutations

    async def create_resource(self, data: Dict[str, Any]) -> FreeResource:
        self.validate_params(data, ["youtube_id", "title", "category"])

        if await FreeResource.find_one({"youtube_id": data["youtube_id"]}):
            raise ConflictError("Video already exists in the collection")

        resource = FreeResource(**data)
        await resource.insert()
        logger.info(f"Created resource {resource.id} ({resource.youtube_id})")
        return resource

    async def add_from_analysis(
        self,
        analysis: Dict[str, Any],
        category: str,
        additional: Optional[Dict[str, Any]] = None,
    ) -> FreeResource:
        """Create a resource from an ``analyze_video`` result."""
        if not analysis.get("is_new"):
            raise ConflictError("Video already exists")

        evaluation = VideoEvaluation.model_validate(analysis.get("evaluation") or {})
        video_data = dict(analysis.get("video_data") or {})
        video_data.pop("category", None)
        video_data.pop("subcategory", None)

        data = {
            **video_data,
            "category": category,
            "code_learnn_score": evaluation.code_learnn_score,
            "quality_tier": evaluation.quality_tier,
            "ai_analysis": evaluation.to_ai_analysis().model_copy(update={"evaluated_at": datetime.utcnow()}),
            **(additional or {}),
        }
        return await self.create_resource(data)

    async def update_resource(self, resource_id: PydanticObjectId, data: Dict[str, Any]) -> FreeResource:
        resource = await self.get_by_id(resource_id)
        for field, value in data.items():
            setattr(resource, field, value)
        await resource.save()
        logger.info(f"Updated resource {resource_id}")
        return resource

    async def delete_resource(self, resource_id: PydanticObjectId):
        resource = await self.get_by_id(resource_id)
        await resource.delete()
        logger.info(f"Deleted resource {resource_id}")

    async def refresh_statistics(self, resource_id: PydanticObjectId) -> FreeResource:
        resource = await self.get_by_id(resource_id)
        try:
            video = await self.youtube.get_video_details(resource.youtube_id)
        except Exception as e:
            self.handle_error(e, "refresh_statistics")
        await resource.update_statistics(video.statistics)
        logger.info(f"Refreshed statistics for resource {resource_id}")
        return resource

    async def re_evaluate(self, resource_id: PydanticObjectId) -> FreeResource:
        resource = await self.get_by_id(resource_id)
        try:
            video = await self.youtube.get_video_details(resource.youtube_id)
            comments = await self.youtube.get_video_comments(resource.youtube_id, 30)
            evaluation = await self.groq.evaluate_video_quality(video, comments)
        except Exception as e:
            self.handle_error(e, "re_evaluate")

        await resource.update_ai_analysis(evaluation)
        await resource.update_statistics(video.statistics)
        logger.info(f"Re-evaluated resource {resource_id}: score {resource.code_learnn_score}")
        return resource


# Global instance
free_resource_service = FreeResourceService()
