"""
YouTube Data API v3 client.

Fetches video, playlist, comment and channel metadata. Responses are cached
in-process for 30 minutes and transient failures are retried.
"""

import re
from datetime import datetime
from typing import Optional, List, Dict, Any

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from config.settings import settings
from backend.models import VideoStatistics
from backend.utils import parse_iso_duration
from .base_service import (
    BaseService,
    ConfigurationError,
    ExternalAPIError,
    InvalidRequestError,
    NotFoundError,
    QuotaExceededError,
)


VIDEO_URL_PATTERN = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/"
    r"|youtube\.com/shorts/|youtube\.com/live/)([^#&?\s]*)"
)
BARE_VIDEO_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")
PLAYLIST_ID_PATTERN = re.compile(r"[?&]list=([a-zA-Z0-9_-]+)")

# YouTube's hard limit per request
MAX_RESULTS_PER_PAGE = 50
UNAVAILABLE_TITLES = ("Private video", "Deleted video")


class VideoDetails(BaseModel):
    id: str
    title: str
    description: str = ""
    channel_id: Optional[str] = None
    channel_title: Optional[str] = None
    published_at: Optional[datetime] = None
    thumbnails: Dict[str, Any] = Field(default_factory=dict)
    duration: str = "0:00"
    duration_raw: str = ""
    tags: List[str] = Field(default_factory=list)
    category_id: Optional[str] = None
    statistics: VideoStatistics = Field(default_factory=VideoStatistics)

    @property
    def best_thumbnail(self) -> Optional[str]:
        for size in ("high", "medium", "default"):
            url = (self.thumbnails.get(size) or {}).get("url")
            if url:
                return url
        return None


class VideoComment(BaseModel):
    id: str
    text: str = ""
    author_name: Optional[str] = None
    like_count: int = 0
    published_at: Optional[datetime] = None


class PlaylistItem(BaseModel):
    video_id: str
    title: str
    description: str = ""
    thumbnail: Optional[str] = None
    position: int = 0
    published_at: Optional[datetime] = None


class PlaylistDetails(BaseModel):
    id: str
    title: str
    description: str = ""
    channel_title: Optional[str] = None
    channel_id: Optional[str] = None
    thumbnail: Optional[str] = None
    video_count: int = 0
    published_at: Optional[datetime] = None


class ChannelDetails(BaseModel):
    id: str
    title: str
    description: str = ""
    thumbnail: Optional[str] = None
    subscriber_count: int = 0
    video_count: int = 0


class Engagement(BaseModel):
    like_ratio: float = 0
    comment_ratio: float = 0
    engagement_score: float = 0


def extract_video_id(url: str) -> Optional[str]:
    """Video id from any common YouTube URL form, or a bare 11-character id."""
    if not url:
        return None
    url = url.strip()
    match = VIDEO_URL_PATTERN.search(url)
    if match and match.group(1):
        return match.group(1)
    if BARE_VIDEO_ID_PATTERN.match(url):
        return url
    return None


def extract_playlist_id(url: str) -> Optional[str]:
    if not url:
        return None
    match = PLAYLIST_ID_PATTERN.search(url)
    return match.group(1) if match else None


def is_playlist_url(url: str) -> bool:
    return extract_playlist_id(url) is not None


def is_valid_youtube_url(url: str) -> bool:
    return extract_video_id(url) is not None or is_playlist_url(url)


def calculate_engagement(stats: VideoStatistics) -> Engagement:
    """Like and comment ratios as percentages of views."""
    views = stats.view_count
    if views <= 0:
        return Engagement()
    return Engagement(
        like_ratio=stats.like_count / views * 100,
        comment_ratio=stats.comment_count / views * 100,
        engagement_score=(stats.like_count + stats.comment_count * 2) / views * 100,
    )


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class YouTubeService(BaseService):
    """Service for the YouTube Data API v3."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        cache_ttl: Optional[float] = None,
        retry_base_delay: float = 1.0,
    ):
        super().__init__(
            "YouTubeService",
            cache_ttl=settings.youtube_cache_ttl_seconds if cache_ttl is None else cache_ttl,
            retry_base_delay=retry_base_delay,
        )
        self.api_key = api_key if api_key is not None else settings.youtube_api_key
        self.base_url = (base_url or settings.youtube_api_base_url).rstrip("/")
        self._client = client

    # URL helpers, exposed on the service for convenience
    extract_video_id = staticmethod(extract_video_id)
    extract_playlist_id = staticmethod(extract_playlist_id)
    is_playlist_url = staticmethod(is_playlist_url)
    is_valid_youtube_url = staticmethod(is_valid_youtube_url)
    parse_duration = staticmethod(parse_iso_duration)
    calculate_engagement = staticmethod(calculate_engagement)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=15.0)
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET an API endpoint, translating HTTP errors into service errors."""
        if not self.api_key:
            raise ConfigurationError("YouTube API key is not configured. Set YOUTUBE_API_KEY.")

        async def request() -> Dict[str, Any]:
            response = await self.client.get(
                f"{self.base_url}/{endpoint}",
                params={**params, "key": self.api_key},
            )
            if response.is_success:
                return response.json()
            raise self._error_for(response)

        return await self.with_retry(request)

    @staticmethod
    def _error_for(response: httpx.Response) -> Exception:
        status_code = response.status_code
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}
        reasons = [e.get("reason") for e in error.get("errors") or []]

        if status_code == 403 and "quotaExceeded" in reasons:
            return QuotaExceededError(
                "YouTube API quota exceeded. Please try again tomorrow.", upstream_status=403
            )
        if status_code == 403:
            return ExternalAPIError(
                "YouTube API access forbidden. Check that YouTube Data API v3 is enabled for this key.",
                upstream_status=403,
            )
        if status_code == 400:
            return InvalidRequestError("Invalid video ID or request. Please check the YouTube URL.")
        if status_code == 404:
            return NotFoundError("Video not found. It may be private or deleted.")
        return ExternalAPIError(
            f"YouTube API error {status_code}: {error.get('message', response.text[:200])}",
            upstream_status=status_code,
            retryable=status_code == 429 or status_code >= 500,
        )

    @staticmethod
    def _parse_video(item: Dict[str, Any]) -> VideoDetails:
        snippet = item.get("snippet", {})
        content = item.get("contentDetails", {})
        stats = item.get("statistics", {})
        return VideoDetails(
            id=item["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            channel_id=snippet.get("channelId"),
            channel_title=snippet.get("channelTitle"),
            published_at=snippet.get("publishedAt"),
            thumbnails=snippet.get("thumbnails") or {},
            duration=parse_iso_duration(content.get("duration")),
            duration_raw=content.get("duration", ""),
            tags=snippet.get("tags") or [],
            category_id=snippet.get("categoryId"),
            statistics=VideoStatistics(
                view_count=_to_int(stats.get("viewCount")),
                like_count=_to_int(stats.get("likeCount")),
                comment_count=_to_int(stats.get("commentCount")),
            ),
        )

    async def get_video_details(self, video_id: str) -> VideoDetails:
        cache_key = f"video_{video_id}"
        cached = self.get_cached(cache_key)
        if cached is not None:
            return cached

        data = await self._get("videos", {"id": video_id, "part": "snippet,statistics,contentDetails"})
        items = data.get("items") or []
        if not items:
            raise NotFoundError("Video not found or is private/deleted")

        video = self._parse_video(items[0])
        self.set_cache(cache_key, video)
        return video

    async def get_multiple_video_details(self, video_ids: List[str]) -> List[VideoDetails]:
        """Details for many videos, 50 per request. Failed batches are skipped."""
        videos: List[VideoDetails] = []
        for start in range(0, len(video_ids), MAX_RESULTS_PER_PAGE):
            batch = video_ids[start:start + MAX_RESULTS_PER_PAGE]
            try:
                data = await self._get(
                    "videos", {"id": ",".join(batch), "part": "snippet,statistics,contentDetails"}
                )
                videos.extend(self._parse_video(item) for item in data.get("items") or [])
            except Exception as e:
                logger.warning(f"Failed to fetch batch of {len(batch)} videos: {e}")
        return videos

    async def get_video_comments(self, video_id: str, max_results: int = 50) -> List[VideoComment]:
        """Top comments by relevance. Returns [] when comments are unavailable."""
        cache_key = f"comments_{video_id}_{max_results}"
        cached = self.get_cached(cache_key)
        if cached is not None:
            return cached

        try:
            data = await self._get("commentThreads", {
                "videoId": video_id,
                "part": "snippet",
                "maxResults": min(max_results, 100),
                "order": "relevance",
                "textFormat": "plainText",
            })
        except Exception as e:
            logger.warning(f"Could not fetch comments for video {video_id}: {e}")
            return []

        comments = []
        for item in data.get("items") or []:
            top = item.get("snippet", {}).get("topLevelComment", {}).get("snippet", {})
            comments.append(VideoComment(
                id=item.get("id", ""),
                text=top.get("textDisplay", ""),
                author_name=top.get("authorDisplayName"),
                like_count=_to_int(top.get("likeCount")),
                published_at=top.get("publishedAt"),
            ))

        self.set_cache(cache_key, comments)
        return comments

    async def get_playlist_details(self, playlist_id: str) -> PlaylistDetails:
        cache_key = f"playlist_{playlist_id}"
        cached = self.get_cached(cache_key)
        if cached is not None:
            return cached

        data = await self._get("playlists", {"id": playlist_id, "part": "snippet,contentDetails"})
        items = data.get("items") or []
        if not items:
            raise NotFoundError("Playlist not found or is private")

        item = items[0]
        snippet = item.get("snippet", {})
        thumbnails = snippet.get("thumbnails") or {}
        playlist = PlaylistDetails(
            id=item["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            channel_title=snippet.get("channelTitle"),
            channel_id=snippet.get("channelId"),
            thumbnail=(thumbnails.get("high") or thumbnails.get("medium") or {}).get("url"),
            video_count=_to_int(item.get("contentDetails", {}).get("itemCount")),
            published_at=snippet.get("publishedAt"),
        )
        self.set_cache(cache_key, playlist)
        return playlist

    async def get_playlist_items(self, playlist_id: str, max_videos: Optional[int] = 20) -> List[PlaylistItem]:
        """
        Playlist entries ordered by position.

        Follows ``nextPageToken`` until ``max_videos`` entries are collected,
        or the whole playlist when ``max_videos`` is None. Private and deleted
        entries are skipped.
        """
        cache_key = f"playlist_items_{playlist_id}_{max_videos}"
        cached = self.get_cached(cache_key)
        if cached is not None:
            return cached

        items: List[PlaylistItem] = []
        page_token: Optional[str] = None

        while max_videos is None or len(items) < max_videos:
            params = {
                "playlistId": playlist_id,
                "part": "snippet,contentDetails",
                "maxResults": MAX_RESULTS_PER_PAGE,
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._get("playlistItems", params)

            for entry in data.get("items") or []:
                snippet = entry.get("snippet", {})
                if snippet.get("title") in UNAVAILABLE_TITLES:
                    continue
                thumbnails = snippet.get("thumbnails") or {}
                items.append(PlaylistItem(
                    video_id=entry.get("contentDetails", {}).get("videoId") or snippet.get("resourceId", {}).get("videoId"),
                    title=snippet.get("title", ""),
                    description=(snippet.get("description") or "")[:200],
                    thumbnail=(thumbnails.get("medium") or thumbnails.get("default") or {}).get("url"),
                    position=_to_int(snippet.get("position")),
                    published_at=entry.get("contentDetails", {}).get("videoPublishedAt"),
                ))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        if max_videos is not None:
            items = items[:max_videos]
        items.sort(key=lambda item: item.position)

        logger.info(f"Fetched {len(items)} items from playlist {playlist_id}")
        self.set_cache(cache_key, items)
        return items

    async def get_channel_details(self, channel_id: str) -> ChannelDetails:
        cache_key = f"channel_{channel_id}"
        cached = self.get_cached(cache_key)
        if cached is not None:
            return cached

        data = await self._get("channels", {"id": channel_id, "part": "snippet,statistics"})
        items = data.get("items") or []
        if not items:
            raise NotFoundError("Channel not found")

        item = items[0]
        snippet = item.get("snippet", {})
        stats = item.get("statistics", {})
        channel = ChannelDetails(
            id=item["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            thumbnail=((snippet.get("thumbnails") or {}).get("default") or {}).get("url"),
            subscriber_count=_to_int(stats.get("subscriberCount")),
            video_count=_to_int(stats.get("videoCount")),
        )
        self.set_cache(cache_key, channel)
        return channel


# Global instance
youtube_service = YouTubeService()
