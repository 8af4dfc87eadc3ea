"""Tests for the YouTube Data API client."""

import asyncio

import httpx
import pytest

from backend.models import VideoStatistics
from backend.services import (
    ConfigurationError,
    ExternalAPIError,
    NotFoundError,
    QuotaExceededError,
    YouTubeService,
)
from backend.services.youtube_service import (
    calculate_engagement,
    extract_playlist_id,
    extract_video_id,
    is_playlist_url,
    is_valid_youtube_url,
)


VIDEO_ITEM = {
    "id": "abcdefghijk",
    "snippet": {
        "title": "Pointers in C",
        "description": "All about pointers",
        "channelId": "UC1",
        "channelTitle": "CS Channel",
        "publishedAt": "2023-05-01T10:00:00Z",
        "thumbnails": {"high": {"url": "https://img/high.jpg"}},
        "tags": ["c", "pointers"],
        "categoryId": "27",
    },
    "contentDetails": {"duration": "PT1H2M3S"},
    "statistics": {"viewCount": "1000", "likeCount": "50", "commentCount": "7"},
}


def service_for(mock_client, handler, **kwargs):
    return YouTubeService(api_key="test-key", client=mock_client(handler), retry_base_delay=0, **kwargs)


class TestUrlParsing:
    """Video and playlist id extraction."""

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=abcdefghijk",
        "https://youtu.be/abcdefghijk",
        "https://www.youtube.com/embed/abcdefghijk",
        "https://www.youtube.com/shorts/abcdefghijk",
        "https://www.youtube.com/live/abcdefghijk",
        "abcdefghijk",
    ])
    def test_video_id_forms(self, url):
        assert extract_video_id(url) == "abcdefghijk"

    def test_video_id_ignores_extra_params(self):
        assert extract_video_id("https://www.youtube.com/watch?v=abcdefghijk&t=42s") == "abcdefghijk"

    def test_invalid_urls(self):
        assert extract_video_id("not a url") is None
        assert extract_video_id("") is None
        assert is_valid_youtube_url("https://example.com") is False

    def test_playlist_id(self):
        url = "https://www.youtube.com/playlist?list=PLhQjrBD2T381QSsw"
        assert extract_playlist_id(url) == "PLhQjrBD2T381QSsw"
        assert is_playlist_url(url) is True
        assert is_valid_youtube_url(url) is True

    def test_watch_url_inside_playlist_is_playlist(self):
        assert is_playlist_url("https://www.youtube.com/watch?v=abcdefghijk&list=PL123") is True


class TestEngagementRatios:
    """Like and comment ratios."""

    def test_ratios(self):
        engagement = calculate_engagement(VideoStatistics(view_count=1000, like_count=50, comment_count=10))
        assert engagement.like_ratio == 5.0
        assert engagement.comment_ratio == 1.0
        assert engagement.engagement_score == pytest.approx(7.0)

    def test_no_views(self):
        assert calculate_engagement(VideoStatistics()).engagement_score == 0


class TestVideoDetails:
    """Fetching and caching video metadata."""

    def test_parses_and_caches(self, mock_client):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            assert request.url.params["key"] == "test-key"
            assert request.url.params["id"] == "abcdefghijk"
            return httpx.Response(200, json={"items": [VIDEO_ITEM]})

        service = service_for(mock_client, handler)

        async def run():
            first = await service.get_video_details("abcdefghijk")
            second = await service.get_video_details("abcdefghijk")
            await service.close()
            return first, second

        first, second = asyncio.run(run())

        assert len(calls) == 1
        assert first is second
        assert first.title == "Pointers in C"
        assert first.duration == "1:02:03"
        assert first.statistics.view_count == 1000
        assert first.best_thumbnail == "https://img/high.jpg"

    def test_missing_video(self, mock_client):
        service = service_for(mock_client, lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(NotFoundError):
            asyncio.run(service.get_video_details("abcdefghijk"))

    def test_requires_api_key(self, mock_client):
        service = YouTubeService(api_key="", client=mock_client(lambda r: httpx.Response(200)))
        with pytest.raises(ConfigurationError):
            asyncio.run(service.get_video_details("abcdefghijk"))

    def test_quota_exceeded(self, mock_client):
        body = {"error": {"message": "quota", "errors": [{"reason": "quotaExceeded"}]}}
        service = service_for(mock_client, lambda request: httpx.Response(403, json=body))
        with pytest.raises(QuotaExceededError) as excinfo:
            asyncio.run(service.get_video_details("abcdefghijk"))
        assert excinfo.value.status_code == 429

    def test_retries_server_errors(self, mock_client):
        responses = [httpx.Response(503, text="unavailable"), httpx.Response(200, json={"items": [VIDEO_ITEM]})]
        service = service_for(mock_client, lambda request: responses.pop(0))

        video = asyncio.run(service.get_video_details("abcdefghijk"))
        assert video.id == "abcdefghijk"
        assert responses == []

    def test_gives_up_after_max_retries(self, mock_client):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, text="boom")

        service = service_for(mock_client, handler)
        with pytest.raises(ExternalAPIError):
            asyncio.run(service.get_video_details("abcdefghijk"))
        assert len(calls) == 3


class TestComments:
    """Comment threads."""

    def test_parses_comments(self, mock_client):
        body = {"items": [{
            "id": "t1",
            "snippet": {"topLevelComment": {"snippet": {
                "textDisplay": "Great video",
                "authorDisplayName": "Ann",
                "likeCount": 3,
            }}},
        }]}
        service = service_for(mock_client, lambda request: httpx.Response(200, json=body))

        comments = asyncio.run(service.get_video_comments("abcdefghijk"))
        assert len(comments) == 1
        assert comments[0].text == "Great video"
        assert comments[0].like_count == 3

    def test_disabled_comments_return_empty(self, mock_client):
        body = {"error": {"message": "disabled", "errors": [{"reason": "commentsDisabled"}]}}
        service = service_for(mock_client, lambda request: httpx.Response(403, json=body))
        assert asyncio.run(service.get_video_comments("abcdefghijk")) == []


class TestPlaylistItems:
    """Paginated playlist entries."""

    @staticmethod
    def entry(video_id, title, position):
        return {
            "snippet": {"title": title, "position": position, "thumbnails": {}},
            "contentDetails": {"videoId": video_id},
        }

    def test_follows_pages_and_skips_unavailable(self, mock_client):
        pages = {
            None: {
                "items": [self.entry("v1", "Intro", 0), self.entry("v2", "Private video", 1)],
                "nextPageToken": "page2",
            },
            "page2": {"items": [self.entry("v3", "Loops", 2)]},
        }

        def handler(request):
            return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

        service = service_for(mock_client, handler)
        items = asyncio.run(service.get_playlist_items("PL1", max_videos=None))

        assert [item.video_id for item in items] == ["v1", "v3"]

    def test_respects_max_videos(self, mock_client):
        body = {"items": [self.entry(f"v{i}", f"Video {i}", i) for i in range(5)], "nextPageToken": "more"}
        service = service_for(mock_client, lambda request: httpx.Response(200, json=body))

        items = asyncio.run(service.get_playlist_items("PL1", max_videos=3))
        assert [item.video_id for item in items] == ["v0", "v1", "v2"]


class TestBatchLookups:
    """Multi-video and channel lookups."""

    def test_batches_of_fifty_and_skips_failed_batch(self, mock_client):
        requested = []

        def handler(request):
            ids = request.url.params["id"].split(",")
            requested.append(len(ids))
            if ids[0] == "id50":
                return httpx.Response(400, json={"error": {"message": "bad id"}})
            return httpx.Response(200, json={"items": [{**VIDEO_ITEM, "id": i} for i in ids]})

        service = service_for(mock_client, handler)
        videos = asyncio.run(service.get_multiple_video_details([f"id{i}" for i in range(120)]))

        assert requested == [50, 50, 20]
        assert len(videos) == 70
        assert videos[0].id == "id0"
        assert videos[-1].id == "id119"

    def test_channel_details(self, mock_client):
        body = {
            "items": [{
                "id": "UC1",
                "snippet": {"title": "CS Channel", "thumbnails": {"default": {"url": "https://img/c.jpg"}}},
                "statistics": {"subscriberCount": "1200", "videoCount": "85"},
            }]
        }
        service = service_for(mock_client, lambda request: httpx.Response(200, json=body))

        channel = asyncio.run(service.get_channel_details("UC1"))

        assert channel.title == "CS Channel"
        assert channel.thumbnail == "https://img/c.jpg"
        assert channel.subscriber_count == 1200
        assert channel.video_count == 85

    def test_missing_channel(self, mock_client):
        service = service_for(mock_client, lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(NotFoundError):
            asyncio.run(service.get_channel_details("UC404"))
