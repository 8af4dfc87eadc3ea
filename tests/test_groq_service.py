"""Tests for the Groq LLM client."""

import asyncio
import json

import httpx
import pytest

from backend.services import ConfigurationError, ExternalAPIError, GroqService, ServiceError
from backend.services.groq_service import (
    build_evaluation_prompt,
    is_rate_limit_or_auth_error,
    parse_json_response,
)
from backend.services.scoring import analyze_comments
from shared.constants import QualityTier


def chat_reply(content):
    return {"choices": [{"message": {"content": content}}]}


class TestParseJsonResponse:
    """Extracting JSON from LLM replies."""

    def test_plain_json(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_json_wrapped_in_prose(self):
        text = 'Here is the plan:\n```json\n{"title": "C path", "milestones": []}\n```\nGood luck!'
        assert parse_json_response(text) == {"title": "C path", "milestones": []}

    def test_no_json(self):
        assert parse_json_response("I cannot help with that") is None
        assert parse_json_response("") is None

    def test_broken_json(self):
        assert parse_json_response('{"a": 1,}') is None


class TestRateLimitDetection:
    """Errors that move to the next API key."""

    def test_status_codes(self):
        assert is_rate_limit_or_auth_error(ExternalAPIError("x", upstream_status=429))
        assert is_rate_limit_or_auth_error(ExternalAPIError("x", upstream_status=401))
        assert not is_rate_limit_or_auth_error(ExternalAPIError("x", upstream_status=500))

    def test_messages(self):
        assert is_rate_limit_or_auth_error(Exception("Rate limit reached"))
        assert is_rate_limit_or_auth_error(Exception("Too Many Requests"))
        assert not is_rate_limit_or_auth_error(Exception("connection reset"))


class TestKeyFallback:
    """Switching between the primary and fallback keys."""

    def test_switch_and_reset(self):
        service = GroqService(api_keys=["k1", "k2"])
        assert service.api_key == "k1"
        assert service.switch_to_next_key() is True
        assert service.api_key == "k2"
        assert service.switch_to_next_key() is False
        service.reset_api_key()
        assert service.api_key == "k1"

    def test_empty_keys_are_dropped(self):
        service = GroqService(api_keys=["k1", None, ""])
        assert service.api_keys == ["k1"]


class TestEvaluateVideo:
    """LLM evaluation through a mocked Groq endpoint."""

    def test_scores_video(self, mock_client, video, comments, evaluation_reply):
        def handler(request):
            payload = json.loads(request.content)
            assert payload["temperature"] == 0.2
            assert payload["response_format"] == {"type": "json_object"}
            return httpx.Response(200, json=evaluation_reply)

        service = GroqService(api_keys=["k1"], client=mock_client(handler), retry_base_delay=0)
        result = asyncio.run(service.evaluate_video_quality(video, comments))

        assert result.is_programming_tutorial is True
        assert result.detected_category == "c programming"
        assert 0 < result.code_learnn_score <= 100
        assert result.quality_tier != QualityTier.NOT_APPLICABLE
        assert result.strengths == ["Clear explanations"]

    def test_falls_back_to_second_key(self, mock_client, video, comments, evaluation_reply):
        seen = []

        def handler(request):
            key = request.headers["Authorization"]
            seen.append(key)
            if key == "Bearer k1":
                return httpx.Response(429, text="rate limit")
            return httpx.Response(200, json=evaluation_reply)

        service = GroqService(api_keys=["k1", "k2"], client=mock_client(handler), retry_base_delay=0)
        result = asyncio.run(service.evaluate_video_quality(video, comments))

        assert seen == ["Bearer k1", "Bearer k2"]
        assert result.code_learnn_score > 0

    def test_all_keys_exhausted(self, mock_client, video, comments):
        service = GroqService(
            api_keys=["k1", "k2"],
            client=mock_client(lambda request: httpx.Response(429, text="rate limit")),
            retry_base_delay=0,
        )
        with pytest.raises(ExternalAPIError):
            asyncio.run(service.evaluate_video_quality(video, comments))
        assert service.current_key_index == 0

    def test_results_are_cached(self, mock_client, video, comments, evaluation_reply):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=evaluation_reply)

        service = GroqService(api_keys=["k1"], client=mock_client(handler), retry_base_delay=0)

        async def run():
            await service.evaluate_video_quality(video, comments)
            return await service.evaluate_video_quality(video, comments)

        asyncio.run(run())
        assert len(calls) == 1

    def test_invalid_json_reply(self, mock_client, video, comments):
        service = GroqService(
            api_keys=["k1"],
            client=mock_client(lambda request: httpx.Response(200, json=chat_reply("not json"))),
            retry_base_delay=0,
        )
        with pytest.raises(ServiceError):
            asyncio.run(service.evaluate_video_quality(video, comments))

    def test_requires_keys(self, video, comments):
        service = GroqService(api_keys=[])
        with pytest.raises(ConfigurationError):
            asyncio.run(service.evaluate_video_quality(video, comments))


class TestChat:
    """Generic chat completions."""

    def test_returns_reply_text(self, mock_client):
        service = GroqService(
            api_keys=["k1"],
            client=mock_client(lambda request: httpx.Response(200, json=chat_reply("hello"))),
            retry_base_delay=0,
        )
        assert asyncio.run(service.chat([{"role": "user", "content": "hi"}])) == "hello"

    def test_retries_server_errors(self, mock_client):
        responses = [httpx.Response(502, text="bad gateway"), httpx.Response(200, json=chat_reply("ok"))]
        service = GroqService(
            api_keys=["k1"],
            client=mock_client(lambda request: responses.pop(0)),
            retry_base_delay=0,
        )
        assert asyncio.run(service.chat([{"role": "user", "content": "hi"}])) == "ok"


class TestEvaluationPrompt:
    """Prompt construction."""

    def test_includes_metadata_and_comment_stats(self, video, comments):
        prompt = build_evaluation_prompt(video, comments, analyze_comments(comments))
        assert video.title in prompt
        assert "freeCodeCamp.org" in prompt
