"""
Groq LLM client (OpenAI-compatible chat completions).

Evaluates tutorial quality from video metadata and comments and serves as a
generic chat endpoint for the import pipeline and path generation. Two API
keys may be configured; a rate-limited or rejected key hands over to the next.
"""

import json
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

import httpx
from loguru import logger

from config.settings import settings
from .base_service import BaseService, ConfigurationError, ExternalAPIError
from .scoring import VideoEvaluation, analyze_comments, process_evaluation_result, CommentStats


T = TypeVar("T")

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = """You are a FAIR, EVIDENCE-BASED and CRITICAL educational content evaluator for CodeLearnn, a platform that helps learners find high-quality programming tutorials and avoid misleading, outdated or low-value content.

Your goal is ACCURATE assessment, not harshness and not hype. Judge actual learning value.

PHASE 0 - RELEVANCE CHECK (MANDATORY)
Decide whether the video is genuinely about programming or technical education: software, web, mobile, backend and frontend development, data science, machine learning, AI, DevOps, cloud, computer science, algorithms, developer tools.
If it is NOT (entertainment, vlogs, gaming, podcasts, music, fitness, news...):
- "isProgrammingTutorial": false
- "detectedCategory": what it actually is
- all numeric scores 0
- "overallRecommendation": "not_applicable"
- the summary explains that this is not a programming tutorial
Do not evaluate further.

PHASE 1 - EVIDENCE COLLECTION
Identify the main topics, the intended audience level and the teaching style.
Positive signals: clear explanations, logical structure, explains "why" and not only "what", real-world use cases, edge cases and limitations, comments reporting success, technical discussion in comments.
Negative signals: repeated confusion, repeated bug reports, repeated "doesn't work" or "wrong", repeated "outdated" warnings, misleading claims, title/content mismatch.

PHASE 2 - WEIGHTED INTERPRETATION
Judge by proportion and severity, not by existence. A few negative comments among many positive ones is a small penalty; highly-liked critical comments matter more than random complaints. Beginner confusion on advanced content is a small penalty; confusion among the target audience is a big one.

PHASE 3 - SCORING
Start from a neutral baseline of 6 and move with the evidence. Apply hard penalties only for repeated, severe, confirmed problems: many "doesn't work" reports, clearly outdated content, incorrect core explanations.
Scale: 3-4 bad or misleading, 5 weak, 6 average, 7 good, 8 very good, 9 excellent, 10 exceptional (rare).

PHASE 4 - CONSISTENCY CHECK
Scores must match the strengths and weaknesses, the summary must match the scores, the recommendation must reflect the most serious weakness.

PHASE 5 - OUTPUT FORMAT (STRICT JSON)
Respond with VALID JSON ONLY in exactly this format:
{
  "isProgrammingTutorial": true,
  "detectedCategory": "<topic or non-programming category>",
  "contentQuality": <1-10 or 0>,
  "teachingClarity": <1-10 or 0>,
  "practicalValue": <1-10 or 0>,
  "upToDateScore": <1-10 or 0>,
  "commentSentiment": <1-10 or 0>,
  "evaluationConfidence": "<low|medium|high>",
  "overallRecommendation": "<strongly_recommend|recommend|neutral|caution|avoid|not_applicable>",
  "strengths": ["<specific, evidence-based strength>"],
  "weaknesses": ["<specific, evidence-based weakness>"],
  "redFlags": ["<serious concern, if any>"],
  "recommendedFor": "<who benefits>",
  "notRecommendedFor": "<who should avoid>",
  "summary": "<2-3 sentence honest assessment>"
}

Do NOT overrate because of popularity. Do NOT underrate because of a few complaints."""

PROMPT_POSITIVE_KEYWORDS = ["great", "helpful", "thanks", "amazing", "best", "learned", "understand"]
PROMPT_NEGATIVE_KEYWORDS = ["confus", "doesn't work", "outdated", "bad", "waste", "unclear", "wrong", "error"]
RATE_LIMIT_MESSAGES = ("429", "rate limit", "too many requests")


def _quote_comments(comments: Sequence[Any], marker: str) -> str:
    lines = []
    for comment in comments[:5]:
        text = comment.text if len(comment.text) <= 180 else f"{comment.text[:180]}..."
        lines.append(f'  [{marker}] "{text}" ({comment.like_count} likes)')
    return "\n".join(lines)


def _percent(part: int, total: int) -> int:
    return round(part / total * 100) if total > 0 else 0


def build_evaluation_prompt(video: Any, comments: Sequence[Any], stats: CommentStats) -> str:
    """User prompt: metadata, engagement ratios and the most-liked comments by kind."""
    by_likes = sorted(comments, key=lambda c: c.like_count or 0, reverse=True)
    positive = [c for c in by_likes if any(k in c.text.lower() for k in PROMPT_POSITIVE_KEYWORDS)]
    negative = [c for c in by_likes if any(k in c.text.lower() for k in PROMPT_NEGATIVE_KEYWORDS)]
    questions = [c for c in by_likes if "?" in c.text]

    counters = video.statistics
    views = counters.view_count
    like_ratio = f"{counters.like_count / views * 100:.2f}" if views > 0 else "0"
    comment_ratio = f"{counters.comment_count / views * 100:.3f}" if views > 0 else "0"
    published = video.published_at.isoformat() if video.published_at else "Unknown"
    description = (video.description or "")[:600] or "No description provided"
    tags = ", ".join(video.tags[:15]) or "None"

    return f"""EVALUATE THIS PROGRAMMING TUTORIAL CRITICALLY:

VIDEO METADATA
Title: {video.title}
Channel: {video.channel_title}
Duration: {video.duration}
Published: {published}

Description (first 600 chars):
{description}

Tags: {tags}

ENGAGEMENT STATISTICS
Views: {views:,}
Likes: {counters.like_count:,}
Comments: {counters.comment_count:,}
Like Ratio: {like_ratio}% (typical good: 3-5%)
Comment Ratio: {comment_ratio}% (typical: 0.1-0.5%)

COMMENT ANALYSIS (pre-processed)
Total Comments Analyzed: {stats.total_analyzed}
Positive Comments: {stats.positive_count} ({_percent(stats.positive_count, stats.total_analyzed)}%)
Negative Comments: {stats.negative_count} ({_percent(stats.negative_count, stats.total_analyzed)}%)
Questions Asked: {stats.questions_count}
Complaints: {stats.complaints_count}
Confusion Indicators: {stats.confusion_indicators}
Outdated Mentions: {stats.outdated_indicators}
Overall Sentiment: {stats.overall_sentiment.upper()}

POSITIVE COMMENTS (most liked)
{_quote_comments(positive, "+") or "No clearly positive comments found"}

NEGATIVE/CRITICAL COMMENTS (most liked) - PAY ATTENTION
{_quote_comments(negative, "-") or "No clearly negative comments found"}

QUESTIONS FROM VIEWERS
{_quote_comments(questions, "?") or "No questions found"}

YOUR TASK
Based on ALL the above, provide an HONEST evaluation. Check:
1. Is the title clickbait? Does the content likely match the promise?
2. Do comments mention confusion, errors or outdated content?
3. Is the video age concerning for a fast-moving tech topic?
4. Do questions suggest the video failed to explain key concepts?
5. Is this actually educational or just entertainment?

Respond with your JSON evaluation now:"""


def parse_json_response(text: str) -> Optional[Dict[str, Any]]:
    """First ``{...}`` block of an LLM reply, or None when there is none."""
    if not text:
        return None
    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        return None
    try:
        value = json.loads(match.group(0))
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def is_rate_limit_or_auth_error(error: Exception) -> bool:
    if isinstance(error, ExternalAPIError) and error.upstream_status in (401, 429):
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MESSAGES)


class GroqService(BaseService):
    """Service for AI-powered video quality evaluation."""

    def __init__(
        self,
        api_keys: Optional[List[str]] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        cache_ttl: Optional[float] = None,
        retry_base_delay: float = 1.0,
    ):
        super().__init__(
            "GroqService",
            cache_ttl=settings.groq_cache_ttl_seconds if cache_ttl is None else cache_ttl,
            retry_base_delay=retry_base_delay,
        )
        keys = settings.groq_api_keys if api_keys is None else api_keys
        self.api_keys = [key for key in keys if key]
        self.api_url = api_url or settings.groq_api_url
        self.model = model or settings.groq_model
        self.current_key_index = 0
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_keys)

    @property
    def api_key(self) -> str:
        return self.api_keys[self.current_key_index]

    def switch_to_next_key(self) -> bool:
        if self.current_key_index < len(self.api_keys) - 1:
            self.current_key_index += 1
            logger.info(f"[{self.name}] switched to API key {self.current_key_index + 1} of {len(self.api_keys)}")
            return True
        return False

    def reset_api_key(self):
        self.current_key_index = 0

    async def _with_key_fallback(self, call: Callable[[str], Awaitable[T]]) -> T:
        """
        Run ``call`` with the current key, moving to the next key on 401/429.

        Other errors propagate immediately. When every key is exhausted the
        index is reset to the first key and the last error is raised.
        """
        last_error: Optional[Exception] = None
        total = len(self.api_keys)

        for attempt in range(total):
            try:
                return await call(self.api_key)
            except Exception as e:
                if not is_rate_limit_or_auth_error(e):
                    raise
                last_error = e
                logger.warning(f"[{self.name}] API key {self.current_key_index + 1} rate limited or rejected: {e}")
                if attempt < total - 1:
                    self.switch_to_next_key()
                else:
                    logger.error(f"[{self.name}] all API keys exhausted")

        self.reset_api_key()
        raise last_error

    async def _post(self, payload: Dict[str, Any], api_key: str, timeout: float = 30.0) -> Dict[str, Any]:
        response = await self.client.post(
            self.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )
        if response.is_success:
            return response.json()
        raise ExternalAPIError(
            f"Groq API error {response.status_code}: {response.text[:200]}",
            upstream_status=response.status_code,
            retryable=response.status_code == 429 or response.status_code >= 500,
        )

    @staticmethod
    def _content(data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def evaluate_video_quality(self, video: Any, comments: Sequence[Any]) -> VideoEvaluation:
        """
        Score a video with the LLM.

        ``video`` is a ``VideoDetails``; ``comments`` are ``VideoComment``
        objects. Results are cached per video id.
        """
        cache_key = f"eval_{video.id}"
        cached = self.get_cached(cache_key)
        if cached is not None:
            return cached

        if not self.is_configured:
            raise ConfigurationError("GROQ API key is not configured. Set GROQ_API_KEY.")

        try:
            stats = analyze_comments(comments)
            payload = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_evaluation_prompt(video, comments, stats)},
                ],
                "temperature": 0.2,
                "max_tokens": 1500,
                "response_format": {"type": "json_object"},
            }
            data = await self._with_key_fallback(lambda key: self._post(payload, key))

            try:
                ai_response = json.loads(self._content(data))
            except ValueError as e:
                raise ExternalAPIError(f"LLM returned invalid JSON: {e}") from e

            result = process_evaluation_result(ai_response, video.statistics, stats)
        except Exception as e:
            self.handle_error(e, "evaluate_video_quality")

        logger.info(f"[{self.name}] evaluated {video.id}: score {result.code_learnn_score} ({result.quality_tier.value})")
        self.set_cache(cache_key, result)
        return result

    async def chat(self, messages: List[Dict[str, str]], temperature: float = 0.7, max_tokens: int = 2000) -> str:
        """Generic chat completion; returns the reply text."""
        if not self.is_configured:
            raise ConfigurationError("GROQ API key is not configured")

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        async def call(api_key: str) -> Dict[str, Any]:
            return await self.with_retry(lambda: self._post(payload, api_key, timeout=60.0))

        try:
            data = await self._with_key_fallback(call)
        except Exception as e:
            logger.error(f"[{self.name}] chat completion failed: {e}")
            raise

        return self._content(data)

    parse_json_response = staticmethod(parse_json_response)


# Global instance
groq_service = GroqService()
