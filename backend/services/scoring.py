"""
CodeLearnn Score computation.

Pure functions: keyword pre-analysis of comments, the engagement score,
turning the LLM's JSON verdict into a 0-100 score with penalties and a
recommendation multiplier, and the quality tiers.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from backend.models import (
    AiAnalysis,
    CommentAnalysisSummary,
    ScoreBreakdown,
    ScorePenalties,
    VideoStatistics,
)
from backend.utils import clamp, parse_clock_minutes, round_half_up
from shared.constants import EvaluationConfidence, QualityTier, Recommendation


POSITIVE_KEYWORDS = [
    "great", "amazing", "best", "thank", "helpful", "excellent", "awesome", "perfect",
    "learned", "finally", "understand", "clear", "love", "fantastic", "wonderful",
]
NEGATIVE_KEYWORDS = [
    "bad", "waste", "boring", "confusing", "outdated", "wrong", "incorrect", "useless",
    "terrible", "poor", "disappointed", "skip", "misleading", "error",
]
CONFUSION_KEYWORDS = [
    "confused", "don't understand", "lost", "what?", "how?", "unclear", "makes no sense",
    "explain", "can't follow",
]
OUTDATED_KEYWORDS = [
    "outdated", "old", "deprecated", "doesn't work anymore", "not working", "updated",
    "new version", "2024", "2023",
]
QUESTION_KEYWORDS = ["?", "how do", "what is", "can you", "please explain", "help"]
PRAISE_KEYWORDS = [
    "best tutorial", "finally understand", "thank you so much", "saved my life",
    "exactly what i needed", "best ever",
]
COMPLAINT_KEYWORDS = [
    "waste of time", "too fast", "too slow", "doesn't explain", "skips over", "missing", "incomplete",
]
CLICKBAIT_INDICATORS = ["🔥", "😱", "you won't believe", "secret", "hack", "trick", "in 5 minutes", "instantly"]

RECOMMENDATION_MULTIPLIERS = {
    Recommendation.STRONGLY_RECOMMEND: 1.05,
    Recommendation.RECOMMEND: 1.0,
    Recommendation.NEUTRAL: 0.95,
    Recommendation.CAUTION: 0.85,
    Recommendation.AVOID: 0.70,
}

DEFAULT_SUB_SCORE = 5.0


class CommentStats(BaseModel):
    """Keyword-based comment pre-analysis fed to the LLM and the penalties."""
    total_analyzed: int = 0
    positive_count: int = 0
    negative_count: int = 0
    neutral_count: int = 0
    questions_count: int = 0
    complaints_count: int = 0
    praise_count: int = 0
    confusion_indicators: int = 0
    helpful_indicators: int = 0
    outdated_indicators: int = 0
    avg_likes: int = 0
    top_concerns: List[str] = Field(default_factory=list)
    top_praises: List[str] = Field(default_factory=list)
    overall_sentiment: str = "unknown"


class VideoEvaluation(BaseModel):
    """Final evaluation of one video."""
    is_programming_tutorial: bool = True
    detected_category: str = "programming"
    code_learnn_score: int = 0
    quality_tier: QualityTier = QualityTier.AVERAGE
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    penalties: ScorePenalties = Field(default_factory=ScorePenalties)
    recommendation: Recommendation = Recommendation.NEUTRAL
    evaluation_confidence: EvaluationConfidence = EvaluationConfidence.MEDIUM
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    recommended_for: str = ""
    not_recommended_for: str = ""
    summary: str = ""
    comment_analysis: CommentAnalysisSummary = Field(default_factory=CommentAnalysisSummary)
    evaluated_at: datetime = Field(default_factory=datetime.utcnow)

    def to_ai_analysis(self) -> AiAnalysis:
        return AiAnalysis(
            breakdown=self.breakdown,
            penalties=self.penalties,
            evaluation_confidence=self.evaluation_confidence,
            recommendation=self.recommendation,
            strengths=self.strengths,
            weaknesses=self.weaknesses,
            red_flags=self.red_flags,
            recommended_for=self.recommended_for,
            not_recommended_for=self.not_recommended_for,
            summary=self.summary,
            comment_analysis=self.comment_analysis,
            evaluated_at=self.evaluated_at,
        )


class QuickAssessment(BaseModel):
    quick_score: int
    is_popular: bool
    has_good_engagement: bool
    has_comments: bool
    has_clickbait: bool
    like_ratio: str
    recommendation: str  # worth_evaluating | may_skip


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def analyze_comments(comments: Sequence[Any]) -> CommentStats:
    """
    Classify comments with keyword lists.

    Highly-liked confusion/complaint comments (5+ likes) and outdated reports
    (3+ likes) become concerns; praise with 10+ likes becomes a top praise.
    ``comments`` are objects with ``text`` and ``like_count`` attributes.
    """
    if not comments:
        return CommentStats()

    stats = CommentStats(total_analyzed=len(comments))
    concerns: List[str] = []
    praises: List[str] = []
    total_likes = 0

    for comment in comments:
        text = (comment.text or "").lower()
        likes = comment.like_count or 0
        total_likes += likes

        has_positive = _contains_any(text, POSITIVE_KEYWORDS)
        has_negative = _contains_any(text, NEGATIVE_KEYWORDS)
        if has_positive and not has_negative:
            stats.positive_count += 1
        elif has_negative and not has_positive:
            stats.negative_count += 1
        else:
            stats.neutral_count += 1

        if _contains_any(text, QUESTION_KEYWORDS):
            stats.questions_count += 1
        if _contains_any(text, CONFUSION_KEYWORDS):
            stats.confusion_indicators += 1
            if likes >= 5:
                concerns.append(comment.text[:150])
        if _contains_any(text, OUTDATED_KEYWORDS):
            stats.outdated_indicators += 1
            if likes >= 3:
                concerns.append(f"Outdated content mentioned: {comment.text[:100]}")
        if _contains_any(text, PRAISE_KEYWORDS):
            stats.praise_count += 1
            stats.helpful_indicators += 1
            if likes >= 10:
                praises.append(comment.text[:150])
        if _contains_any(text, COMPLAINT_KEYWORDS):
            stats.complaints_count += 1
            if likes >= 5:
                concerns.append(comment.text[:150])

    stats.avg_likes = round_half_up(total_likes / len(comments))
    stats.top_concerns = concerns[:3]
    stats.top_praises = praises[:3]
    stats.overall_sentiment = overall_sentiment(
        stats.positive_count, stats.negative_count, stats.neutral_count
    )
    return stats


def overall_sentiment(positive: int, negative: int, neutral: int) -> str:
    total = positive + negative + neutral
    if total == 0:
        return "mixed"

    positive_ratio = positive / total
    negative_ratio = negative / total
    if positive_ratio > 0.7:
        return "very_positive"
    if positive_ratio > 0.5:
        return "positive"
    if negative_ratio > 0.6:
        return "very_negative"
    if negative_ratio > 0.4:
        return "negative"
    return "mixed"


def calculate_engagement_score(views: int, likes: int, comments: int) -> float:
    """Engagement on a 0-100 scale from like ratio, comment ratio and reach."""
    if views <= 0:
        return 0.0

    like_ratio = likes / views * 100
    if like_ratio >= 5:
        like_score = 100.0
    elif like_ratio >= 4:
        like_score = 85.0
    elif like_ratio >= 3:
        like_score = 70.0
    elif like_ratio >= 2:
        like_score = 55.0
    elif like_ratio >= 1:
        like_score = 40.0
    else:
        like_score = like_ratio * 40

    comment_ratio = comments / views * 100
    if comment_ratio >= 0.5:
        comment_score = 100.0
    elif comment_ratio >= 0.3:
        comment_score = 80.0
    elif comment_ratio >= 0.1:
        comment_score = 60.0
    else:
        comment_score = comment_ratio * 600

    # Diminishing returns on reach
    if views > 1_000_000:
        credibility_bonus = 15
    elif views > 500_000:
        credibility_bonus = 12
    elif views > 100_000:
        credibility_bonus = 10
    elif views > 50_000:
        credibility_bonus = 8
    elif views > 10_000:
        credibility_bonus = 5
    elif views > 1_000:
        credibility_bonus = 2
    else:
        credibility_bonus = 0

    return min(100.0, like_score * 0.5 + comment_score * 0.35 + credibility_bonus)


def outdated_penalty(outdated_indicators: int) -> int:
    if outdated_indicators >= 5:
        return 15
    if outdated_indicators >= 3:
        return 10
    if outdated_indicators >= 1:
        return 5
    return 0


def confusion_penalty(confusion_indicators: int, total_analyzed: int) -> int:
    ratio = confusion_indicators / total_analyzed if total_analyzed > 0 else 0
    if ratio > 0.2:
        return 10
    if ratio > 0.1:
        return 5
    return 0


def get_quality_tier(score: int) -> QualityTier:
    if score >= 85:
        return QualityTier.EXCELLENT
    if score >= 70:
        return QualityTier.GOOD
    if score >= 55:
        return QualityTier.AVERAGE
    if score >= 40:
        return QualityTier.BELOW_AVERAGE
    return QualityTier.POOR


def playlist_quality_tier(average_score: int) -> QualityTier:
    """Playlists are graded on a gentler curve than single videos."""
    if average_score >= 80:
        return QualityTier.EXCELLENT
    if average_score >= 65:
        return QualityTier.GOOD
    if average_score >= 50:
        return QualityTier.AVERAGE
    if average_score >= 35:
        return QualityTier.BELOW_AVERAGE
    return QualityTier.POOR


def _sub_score(value: Any) -> float:
    """LLM sub-score as a float in 0-10, defaulting when missing or malformed."""
    if value is None or isinstance(value, bool):
        return DEFAULT_SUB_SCORE
    try:
        return float(clamp(float(value), 0, 10))
    except (TypeError, ValueError):
        return DEFAULT_SUB_SCORE


def _recommendation(value: Any) -> Tuple[Recommendation, float]:
    """Stored label and score multiplier; unknown values are labelled neutral but not penalised."""
    try:
        recommendation = Recommendation(value)
    except ValueError:
        return Recommendation.NEUTRAL, 1.0
    return recommendation, RECOMMENDATION_MULTIPLIERS.get(recommendation, 1.0)


def _confidence(value: Any) -> EvaluationConfidence:
    try:
        return EvaluationConfidence(value)
    except ValueError:
        return EvaluationConfidence.MEDIUM


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]


def process_evaluation_result(
    ai_response: Dict[str, Any],
    statistics: VideoStatistics,
    comment_stats: CommentStats,
) -> VideoEvaluation:
    """
    Turn the LLM's JSON verdict into a ``VideoEvaluation``.

    raw = engagement*0.10 + content*2.0 + clarity*2.5 + practical*2.0
          + up_to_date*1.5 + sentiment*1.0
    minus the outdated and confusion penalties, times the recommendation
    multiplier, rounded and clamped to 0-100.
    """
    detected_category = str(ai_response.get("detectedCategory") or "programming")
    summary = str(ai_response.get("summary") or "")

    if ai_response.get("isProgrammingTutorial", True) is False:
        return VideoEvaluation(
            is_programming_tutorial=False,
            detected_category=detected_category,
            code_learnn_score=0,
            quality_tier=QualityTier.NOT_APPLICABLE,
            recommendation=Recommendation.NOT_APPLICABLE,
            evaluation_confidence=EvaluationConfidence.HIGH,
            red_flags=[f"This is not a programming tutorial. Detected category: {detected_category}"],
            recommended_for="N/A - Not a programming tutorial",
            not_recommended_for="Anyone looking for coding tutorials",
            summary=summary or (
                f"This video is not a programming tutorial. It appears to be about {detected_category}. "
                "CodeLearnn is designed for coding and tech education content only."
            ),
            comment_analysis=CommentAnalysisSummary(sentiment="not_applicable"),
        )

    content_quality = _sub_score(ai_response.get("contentQuality"))
    teaching_clarity = _sub_score(ai_response.get("teachingClarity"))
    practical_value = _sub_score(ai_response.get("practicalValue"))
    up_to_date = _sub_score(ai_response.get("upToDateScore"))
    sentiment = _sub_score(ai_response.get("commentSentiment"))
    recommendation, multiplier = _recommendation(ai_response.get("overallRecommendation", "neutral"))

    engagement = calculate_engagement_score(
        statistics.view_count, statistics.like_count, statistics.comment_count
    )
    penalties = ScorePenalties(
        outdated=outdated_penalty(comment_stats.outdated_indicators),
        confusion=confusion_penalty(comment_stats.confusion_indicators, comment_stats.total_analyzed),
    )

    raw_score = (
        engagement * 0.10
        + content_quality * 2.0
        + teaching_clarity * 2.5
        + practical_value * 2.0
        + up_to_date * 1.5
        + sentiment * 1.0
    )
    raw_score -= penalties.outdated + penalties.confusion
    raw_score *= multiplier

    score = round_half_up(clamp(raw_score, 0, 100))

    return VideoEvaluation(
        is_programming_tutorial=True,
        detected_category=detected_category,
        code_learnn_score=score,
        quality_tier=get_quality_tier(score),
        breakdown=ScoreBreakdown(
            engagement=round_half_up(engagement / 10),
            content_quality=content_quality,
            teaching_clarity=teaching_clarity,
            practical_value=practical_value,
            up_to_date_score=up_to_date,
            comment_sentiment=sentiment,
        ),
        penalties=penalties,
        recommendation=recommendation,
        evaluation_confidence=_confidence(ai_response.get("evaluationConfidence", "medium")),
        strengths=_string_list(ai_response.get("strengths")),
        weaknesses=_string_list(ai_response.get("weaknesses")),
        red_flags=_string_list(ai_response.get("redFlags")),
        recommended_for=str(ai_response.get("recommendedFor") or "General learners"),
        not_recommended_for=str(ai_response.get("notRecommendedFor") or ""),
        summary=summary,
        comment_analysis=CommentAnalysisSummary(
            sentiment=comment_stats.overall_sentiment,
            concerns=comment_stats.top_concerns,
            total_analyzed=comment_stats.total_analyzed,
        ),
    )


def quick_assessment(title: str, duration: Optional[str], statistics: VideoStatistics) -> QuickAssessment:
    """Heuristic pre-screen that needs no LLM call."""
    views = statistics.view_count
    like_ratio = statistics.like_count / views * 100 if views > 0 else 0.0
    is_popular = views > 10_000
    has_good_engagement = like_ratio > 3
    has_comments = statistics.comment_count > 10
    has_clickbait = _contains_any(title.lower(), CLICKBAIT_INDICATORS)

    score = 50
    if is_popular:
        score += 10
    if has_good_engagement:
        score += 15
    if has_comments:
        score += 5
    if parse_clock_minutes(duration) > 10:
        score += 5
    if has_clickbait:
        score -= 10

    score = int(clamp(score, 0, 100))
    return QuickAssessment(
        quick_score=score,
        is_popular=is_popular,
        has_good_engagement=has_good_engagement,
        has_comments=has_comments,
        has_clickbait=has_clickbait,
        like_ratio=f"{like_ratio:.2f}",
        recommendation="worth_evaluating" if score >= 60 else "may_skip",
    )
