"""Tests for the CodeLearnn Score computation."""

from backend.models import VideoStatistics
from backend.services.scoring import (
    CommentStats,
    RECOMMENDATION_MULTIPLIERS,
    analyze_comments,
    calculate_engagement_score,
    confusion_penalty,
    get_quality_tier,
    outdated_penalty,
    overall_sentiment,
    playlist_quality_tier,
    process_evaluation_result,
    quick_assessment,
)
from shared.constants import QualityTier, Recommendation


def verdict(**overrides):
    base = {
        "isProgrammingTutorial": True,
        "detectedCategory": "python",
        "contentQuality": 8,
        "teachingClarity": 8,
        "practicalValue": 8,
        "upToDateScore": 8,
        "commentSentiment": 8,
        "overallRecommendation": "recommend",
    }
    base.update(overrides)
    return base


class TestCommentAnalysis:
    """Keyword pre-analysis of comments."""

    def test_empty_comments(self):
        stats = analyze_comments([])
        assert stats.total_analyzed == 0
        assert stats.overall_sentiment == "unknown"

    def test_counts_and_highlights(self, comments):
        stats = analyze_comments(comments)

        assert stats.total_analyzed == 3
        assert (stats.positive_count, stats.negative_count, stats.neutral_count) == (1, 1, 1)
        assert stats.questions_count == 1
        assert stats.confusion_indicators == 1
        assert stats.outdated_indicators == 1
        assert stats.praise_count == 1
        assert stats.avg_likes == 7
        assert stats.top_praises == ["best tutorial ever, thank you so much"]
        assert stats.top_concerns == [
            "Outdated content mentioned: This is outdated and doesn't work anymore",
            "I am confused, how do I run this?",
        ]
        assert stats.overall_sentiment == "mixed"


class TestSentiment:
    """Overall sentiment thresholds."""

    def test_very_positive(self):
        assert overall_sentiment(8, 1, 1) == "very_positive"

    def test_positive(self):
        assert overall_sentiment(6, 2, 2) == "positive"

    def test_very_negative_checked_before_negative(self):
        assert overall_sentiment(1, 7, 2) == "very_negative"

    def test_negative(self):
        assert overall_sentiment(2, 5, 3) == "negative"

    def test_no_comments_is_mixed(self):
        assert overall_sentiment(0, 0, 0) == "mixed"


class TestEngagement:
    """Engagement score on a 0-100 scale."""

    def test_zero_views(self):
        assert calculate_engagement_score(0, 10, 10) == 0.0

    def test_strong_engagement(self):
        # like 5% -> 100, comment 0.5% -> 100, 50k-100k views -> +8
        assert calculate_engagement_score(100_000, 5_000, 500) == 93.0

    def test_capped_at_100(self):
        assert calculate_engagement_score(2_000_000, 200_000, 20_000) == 100.0


class TestPenalties:
    """Outdated and confusion penalties."""

    def test_outdated_penalty_steps(self):
        assert [outdated_penalty(n) for n in (0, 1, 3, 5)] == [0, 5, 10, 15]

    def test_confusion_penalty_by_ratio(self):
        assert confusion_penalty(0, 0) == 0
        assert confusion_penalty(1, 10) == 0
        assert confusion_penalty(2, 10) == 5
        assert confusion_penalty(3, 10) == 10


class TestQualityTiers:
    """Score buckets."""

    def test_video_tiers(self):
        assert get_quality_tier(85) == QualityTier.EXCELLENT
        assert get_quality_tier(70) == QualityTier.GOOD
        assert get_quality_tier(55) == QualityTier.AVERAGE
        assert get_quality_tier(40) == QualityTier.BELOW_AVERAGE
        assert get_quality_tier(39) == QualityTier.POOR

    def test_playlist_tiers_are_gentler(self):
        assert playlist_quality_tier(80) == QualityTier.EXCELLENT
        assert playlist_quality_tier(65) == QualityTier.GOOD
        assert playlist_quality_tier(50) == QualityTier.AVERAGE
        assert playlist_quality_tier(35) == QualityTier.BELOW_AVERAGE
        assert playlist_quality_tier(34) == QualityTier.POOR


class TestProcessEvaluation:
    """Turning the LLM verdict into a score."""

    def test_weighted_score(self):
        result = process_evaluation_result(verdict(), VideoStatistics(), CommentStats())
        # 8 * (2.0 + 2.5 + 2.0 + 1.5 + 1.0) = 72
        assert result.code_learnn_score == 72
        assert result.quality_tier == QualityTier.GOOD
        assert result.recommendation == Recommendation.RECOMMEND

    def test_recommendation_multiplier(self):
        result = process_evaluation_result(
            verdict(overallRecommendation="avoid"), VideoStatistics(), CommentStats()
        )
        assert RECOMMENDATION_MULTIPLIERS[Recommendation.AVOID] == 0.70
        assert result.code_learnn_score == 50
        assert result.quality_tier == QualityTier.BELOW_AVERAGE

    def test_missing_sub_scores_default_to_five(self):
        result = process_evaluation_result(
            {"isProgrammingTutorial": True}, VideoStatistics(), CommentStats()
        )
        # 5 * 9 = 45, neutral multiplier 0.95
        assert result.code_learnn_score == 43
        assert result.breakdown.content_quality == 5.0

    def test_unknown_recommendation_is_neutral(self):
        result = process_evaluation_result(
            verdict(overallRecommendation="must watch"), VideoStatistics(), CommentStats()
        )
        assert result.recommendation == Recommendation.NEUTRAL
        # unknown values keep the 1.0 multiplier: 8 * 9 = 72
        assert result.code_learnn_score == 72
        assert result.quality_tier == QualityTier.GOOD

    def test_explicit_neutral_is_discounted(self):
        result = process_evaluation_result(
            verdict(overallRecommendation="neutral"), VideoStatistics(), CommentStats()
        )
        assert result.code_learnn_score == 68

    def test_penalties_are_subtracted(self):
        stats = CommentStats(total_analyzed=10, outdated_indicators=3, confusion_indicators=3)
        result = process_evaluation_result(verdict(), VideoStatistics(), stats)
        assert result.penalties.outdated == 10
        assert result.penalties.confusion == 10
        assert result.code_learnn_score == 52

    def test_out_of_range_sub_scores_are_clamped(self):
        result = process_evaluation_result(
            verdict(contentQuality=42, teachingClarity=-3), VideoStatistics(), CommentStats()
        )
        assert result.breakdown.content_quality == 10.0
        assert result.breakdown.teaching_clarity == 0.0

    def test_non_programming_video(self):
        result = process_evaluation_result(
            {"isProgrammingTutorial": False, "detectedCategory": "cooking"},
            VideoStatistics(view_count=1_000_000),
            CommentStats(),
        )
        assert result.is_programming_tutorial is False
        assert result.code_learnn_score == 0
        assert result.quality_tier == QualityTier.NOT_APPLICABLE
        assert result.recommendation == Recommendation.NOT_APPLICABLE
        assert "cooking" in result.red_flags[0]

    def test_to_ai_analysis(self):
        result = process_evaluation_result(verdict(strengths=["Clear"]), VideoStatistics(), CommentStats())
        analysis = result.to_ai_analysis()
        assert analysis.strengths == ["Clear"]
        assert analysis.evaluated_at == result.evaluated_at


class TestQuickAssessment:
    """LLM-free pre-screen."""

    def test_worth_evaluating(self):
        stats = VideoStatistics(view_count=20_000, like_count=800, comment_count=50)
        result = quick_assessment("Learn Python", "15:00", stats)
        assert result.quick_score == 85
        assert result.like_ratio == "4.00"
        assert result.recommendation == "worth_evaluating"

    def test_clickbait_may_skip(self):
        stats = VideoStatistics(view_count=100)
        result = quick_assessment("🔥 Python in 5 minutes", "4:00", stats)
        assert result.has_clickbait is True
        assert result.quick_score == 40
        assert result.recommendation == "may_skip"
