"""
FreeResource model: a curated, AI-scored YouTube tutorial in the Vault.
"""

import re
from datetime import datetime
from typing import Optional, List, Dict, Any
from beanie import Document, Indexed, PydanticObjectId, before_event, Insert, Replace, Save
from pydantic import BaseModel, Field, computed_field
from pymongo import ASCENDING, DESCENDING

from shared.constants import (
    ResourceCategory,
    ResourceLevel,
    QualityTier,
    Recommendation,
    EvaluationConfidence,
    CRelation,
    DEFAULT_PAGE_SIZE,
)


class VideoStatistics(BaseModel):
    """YouTube counters, refreshed on demand."""
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    last_updated: Optional[datetime] = None


class ScoreBreakdown(BaseModel):
    """Sub-scores on a 0-10 scale."""
    engagement: float = 0
    content_quality: float = 0
    teaching_clarity: float = 0
    practical_value: float = 0
    up_to_date_score: float = 0
    comment_sentiment: float = 0


class ScorePenalties(BaseModel):
    outdated: int = 0
    confusion: int = 0


class CommentAnalysisSummary(BaseModel):
    sentiment: str = "unknown"
    concerns: List[str] = Field(default_factory=list)
    total_analyzed: int = 0


class EnhancedDescription(BaseModel):
    """Learner-facing description written by the LLM during course import."""
    what_you_will_learn: List[str] = Field(default_factory=list)
    topics_covered: List[str] = Field(default_factory=list)
    c_relevance: Optional[str] = None
    learning_benefits: Optional[str] = None
    suggested_prerequisites: List[str] = Field(default_factory=list)
    key_takeaways: List[str] = Field(default_factory=list)


class AiAnalysis(BaseModel):
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    penalties: ScorePenalties = Field(default_factory=ScorePenalties)
    evaluation_confidence: EvaluationConfidence = Field(default=EvaluationConfidence.MEDIUM)
    recommendation: Recommendation = Field(default=Recommendation.NEUTRAL)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    recommended_for: str = ""
    not_recommended_for: str = ""
    summary: str = ""
    comment_analysis: CommentAnalysisSummary = Field(default_factory=CommentAnalysisSummary)
    evaluated_at: Optional[datetime] = None
    enhanced_description: Optional[EnhancedDescription] = None


class FreeResource(Document):
    """Free resource document model."""

    # YouTube data
    youtube_id: Indexed(str, unique=True)  # type: ignore
    title: str = Field(..., max_length=300)
    description: str = Field(default="", max_length=2000)
    thumbnail: Optional[str] = None
    channel_name: Optional[str] = None
    channel_id: Optional[str] = None
    duration: Optional[str] = None
    published_at: Optional[datetime] = None

    # Classification
    category: ResourceCategory
    subcategory: Optional[str] = None
    level: ResourceLevel = Field(default=ResourceLevel.BEGINNER)
    tags: List[str] = Field(default_factory=list)

    # Course relation
    course_id: Optional[PydanticObjectId] = None
    lecture_order: int = Field(default=0)
    lecture_number: Optional[str] = None  # "Lecture 3"
    c_relation: Optional[CRelation] = None

    # Metrics
    statistics: VideoStatistics = Field(default_factory=VideoStatistics)
    code_learnn_score: int = Field(default=0, ge=0, le=100)
    quality_tier: QualityTier = Field(default=QualityTier.AVERAGE)
    ai_analysis: AiAnalysis = Field(default_factory=AiAnalysis)

    # Status
    is_active: bool = Field(default=True)
    is_featured: bool = Field(default=False)
    added_by: Optional[PydanticObjectId] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @computed_field
    @property
    def youtube_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.youtube_id}"

    @computed_field
    @property
    def embed_url(self) -> str:
        return f"https://www.youtube.com/embed/{self.youtube_id}"

    @before_event(Insert, Replace, Save)
    def fill_defaults(self):
        """Default thumbnail and touch ``updated_at``."""
        if not self.thumbnail and self.youtube_id:
            self.thumbnail = f"https://img.youtube.com/vi/{self.youtube_id}/maxresdefault.jpg"
        self.updated_at = datetime.utcnow()

    @classmethod
    async def find_by_category(
        cls,
        category: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "code_learnn_score",
        sort_order: int = DESCENDING,
        level: Optional[str] = None,
    ) -> List["FreeResource"]:
        """Active resources of a category, best scored first."""
        query: Dict[str, Any] = {"is_active": True, "category": category}
        if level:
            query["level"] = level

        resources = await cls.find(query).sort(
            [(sort_by, sort_order)]
        ).skip((page - 1) * limit).limit(limit).to_list()
        return hide_weaknesses(resources)

    @classmethod
    async def get_featured(cls, limit: int = 6) -> List["FreeResource"]:
        resources = await cls.find(
            {"is_active": True, "is_featured": True}
        ).sort([("code_learnn_score", DESCENDING)]).limit(limit).to_list()
        return hide_weaknesses(resources)

    @classmethod
    async def search(cls, query: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> List["FreeResource"]:
        """Case-insensitive search over title, description, tags and channel."""
        resources = await cls.find(
            {"is_active": True, "$or": search_clauses(query)}
        ).sort([("code_learnn_score", DESCENDING)]).skip((page - 1) * limit).limit(limit).to_list()
        return hide_weaknesses(resources)

    async def update_statistics(self, stats: VideoStatistics) -> "FreeResource":
        self.statistics = stats.model_copy(update={"last_updated": datetime.utcnow()})
        await self.save()
        return self

    async def update_ai_analysis(self, evaluation) -> "FreeResource":
        """Store a fresh ``VideoEvaluation`` (score, tier and analysis)."""
        enhanced = self.ai_analysis.enhanced_description
        self.code_learnn_score = evaluation.code_learnn_score
        self.quality_tier = evaluation.quality_tier
        self.ai_analysis = evaluation.to_ai_analysis()
        self.ai_analysis.evaluated_at = datetime.utcnow()
        if self.ai_analysis.enhanced_description is None:
            self.ai_analysis.enhanced_description = enhanced
        await self.save()
        return self

    class Settings:
        name = "free_resources"
        indexes = [
            "course_id",
            [("category", ASCENDING), ("code_learnn_score", DESCENDING)],
            [("is_active", ASCENDING), ("category", ASCENDING), ("created_at", DESCENDING)],
            [("category", ASCENDING), ("level", ASCENDING)],
        ]

    class Config:
        json_schema_extra = {
            "example": {
                "youtube_id": "EerdGm-ehJQ",
                "title": "JavaScript Tutorial Full Course",
                "category": "javascript",
                "level": "beginner",
                "code_learnn_score": 82,
                "quality_tier": "good",
            }
        }


def search_clauses(query: str) -> List[Dict[str, Any]]:
    """``$or`` clauses matching a query against the searchable fields."""
    pattern = {"$regex": re.escape(query), "$options": "i"}
    return [
        {"title": pattern},
        {"description": pattern},
        {"tags": pattern},
        {"channel_name": pattern},
    ]


def hide_weaknesses(resources: List[FreeResource]) -> List[FreeResource]:
    """Blank out weaknesses for list views; detail views keep them."""
    for resource in resources:
        resource.ai_analysis.weaknesses = []
    return resources
