"""
AI-generated personalized learning path model.
"""

from datetime import datetime
from typing import Optional, List, Tuple
from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING

from shared.constants import PathStatus, LearnerLevel
from backend.utils import round_half_up


class MilestoneResource(BaseModel):
    resource_id: PydanticObjectId
    order: int = 0
    is_required: bool = True
    is_completed: bool = False
    completed_at: Optional[datetime] = None


class Milestone(BaseModel):
    title: str
    description: str = ""
    order: int = 0
    estimated_duration: str = ""  # "2 weeks"
    resources: List[MilestoneResource] = Field(default_factory=list)
    is_completed: bool = False
    completed_at: Optional[datetime] = None


class UserContext(BaseModel):
    """What the learner told us when requesting the path."""
    current_level: LearnerLevel = Field(default=LearnerLevel.BEGINNER)
    prior_knowledge: List[str] = Field(default_factory=list)
    time_available: Optional[str] = None
    preferred_content_type: Optional[str] = None
    target_timeframe: Optional[str] = None


class GenerationInfo(BaseModel):
    model: str = "groq-llama"
    prompt: Optional[str] = None
    resources_considered: int = 0
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class NextResource(BaseModel):
    milestone_index: int
    milestone_title: str
    resource_id: PydanticObjectId


class PersonalizedPath(Document):
    """Personalized path document model."""

    user_id: PydanticObjectId
    title: str = Field(..., max_length=200)
    description: str = ""
    goal: str

    user_context: UserContext = Field(default_factory=UserContext)
    milestones: List[Milestone] = Field(default_factory=list)
    generation: GenerationInfo = Field(default_factory=GenerationInfo)

    # Progress
    estimated_duration: Optional[str] = None
    total_resources: int = 0
    progress: int = Field(default=0, ge=0, le=100)
    completed_milestones: int = 0
    completed_resources: int = 0
    status: PathStatus = Field(default=PathStatus.ACTIVE)

    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    last_accessed_at: datetime = Field(default_factory=datetime.utcnow)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def calculate_progress(self) -> int:
        """Recount completed items; a fully completed path is marked completed."""
        self.completed_resources, self.completed_milestones, self.progress = calculate_progress(
            self.milestones, self.total_resources
        )
        if self.progress == 100:
            self.status = PathStatus.COMPLETED
            self.completed_at = datetime.utcnow()
        return self.progress

    async def complete_resource(self, milestone_index: int, resource_id: PydanticObjectId) -> "PersonalizedPath":
        if complete_milestone_resource(self.milestones, milestone_index, resource_id):
            self.calculate_progress()
            self.last_accessed_at = datetime.utcnow()
        self.updated_at = datetime.utcnow()
        await self.save()
        return self

    def get_next_resource(self) -> Optional[NextResource]:
        return find_next_resource(self.milestones)

    @classmethod
    async def get_user_paths(cls, user_id: PydanticObjectId, status: Optional[str] = None) -> List["PersonalizedPath"]:
        query = {"user_id": user_id}
        if status:
            query["status"] = status
        return await cls.find(query).sort([("created_at", DESCENDING)]).to_list()

    class Settings:
        name = "personalized_paths"
        indexes = [
            [("user_id", ASCENDING), ("status", ASCENDING)],
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
        ]


def calculate_progress(milestones: List[Milestone], total_resources: int) -> Tuple[int, int, int]:
    """(completed resources, completed milestones, progress percent)."""
    completed = sum(1 for m in milestones for r in m.resources if r.is_completed)
    completed_milestones = sum(1 for m in milestones if m.is_completed)
    if total_resources == 0:
        return completed, completed_milestones, 0
    return completed, completed_milestones, round_half_up(completed / total_resources * 100)


def complete_milestone_resource(
    milestones: List[Milestone],
    milestone_index: int,
    resource_id: PydanticObjectId,
    now: Optional[datetime] = None,
) -> bool:
    """Mark one resource complete. Returns False when nothing changed."""
    if milestone_index < 0 or milestone_index >= len(milestones):
        return False

    milestone = milestones[milestone_index]
    resource = next((r for r in milestone.resources if str(r.resource_id) == str(resource_id)), None)
    if resource is None or resource.is_completed:
        return False

    now = now or datetime.utcnow()
    resource.is_completed = True
    resource.completed_at = now

    if all(r.is_completed for r in milestone.resources):
        milestone.is_completed = True
        milestone.completed_at = now
    return True


def find_next_resource(milestones: List[Milestone]) -> Optional[NextResource]:
    """First incomplete resource, walking milestones in order."""
    for milestone in sorted(milestones, key=lambda m: m.order):
        for resource in milestone.resources:
            if not resource.is_completed:
                return NextResource(
                    milestone_index=milestone.order,
                    milestone_title=milestone.title,
                    resource_id=resource.resource_id,
                )
    return None
