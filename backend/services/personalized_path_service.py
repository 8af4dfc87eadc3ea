"""
Personalized learning path generation.

The LLM receives the learner's goal and context plus a numbered catalogue of
the best-scored Vault resources, and answers with milestones that reference
catalogue entries by index.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from beanie import PydanticObjectId
from loguru import logger
from pymongo import DESCENDING

from backend.models import (
    FreeResource,
    GenerationInfo,
    Milestone,
    MilestoneResource,
    PersonalizedPath,
    UserContext,
)
from .base_service import BaseService, ExternalAPIError, InvalidRequestError
from .groq_service import GroqService, groq_service, parse_json_response


CATALOGUE_SIZE = 100

SYSTEM_PROMPT = """You are a learning path architect for CodeLearnn. You design realistic, ordered learning paths made only of resources from the provided catalogue.

Rules:
- Use only catalogue indices that exist.
- Order milestones from fundamentals to advanced topics.
- 3 to 7 milestones, each with 2 to 6 resources.
- Respect the learner's level: skip basics they already know.

Respond with VALID JSON ONLY:
{
  "title": "<path title>",
  "description": "<2-3 sentences>",
  "estimatedDuration": "<e.g. 8 weeks>",
  "milestones": [
    {
      "title": "<milestone title>",
      "description": "<what this milestone achieves>",
      "estimatedDuration": "<e.g. 2 weeks>",
      "resourceIndices": [0, 4, 7]
    }
  ]
}"""


def build_catalogue(resources: Sequence[FreeResource]) -> str:
    return "\n".join(
        f"[{i}] {r.title} | {r.category.value} | {r.level.value} | score {r.code_learnn_score} | {r.duration or '?'}"
        for i, r in enumerate(resources)
    )


def build_generation_prompt(goal: str, context: UserContext, catalogue: str) -> str:
    return f"""LEARNER GOAL: {goal}

LEARNER CONTEXT:
Current level: {context.current_level.value}
Prior knowledge: {", ".join(context.prior_knowledge) or "None stated"}
Time available: {context.time_available or "Not specified"}
Preferred content: {context.preferred_content_type or "Any"}
Target timeframe: {context.target_timeframe or "Flexible"}

CATALOGUE:
{catalogue}

Design the learning path now:"""


def build_milestones(plan: Dict[str, Any], resources: Sequence[Any]) -> Tuple[List[Milestone], int]:
    """
    Turn the LLM plan into milestones.

    Unknown or repeated indices are dropped, and so are milestones left with
    no resources. Returns the milestones and the total resource count.
    """
    milestones: List[Milestone] = []
    total = 0

    for raw in plan.get("milestones") or []:
        if not isinstance(raw, dict):
            continue

        picked: List[MilestoneResource] = []
        seen = set()
        for index in raw.get("resourceIndices") or []:
            if not isinstance(index, int) or isinstance(index, bool) or index in seen:
                continue
            if 0 <= index < len(resources):
                seen.add(index)
                picked.append(MilestoneResource(resource_id=resources[index].id, order=len(picked)))

        if not picked:
            continue

        milestones.append(Milestone(
            title=str(raw.get("title") or f"Milestone {len(milestones) + 1}"),
            description=str(raw.get("description") or ""),
            order=len(milestones),
            estimated_duration=str(raw.get("estimatedDuration") or ""),
            resources=picked,
        ))
        total += len(picked)

    return milestones, total


class PersonalizedPathService(BaseService):
    """Generates and stores personalized paths."""

    def __init__(self, groq: Optional[GroqService] = None):
        super().__init__("PersonalizedPathService")
        self.groq = groq or groq_service

    async def generate_path(
        self,
        user_id: PydanticObjectId,
        goal: str,
        context: UserContext,
    ) -> PersonalizedPath:
        if not goal or not goal.strip():
            raise InvalidRequestError("A learning goal is required")

        resources = await FreeResource.find({"is_active": True}).sort(
            [("code_learnn_score", DESCENDING)]
        ).limit(CATALOGUE_SIZE).to_list()
        if not resources:
            raise InvalidRequestError("No resources available to build a path from")

        prompt = build_generation_prompt(goal, context, build_catalogue(resources))
        try:
            response = await self.groq.chat(
                [{"role": "system", "content": SYSTEM_PROMPT}, {"role": "user", "content": prompt}],
                temperature=0.4,
                max_tokens=3000,
            )
        except Exception as e:
            self.handle_error(e, "generate_path")

        plan = parse_json_response(response)
        if plan is None:
            raise ExternalAPIError("Path generation returned an unreadable plan", service=self.name)

        milestones, total = build_milestones(plan, resources)
        if not milestones:
            raise ExternalAPIError("Path generation did not reference any known resources", service=self.name)

        path = PersonalizedPath(
            user_id=user_id,
            title=str(plan.get("title") or goal)[:200],
            description=str(plan.get("description") or ""),
            goal=goal,
            user_context=context,
            milestones=milestones,
            generation=GenerationInfo(model=self.groq.model, prompt=goal, resources_considered=len(resources)),
            estimated_duration=plan.get("estimatedDuration"),
            total_resources=total,
        )
        await path.insert()
        logger.success(f"Generated path {path.id} for user {user_id}: {len(milestones)} milestones, {total} resources")
        return path


# Global instance
personalized_path_service = PersonalizedPathService()
