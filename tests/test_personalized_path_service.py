"""Tests for turning an LLM plan into milestones."""

from types import SimpleNamespace

from beanie import PydanticObjectId

from backend.models import UserContext
from backend.services.personalized_path_service import build_generation_prompt, build_milestones
from shared.constants import LearnerLevel


def catalogue(size):
    return [SimpleNamespace(id=PydanticObjectId()) for _ in range(size)]


class TestBuildMilestones:
    """Validation of resource indices returned by the model."""

    def test_builds_ordered_milestones(self):
        resources = catalogue(4)
        plan = {
            "milestones": [
                {"title": "Basics", "description": "Start here", "estimatedDuration": "1 week", "resourceIndices": [2, 0]},
                {"title": "Next", "resourceIndices": [3]},
            ]
        }

        milestones, total = build_milestones(plan, resources)

        assert total == 3
        assert [m.title for m in milestones] == ["Basics", "Next"]
        assert [m.order for m in milestones] == [0, 1]
        assert milestones[0].estimated_duration == "1 week"
        assert [r.resource_id for r in milestones[0].resources] == [resources[2].id, resources[0].id]
        assert [r.order for r in milestones[0].resources] == [0, 1]

    def test_drops_invalid_indices(self):
        resources = catalogue(3)
        plan = {"milestones": [{"title": "Mixed", "resourceIndices": [1, 1, 7, -1, "2", True, 2]}]}

        milestones, total = build_milestones(plan, resources)

        assert total == 2
        assert [r.resource_id for r in milestones[0].resources] == [resources[1].id, resources[2].id]

    def test_drops_empty_milestones(self):
        resources = catalogue(2)
        plan = {
            "milestones": [
                {"title": "Empty", "resourceIndices": [9]},
                "not a milestone",
                {"resourceIndices": [0]},
            ]
        }

        milestones, total = build_milestones(plan, resources)

        assert total == 1
        assert len(milestones) == 1
        assert milestones[0].title == "Milestone 1"
        assert milestones[0].order == 0

    def test_missing_milestones(self):
        assert build_milestones({}, catalogue(2)) == ([], 0)


class TestGenerationPrompt:
    def test_includes_goal_and_context(self):
        context = UserContext(current_level=LearnerLevel.INTERMEDIATE, prior_knowledge=["python", "git"])
        prompt = build_generation_prompt("Become a backend developer", context, "[0] Intro")

        assert "LEARNER GOAL: Become a backend developer" in prompt
        assert "Current level: intermediate" in prompt
        assert "python, git" in prompt
        assert "[0] Intro" in prompt
