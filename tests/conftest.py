"""Shared fixtures for ProAthlete Coach tests."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from proathlete_coach.config import AppConfiguration
from proathlete_coach.models.athlete import AthleteProfile, InjuryStatus, Sport
from proathlete_coach.models.plans import TrainingPlan


DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def build_plan_payload(summary: str = "Base strength and speed week") -> dict:
    """A model response body matching the plan schema (camelCase)."""
    days = []
    for index, name in enumerate(DAY_NAMES):
        rest = index in (3, 6)
        days.append({
            "dayIndex": index,
            "dayName": name,
            "focus": "Recovery" if rest else "Power",
            "description": None if rest else f"{name} power session",
            "isRestDay": rest,
            "exercises": [] if rest else [
                {
                    "name": "Back Squat",
                    "sets": 4,
                    "reps": "5",
                    "intensity": "RPE 7",
                    "rest": "3 min",
                    "notes": None,
                },
                {
                    "name": "Box Jump",
                    "sets": 3,
                    "reps": "AMRAP",
                    "intensity": "Max intent",
                    "rest": None,
                    "notes": "Step down",
                },
            ],
        })
    return {"summary": summary, "days": days}


def make_completion(content, refusal=None):
    """Shape of an OpenAI chat completion as seen by the client."""
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def plan_payload():
    return build_plan_payload()


@pytest.fixture
def plan_json(plan_payload):
    return json.dumps(plan_payload)


@pytest.fixture
def openai_stub(plan_json):
    """Stand-in for AsyncOpenAI returning a valid plan."""
    stub = MagicMock()
    stub.chat.completions.create = AsyncMock(return_value=make_completion(plan_json))
    stub.close = AsyncMock()
    return stub


@pytest.fixture
def sample_profile():
    return AthleteProfile(
        name="Alex",
        age=22,
        height_cm=185,
        weight_kg=78.5,
        sport=Sport.TENNIS,
        training_age=4,
        injury_history="Left ankle sprain 2023",
        injury_status=InjuryStatus.RECOVERING,
        strength_squat=140,
        speed_10m=1.72,
        endurance_vo2=None,
        sport_specific_stats="First serve 190 km/h",
        goals="Faster first step",
        constraints="4 sessions a week, full gym",
    )


@pytest.fixture
def config():
    return AppConfiguration(
        credential="sk-test-0123456789abcdefghijklmnop",
        model_identifier="gpt-4o-mini",
    )


@pytest.fixture
def sample_plan(plan_payload):
    return TrainingPlan.model_validate({**plan_payload, "id": "plan-week-3", "weekNumber": 3})


@pytest.fixture
def completion():
    """Factory for fake chat completions."""
    return make_completion


@pytest.fixture
def payload_factory():
    """Factory for plan response bodies."""
    return build_plan_payload
