"""Tests for the plan, athlete and feedback models."""

import pydantic
import pytest

from proathlete_coach.models import (
    DEFAULT_PROFILE,
    AthleteProfile,
    DailyFeedback,
    InjuryStatus,
    Sport,
    TrainingDay,
    TrainingPlan,
    feedback_for_plan,
)
from proathlete_coach.models.plans import PlanContent, generate_plan_id, to_camel


class TestEnums:
    """Tests for enum lookups."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Tennis", Sport.TENNIS),
            ("tennis", Sport.TENNIS),
            ("football", Sport.FOOTBALL),
            ("Football (Soccer)", Sport.FOOTBALL),
            ("SPRINT", Sport.SPRINT),
        ],
    )
    def test_sport_lookup(self, value, expected):
        assert Sport(value) is expected

    def test_unknown_sport(self):
        with pytest.raises(ValueError):
            Sport("Curling")

    def test_injury_status_lookup(self):
        assert InjuryStatus("active") is InjuryStatus.ACTIVE
        assert InjuryStatus("Active Issue") is InjuryStatus.ACTIVE


class TestAthleteProfile:
    """Tests for the onboarding profile."""

    def test_camel_case_round_trip(self, sample_profile):
        data = sample_profile.to_dict()
        assert data["heightCm"] == 185
        assert data["injuryStatus"] == "Recovering"
        assert data["enduranceVo2"] is None
        assert AthleteProfile.model_validate(data) == sample_profile

    def test_active_injury(self, sample_profile):
        assert not sample_profile.has_active_injury
        active = sample_profile.model_copy(update={"injury_status": InjuryStatus.ACTIVE})
        assert active.has_active_injury

    def test_default_profile(self):
        assert DEFAULT_PROFILE.sport is Sport.FOOTBALL
        assert DEFAULT_PROFILE.injury_status is InjuryStatus.NONE
        assert DEFAULT_PROFILE.strength_squat is None

    def test_is_frozen(self, sample_profile):
        with pytest.raises(pydantic.ValidationError):
            sample_profile.age = 30


class TestDailyFeedback:
    """Tests for feedback ranges."""

    def make(self, **overrides):
        data = dict(
            plan_id="p1", day_index=0, rpe=5, fatigue=5,
            sleep_quality=3, pain_level=1, completion_rate=100,
        )
        data.update(overrides)
        return DailyFeedback(**data)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("rpe", 0),
            ("rpe", 11),
            ("fatigue", 11),
            ("sleep_quality", 6),
            ("pain_level", 0),
            ("completion_rate", 101),
            ("day_index", 7),
        ],
    )
    def test_out_of_range(self, field, value):
        with pytest.raises(pydantic.ValidationError):
            self.make(**{field: value})

    def test_bounds_are_inclusive(self):
        feedback = self.make(rpe=10, fatigue=1, sleep_quality=5, pain_level=10, completion_rate=0)
        assert feedback.completion_rate == 0

    def test_feedback_for_plan(self):
        entries = [self.make(plan_id="a"), self.make(plan_id="b", day_index=1), self.make(plan_id="a", day_index=2)]
        assert [f.day_index for f in feedback_for_plan(entries, "a")] == [0, 2]


class TestTrainingPlan:
    """Tests for plan helpers."""

    def test_to_camel(self):
        assert to_camel("is_rest_day") == "isRestDay"
        assert to_camel("summary") == "summary"

    def test_plan_ids_are_unique(self):
        assert generate_plan_id() != generate_plan_id()

    def test_from_content(self, plan_payload):
        content = PlanContent.model_validate(plan_payload)
        plan = TrainingPlan.from_content(content, week_number=2)
        assert plan.week_number == 2
        assert plan.days == content.days
        assert plan.id

    def test_training_days_and_get_day(self, sample_plan):
        assert len(sample_plan.training_days) == 5
        assert sample_plan.get_day(3).is_rest_day
        assert sample_plan.get_day(9) is None

    def test_rest_day_cannot_prescribe_exercises(self, plan_payload):
        rest_day = {**plan_payload["days"][6], "exercises": plan_payload["days"][0]["exercises"]}
        with pytest.raises(pydantic.ValidationError):
            TrainingDay.model_validate(rest_day)

    def test_rest_day_without_exercises(self, plan_payload):
        assert TrainingDay.model_validate(plan_payload["days"][6]).exercises == []

    def test_week_number_starts_at_one(self, plan_payload):
        with pytest.raises(pydantic.ValidationError):
            TrainingPlan.model_validate({**plan_payload, "weekNumber": 0})
