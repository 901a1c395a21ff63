"""Tests for the coach session shell."""

import pytest
from unittest.mock import AsyncMock

from proathlete_coach.config import DEFAULT_MODEL, AppConfiguration
from proathlete_coach.db.repository import AppStateRepository
from proathlete_coach.exceptions import (
    ConfigurationError,
    FeedbackAlreadyRecordedError,
    MalformedResponseError,
    PlanNotFoundError,
    ProfileNotFoundError,
    ValidationError,
)
from proathlete_coach.llm.providers import LLMClient
from proathlete_coach.models.feedback import DailyFeedback
from proathlete_coach.services.coach import CoachSession


@pytest.fixture
def repo(tmp_path):
    return AppStateRepository(tmp_path / "coach.db")


@pytest.fixture
def factory_calls():
    return []


@pytest.fixture
def session(repo, config, openai_stub, factory_calls):
    """Session whose LLM clients talk to the stub."""
    def factory(cfg):
        factory_calls.append(cfg)
        return LLMClient(api_key=cfg.credential, model=cfg.model_identifier, client=openai_stub)

    repo.save_settings(config)
    return CoachSession(repo, client_factory=factory)


def feedback_for(plan, day_index, **overrides):
    data = dict(
        plan_id=plan.id,
        day_index=day_index,
        rpe=7,
        fatigue=5,
        sleep_quality=4,
        pain_level=1,
        completion_rate=100,
    )
    data.update(overrides)
    return DailyFeedback(**data)


# ============================================================================
# Configuration
# ============================================================================

class TestConfiguration:
    """Tests for layering stored settings over defaults."""

    def test_defaults_when_nothing_stored(self, repo):
        default = AppConfiguration(credential="sk-env", model_identifier="gpt-4o")
        session = CoachSession(repo, default_config=default)
        assert session.configuration() == default

    def test_stored_settings_win(self, repo):
        repo.save_settings(AppConfiguration(credential="sk-stored", model_identifier="gpt-4.1"))
        session = CoachSession(repo, default_config=AppConfiguration(credential="sk-env"))
        assert session.configuration().credential == "sk-stored"
        assert session.configuration().model_identifier == "gpt-4.1"

    def test_blank_stored_key_falls_back_to_default(self, repo):
        repo.save_settings(AppConfiguration(credential=""))
        session = CoachSession(repo, default_config=AppConfiguration(credential="sk-env"))
        assert session.configuration().credential == "sk-env"

    def test_unset_stored_model_falls_back_to_default_config(self, repo):
        repo.save_settings(AppConfiguration(credential="sk-stored"))
        session = CoachSession(repo, default_config=AppConfiguration(model_identifier="gpt-4o"))
        assert session.configuration().model_identifier == "gpt-4o"

    def test_model_name_defaults_when_nothing_chosen(self):
        assert AppConfiguration().model_identifier is None
        assert AppConfiguration().model_name == DEFAULT_MODEL


# ============================================================================
# Onboarding
# ============================================================================

class TestCompleteProfile:
    """Tests for initial plan generation through the session."""

    @pytest.mark.asyncio
    async def test_generates_and_stores_week_one(self, session, repo, sample_profile):
        repo.add_feedback(DailyFeedback(
            plan_id="stale", day_index=0, rpe=5, fatigue=5,
            sleep_quality=3, pain_level=1, completion_rate=50,
        ))

        plan = await session.complete_profile(sample_profile)

        assert plan.week_number == 1
        assert repo.get_plan() == plan
        assert repo.get_profile() == sample_profile
        assert repo.list_feedback() == []

    @pytest.mark.asyncio
    async def test_missing_key_keeps_profile_and_skips_request(
        self, repo, sample_profile, openai_stub, factory_calls
    ):
        session = CoachSession(repo, client_factory=lambda cfg: factory_calls.append(cfg))

        with pytest.raises(ConfigurationError) as exc_info:
            await session.complete_profile(sample_profile)

        assert "API Key" in exc_info.value.message
        assert repo.get_profile() == sample_profile
        assert repo.get_plan() is None
        assert factory_calls == []
        assert openai_stub.chat.completions.create.await_count == 0

    @pytest.mark.asyncio
    async def test_regenerating_archives_previous_plan(self, session, repo, sample_profile):
        first = await session.complete_profile(sample_profile)
        second = await session.complete_profile(sample_profile)

        assert repo.get_plan().id == second.id
        assert [p.id for p in session.history()] == [first.id]

    @pytest.mark.asyncio
    async def test_failed_generation_keeps_current_plan(
        self, session, repo, sample_profile, sample_plan, openai_stub, completion
    ):
        repo.save_plan(sample_plan)
        openai_stub.chat.completions.create = AsyncMock(return_value=completion("not json"))

        with pytest.raises(MalformedResponseError):
            await session.complete_profile(sample_profile)

        assert repo.get_plan() == sample_plan


# ============================================================================
# Feedback
# ============================================================================

class TestSubmitFeedback:
    """Tests for logging feedback."""

    def test_requires_plan(self, session, sample_plan):
        with pytest.raises(PlanNotFoundError):
            session.submit_feedback(feedback_for(sample_plan, 0))

    def test_records_feedback(self, session, repo, sample_plan):
        repo.save_plan(sample_plan)
        session.submit_feedback(feedback_for(sample_plan, 0))
        session.submit_feedback(feedback_for(sample_plan, 1))
        assert [f.day_index for f in session.feedback()] == [0, 1]

    def test_rejects_other_plan(self, session, repo, sample_plan):
        repo.save_plan(sample_plan)
        stray = feedback_for(sample_plan, 0).model_copy(update={"plan_id": "other"})

        with pytest.raises(ValidationError) as exc_info:
            session.submit_feedback(stray)
        assert exc_info.value.details["field"] == "plan_id"

    def test_one_entry_per_day(self, session, repo, sample_plan):
        repo.save_plan(sample_plan)
        session.submit_feedback(feedback_for(sample_plan, 2))

        with pytest.raises(FeedbackAlreadyRecordedError):
            session.submit_feedback(feedback_for(sample_plan, 2, rpe=9))


# ============================================================================
# Iteration
# ============================================================================

class TestIteratePlan:
    """Tests for next-week generation through the session."""

    @pytest.mark.asyncio
    async def test_requires_profile(self, session, repo, sample_plan):
        repo.save_plan(sample_plan)
        with pytest.raises(ProfileNotFoundError):
            await session.iterate_plan()

    @pytest.mark.asyncio
    async def test_requires_plan(self, session, repo, sample_profile):
        repo.save_profile(sample_profile)
        with pytest.raises(PlanNotFoundError):
            await session.iterate_plan()

    @pytest.mark.asyncio
    async def test_advances_week_archives_and_clears(
        self, session, repo, sample_profile, sample_plan, openai_stub
    ):
        repo.save_profile(sample_profile)
        repo.save_plan(sample_plan)
        for day in range(5):
            session.submit_feedback(feedback_for(sample_plan, day, rpe=9, pain_level=1))

        new_plan = await session.iterate_plan()

        assert new_plan.week_number == 4
        assert repo.get_plan() == new_plan
        assert repo.list_feedback() == []
        assert [p.id for p in session.history()] == [sample_plan.id]

        prompt = openai_stub.chat.completions.create.await_args.kwargs["messages"][1]["content"]
        assert prompt.count(": Completed 100%, RPE 9/10") == 5

    @pytest.mark.asyncio
    async def test_uses_stored_iteration_template(
        self, session, repo, config, sample_profile, sample_plan, openai_stub
    ):
        repo.save_settings(config.model_copy(update={"iteration_plan_template": "next={{NEXT_WEEK_NUMBER}}"}))
        repo.save_profile(sample_profile)
        repo.save_plan(sample_plan)

        await session.iterate_plan()

        prompt = openai_stub.chat.completions.create.await_args.kwargs["messages"][1]["content"]
        assert prompt == "next=4"


# ============================================================================
# Progress / reset
# ============================================================================

class TestProgressAndReset:
    """Tests for the week summary and reset."""

    def test_progress_requires_plan(self, session):
        with pytest.raises(PlanNotFoundError):
            session.progress()

    def test_progress_averages(self, session, repo, sample_plan):
        repo.save_plan(sample_plan)
        session.submit_feedback(feedback_for(sample_plan, 1, rpe=8, fatigue=6, pain_level=2, completion_rate=90))
        session.submit_feedback(feedback_for(sample_plan, 0, rpe=6, fatigue=4, pain_level=1, completion_rate=100))

        progress = session.progress()

        assert progress.week_number == 3
        assert progress.completed_days == 2
        assert progress.training_days == 5
        assert progress.avg_rpe == 7.0
        assert progress.avg_fatigue == 5.0
        assert progress.avg_pain == 1.5
        assert progress.avg_completion == 95.0
        assert [e.day_index for e in progress.entries] == [0, 1]
        assert not progress.ready_to_iterate

    def test_progress_without_feedback(self, session, repo, sample_plan):
        repo.save_plan(sample_plan)
        progress = session.progress()
        assert progress.completed_days == 0
        assert progress.avg_rpe is None

    def test_reset_keeps_settings(self, session, repo, config, sample_profile, sample_plan):
        repo.save_profile(sample_profile)
        repo.save_plan(sample_plan)

        session.reset()

        assert repo.get_settings() == config
        assert session.profile is None
        assert session.plan is None
        assert session.feedback() == []
        assert repo.list_feedback() == []
