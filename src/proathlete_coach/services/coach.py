"""
Coach session service.

The application shell around the plan request protocol: it owns the
persisted app state (through an injected AppStateRepository), decides which
data goes into a plan request, and applies the result.

Flow:
1. save_settings -> configure credential / model / templates
2. complete_profile -> store profile, generate week 1, clear feedback
3. submit_feedback -> log one entry per plan day
4. iterate_plan -> generate the next week from the logged feedback,
   archive the old plan, clear feedback
"""

from dataclasses import dataclass, field
from typing import List, Optional
import asyncio
import logging

from ..config import AppConfiguration
from ..db.repository import AppStateRepository
from ..exceptions import (
    ConfigurationError,
    FeedbackAlreadyRecordedError,
    PlanNotFoundError,
    ProfileNotFoundError,
    ValidationError,
)
from ..llm.providers import RetryConfig
from ..models.athlete import AthleteProfile
from ..models.feedback import DailyFeedback, feedback_for_plan
from ..models.plans import DAYS_PER_WEEK, TrainingPlan
from .plan_service import ClientFactory, request_initial_plan, request_iterated_plan


logger = logging.getLogger(__name__)


@dataclass
class WeekProgress:
    """Feedback-derived progress for the current plan."""
    plan_id: str
    week_number: int
    completed_days: int
    training_days: int
    avg_rpe: Optional[float] = None
    avg_fatigue: Optional[float] = None
    avg_pain: Optional[float] = None
    avg_completion: Optional[float] = None
    entries: List[DailyFeedback] = field(default_factory=list)

    @property
    def completion_ratio(self) -> float:
        """Share of the week's days with feedback logged."""
        return self.completed_days / DAYS_PER_WEEK

    @property
    def ready_to_iterate(self) -> bool:
        """True once there is at least as much feedback as training days."""
        return self.completed_days >= max(self.training_days, 1)


def _average(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 1)


class CoachSession:
    """
    Single-athlete coaching session backed by local storage.

    Plan requests are serialized with an asyncio.Lock so two overlapping
    requests cannot race to overwrite the current plan.
    """

    def __init__(
        self,
        repository: AppStateRepository,
        default_config: Optional[AppConfiguration] = None,
        client_factory: Optional[ClientFactory] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize the session.

        Args:
            repository: Where app state lives
            default_config: Fallback configuration (usually from the
                environment) for fields the stored settings leave blank
            client_factory: Builds LLM clients for plan requests
            retry_config: Retry policy for the default client
        """
        self.repository = repository
        self._default_config = default_config or AppConfiguration()
        self._client_factory = client_factory
        self._retry_config = retry_config
        self._plan_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configuration(self) -> AppConfiguration:
        """Stored settings layered over the default configuration."""
        stored = self.repository.get_settings()
        if stored is None:
            return self._default_config
        return stored.merged_with(self._default_config)

    def save_settings(self, config: AppConfiguration) -> None:
        self.repository.save_settings(config)

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def profile(self) -> Optional[AthleteProfile]:
        return self.repository.get_profile()

    @property
    def plan(self) -> Optional[TrainingPlan]:
        return self.repository.get_plan()

    def feedback(self) -> List[DailyFeedback]:
        """Feedback logged against the current plan."""
        plan = self.plan
        if plan is None:
            return []
        return feedback_for_plan(self.repository.list_feedback(), plan.id)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def complete_profile(self, profile: AthleteProfile) -> TrainingPlan:
        """
        Save the profile and generate the first week for it.

        The profile is stored even when generation fails so the athlete
        does not have to re-enter it.
        """
        self.repository.save_profile(profile)

        config = self.configuration()
        if not config.has_credential:
            raise ConfigurationError(
                message="Please configure your API Key first.",
                setting="credential",
            )

        async with self._plan_lock:
            new_plan = await request_initial_plan(
                profile,
                config,
                client_factory=self._client_factory,
                retry_config=self._retry_config,
            )
            previous = self.repository.get_plan()
            if previous is not None:
                self.repository.archive_plan(previous)
            self.repository.save_plan(new_plan)
            self.repository.clear_feedback()

        return new_plan

    def submit_feedback(self, feedback: DailyFeedback) -> DailyFeedback:
        """Log feedback for a day of the current plan."""
        plan = self.plan
        if plan is None:
            raise PlanNotFoundError()
        if feedback.plan_id != plan.id:
            raise ValidationError(
                message=f"Feedback targets plan '{feedback.plan_id}', current plan is '{plan.id}'",
                field="plan_id",
            )

        existing = feedback_for_plan(self.repository.list_feedback(), plan.id)
        if any(f.day_index == feedback.day_index for f in existing):
            raise FeedbackAlreadyRecordedError(plan.id, feedback.day_index)

        self.repository.add_feedback(feedback)
        logger.info(f"Recorded feedback for day {feedback.day_index} of plan {plan.id}")
        return feedback

    async def iterate_plan(self) -> TrainingPlan:
        """Generate next week's plan from the current plan's feedback."""
        profile = self.profile
        if profile is None:
            raise ProfileNotFoundError()

        async with self._plan_lock:
            current = self.plan
            if current is None:
                raise PlanNotFoundError()

            new_plan = await request_iterated_plan(
                current,
                self.repository.list_feedback(),
                profile,
                self.configuration(),
                client_factory=self._client_factory,
                retry_config=self._retry_config,
            )
            self.repository.archive_plan(current)
            self.repository.save_plan(new_plan)
            self.repository.clear_feedback()

        return new_plan

    def progress(self) -> WeekProgress:
        """Summarize the logged feedback for the current plan."""
        plan = self.plan
        if plan is None:
            raise PlanNotFoundError()

        entries = sorted(self.feedback(), key=lambda f: f.day_index)
        return WeekProgress(
            plan_id=plan.id,
            week_number=plan.week_number,
            completed_days=len({e.day_index for e in entries}),
            training_days=len(plan.training_days),
            avg_rpe=_average([e.rpe for e in entries]),
            avg_fatigue=_average([e.fatigue for e in entries]),
            avg_pain=_average([e.pain_level for e in entries]),
            avg_completion=_average([e.completion_rate for e in entries]),
            entries=entries,
        )

    def history(self) -> List[TrainingPlan]:
        """Archived plans, oldest first."""
        return self.repository.list_archived_plans()

    def reset(self) -> None:
        """Delete profile, plan and feedback but keep settings."""
        self.repository.reset(keep_settings=True)
        logger.info("Session state reset (settings kept)")
