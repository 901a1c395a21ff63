"""Data models for ProAthlete Coach."""

from .plans import (
    DAYS_PER_WEEK,
    Exercise,
    TrainingDay,
    PlanContent,
    TrainingPlan,
    generate_plan_id,
    to_camel,
)

from .athlete import (
    Sport,
    InjuryStatus,
    AthleteProfile,
    DEFAULT_PROFILE,
)

from .feedback import (
    DailyFeedback,
    feedback_for_plan,
)

__all__ = [
    # Plans
    "DAYS_PER_WEEK",
    "Exercise",
    "TrainingDay",
    "PlanContent",
    "TrainingPlan",
    "generate_plan_id",
    "to_camel",
    # Athlete
    "Sport",
    "InjuryStatus",
    "AthleteProfile",
    "DEFAULT_PROFILE",
    # Feedback
    "DailyFeedback",
    "feedback_for_plan",
]
