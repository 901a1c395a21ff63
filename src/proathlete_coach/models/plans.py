"""Training plan data models.

A plan is one weekly microcycle: seven TrainingDay entries, each holding an
ordered list of Exercise prescriptions. Plans are frozen once created;
iterating produces a new plan with the next week number.
"""

from datetime import datetime, timezone
from typing import List, Optional
import time
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DAYS_PER_WEEK = 7


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def generate_plan_id() -> str:
    """Create an opaque plan identifier derived from the generation time."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class Exercise(BaseModel):
    """A single exercise prescription."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    name: str = Field(..., description="Exercise name")
    sets: int = Field(..., gt=0, description="Number of sets")
    # Strings so ranges ("8-10") and "AMRAP" survive
    reps: str = Field(..., description="Reps per set")
    intensity: str = Field(..., description="RPE, %1RM or zone label")
    rest: Optional[str] = Field(default=None, description="Rest interval")
    notes: Optional[str] = Field(default=None, description="Coaching notes")


class TrainingDay(BaseModel):
    """One day of the microcycle."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    day_index: int = Field(..., ge=0, lt=DAYS_PER_WEEK, description="0-6, chronological")
    day_name: str = Field(..., description="Monday, Tuesday...")
    focus: str = Field(..., description="Hypertrophy, Power, Recovery, etc.")
    description: str = Field(default="", description="Free-text session description")
    is_rest_day: bool = Field(..., description="Whether this is a rest day")
    exercises: List[Exercise] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value):
        return "" if value is None else value

    @model_validator(mode="after")
    def _rest_day_has_no_exercises(self) -> "TrainingDay":
        if self.is_rest_day and self.exercises:
            raise ValueError(f"rest day {self.day_index} must not prescribe exercises")
        return self


class PlanContent(BaseModel):
    """The part of a plan produced by the model: summary plus seven days."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    summary: str = Field(..., description="Executive summary of the training phase")
    days: List[TrainingDay] = Field(..., description="Exactly seven days, indices 0-6")

    @field_validator("days")
    @classmethod
    def _check_week_coverage(cls, days: List[TrainingDay]) -> List[TrainingDay]:
        indices = [day.day_index for day in days]
        if sorted(indices) != list(range(DAYS_PER_WEEK)):
            raise ValueError(
                f"days must cover day indices 0-{DAYS_PER_WEEK - 1} exactly once, got {indices}"
            )
        # Chronological regardless of the order the model used
        return sorted(days, key=lambda d: d.day_index)


class TrainingPlan(PlanContent):
    """
    A complete weekly training plan.

    Immutable: adapting a plan creates a new TrainingPlan with
    week_number incremented, the previous one is left untouched.
    """

    id: str = Field(default_factory=generate_plan_id, description="Opaque plan identifier")
    start_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the plan was generated",
    )
    week_number: int = Field(default=1, ge=1, description="Week in the progression, starts at 1")

    @classmethod
    def from_content(cls, content: PlanContent, week_number: int = 1) -> "TrainingPlan":
        """Wrap model-produced content in a freshly identified plan."""
        return cls(
            summary=content.summary,
            days=content.days,
            week_number=week_number,
        )

    def get_day(self, day_index: int) -> Optional[TrainingDay]:
        """Get the day with the given index, if any."""
        for day in self.days:
            if day.day_index == day_index:
                return day
        return None

    @property
    def training_days(self) -> List[TrainingDay]:
        """Days that are not rest days."""
        return [day for day in self.days if not day.is_rest_day]

    def to_dict(self) -> dict:
        """Convert to a camelCase dictionary for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)
