"""Daily subjective feedback logged against a training plan."""

from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .plans import to_camel


class DailyFeedback(BaseModel):
    """How a single session felt, tied to a plan by plan_id and day_index."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    plan_id: str = Field(..., description="Plan the feedback belongs to")
    day_index: int = Field(..., ge=0, le=6, description="Day of the plan (0-6)")
    rpe: int = Field(..., ge=1, le=10, description="Rating of perceived exertion")
    fatigue: int = Field(..., ge=1, le=10)
    sleep_quality: int = Field(..., ge=1, le=5)
    pain_level: int = Field(..., ge=1, le=10)
    pain_location: Optional[str] = Field(default=None)
    completion_rate: int = Field(..., ge=0, le=100, description="Percent of the session completed")
    notes: Optional[str] = Field(default=None)

    def to_dict(self) -> dict:
        """Convert to a camelCase dictionary for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)


def feedback_for_plan(feedbacks: Iterable[DailyFeedback], plan_id: str) -> List[DailyFeedback]:
    """Keep only the entries logged against ``plan_id``, preserving order."""
    return [f for f in feedbacks if f.plan_id == plan_id]
