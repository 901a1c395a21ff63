"""Athlete profile model collected during onboarding."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .plans import to_camel


class Sport(str, Enum):
    """Sports the coach can program for."""
    FOOTBALL = "Football (Soccer)"
    BASKETBALL = "Basketball"
    SPRINT = "Sprint (Track)"
    TENNIS = "Tennis"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value):
        # Accept short names such as "Football" or "sprint"
        if isinstance(value, str):
            needle = value.strip().lower()
            for member in cls:
                if needle in (member.name.lower(), member.value.lower()):
                    return member
        return None


class InjuryStatus(str, Enum):
    """Current injury state of the athlete."""
    NONE = "None"
    RECOVERING = "Recovering"
    ACTIVE = "Active Issue"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            needle = value.strip().lower()
            for member in cls:
                if needle in (member.name.lower(), member.value.lower()):
                    return member
        return None


class AthleteProfile(BaseModel):
    """
    Demographic and performance snapshot of the athlete.

    Created once during onboarding and may be edited and resubmitted.
    Frozen so a profile cannot change while a plan request is in flight.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    name: str = Field(default="", description="Athlete name")
    age: int = Field(..., gt=0, lt=120, description="Age in years")
    height_cm: float = Field(..., gt=0, description="Height in centimetres")
    weight_kg: float = Field(..., gt=0, description="Body weight in kilograms")
    body_fat_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    sport: Sport = Field(..., description="Primary sport")
    training_age: float = Field(default=0, ge=0, description="Years of structured training")
    injury_history: str = Field(default="None", description="Free-text injury history")
    injury_status: InjuryStatus = Field(default=InjuryStatus.NONE)

    # Performance metrics
    strength_squat: Optional[float] = Field(default=None, description="Squat 1RM estimate")
    speed_10m: Optional[float] = Field(default=None, description="10m sprint time in seconds")
    endurance_vo2: Optional[float] = Field(default=None, description="VO2max or Cooper test distance")
    sport_specific_stats: str = Field(default="", description="Free-text sport specific stats")

    goals: str = Field(default="", description="Training goals")
    constraints: str = Field(default="", description="Days per week, equipment, etc.")

    @property
    def has_active_injury(self) -> bool:
        return self.injury_status == InjuryStatus.ACTIVE

    def to_dict(self) -> dict:
        """Convert to a camelCase dictionary for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)


DEFAULT_PROFILE = AthleteProfile(
    name="",
    age=24,
    height_cm=180,
    weight_kg=75,
    sport=Sport.FOOTBALL,
    training_age=5,
    injury_history="None",
    injury_status=InjuryStatus.NONE,
    sport_specific_stats="",
    goals="Increase explosive power and maintain endurance during season.",
    constraints="Training 4 days a week. Gym access available.",
)
