"""Services for ProAthlete Coach."""

from .plan_service import (
    parse_plan_response,
    request_initial_plan,
    request_iterated_plan,
)
from .coach import CoachSession, WeekProgress

__all__ = [
    "parse_plan_response",
    "request_initial_plan",
    "request_iterated_plan",
    "CoachSession",
    "WeekProgress",
]
