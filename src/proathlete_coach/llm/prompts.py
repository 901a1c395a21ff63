"""LLM prompt templates and the prompt composer for plan requests.

Templates use ``{{PLACEHOLDER}}`` tokens. Each call site has a closed
placeholder vocabulary; tokens outside it are left untouched so partial or
custom templates still render.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional
import re

from ..models.athlete import AthleteProfile, InjuryStatus
from ..models.feedback import DailyFeedback, feedback_for_plan
from ..models.plans import TrainingPlan


# ============================================================================
# SYSTEM INSTRUCTIONS
# ============================================================================

INITIAL_PLAN_SYSTEM = (
    "You are an expert sports scientist and coach. "
    "You prioritize safety, specificity, and progressive overload."
)

ITERATE_PLAN_SYSTEM = (
    "You are an adaptive AI coach. "
    "You listen to athlete bio-feedback to optimize performance and prevent overtraining."
)

# ============================================================================
# PLAN GENERATION PROMPTS
# ============================================================================

DEFAULT_INITIAL_PLAN_PROMPT = """You are a world-class Strength & Conditioning Coach for elite athletes.

Athlete Profile:
- Sport: {{SPORT}}
- Age: {{AGE}}, Height: {{HEIGHT}}cm, Weight: {{WEIGHT}}kg
- Training Age: {{TRAINING_AGE}} years
- Injury History: {{INJURY_HISTORY}} (Status: {{INJURY_STATUS}})
- Goals: {{GOALS}}
- Performance Stats: Squat {{SQUAT}}, Speed {{SPEED}}, Endurance {{ENDURANCE}}
- Sport Specific: {{SPORT_SPECIFIC}}
- Constraints: {{CONSTRAINTS}}

Task:
Create a highly specific, periodized 7-day training microcycle (Week 1).
Ensure volume and intensity are appropriate for the athlete's level.
If the athlete is injured, prioritize rehab/prehab or work around it.

Output strictly valid JSON matching the schema.
"""

DEFAULT_ITERATE_PLAN_PROMPT = """You are iterating a training plan for an elite athlete based on last week's feedback.

Athlete Context:
- Sport: {{SPORT}}
- Goal: {{GOALS}}
- Injuries: {{INJURY_STATUS_TEXT}}

Last Week's Plan ID: {{PLAN_ID}} (Week {{WEEK_NUMBER}})
Last Week's Focus: {{PLAN_SUMMARY}}

Feedback Received:
{{FEEDBACK_SUMMARY}}

Task:
Generate Week {{NEXT_WEEK_NUMBER}}.
- If RPE was too high (>8 consistently) or Pain > 3, deload or adjust exercises.
- If RPE was too low (<5) and completion high, apply progressive overload (increase intensity/volume).
- Address any specific complaints in the feedback notes.

Output strictly valid JSON matching the schema.
"""

INITIAL_PLAN_PLACEHOLDERS = (
    "SPORT",
    "AGE",
    "HEIGHT",
    "WEIGHT",
    "TRAINING_AGE",
    "INJURY_HISTORY",
    "INJURY_STATUS",
    "GOALS",
    "SQUAT",
    "SPEED",
    "ENDURANCE",
    "SPORT_SPECIFIC",
    "CONSTRAINTS",
)

ITERATION_PLACEHOLDERS = (
    "SPORT",
    "GOALS",
    "INJURY_STATUS_TEXT",
    "PLAN_ID",
    "WEEK_NUMBER",
    "PLAN_SUMMARY",
    "FEEDBACK_SUMMARY",
    "NEXT_WEEK_NUMBER",
)

NOT_AVAILABLE = "N/A"

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")


# ============================================================================
# COMPOSER
# ============================================================================

def format_value(value: Any) -> str:
    """Render a scalar the way it should read inside a prompt."""
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_template(template: str, values: Mapping[str, Any]) -> str:
    """
    Substitute ``{{KEY}}`` tokens in a template.

    Every occurrence of a key present in ``values`` is replaced; unknown
    tokens are left verbatim. The scan is single pass, so placeholder-looking
    text inside substituted values is never expanded.

    Args:
        template: Template text
        values: Placeholder name to scalar value

    Returns:
        The rendered prompt
    """
    def _substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key in values:
            return format_value(values[key])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_substitute, template)


def resolve_template(custom: Optional[str], default: str) -> str:
    """Use the custom template unless it is missing or blank."""
    if custom is None or not custom.strip():
        return default
    return custom


def find_placeholders(template: str) -> list[str]:
    """List the distinct placeholder names in a template, in first-seen order."""
    seen: list[str] = []
    for key in _PLACEHOLDER_RE.findall(template):
        if key not in seen:
            seen.append(key)
    return seen


def format_feedback_line(feedback: DailyFeedback) -> str:
    """One summary line for a feedback entry."""
    return (
        f"Day {feedback.day_index}: Completed {feedback.completion_rate}%, "
        f"RPE {feedback.rpe}/10, Fatigue {feedback.fatigue}/10, "
        f"Pain {feedback.pain_level}/10 ({feedback.pain_location or 'None'}). "
        f"Notes: {feedback.notes or ''}"
    )


def summarize_feedback(feedbacks: Iterable[DailyFeedback]) -> str:
    """Join one line per feedback entry; empty input gives an empty string."""
    return "\n".join(format_feedback_line(f) for f in feedbacks)


def build_initial_plan_values(profile: AthleteProfile) -> Dict[str, Any]:
    """Placeholder values for the initial plan template."""
    return {
        "SPORT": profile.sport,
        "AGE": profile.age,
        "HEIGHT": profile.height_cm,
        "WEIGHT": profile.weight_kg,
        "TRAINING_AGE": profile.training_age,
        "INJURY_HISTORY": profile.injury_history,
        "INJURY_STATUS": profile.injury_status,
        "GOALS": profile.goals,
        "SQUAT": profile.strength_squat if profile.strength_squat is not None else NOT_AVAILABLE,
        "SPEED": profile.speed_10m if profile.speed_10m is not None else NOT_AVAILABLE,
        "ENDURANCE": profile.endurance_vo2 if profile.endurance_vo2 is not None else NOT_AVAILABLE,
        "SPORT_SPECIFIC": profile.sport_specific_stats,
        "CONSTRAINTS": profile.constraints,
    }


def build_iteration_values(
    plan: TrainingPlan,
    feedbacks: Iterable[DailyFeedback],
    profile: AthleteProfile,
) -> Dict[str, Any]:
    """
    Placeholder values for the iteration template.

    Feedback is filtered to ``plan.id`` first, callers may pass the whole
    history.
    """
    relevant = feedback_for_plan(feedbacks, plan.id)
    injury_text = "ACTIVE ISSUE" if profile.injury_status == InjuryStatus.ACTIVE else "Stable"
    return {
        "SPORT": profile.sport,
        "GOALS": profile.goals,
        "INJURY_STATUS_TEXT": injury_text,
        "PLAN_ID": plan.id,
        "WEEK_NUMBER": plan.week_number,
        "PLAN_SUMMARY": plan.summary,
        "FEEDBACK_SUMMARY": summarize_feedback(relevant),
        "NEXT_WEEK_NUMBER": plan.week_number + 1,
    }


def compose_initial_prompt(profile: AthleteProfile, template: Optional[str] = None) -> str:
    """Render the initial plan prompt for a profile."""
    return render_template(
        resolve_template(template, DEFAULT_INITIAL_PLAN_PROMPT),
        build_initial_plan_values(profile),
    )


def compose_iteration_prompt(
    plan: TrainingPlan,
    feedbacks: Iterable[DailyFeedback],
    profile: AthleteProfile,
    template: Optional[str] = None,
) -> str:
    """Render the iteration prompt for the week after ``plan``."""
    return render_template(
        resolve_template(template, DEFAULT_ITERATE_PLAN_PROMPT),
        build_iteration_values(plan, feedbacks, profile),
    )
