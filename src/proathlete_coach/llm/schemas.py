"""JSON schema sent with plan requests as a structured-output constraint.

OpenAI strict mode requires every property to be listed as required and
``additionalProperties`` to be false, so optional fields are declared
nullable instead of omitted. Local validation (``models.plans``) still
treats them as optional.
"""

from typing import Any, Dict


TRAINING_PLAN_SCHEMA_NAME = "training_plan"

EXERCISE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "sets": {"type": "integer"},
        "reps": {"type": "string", "description": "Reps per set, e.g. '5', '8-10' or 'AMRAP'"},
        "intensity": {"type": "string", "description": "RPE, %1RM or zone"},
        "rest": {"type": ["string", "null"]},
        "notes": {"type": ["string", "null"]},
    },
    "required": ["name", "sets", "reps", "intensity", "rest", "notes"],
    "additionalProperties": False,
}

DAY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "dayIndex": {"type": "integer", "description": "0-6, chronological"},
        "dayName": {"type": "string"},
        "focus": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "isRestDay": {"type": "boolean"},
        "exercises": {"type": "array", "items": EXERCISE_SCHEMA, "description": "Empty on rest days"},
    },
    "required": ["dayIndex", "dayName", "focus", "description", "isRestDay", "exercises"],
    "additionalProperties": False,
}

TRAINING_PLAN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string", "description": "Executive summary of the training phase"},
        "days": {"type": "array", "items": DAY_SCHEMA},
    },
    "required": ["summary", "days"],
    "additionalProperties": False,
}


def json_schema_response_format(
    schema: Dict[str, Any],
    name: str = TRAINING_PLAN_SCHEMA_NAME,
    strict: bool = True,
) -> Dict[str, Any]:
    """Wrap a schema in the chat-completions ``response_format`` payload."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "schema": schema,
            "strict": strict,
        },
    }
