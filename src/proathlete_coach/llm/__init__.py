"""LLM integration for ProAthlete Coach."""

from .prompts import (
    DEFAULT_INITIAL_PLAN_PROMPT,
    DEFAULT_ITERATE_PLAN_PROMPT,
    INITIAL_PLAN_PLACEHOLDERS,
    ITERATION_PLACEHOLDERS,
    render_template,
    summarize_feedback,
    compose_initial_prompt,
    compose_iteration_prompt,
)
from .providers import (
    LLMClient,
    RetryConfig,
    is_transient_network_error,
    with_retry,
)
from .schemas import TRAINING_PLAN_SCHEMA

__all__ = [
    "DEFAULT_INITIAL_PLAN_PROMPT",
    "DEFAULT_ITERATE_PLAN_PROMPT",
    "INITIAL_PLAN_PLACEHOLDERS",
    "ITERATION_PLACEHOLDERS",
    "render_template",
    "summarize_feedback",
    "compose_initial_prompt",
    "compose_iteration_prompt",
    "LLMClient",
    "RetryConfig",
    "is_transient_network_error",
    "with_retry",
    "TRAINING_PLAN_SCHEMA",
]
