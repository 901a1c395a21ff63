"""
Plan request service.

Turns an athlete profile (and, for iteration, last week's plan and feedback)
into a new TrainingPlan by rendering a prompt, calling the model with the
plan schema as a structured-output constraint, and validating the result.

The service is pure with respect to app state: it takes plain models in and
hands a new plan back, persisting nothing.
"""

from typing import Callable, Iterable, Optional
import json
import logging

from pydantic import ValidationError as PydanticValidationError

from ..config import AppConfiguration, get_settings
from ..exceptions import ConfigurationError, MalformedResponseError
from ..llm.prompts import (
    INITIAL_PLAN_SYSTEM,
    ITERATE_PLAN_SYSTEM,
    compose_initial_prompt,
    compose_iteration_prompt,
)
from ..llm.providers import LLMClient, RetryConfig
from ..llm.schemas import TRAINING_PLAN_SCHEMA
from ..models.athlete import AthleteProfile
from ..models.feedback import DailyFeedback, feedback_for_plan
from ..models.plans import PlanContent, TrainingPlan


logger = logging.getLogger(__name__)

ClientFactory = Callable[[AppConfiguration], LLMClient]

_RAW_EXCERPT_CHARS = 500


def default_client_factory(
    config: AppConfiguration,
    retry_config: Optional[RetryConfig] = None,
) -> LLMClient:
    """Build a client scoped to one request from the caller's configuration."""
    settings = get_settings()
    return LLMClient(
        api_key=config.credential,
        model=config.model_name,
        retry_config=retry_config or RetryConfig(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
        ),
        timeout=settings.request_timeout,
    )


def _require_credential(config: AppConfiguration) -> None:
    if not config.has_credential:
        raise ConfigurationError(setting="credential")


def parse_plan_response(text: Optional[str]) -> PlanContent:
    """
    Parse and validate the model's JSON body.

    Raises:
        MalformedResponseError: If the body is empty, not JSON, or does not
            match the plan shape (including seven days indexed 0-6)
    """
    if text is None or not text.strip():
        raise MalformedResponseError(message="Model returned an empty response")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            message=f"Invalid JSON response from LLM: {e}",
            details={"raw_content": text[:_RAW_EXCERPT_CHARS]},
        )

    if not isinstance(data, dict):
        raise MalformedResponseError(
            message="Model response is not a JSON object",
            details={"raw_content": text[:_RAW_EXCERPT_CHARS]},
        )

    try:
        return PlanContent.model_validate(data)
    except PydanticValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise MalformedResponseError(
            message="Model response does not match the training plan shape",
            details={
                "errors": problems,
                "raw_content": text[:_RAW_EXCERPT_CHARS],
            },
        )


async def _generate(
    config: AppConfiguration,
    prompt: str,
    system: str,
    client_factory: Optional[ClientFactory],
    retry_config: Optional[RetryConfig],
) -> PlanContent:
    if client_factory is None:
        client = default_client_factory(config, retry_config)
    else:
        client = client_factory(config)

    async with client:
        text = await client.generate_structured(
            prompt=prompt,
            system=system,
            schema=TRAINING_PLAN_SCHEMA,
        )
    return parse_plan_response(text)


async def request_initial_plan(
    profile: AthleteProfile,
    config: AppConfiguration,
    *,
    client_factory: Optional[ClientFactory] = None,
    retry_config: Optional[RetryConfig] = None,
) -> TrainingPlan:
    """
    Generate week 1 for an athlete.

    Args:
        profile: The athlete profile
        config: Credential, model and optional custom template
        client_factory: Builds the LLM client (defaults to OpenAI)
        retry_config: Overrides the retry policy of the default client

    Returns:
        A new TrainingPlan with week_number 1

    Raises:
        ConfigurationError: No credential configured (no network attempt)
        TransientNetworkError: Network failures outlasted all retries
        RequestRejectedError: The model endpoint refused the request
        MalformedResponseError: The response did not match the plan shape
    """
    _require_credential(config)

    prompt = compose_initial_prompt(profile, config.initial_plan_template)
    logger.info(f"Requesting initial plan ({profile.sport.value}) from {config.model_name}")

    content = await _generate(config, prompt, INITIAL_PLAN_SYSTEM, client_factory, retry_config)
    plan = TrainingPlan.from_content(content, week_number=1)
    logger.info(f"Generated plan {plan.id} (week {plan.week_number})")
    return plan


async def request_iterated_plan(
    current_plan: TrainingPlan,
    feedbacks: Iterable[DailyFeedback],
    profile: AthleteProfile,
    config: AppConfiguration,
    *,
    client_factory: Optional[ClientFactory] = None,
    retry_config: Optional[RetryConfig] = None,
) -> TrainingPlan:
    """
    Generate the week after ``current_plan`` from the athlete's feedback.

    Only feedback logged against ``current_plan.id`` is used. The current
    plan is left untouched; a new plan with week_number + 1 is returned.

    Raises:
        Same as ``request_initial_plan``.
    """
    _require_credential(config)

    relevant = feedback_for_plan(feedbacks, current_plan.id)
    prompt = compose_iteration_prompt(
        current_plan, relevant, profile, config.iteration_plan_template
    )
    logger.info(
        f"Requesting week {current_plan.week_number + 1} from {config.model_name} "
        f"with {len(relevant)} feedback entries"
    )

    content = await _generate(config, prompt, ITERATE_PLAN_SYSTEM, client_factory, retry_config)
    plan = TrainingPlan.from_content(content, week_number=current_plan.week_number + 1)
    logger.info(f"Generated plan {plan.id} (week {plan.week_number})")
    return plan
