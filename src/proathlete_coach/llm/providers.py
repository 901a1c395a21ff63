"""
LLM provider for structured plan requests.

This module wraps the OpenAI chat-completions API with:
- A JSON-schema structured-output constraint on every request
- Retry with exponential backoff for transient network failures only
- Classification of every failure into the exceptions in ``exceptions``
- A client handle scoped to a single plan request
"""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
import asyncio
import logging

from openai import AsyncOpenAI, APIConnectionError, APIStatusError

from ..config import DEFAULT_MODEL
from ..exceptions import (
    ConfigurationError,
    LLMError,
    MalformedResponseError,
    RequestRejectedError,
    TransientNetworkError,
)
from ..utils.log_sanitizer import sanitize_string
from .schemas import TRAINING_PLAN_SCHEMA_NAME, json_schema_response_format


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Substrings that mark a failure as a network/fetch-layer problem
NETWORK_ERROR_MARKERS = (
    "fetch failed",
    "Failed to fetch",
    "NetworkError",
    "Connection error",
    "Connection reset",
    "Connection refused",
    "timed out",
)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        backoff_factor: float = 1.5,
        max_delay: float = 30.0,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay

    def get_delay(self, attempt: int) -> float:
        """Calculate the wait before retry number ``attempt`` (0-based)."""
        delay = self.base_delay * (self.backoff_factor ** attempt)
        return min(delay, self.max_delay)


def is_transient_network_error(error: BaseException) -> bool:
    """
    Decide whether a failure is worth retrying.

    Only network-layer failures qualify. Bad requests, auth failures, quota
    and schema rejections are permanent and must surface immediately.
    """
    if isinstance(error, (APIConnectionError, ConnectionError)):
        return True
    if isinstance(error, LLMError):
        return False
    message = str(error)
    return any(marker in message for marker in NETWORK_ERROR_MARKERS)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: float = 1.0,
    *,
    backoff_factor: float = 1.5,
    max_delay: float = 30.0,
    is_retryable: Callable[[BaseException], bool] = is_transient_network_error,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    operation_name: str = "LLM request",
    secret: Optional[str] = None,
) -> T:
    """
    Execute an operation, retrying transient failures with backoff.

    Args:
        operation: Async callable to execute
        retries: Retry attempts beyond the first call
        delay: Wait before the first retry, in seconds
        backoff_factor: Multiplier applied to the wait after each retry
        max_delay: Upper bound for a single wait
        is_retryable: Predicate classifying failures as retryable
        sleep: Awaitable sleep, ``asyncio.sleep`` by default
        operation_name: Name for logging
        secret: Credential to strip from the wrapped error message

    Returns:
        The operation result

    Raises:
        TransientNetworkError: When retryable failures outlast every retry
        Exception: Any non-retryable failure, unchanged, after one attempt
    """
    sleep = sleep or asyncio.sleep
    config = RetryConfig(
        max_retries=retries,
        base_delay=delay,
        backoff_factor=backoff_factor,
        max_delay=max_delay,
    )

    for attempt in range(config.max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise

            original = sanitize_string(str(e), secret)
            if attempt >= config.max_retries:
                logger.error(
                    f"{operation_name} failed after {attempt + 1} attempts: {original}"
                )
                raise TransientNetworkError(
                    message=(
                        "Network request failed after multiple retries. "
                        "Please check your internet connection or proxy settings. "
                        f"Original error: {original}"
                    ),
                    attempts=attempt + 1,
                ) from e

            wait = config.get_delay(attempt)
            logger.warning(
                f"{operation_name} network error. "
                f"Retry {attempt + 1}/{config.max_retries} in {wait:.2f}s: {original}"
            )
            await sleep(wait)

    # range() always runs at least once and every path above returns or raises
    raise AssertionError("unreachable")


class LLMClient:
    """
    Structured-output client for a single plan request.

    Built per call from the caller's credential; use it as an async context
    manager so the underlying HTTP client is closed afterwards.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = DEFAULT_MODEL,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 120.0,
        client: Optional[Any] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        """
        Initialize the LLM client.

        Args:
            api_key: Model API key
            model: Model identifier
            retry_config: Configuration for retry behavior
            timeout: Per-attempt request timeout in seconds
            client: Pre-built AsyncOpenAI-compatible client (tests)
            sleep: Awaitable sleep used between retries
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(setting="credential")

        self._api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self._owns_client = client is None
        # SDK retries are disabled, the retry policy lives in with_retry
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.close()

    def _sanitize(self, text: str) -> str:
        return sanitize_string(text, self._api_key)

    async def generate_structured(
        self,
        prompt: str,
        system: str,
        schema: Dict[str, Any],
        schema_name: str = TRAINING_PLAN_SCHEMA_NAME,
    ) -> str:
        """
        Request a completion constrained to a JSON schema.

        Args:
            prompt: Rendered user prompt
            system: System instruction
            schema: JSON schema the response must match
            schema_name: Name reported to the API for the schema

        Returns:
            The raw JSON text of the response

        Raises:
            TransientNetworkError: Network failures outlasted all retries
            RequestRejectedError: The endpoint refused the request
            MalformedResponseError: The response carried no content
        """
        async def _make_request() -> str:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format=json_schema_response_format(schema, schema_name),
            )
            message = response.choices[0].message
            refusal = getattr(message, "refusal", None)
            if refusal:
                raise RequestRejectedError(
                    message=f"Model refused the request: {self._sanitize(str(refusal))}"
                )
            if not message.content:
                raise MalformedResponseError(message="Empty response from LLM")
            return message.content

        try:
            return await with_retry(
                _make_request,
                retries=self.retry_config.max_retries,
                delay=self.retry_config.base_delay,
                backoff_factor=self.retry_config.backoff_factor,
                max_delay=self.retry_config.max_delay,
                sleep=self._sleep,
                operation_name="generate_structured",
                secret=self._api_key,
            )
        except LLMError:
            raise
        except APIStatusError as e:
            logger.error(f"LLM request rejected (status {e.status_code})")
            raise RequestRejectedError(
                message=f"LLM request rejected: {self._sanitize(str(e))}",
                status_code=e.status_code,
            ) from e
        except Exception as e:
            logger.error(f"LLM request failed: {self._sanitize(str(e))}")
            raise RequestRejectedError(
                message=f"LLM request failed: {self._sanitize(str(e))}",
            ) from e
