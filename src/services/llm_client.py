"""Anthropic structured-output client used for proposal extraction.

Calls go through ``beta.messages.parse`` so the reply is validated against
a Pydantic schema. Connection drops, rate limits and overloads are retried
briefly; anything else surfaces as LLMClientError.
"""

import time
from typing import TypeVar

import structlog
from anthropic import (
    APIConnectionError,
    APIError,
    AsyncAnthropic,
    InternalServerError,
    RateLimitError,
)
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import settings

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

STRUCTURED_OUTPUTS_BETA = "structured-outputs-2025-11-13"

# Worth another attempt; the request itself was fine
TRANSIENT_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


class LLMClientError(Exception):
    """Raised when the model produced no usable structured output."""

    pass


class LLMClient:
    """Async Anthropic wrapper returning schema-validated models."""

    def __init__(
        self,
        client: AsyncAnthropic | None = None,
        model: str | None = None,
        max_tokens: int = 8192,
    ):
        """Initialize LLM client.

        Args:
            client: Injected AsyncAnthropic client; built from settings when
                omitted and an API key is configured
            model: Model name (defaults to settings)
            max_tokens: Output token budget per call
        """
        if client is None and settings.anthropic_api_key:
            client = AsyncAnthropic(api_key=settings.anthropic_api_key)
        self._client = client
        self._model = model or settings.anthropic_model
        self._max_tokens = max_tokens

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def extract(self, prompt: str, response_model: type[T]) -> T:
        """Run one prompt and parse the reply into ``response_model``.

        Raises:
            LLMClientError: No client, API failure after retries, or an
                empty parse
        """
        if self._client is None:
            raise LLMClientError(
                "Anthropic client not initialized. "
                "Set ANTHROPIC_API_KEY environment variable."
            )

        started = time.perf_counter()
        try:
            response = await self._parse(prompt, response_model)
        except APIError as e:
            raise LLMClientError(f"Anthropic API error: {e}") from e
        except Exception as e:
            raise LLMClientError(f"Extraction failed: {e}") from e

        logger.info(
            "structured extraction complete",
            model=self._model,
            schema=response_model.__name__,
            prompt_chars=len(prompt),
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        if response.parsed_output is None:
            raise LLMClientError("Model returned no parseable output")
        return response.parsed_output

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    async def _parse(self, prompt: str, response_model: type[T]):
        return await self._client.beta.messages.parse(
            model=self._model,
            max_tokens=self._max_tokens,
            betas=[STRUCTURED_OUTPUTS_BETA],
            messages=[{"role": "user", "content": prompt}],
            output_format=response_model,
        )
