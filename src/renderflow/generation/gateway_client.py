"""Chat-completions image gateway for renderflow.

This module implements the GenerationGateway protocol against an
OpenAI-compatible chat completions endpoint that returns generated images
alongside the assistant message.

Behavior:
- Requests are throttled client-side via aiolimiter
- Only transport connection failures are retried, via tenacity, up to
  GATEWAY_MAX_ATTEMPTS (default 1, i.e. no retry); SDK retries are off
- A circuit breaker fails fast while the service is unavailable
- Every failure is classified into one GatewayError subclass
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import openai
from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from renderflow.config import Settings, settings
from renderflow.generation.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from renderflow.generation.converters import extract_image_url, request_to_chat_content
from renderflow.generation.protocol import (
    GatewayError,
    GatewayUnavailableError,
    GeneratedArtifact,
    GenerationRequest,
    QuotaExceededError,
    RateLimitedError,
    ValidationRejectedError,
)
from renderflow.prompts.builder import PromptBuilder

logger = logging.getLogger(__name__)

PROVIDER_NAME = "image-gateway"
_VALIDATION_STATUSES = (400, 422)


def classify_api_error(error: Exception, *, provider: str = PROVIDER_NAME) -> GatewayError:
    """Map an ``openai`` SDK exception onto the gateway error family.

    Args:
        error: Exception raised by the SDK.
        provider: Gateway name recorded on the result.

    Returns:
        The classified error (not raised).
    """
    if isinstance(error, openai.APIStatusError):
        status = error.status_code
        if status == 429:
            return RateLimitedError(
                "Generation rate limit exceeded; try again shortly",
                provider=provider,
                status_code=status,
                cause=error,
            )
        if status == 402:
            return QuotaExceededError(
                "Generation credits exhausted; add credits to continue",
                provider=provider,
                status_code=status,
                cause=error,
            )
        if status in _VALIDATION_STATUSES:
            return ValidationRejectedError(
                f"Generation request rejected: {error.message}",
                provider=provider,
                status_code=status,
                cause=error,
            )
        return GatewayUnavailableError(
            f"Generation service error (HTTP {status}): {error.message}",
            provider=provider,
            status_code=status,
            cause=error,
        )
    if isinstance(error, openai.APITimeoutError):
        return GatewayUnavailableError(
            "Generation service timed out", provider=provider, cause=error
        )
    if isinstance(error, openai.APIConnectionError):
        return GatewayUnavailableError(
            f"Could not reach generation service: {error}", provider=provider, cause=error
        )
    return GatewayUnavailableError(
        f"Generation call failed: {error}", provider=provider, cause=error
    )


@dataclass
class ChatImageGateway:
    """Image generation over an OpenAI-compatible chat completions API.

    Usage:
        gateway = ChatImageGateway()
        artifact = await gateway.generate(request)
        print(artifact.artifact_ref)
    """

    settings: Settings = field(default_factory=lambda: settings)
    prompt_builder: PromptBuilder = field(default_factory=PromptBuilder)
    http_client: Any = None

    _client: AsyncOpenAI = field(init=False, repr=False)
    _limiter: AsyncLimiter = field(init=False, repr=False)
    _circuit_breaker: CircuitBreaker = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize the SDK client, rate limiter and circuit breaker."""
        api_key = self.settings.require_gateway_key()
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.settings.GATEWAY_BASE_URL,
            timeout=self.settings.GENERATION_TIMEOUT_SECONDS,
            max_retries=0,
            http_client=self.http_client,
        )
        self._limiter = AsyncLimiter(max_rate=self.settings.GATEWAY_RPM, time_period=60)
        self._circuit_breaker = CircuitBreaker(
            provider_name=PROVIDER_NAME,
            config=CircuitBreakerConfig(failure_threshold=5, cooldown_seconds=60.0),
        )

    @property
    def model(self) -> str:
        return self.settings.GENERATION_MODEL

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def generate(self, request: GenerationRequest) -> GeneratedArtifact:
        """Generate one image for ``request``.

        Raises:
            RateLimitedError: HTTP 429.
            QuotaExceededError: HTTP 402.
            ValidationRejectedError: HTTP 400/422, or no image returned.
            GatewayUnavailableError: Connection errors, timeouts, 5xx, auth
                failures, or an open circuit.
        """
        prompt = self.prompt_builder.build(request)
        content = request_to_chat_content(request, prompt)
        self._circuit_breaker.check()

        try:
            async with self._limiter:
                artifact = await self._call_with_retry(request, content)
        except GatewayUnavailableError:
            self._circuit_breaker.record_failure()
            raise
        except GatewayError:
            # The service answered, it just refused this request.
            self._circuit_breaker.record_success()
            raise
        except asyncio.CancelledError:
            self._circuit_breaker.release_probe()
            raise
        self._circuit_breaker.record_success()
        return artifact

    async def _call_with_retry(
        self,
        request: GenerationRequest,
        content: list[dict[str, Any]],
    ) -> GeneratedArtifact:
        start_time = time.perf_counter()
        try:
            async for attempt in AsyncRetrying(
                wait=wait_random_exponential(min=1, max=20),
                stop=stop_after_attempt(max(1, self.settings.GATEWAY_MAX_ATTEMPTS)),
                retry=retry_if_exception_type(openai.APIConnectionError),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.chat.completions.create(
                        model=self.model,
                        messages=[{"role": "user", "content": content}],
                        extra_body=self._extra_body(request),
                    )
        except openai.OpenAIError as e:
            classified = classify_api_error(e)
            logger.warning(
                "Generation failed: %s",
                classified,
                extra={"kind": request.kind.value, "status": classified.status_code},
            )
            raise classified from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        if not response.choices:
            raise ValidationRejectedError(
                "Generation service returned no choices", provider=PROVIDER_NAME
            )

        message = response.choices[0].message
        image_url = extract_image_url(message)
        if image_url is None:
            raise ValidationRejectedError(
                "Generation service returned no image", provider=PROVIDER_NAME
            )

        logger.info(
            "Generated image in %.0f ms",
            latency_ms,
            extra={"kind": request.kind.value, "model": self.model},
        )
        return GeneratedArtifact(
            artifact_ref=image_url,
            model=response.model or self.model,
            latency_ms=latency_ms,
            text=message.content or None,
        )

    def _extra_body(self, request: GenerationRequest) -> dict[str, Any]:
        body: dict[str, Any] = {"modalities": ["image", "text"]}
        if request.aspect_ratio:
            body["generationConfig"] = {"aspectRatio": request.aspect_ratio}
        return body
