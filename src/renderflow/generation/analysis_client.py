"""Structured image analysis over the chat completions gateway.

Implements the AnalysisGateway protocol: the model is asked for a JSON
object describing the image, which is validated into a
StructuredDescription. Any failure (transport, HTTP status, malformed
JSON, schema mismatch) becomes an AnalysisError; callers treat analysis
as best-effort.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import openai
from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI
from pydantic import ValidationError

from renderflow.config import Settings, settings
from renderflow.generation.converters import image_part, text_part
from renderflow.generation.protocol import AnalysisError, StructuredDescription
from renderflow.prompts.templates import ANALYSIS_SYSTEM_PROMPT, ANALYSIS_USER_PROMPT

logger = logging.getLogger(__name__)


def parse_description(output_text: str) -> StructuredDescription:
    """Parse model output into a StructuredDescription.

    Uses raw_decode so trailing text after the JSON object is ignored.

    Raises:
        AnalysisError: If the text is not a JSON object matching the schema.
    """
    decoder = json.JSONDecoder()
    stripped = output_text.strip()
    if stripped.startswith("```"):
        stripped = stripped.strip("`").removeprefix("json").strip()
    try:
        raw_data, _ = decoder.raw_decode(stripped)
        return StructuredDescription.model_validate(raw_data)
    except json.JSONDecodeError as e:
        raise AnalysisError(f"Analysis output is not JSON: {e}", cause=e) from e
    except ValidationError as e:
        raise AnalysisError(f"Analysis output does not match schema: {e}", cause=e) from e


@dataclass
class ChatAnalysisGateway:
    """Image analysis via a JSON-mode chat completion.

    Usage:
        analyzer = ChatAnalysisGateway()
        description = await analyzer.analyze(zone_crop_url, "living area")
        print(description.to_prompt_text())
    """

    settings: Settings = field(default_factory=lambda: settings)
    http_client: Any = None

    _client: AsyncOpenAI = field(init=False, repr=False)
    _limiter: AsyncLimiter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize the SDK client and rate limiter."""
        self._client = AsyncOpenAI(
            api_key=self.settings.require_gateway_key(),
            base_url=self.settings.GATEWAY_BASE_URL,
            timeout=self.settings.ANALYSIS_TIMEOUT_SECONDS,
            max_retries=0,
            http_client=self.http_client,
        )
        self._limiter = AsyncLimiter(max_rate=self.settings.GATEWAY_RPM, time_period=60)

    async def analyze(self, image_ref: str, hint: str = "") -> StructuredDescription:
        """Describe ``image_ref``.

        Args:
            image_ref: URL or data URL of the image.
            hint: Optional context, such as the zone name.

        Raises:
            AnalysisError: On any failure.
        """
        user_text = ANALYSIS_USER_PROMPT.format(hint=f" Context: {hint}." if hint else "")
        try:
            async with self._limiter:
                response = await self._client.chat.completions.create(
                    model=self.settings.ANALYSIS_MODEL,
                    messages=[
                        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                        {
                            "role": "user",
                            "content": [text_part(user_text), image_part(image_ref)],
                        },
                    ],
                    response_format={"type": "json_object"},
                )
        except openai.OpenAIError as e:
            raise AnalysisError(f"Analysis request failed: {e}", cause=e) from e

        if not response.choices or not response.choices[0].message.content:
            raise AnalysisError("Analysis returned no content")

        description = parse_description(response.choices[0].message.content)
        logger.debug("Analyzed image: %d items", len(description.items))
        return description
