"""Generation gateway protocol and data models for renderflow.

This module defines the boundary between the edit core and the external
image generation service. It provides:

- The ephemeral GenerationRequest the orchestrator assembles per edit
- Result models for generated images and structured image analysis
- The GenerationGateway and AnalysisGateway protocols adapters implement
- The classified error family every adapter maps its failures onto

The core never speaks HTTP itself; it only sees these types.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, Field

from renderflow.geometry.primitives import Point
from renderflow.geometry.regions import Region
from renderflow.history.nodes import NodeKind

# =============================================================================
# Request Models
# =============================================================================


class Placement(BaseModel, frozen=True):
    """A reference image to be placed into the scene at a given spot.

    ``position`` is where the center of the placed object should land, in
    percentage-of-image coordinates of the source render.
    """

    reference_artifact: str = Field(..., min_length=1)
    position: Point
    scale: float = Field(default=1.0, gt=0, description="Relative size multiplier")
    label: str | None = Field(default=None, description="Short name of the object")


class GenerationRequest(BaseModel, frozen=True):
    """Everything the generation service needs for one edit.

    Built by the orchestrator, consumed once by a gateway, then discarded.

    Attributes:
        kind: The kind of node the result will become.
        source_artifact_ref: Render (or crop) the edit starts from.
        directive: Provider-ready instruction text.
        region: Selection, zone or focus region, when the edit has one.
        mask_raster: PNG mask for masked edits (opaque = edit here).
        reference_artifacts: Additional images, in the order they are sent.
        placements: Composite placements, in order.
        views: Ordered camera view labels for multi-view grids.
        aspect_ratio: Requested output aspect ratio (e.g. "16:9").
    """

    kind: NodeKind
    source_artifact_ref: str = Field(..., min_length=1)
    directive: str
    region: Region | None = None
    mask_raster: bytes | None = None
    reference_artifacts: tuple[str, ...] = ()
    placements: tuple[Placement, ...] = ()
    views: tuple[str, ...] = ()
    aspect_ratio: str | None = None


# =============================================================================
# Result Models
# =============================================================================


class GeneratedArtifact(BaseModel, frozen=True):
    """An image produced by the generation service."""

    artifact_ref: str = Field(..., min_length=1, description="URL or data URL")
    model: str = Field(..., description="Model identifier used for this call")
    latency_ms: float = Field(..., ge=0.0)
    text: str | None = Field(default=None, description="Accompanying text, if any")


class DetectedItem(BaseModel, frozen=True):
    """One object recognized in an analyzed image."""

    name: str = Field(..., min_length=1)
    category: str = "item"
    position: str | None = None
    description: str | None = None


class StructuredDescription(BaseModel, frozen=True):
    """Structured analysis of an image, used to enrich zone-view directives."""

    summary: str = ""
    items: list[DetectedItem] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)

    def to_prompt_text(self) -> str:
        """Render the description as plain text suitable for a prompt."""
        lines: list[str] = []
        if self.summary:
            lines.append(f"Scene: {self.summary}")
        if self.items:
            lines.append("Items that must appear:")
            for item in self.items:
                detail = f"- {item.name} ({item.category})"
                if item.position:
                    detail += f", {item.position}"
                if item.description:
                    detail += f": {item.description}"
                lines.append(detail)
        if self.features:
            lines.append("Architectural features: " + ", ".join(self.features))
        return "\n".join(lines)


# =============================================================================
# Gateway Protocols
# =============================================================================


class GenerationGateway(Protocol):
    """Protocol for image generation adapters.

    Implementations must map every failure onto one GatewayError subclass
    and must not retry classified failures.
    """

    async def generate(self, request: GenerationRequest) -> GeneratedArtifact:
        """Produce one image for ``request``.

        Raises:
            RateLimitedError: The service is throttling requests.
            QuotaExceededError: Credits or quota are exhausted.
            ValidationRejectedError: The request was refused.
            GatewayUnavailableError: Transport failure or service error.
        """
        ...


class AnalysisGateway(Protocol):
    """Protocol for structured image analysis adapters."""

    async def analyze(self, image_ref: str, hint: str = "") -> StructuredDescription:
        """Describe the contents of ``image_ref``.

        Raises:
            AnalysisError: On any failure.
        """
        ...


# =============================================================================
# Exceptions
# =============================================================================


class GatewayError(Exception):
    """Base exception for classified generation gateway failures."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize gateway error.

        Args:
            message: Human-readable error description.
            provider: Gateway name.
            status_code: HTTP status code, when the service answered.
            cause: Original exception that caused this error.
        """
        self.provider = provider
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class RateLimitedError(GatewayError):
    """Raised when the service answers 429 (too many requests)."""


class QuotaExceededError(GatewayError):
    """Raised when the service answers 402 (credits or quota exhausted)."""


class ValidationRejectedError(GatewayError):
    """Raised when the service refuses the request or returns no image."""


class GatewayUnavailableError(GatewayError):
    """Raised on transport failures, timeouts and server-side errors."""


class CircuitBreakerOpenError(GatewayUnavailableError):
    """Raised when the circuit breaker is open.

    Too many consecutive failures have occurred, so requests fail fast
    until the cooldown elapses.
    """

    def __init__(
        self,
        message: str,
        *,
        cooldown_remaining_seconds: float,
        provider: str | None = None,
    ) -> None:
        """Initialize circuit breaker error.

        Args:
            message: Description of the circuit breaker state.
            cooldown_remaining_seconds: Time until the circuit half-opens.
            provider: Gateway name.
        """
        self.cooldown_remaining_seconds = cooldown_remaining_seconds
        super().__init__(message, provider=provider)


class AnalysisError(Exception):
    """Raised when structured image analysis fails for any reason."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)
