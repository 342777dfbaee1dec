"""Generation gateway abstraction for renderflow.

This package is the boundary to the external image generation service.
The edit core depends only on the protocols and error classes; the chat
completions adapters are one implementation.

Public API:
    - Protocol & Data Models: GenerationGateway, AnalysisGateway,
      GenerationRequest, GeneratedArtifact, Placement, StructuredDescription
    - Adapters: ChatImageGateway, ChatAnalysisGateway
    - Exceptions: GatewayError, RateLimitedError, QuotaExceededError,
      ValidationRejectedError, GatewayUnavailableError,
      CircuitBreakerOpenError, AnalysisError

Usage:
    from renderflow.generation import ChatImageGateway, GenerationRequest

    gateway = ChatImageGateway()
    artifact = await gateway.generate(request)
"""

from renderflow.generation.analysis_client import ChatAnalysisGateway, parse_description
from renderflow.generation.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from renderflow.generation.gateway_client import ChatImageGateway, classify_api_error
from renderflow.generation.protocol import (
    AnalysisError,
    AnalysisGateway,
    CircuitBreakerOpenError,
    DetectedItem,
    GatewayError,
    GatewayUnavailableError,
    GeneratedArtifact,
    GenerationGateway,
    GenerationRequest,
    Placement,
    QuotaExceededError,
    RateLimitedError,
    StructuredDescription,
    ValidationRejectedError,
)

__all__ = [
    "AnalysisError",
    "AnalysisGateway",
    "ChatAnalysisGateway",
    "ChatImageGateway",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerOpenError",
    "CircuitState",
    "DetectedItem",
    "GatewayError",
    "GatewayUnavailableError",
    "GeneratedArtifact",
    "GenerationGateway",
    "GenerationRequest",
    "Placement",
    "QuotaExceededError",
    "RateLimitedError",
    "StructuredDescription",
    "ValidationRejectedError",
    "classify_api_error",
    "parse_description",
]
