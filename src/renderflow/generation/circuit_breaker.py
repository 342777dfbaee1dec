"""Circuit breaker for the generation gateway.

When the gateway keeps failing (outage, network partition, misconfigured
key), further requests are refused locally instead of queueing up more
long-running generation calls that will also fail.

States:
- CLOSED: requests pass through; consecutive failures are counted.
- OPEN: requests fail immediately with CircuitBreakerOpenError.
- HALF_OPEN: after the cooldown a few probe requests are let through;
  enough successes close the circuit, any failure reopens it.

Only unavailability trips the breaker. Rate limiting, quota and validation
rejections are answers from a healthy service and count as successes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from renderflow.generation.protocol import CircuitBreakerOpenError

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Thresholds for one circuit breaker.

    Attributes:
        failure_threshold: Consecutive unavailability failures that open the circuit.
        cooldown_seconds: How long the circuit stays open before probing.
        half_open_max_calls: Concurrent probe requests allowed while half-open.
        success_threshold: Probe successes needed to close the circuit again.
    """

    failure_threshold: int = 5
    cooldown_seconds: float = 60.0
    half_open_max_calls: int = 1
    success_threshold: int = 1


@dataclass
class CircuitBreaker:
    """Tracks gateway health and refuses calls while it is failing.

    Usage:
        breaker = CircuitBreaker(provider_name="image-gateway")

        breaker.check()  # raises CircuitBreakerOpenError while open
        try:
            artifact = await call_gateway()
        except GatewayUnavailableError:
            breaker.record_failure()
            raise
        breaker.record_success()
    """

    provider_name: str
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _consecutive_failures: int = field(default=0, init=False)
    _probes_in_flight: int = field(default=0, init=False)
    _probe_successes: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)

    @property
    def state(self) -> CircuitState:
        """Current state; an expired OPEN state reads as HALF_OPEN."""
        if self._state is CircuitState.OPEN and self.cooldown_remaining() == 0.0:
            self._transition(CircuitState.HALF_OPEN, "cooldown elapsed")
        return self._state

    @property
    def is_closed(self) -> bool:
        return self.state is CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.state is CircuitState.OPEN

    def cooldown_remaining(self) -> float:
        """Seconds until an open circuit starts probing (0 when not open)."""
        if self._state is not CircuitState.OPEN:
            return 0.0
        elapsed = time.monotonic() - self._opened_at
        return max(0.0, self.config.cooldown_seconds - elapsed)

    def check(self) -> None:
        """Admit a request or refuse it.

        While half-open, an admitted request occupies a probe slot until it
        is recorded or released.

        Raises:
            CircuitBreakerOpenError: The circuit is open, or every probe slot
                is taken.
        """
        state = self.state
        if state is CircuitState.CLOSED:
            return
        if state is CircuitState.OPEN:
            remaining = self.cooldown_remaining()
            raise CircuitBreakerOpenError(
                f"Gateway {self.provider_name} is failing; "
                f"requests paused for another {remaining:.1f}s.",
                cooldown_remaining_seconds=remaining,
                provider=self.provider_name,
            )
        if self._probes_in_flight >= self.config.half_open_max_calls:
            raise CircuitBreakerOpenError(
                f"Gateway {self.provider_name} is being probed; "
                "wait for the probe request to finish.",
                cooldown_remaining_seconds=0.0,
                provider=self.provider_name,
            )
        self._probes_in_flight += 1

    def record_success(self) -> None:
        """Record a call that reached a healthy service."""
        if self._state is CircuitState.CLOSED:
            self._consecutive_failures = 0
            return
        if self._state is CircuitState.HALF_OPEN:
            self.release_probe()
            self._probe_successes += 1
            if self._probe_successes >= self.config.success_threshold:
                self._transition(CircuitState.CLOSED, "probe succeeded")

    def record_failure(self) -> None:
        """Record a call that failed because the service was unavailable."""
        if self._state is CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN, "probe failed")
        elif self._state is CircuitState.CLOSED:
            self._consecutive_failures += 1
            if self._consecutive_failures >= self.config.failure_threshold:
                self._transition(
                    CircuitState.OPEN,
                    f"{self._consecutive_failures} consecutive failures",
                )

    def release_probe(self) -> None:
        """Give back a half-open probe slot whose call was abandoned."""
        if self._state is CircuitState.HALF_OPEN and self._probes_in_flight > 0:
            self._probes_in_flight -= 1

    def reset(self) -> None:
        """Return to CLOSED with all counters cleared."""
        self._transition(CircuitState.CLOSED, "reset")

    def _transition(self, new_state: CircuitState, reason: str) -> None:
        level = logging.WARNING if new_state is CircuitState.OPEN else logging.INFO
        logger.log(
            level,
            "Circuit %s -> %s (%s)",
            self._state.value,
            new_state.value,
            reason,
            extra={"provider": self.provider_name},
        )
        self._state = new_state
        self._consecutive_failures = 0
        self._probes_in_flight = 0
        self._probe_successes = 0
        if new_state is CircuitState.OPEN:
            self._opened_at = time.monotonic()
