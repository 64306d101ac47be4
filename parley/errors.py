"""Exception hierarchy and structured error bodies.

All Parley exceptions inherit from ParleyError, which carries an
error_code so callers (channel adapters, the admission middleware)
can turn them into consistent error payloads.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from parley.admission.models import AdmissionResult


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    RATE_LIMITED = "RATE_LIMITED"
    """Subject exceeded its request rate."""

    CONNECTION_LIMIT = "CONNECTION_LIMIT"
    """Subject already holds the maximum number of real-time connections."""

    SOURCE_BLOCKED = "SOURCE_BLOCKED"
    """Source address is temporarily blocked after repeated failures."""

    CONTEXT_UNAVAILABLE = "CONTEXT_UNAVAILABLE"
    """Neither storage tier could serve the request."""

    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
    """The fast cache tier is unreachable."""

    AGENT_INVOCATION_FAILED = "AGENT_INVOCATION_FAILED"
    """The selected agent could not produce an answer."""

    AGENT_TIMEOUT = "AGENT_TIMEOUT"
    """The selected agent timed out on every attempt."""

    TURN_TIMEOUT = "TURN_TIMEOUT"
    """The turn exceeded its overall latency budget."""

    TRANSPORT_FAILED = "TRANSPORT_FAILED"
    """The real-time transport failed."""

    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    """The durable tier rejected a write."""

    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    """Registry or settings are inconsistent."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorBody(BaseModel):
    """Structured error returned to channel adapters."""

    code: ErrorCode
    message: str


class ParleyError(Exception):
    """Base exception for all Parley errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_body(self) -> ErrorBody:
        return ErrorBody(code=self.error_code, message=self.message)


class AdmissionDeniedError(ParleyError):
    """Raised when a rate, connection or block policy rejects work.

    Never retried.
    """

    def __init__(self, message: str, result: AdmissionResult) -> None:
        super().__init__(message)
        self.result = result
        self.error_code = result.policy.error_code


class ContextUnavailableError(ParleyError):
    """Raised when both storage tiers fail on an operation that cannot degrade."""

    error_code = ErrorCode.CONTEXT_UNAVAILABLE


class CacheError(ParleyError):
    """Raised by fast-tier caches when the backend is unreachable."""

    error_code = ErrorCode.CACHE_UNAVAILABLE

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class PersistenceError(ParleyError):
    """Raised by durable stores when an operation fails."""

    error_code = ErrorCode.PERSISTENCE_FAILED

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class AgentInvocationError(ParleyError):
    """Raised when the selected agent fails after all retries."""

    error_code = ErrorCode.AGENT_INVOCATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        agent: str,
        attempts: int,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.agent = agent
        self.attempts = attempts
        if timed_out:
            self.error_code = ErrorCode.AGENT_TIMEOUT


class TurnTimeoutError(ParleyError):
    """Raised when a turn exceeds its latency budget."""

    error_code = ErrorCode.TURN_TIMEOUT


class SessionTransportError(ParleyError):
    """Raised when the real-time transport fails mid-session."""

    error_code = ErrorCode.TRANSPORT_FAILED


class TransportClosedError(SessionTransportError):
    """Raised by a transport when the peer has disconnected."""


class RegistryError(ParleyError):
    """Raised when agent descriptors violate registry invariants."""

    error_code = ErrorCode.INVALID_CONFIGURATION
