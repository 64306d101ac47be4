"""Admission result models."""

from enum import Enum

from pydantic import BaseModel, Field

from parley.errors import ErrorCode


class AdmissionPolicy(str, Enum):
    """Policy that produced an admission decision."""

    REQUEST_RATE = "rate"
    CONNECTIONS = "conn"
    SOURCE_BLOCK = "block"

    @property
    def error_code(self) -> ErrorCode:
        return _POLICY_ERRORS[self]


_POLICY_ERRORS = {
    AdmissionPolicy.REQUEST_RATE: ErrorCode.RATE_LIMITED,
    AdmissionPolicy.CONNECTIONS: ErrorCode.CONNECTION_LIMIT,
    AdmissionPolicy.SOURCE_BLOCK: ErrorCode.SOURCE_BLOCKED,
}


class AdmissionResult(BaseModel):
    """Outcome of a single admission check."""

    allowed: bool = Field(..., description="Whether the work may proceed")
    policy: AdmissionPolicy = Field(..., description="Policy that was checked")
    subject: str = Field(..., description="User id or source address")
    limit: int = Field(..., description="Threshold for the policy")
    count: int = Field(..., description="Counter value after this check")
    retry_after: int | None = Field(
        default=None,
        description="Seconds until the counter window or block expires",
    )

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)
