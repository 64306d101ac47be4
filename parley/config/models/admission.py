"""Admission policy configuration: request rate, connections, abuse blocking."""

from pydantic import BaseModel, Field


class AdmissionConfig(BaseModel):
    """Thresholds for the rate limiter and abuse guard."""

    key_prefix: str = Field(
        default="parley:adm",
        description="Redis key prefix for admission counters",
    )
    request_limit: int = Field(
        default=100,
        gt=0,
        description="Requests allowed per subject per window",
    )
    request_window_seconds: int = Field(
        default=60,
        gt=0,
        description="Fixed window length for request counting",
    )
    max_connections: int = Field(
        default=3,
        gt=0,
        description="Concurrent real-time connections per subject",
    )
    connection_ttl_seconds: int = Field(
        default=3600,
        gt=0,
        description="Safety-net expiry for connection counters",
    )
    failure_threshold: int = Field(
        default=5,
        gt=0,
        description="Failures tolerated within the failure window",
    )
    failure_window_seconds: int = Field(
        default=300,
        gt=0,
        description="Window over which failures are counted",
    )
    block_seconds: int = Field(
        default=900,
        gt=0,
        description="How long a source stays blocked",
    )
    exclude_paths: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="HTTP paths the admission middleware skips",
    )
