"""ASGI middleware applying admission policy to channel webhooks."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from parley.admission.controller import AdmissionController
from parley.errors import AdmissionDeniedError, ErrorCode
from parley.observability.logging import get_logger

logger = get_logger(__name__)

SUBJECT_HEADER = "X-Parley-User"

# Downstream responses that count as a failed attempt from the source
FAILURE_STATUSES = frozenset({401, 403})

_DENIAL_STATUS = {
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.SOURCE_BLOCKED: 403,
    ErrorCode.CONNECTION_LIMIT: 429,
}


class AdmissionMiddleware(BaseHTTPMiddleware):
    """Rejects blocked sources and over-rate subjects before routing.

    The subject is the X-Parley-User header when the channel adapter in
    front of us sets it, otherwise the client address. Authentication
    failures reported by downstream handlers (401/403) are recorded
    against the client address for the abuse guard.

    Rate limit headers are added to admitted responses:
    - X-RateLimit-Limit
    - X-RateLimit-Remaining
    """

    def __init__(
        self,
        app: Callable[..., Any],
        controller: AdmissionController,
        enabled: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self._controller = controller
        self._enabled = enabled
        self._exclude_paths = exclude_paths or ["/health", "/metrics"]

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        if not self._enabled or request.url.path in self._exclude_paths:
            return await call_next(request)  # type: ignore[no-any-return]

        source_ip = request.client.host if request.client else None
        subject = request.headers.get(SUBJECT_HEADER) or source_ip or "anonymous"

        try:
            result = await self._controller.admit_request(subject, source_ip)
        except AdmissionDeniedError as e:
            headers = {}
            if e.result.retry_after is not None:
                headers["Retry-After"] = str(e.result.retry_after)
            return JSONResponse(
                status_code=_DENIAL_STATUS.get(e.error_code, 429),
                content={"error": e.to_body().model_dump(mode="json")},
                headers=headers,
            )

        response: Response = await call_next(request)

        if source_ip and response.status_code in FAILURE_STATUSES:
            await self._controller.record_failure(source_ip)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
