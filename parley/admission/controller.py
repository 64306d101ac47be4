"""Admission checks applied before any work is admitted."""

from parley.admission.guard import AbuseGuard
from parley.admission.limiter import RateLimiter
from parley.admission.models import AdmissionResult
from parley.errors import AdmissionDeniedError
from parley.observability.logging import get_logger
from parley.observability.metrics import ADMISSION_DENIALS

logger = get_logger(__name__)


class AdmissionController:
    """Composes the abuse guard and the rate limiter.

    Block status is always checked first; a blocked source is denied
    without touching the subject's rate or connection counters.
    """

    def __init__(self, limiter: RateLimiter, guard: AbuseGuard) -> None:
        self._limiter = limiter
        self._guard = guard

    @property
    def guard(self) -> AbuseGuard:
        return self._guard

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def admit_request(
        self, subject: str, source_ip: str | None = None
    ) -> AdmissionResult:
        """Admit one request (text turn or webhook call).

        Raises:
            AdmissionDeniedError: If the source is blocked or the subject
                exceeded its request rate
        """
        await self._check_block(source_ip)
        result = await self._limiter.check_request_rate(subject)
        if not result.allowed:
            self._deny(result)
        return result

    async def admit_connection(
        self, subject: str, source_ip: str | None = None
    ) -> AdmissionResult:
        """Reserve a real-time connection slot.

        Raises:
            AdmissionDeniedError: If the source is blocked or the subject
                already holds the maximum number of connections
        """
        await self._check_block(source_ip)
        result = await self._limiter.check_connection_limit(subject)
        if not result.allowed:
            self._deny(result)
        return result

    async def release_connection(self, subject: str) -> None:
        await self._limiter.release_connection(subject)

    async def record_failure(self, source_ip: str) -> bool:
        return await self._guard.record_failure(source_ip)

    async def _check_block(self, source_ip: str | None) -> None:
        if not source_ip:
            return
        result = await self._guard.check(source_ip)
        if not result.allowed:
            self._deny(result)

    def _deny(self, result: AdmissionResult) -> None:
        ADMISSION_DENIALS.labels(policy=result.policy.value).inc()
        logger.warning(
            "admission_denied",
            policy=result.policy.value,
            subject=result.subject,
            limit=result.limit,
            count=result.count,
            retry_after=result.retry_after,
        )
        raise AdmissionDeniedError(
            f"Admission denied by {result.policy.name.lower()} policy for {result.subject}",
            result,
        )
