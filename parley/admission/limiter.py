"""Fixed-window request limiter and concurrent-connection limiter."""

from parley.admission.models import AdmissionPolicy, AdmissionResult
from parley.admission.store import CounterStore
from parley.config.models.admission import AdmissionConfig
from parley.observability.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Per-subject request-rate and connection-count policies.

    Request rate uses a fixed window: the counter is created with the
    window length as its expiry and every request in the window
    increments it. Connections are counted up on admission and down on
    explicit release; the counter expiry only guards against releases
    that never arrive.

    Key structure:
    - {prefix}:rate:{subject}
    - {prefix}:conn:{subject}
    """

    def __init__(
        self,
        store: CounterStore,
        config: AdmissionConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or AdmissionConfig()

    def _key(self, policy: AdmissionPolicy, subject: str) -> str:
        return f"{self._config.key_prefix}:{policy.value}:{subject}"

    async def check_request_rate(self, subject: str) -> AdmissionResult:
        """Count a request against the subject's window.

        Allowed while the incremented count is within the limit.
        """
        limit = self._config.request_limit
        key = self._key(AdmissionPolicy.REQUEST_RATE, subject)
        count = await self._store.incr(key, self._config.request_window_seconds)

        allowed = count <= limit
        retry_after = None if allowed else await self._store.ttl(key)

        return AdmissionResult(
            allowed=allowed,
            policy=AdmissionPolicy.REQUEST_RATE,
            subject=subject,
            limit=limit,
            count=count,
            retry_after=retry_after,
        )

    async def check_connection_limit(self, subject: str) -> AdmissionResult:
        """Reserve a connection slot for the subject.

        An over-limit increment is rolled back immediately, so a denied
        attempt never holds a slot. Callers that are allowed must call
        release_connection when the connection ends.
        """
        limit = self._config.max_connections
        key = self._key(AdmissionPolicy.CONNECTIONS, subject)
        count = await self._store.incr(key, self._config.connection_ttl_seconds)

        allowed = count <= limit
        if not allowed:
            count = await self._store.decr(key)

        return AdmissionResult(
            allowed=allowed,
            policy=AdmissionPolicy.CONNECTIONS,
            subject=subject,
            limit=limit,
            count=count,
        )

    async def release_connection(self, subject: str) -> int:
        """Release a connection slot, returning the remaining count."""
        remaining = await self._store.decr(self._key(AdmissionPolicy.CONNECTIONS, subject))
        logger.debug("connection_released", subject=subject, remaining=remaining)
        return remaining

    async def active_connections(self, subject: str) -> int:
        return await self._store.get(self._key(AdmissionPolicy.CONNECTIONS, subject))

    async def reset(self, subject: str) -> None:
        """Reset all counters for a subject."""
        await self._store.delete(self._key(AdmissionPolicy.REQUEST_RATE, subject))
        await self._store.delete(self._key(AdmissionPolicy.CONNECTIONS, subject))
