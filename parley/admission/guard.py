"""Source-address abuse guard."""

from parley.admission.models import AdmissionPolicy, AdmissionResult
from parley.admission.store import CounterStore
from parley.config.models.admission import AdmissionConfig
from parley.observability.logging import get_logger

logger = get_logger(__name__)


class AbuseGuard:
    """Blocks a source after repeated failures.

    More than `failure_threshold` failures inside `failure_window_seconds`
    sets a block marker for `block_seconds`. The failure counter follows
    the same fixed-window rule as request counting.

    Key structure:
    - {prefix}:fail:{source}
    - {prefix}:block:{source}
    """

    def __init__(
        self,
        store: CounterStore,
        config: AdmissionConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or AdmissionConfig()

    def _failure_key(self, source: str) -> str:
        return f"{self._config.key_prefix}:fail:{source}"

    def _block_key(self, source: str) -> str:
        return f"{self._config.key_prefix}:{AdmissionPolicy.SOURCE_BLOCK.value}:{source}"

    async def record_failure(self, source: str) -> bool:
        """Record a failed attempt from source.

        Returns:
            True if this failure caused the source to be blocked
        """
        failures = await self._store.incr(
            self._failure_key(source), self._config.failure_window_seconds
        )
        if failures <= self._config.failure_threshold:
            return False

        await self._store.set_flag(self._block_key(source), self._config.block_seconds)
        await self._store.delete(self._failure_key(source))
        logger.warning(
            "source_blocked",
            source=source,
            failures=failures,
            block_seconds=self._config.block_seconds,
        )
        return True

    async def is_blocked(self, source: str) -> bool:
        return await self._store.exists(self._block_key(source))

    async def check(self, source: str) -> AdmissionResult:
        """Block status as an admission result."""
        blocked = await self.is_blocked(source)
        retry_after = await self._store.ttl(self._block_key(source)) if blocked else None
        return AdmissionResult(
            allowed=not blocked,
            policy=AdmissionPolicy.SOURCE_BLOCK,
            subject=source,
            limit=self._config.failure_threshold,
            count=await self._store.get(self._failure_key(source)),
            retry_after=retry_after,
        )

    async def unblock(self, source: str) -> None:
        await self._store.delete(self._block_key(source))
        await self._store.delete(self._failure_key(source))
