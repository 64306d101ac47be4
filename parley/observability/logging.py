"""Structured logging for Parley.

Every module logs through structlog with snake_case event names and
keyword fields. Identifiers bound with `log_context` (conversation_id,
connection_id, call_id) are merged into each event, so a single call or
conversation can be followed across the router, the context store and
the audio session.

Caller utterances, phone numbers and raw audio reach log calls all the
time, which is why redaction is on unless a config turns it off.
"""

import logging
import re
import sys
from collections.abc import Mapping
from contextlib import AbstractContextManager
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

from parley.config.models.observability import LoggingConfig

SENSITIVE_KEYS: frozenset[str] = frozenset({
    "api_key",
    "apikey",
    "access_token",
    "authorization",
    "password",
    "secret",
    "token",
    "email",
    "phone",
    "caller_number",
    "from_number",
    "to_number",
})

# Conversation text: only its length is logged
CONTENT_KEYS: frozenset[str] = frozenset({
    "content",
    "transcript",
    "reply",
    "prompt",
})

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\+?[\d\s\-\(\)]{10,}")


class PIIRedactor:
    """structlog processor that scrubs an event before rendering.

    - sensitive keys are replaced with "[REDACTED]"
    - conversation text becomes "[N chars]"
    - audio payloads (bytes) become "[N bytes]"
    - other strings have emails and phone numbers masked
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._scrub_mapping(event_dict))

    def _scrub_mapping(self, data: Mapping[str, Any]) -> dict[str, Any]:
        scrubbed: dict[str, Any] = {}
        for key, value in data.items():
            name = key.lower()
            if name in SENSITIVE_KEYS:
                scrubbed[key] = "[REDACTED]"
            elif name in CONTENT_KEYS and isinstance(value, str):
                scrubbed[key] = f"[{len(value)} chars]"
            else:
                scrubbed[key] = self._scrub_value(value)
        return scrubbed

    def _scrub_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return PHONE_PATTERN.sub("[PHONE]", EMAIL_PATTERN.sub("[EMAIL]", value))
        if isinstance(value, (bytes, bytearray)):
            return f"[{len(value)} bytes]"
        if isinstance(value, Mapping):
            return self._scrub_mapping(value)
        if isinstance(value, (list, tuple)):
            return [self._scrub_value(item) for item in value]
        return value


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog from the observability.logging section.

    JSON lines go to stderr in production; development uses the
    colored console renderer.
    """
    config = config or LoggingConfig()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if config.redact_pii:
        processors.append(PIIRedactor())
    processors.append(
        structlog.processors.JSONRenderer()
        if config.format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def log_context(**ids: Any) -> AbstractContextManager[None]:
    """Bind identifiers to every event logged inside the block.

    Blocks nest; leaving one restores the outer bindings.
    """
    return structlog.contextvars.bound_contextvars(**ids)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
