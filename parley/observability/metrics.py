"""Prometheus metrics for Parley."""

from prometheus_client import Counter, Gauge, Histogram

# Context store
CONTEXT_CACHE_HITS = Counter(
    "parley_context_cache_hits_total",
    "Context loads served from the fast tier",
)

CONTEXT_CACHE_MISSES = Counter(
    "parley_context_cache_misses_total",
    "Context loads that missed the fast tier",
    labelnames=["source"],  # durable | fresh
)

CONTEXT_CACHE_ERRORS = Counter(
    "parley_context_cache_errors_total",
    "Fast tier errors by operation",
    labelnames=["operation"],
)

CONTEXT_UNAVAILABLE = Counter(
    "parley_context_unavailable_total",
    "Loads where both storage tiers failed",
)

PERSISTENCE_FAILURES = Counter(
    "parley_persistence_failures_total",
    "Durable tier write failures",
)

# Routing
ROUTING_DECISIONS = Counter(
    "parley_routing_decisions_total",
    "Agent routing decisions",
    labelnames=["agent", "reason"],
)

CONFIDENCE_FAILURES = Counter(
    "parley_confidence_failures_total",
    "Confidence queries that failed or timed out (scored 0)",
    labelnames=["agent"],
)

INVOCATION_ATTEMPTS = Counter(
    "parley_invocation_attempts_total",
    "Answer call attempts, including retries",
    labelnames=["agent"],
)

INVOCATION_FAILURES = Counter(
    "parley_invocation_failures_total",
    "Answer calls that failed after all retries",
    labelnames=["agent", "error_type"],
)

INVOCATION_LATENCY = Histogram(
    "parley_invocation_latency_seconds",
    "Answer call latency including retries",
    labelnames=["agent"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# Admission
ADMISSION_DENIALS = Counter(
    "parley_admission_denials_total",
    "Admission denials by policy",
    labelnames=["policy"],
)

# Voice
ACTIVE_AUDIO_SESSIONS = Gauge(
    "parley_active_audio_sessions",
    "Number of active real-time audio sessions",
)

AUDIO_TURNS = Counter(
    "parley_audio_turns_total",
    "Voice turns processed by outcome",
    labelnames=["outcome"],  # ok | failed | timeout | empty
)

AUDIO_BYTES_RX = Counter(
    "parley_audio_rx_bytes_total",
    "Inbound audio bytes received",
)

AUDIO_BYTES_TX = Counter(
    "parley_audio_tx_bytes_total",
    "Synthesized audio bytes sent",
)

TURN_LATENCY = Histogram(
    "parley_turn_latency_seconds",
    "End-to-end turn latency",
    labelnames=["channel"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
