"""Rate limiting and abuse prevention guarding admission into the core."""

from parley.admission.controller import AdmissionController
from parley.admission.guard import AbuseGuard
from parley.admission.limiter import RateLimiter
from parley.admission.models import AdmissionPolicy, AdmissionResult

__all__ = [
    "AbuseGuard",
    "AdmissionController",
    "AdmissionPolicy",
    "AdmissionResult",
    "RateLimiter",
]
