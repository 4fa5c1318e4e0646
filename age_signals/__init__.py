"""Client for platform age signal attestations with retry handling.

The gateway turns one provider call into typed results, and the orchestrator
wraps it with exponential-backoff retries for transient failures.
"""

from .gateway import ProviderGateway
from .guidance import user_guidance
from .models import (
    AgeSignalError,
    AgeSignalResult,
    ErrorCode,
    PayloadDecodeError,
    VerificationStatus,
    is_retryable_code,
)
from .orchestrator import (
    AgeSignalsFailure,
    AgeSignalsStateError,
    RetryOrchestrator,
    SessionClosedError,
    SessionInProgressError,
    SessionState,
)

__all__ = [
    "AgeSignalError",
    "AgeSignalResult",
    "AgeSignalsFailure",
    "AgeSignalsStateError",
    "ErrorCode",
    "PayloadDecodeError",
    "ProviderGateway",
    "RetryOrchestrator",
    "SessionClosedError",
    "SessionInProgressError",
    "SessionState",
    "VerificationStatus",
    "is_retryable_code",
    "user_guidance",
]
