"""Capability contract for the service that performs age verification."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

RawSuccessCallback = Callable[[str], None]
RawErrorCallback = Callable[[int, str], None]


@dataclass(slots=True)
class ProviderHandle:
    """Opaque per-request state returned by ``initialize``."""

    test_mode: bool
    context: Any = None
    state: dict[str, Any] = field(default_factory=dict)


class AgeSignalsProvider(Protocol):
    """A host capability reachable through one asynchronous request.

    Implementations invoke exactly one of the two raw callbacks exactly once
    per ``request_age_signals`` call, possibly from another thread.
    ``initialize``, ``set_test_response`` and ``request_age_signals`` are
    called from the event loop and must not block on I/O.
    """

    def is_available(self) -> bool: ...

    def initialize(self, context: Any, use_test_mode: bool) -> ProviderHandle: ...

    def request_age_signals(
        self,
        handle: ProviderHandle,
        on_raw_success: RawSuccessCallback,
        on_raw_error: RawErrorCallback,
    ) -> None: ...

    def set_test_response(
        self,
        handle: ProviderHandle,
        status: int,
        age_lower: int,
        age_upper: int,
        install_id: str,
        approval_epoch_millis: int,
    ) -> None: ...

    def close(self) -> None: ...
