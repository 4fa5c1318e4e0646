"""Adapt one provider call into typed results and errors."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from typing import Any, Final

from .models import AgeSignalError, AgeSignalResult, ErrorCode, PayloadDecodeError
from .providers.base import AgeSignalsProvider, ProviderHandle

log: Final = logging.getLogger("age-signals")

SuccessCallback = Callable[[AgeSignalResult], None]
ErrorCallback = Callable[[AgeSignalError], None]

API_NOT_AVAILABLE_MESSAGE: Final[str] = (
    "Age signals API is not available in this environment"
)


class _OnceLatch:
    """Let exactly one of the paired callbacks through."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fired = False

    def acquire(self) -> bool:
        with self._lock:
            if self._fired:
                return False
            self._fired = True
            return True


class ProviderGateway:
    """Issue requests to a provider and normalize both outcomes.

    A supplied ``test_result`` is handed to the provider's own test-mode hook
    rather than returned directly, so the provider is always exercised.
    Every ``request`` call ends in exactly one of ``on_success`` or
    ``on_error``; no exception escapes to the caller.
    """

    def __init__(self, provider: AgeSignalsProvider, context: Any = None) -> None:
        self._provider = provider
        self._context = context
        self._ids = itertools.count(1)
        self._in_flight: dict[int, ProviderHandle] = {}
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def request(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        test_result: AgeSignalResult | None = None,
    ) -> None:
        if not self._provider.is_available():
            on_error(AgeSignalError(ErrorCode.API_NOT_AVAILABLE, API_NOT_AVAILABLE_MESSAGE))
            return

        try:
            handle = self._provider.initialize(self._context, test_result is not None)
            if test_result is not None:
                self._provider.set_test_response(handle, *test_result.test_response_args())
        except Exception as exc:  # pylint: disable=broad-except
            log.error("Age signals provider initialization failed: %s", exc)
            on_error(AgeSignalError.internal(f"Initialization failed: {exc}"))
            return

        request_id = next(self._ids)
        latch = _OnceLatch()
        with self._lock:
            self._in_flight[request_id] = handle

        def release() -> None:
            with self._lock:
                self._in_flight.pop(request_id, None)

        def raw_success(payload: str) -> None:
            if not latch.acquire():
                log.warning("Ignoring duplicate provider callback for request %s", request_id)
                return
            release()
            try:
                result = AgeSignalResult.from_json(payload)
            except PayloadDecodeError as exc:
                log.error("Could not decode age signals payload: %s", exc)
                on_error(AgeSignalError.internal(f"JSON parsing failed: {exc}"))
                return
            on_success(result)

        def raw_error(code: int, message: str) -> None:
            if not latch.acquire():
                log.warning("Ignoring duplicate provider callback for request %s", request_id)
                return
            release()
            on_error(AgeSignalError.from_raw(code, message))

        try:
            self._provider.request_age_signals(handle, raw_success, raw_error)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Age signals request failed to start: %s", exc)
            if latch.acquire():
                release()
                on_error(AgeSignalError.internal(f"Request failed: {exc}"))
