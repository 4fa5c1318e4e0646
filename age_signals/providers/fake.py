"""Deterministic in-memory provider used for tests and local runs."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any

from ..models import AGE_NOT_PROVIDED, AgeSignalResult, VerificationStatus
from .base import ProviderHandle, RawErrorCallback, RawSuccessCallback

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScriptedError:
    code: int
    message: str


@dataclass(frozen=True, slots=True)
class ScriptedPayload:
    """A raw success payload delivered verbatim, malformed or not."""

    raw: str


ScriptedResponse = AgeSignalResult | ScriptedError | ScriptedPayload


class FakeAgeSignalsProvider:
    """Replays scripted responses in order.

    Queued responses are consumed first. Once the queue is empty the last
    test response set through ``set_test_response`` is returned, and with no
    test response the provider answers ``NOT_APPLICABLE``.
    """

    def __init__(
        self,
        responses: list[ScriptedResponse] | None = None,
        *,
        available: bool = True,
        fail_initialize: bool = False,
        threaded: bool = False,
    ) -> None:
        self._responses: deque[ScriptedResponse] = deque(responses or [])
        self._available = available
        self._fail_initialize = fail_initialize
        self._threaded = threaded
        self._lock = threading.Lock()
        self.test_response: AgeSignalResult | None = None
        self.request_count = 0
        self.initialized_with: list[bool] = []
        self.closed = False

    def queue(self, *responses: ScriptedResponse) -> None:
        with self._lock:
            self._responses.extend(responses)

    def queue_error(self, code: int, message: str = "") -> None:
        self.queue(ScriptedError(code, message))

    def is_available(self) -> bool:
        return self._available

    def close(self) -> None:
        self.closed = True

    def initialize(self, context: Any, use_test_mode: bool) -> ProviderHandle:
        if self._fail_initialize:
            raise RuntimeError("Age signals manager could not be created")
        self.initialized_with.append(use_test_mode)
        return ProviderHandle(test_mode=use_test_mode, context=context)

    def set_test_response(
        self,
        handle: ProviderHandle,
        status: int,
        age_lower: int,
        age_upper: int,
        install_id: str,
        approval_epoch_millis: int,
    ) -> None:
        if not handle.test_mode:
            log.debug("Ignoring test response outside test mode")
            return
        # Unset fields stay at their "not provided" defaults.
        self.test_response = AgeSignalResult(
            status=VerificationStatus(status),
            age_lower=age_lower if age_lower > 0 else AGE_NOT_PROVIDED,
            age_upper=age_upper if age_upper > 0 else AGE_NOT_PROVIDED,
            install_id=install_id or "",
            approval_epoch_millis=approval_epoch_millis if approval_epoch_millis > 0 else None,
        )

    def request_age_signals(
        self,
        handle: ProviderHandle,
        on_raw_success: RawSuccessCallback,
        on_raw_error: RawErrorCallback,
    ) -> None:
        with self._lock:
            self.request_count += 1
            response = self._responses.popleft() if self._responses else self._default_response()

        if self._threaded:
            threading.Thread(
                target=self._deliver,
                args=(response, on_raw_success, on_raw_error),
                name="fake-age-signals",
                daemon=True,
            ).start()
        else:
            self._deliver(response, on_raw_success, on_raw_error)

    def _default_response(self) -> ScriptedResponse:
        if self.test_response is not None:
            return self.test_response
        return AgeSignalResult(status=VerificationStatus.NOT_APPLICABLE)

    @staticmethod
    def _deliver(
        response: ScriptedResponse,
        on_raw_success: RawSuccessCallback,
        on_raw_error: RawErrorCallback,
    ) -> None:
        if isinstance(response, ScriptedError):
            on_raw_error(response.code, response.message)
        elif isinstance(response, ScriptedPayload):
            on_raw_success(response.raw)
        else:
            on_raw_success(response.to_json())


def unavailable_provider() -> FakeAgeSignalsProvider:
    """A provider standing in for a platform without the host capability."""
    return FakeAgeSignalsProvider(available=False)


__all__ = [
    "FakeAgeSignalsProvider",
    "ScriptedError",
    "ScriptedPayload",
    "ScriptedResponse",
    "unavailable_provider",
]
