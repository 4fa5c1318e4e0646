"""Retry orchestration around the provider gateway.

One orchestrator drives one logical session at a time: it issues a request,
waits for the outcome, and either reports it to the caller or re-issues the
request after an exponential backoff. Provider callbacks may arrive on any
thread; they are posted onto the event loop and consumed by a single session
task, so every state transition happens on the loop thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .gateway import ErrorCallback, ProviderGateway, SuccessCallback
from .models import AgeSignalError, AgeSignalResult

log: Final = logging.getLogger("age-signals")

MAX_ATTEMPTS: Final[int] = 3
BACKOFF_UNIT_SECONDS: Final[float] = 1.0

Sleep = Callable[[float], Awaitable[object]]
Outcome = AgeSignalResult | AgeSignalError


class SessionState(Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


ACTIVE_STATES: Final = frozenset({SessionState.REQUESTING, SessionState.RETRYING})
TERMINAL_STATES: Final = frozenset(
    {SessionState.SUCCEEDED, SessionState.FAILED, SessionState.CANCELLED}
)


class AgeSignalsStateError(RuntimeError):
    """Raised when the orchestrator is driven from the wrong state."""


class SessionInProgressError(AgeSignalsStateError):
    def __init__(self, state: SessionState) -> None:
        super().__init__(f"Age signals session in progress (state: {state.value})")
        self.state = state


class SessionClosedError(AgeSignalsStateError):
    def __init__(self, state: SessionState) -> None:
        super().__init__(
            f"Age signals session already finished (state: {state.value}); call reset() first"
        )
        self.state = state


class AgeSignalsFailure(Exception):
    """Terminal failure surfaced by :meth:`RetryOrchestrator.run`."""

    def __init__(self, error: AgeSignalError) -> None:
        super().__init__(str(error))
        self.error = error


@dataclass(slots=True)
class RetrySession:
    max_attempts: int = MAX_ATTEMPTS
    attempt_count: int = 0
    requests_issued: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts

    def should_retry(self, error: AgeSignalError) -> bool:
        return error.is_retryable and not self.exhausted

    def next_delay(self, unit: float) -> float:
        self.attempt_count += 1
        return unit * (2**self.attempt_count)


class RetryOrchestrator:
    def __init__(
        self,
        gateway: ProviderGateway,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        backoff_unit: float = BACKOFF_UNIT_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._max_attempts = max(0, max_attempts)
        self._backoff_unit = max(0.0, backoff_unit)
        self._sleep = sleep
        self._state = SessionState.IDLE
        self._session: RetrySession | None = None
        self._task: asyncio.Task[None] | None = None
        self._result_future: asyncio.Future[AgeSignalResult] | None = None
        self._cancelled = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def attempt_count(self) -> int:
        return self._session.attempt_count if self._session else 0

    @property
    def requests_issued(self) -> int:
        return self._session.requests_issued if self._session else 0

    def start(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        test_result: AgeSignalResult | None = None,
    ) -> None:
        """Begin a session and return immediately.

        Must be called from the thread running the event loop. Outcomes are
        delivered to exactly one of the two handlers.
        """
        if self._state in ACTIVE_STATES:
            raise SessionInProgressError(self._state)
        if self._state in TERMINAL_STATES:
            raise SessionClosedError(self._state)

        loop = asyncio.get_running_loop()
        self._cancelled = False
        self._session = RetrySession(max_attempts=self._max_attempts)
        self._state = SessionState.REQUESTING
        log.info("Starting age signals session (max %d retries)", self._max_attempts)
        self._task = loop.create_task(
            self._run_session(loop, on_success, on_error, test_result),
            name="age-signals-session",
        )

    async def run(self, test_result: AgeSignalResult | None = None) -> AgeSignalResult:
        """Run a session to completion, raising :class:`AgeSignalsFailure` on failure."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[AgeSignalResult] = loop.create_future()

        def resolve(result: AgeSignalResult) -> None:
            if not future.done():
                future.set_result(result)

        def reject(error: AgeSignalError) -> None:
            if not future.done():
                future.set_exception(AgeSignalsFailure(error))

        self.start(resolve, reject, test_result)
        self._result_future = future
        try:
            return await future
        except asyncio.CancelledError:
            self.cancel()
            raise
        finally:
            self._result_future = None

    async def wait(self) -> None:
        """Wait until the current session reaches a terminal state."""
        if self._task is not None:
            await asyncio.wait({self._task})

    def cancel(self) -> None:
        """Stop the current session; no handler fires after this returns."""
        if self._state not in ACTIVE_STATES:
            return
        self._cancelled = True
        self._state = SessionState.CANCELLED
        log.info("Age signals session cancelled")
        if self._task is not None:
            self._task.cancel()
        if self._result_future is not None:
            self._result_future.cancel()

    def reset(self) -> None:
        """Return a finished orchestrator to idle so it can start again."""
        if self._state in ACTIVE_STATES:
            raise SessionInProgressError(self._state)
        self._state = SessionState.IDLE
        self._session = None
        self._task = None
        self._cancelled = False

    async def _run_session(
        self,
        loop: asyncio.AbstractEventLoop,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        test_result: AgeSignalResult | None,
    ) -> None:
        session = self._session
        assert session is not None
        events: asyncio.Queue[Outcome] = asyncio.Queue()

        def post(outcome: Outcome) -> None:
            try:
                loop.call_soon_threadsafe(events.put_nowait, outcome)
            except RuntimeError:
                log.warning("Dropping age signals outcome; event loop is closed")

        while True:
            if self._cancelled:
                return

            self._state = SessionState.REQUESTING
            session.requests_issued += 1
            self._issue(post, test_result)
            outcome = await events.get()

            if self._cancelled:
                return

            if isinstance(outcome, AgeSignalResult):
                self._state = SessionState.SUCCEEDED
                session.attempt_count = 0
                log.info(
                    "Age signals received: status=%s range=%s-%s",
                    outcome.status.name,
                    outcome.age_lower,
                    outcome.age_upper,
                )
                self._deliver(on_success, outcome)
                return

            if session.should_retry(outcome):
                delay = session.next_delay(self._backoff_unit)
                self._state = SessionState.RETRYING
                log.warning(
                    "Age signals error %s: %s; retrying in %.1f seconds (attempt %d/%d)",
                    outcome.code.name,
                    outcome.message,
                    delay,
                    session.attempt_count,
                    session.max_attempts,
                )
                await self._sleep(delay)
                continue

            if outcome.is_retryable and session.exhausted:
                log.error("Max retries reached for age signals request")
            log.error("Age signals request failed: %s", outcome)
            self._state = SessionState.FAILED
            self._deliver(on_error, outcome)
            return

    def _issue(
        self,
        post: Callable[[Outcome], None],
        test_result: AgeSignalResult | None,
    ) -> None:
        try:
            self._gateway.request(post, post, test_result)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Age signals gateway raised: %s", exc)
            post(AgeSignalError.internal(f"Request failed: {exc}"))

    @staticmethod
    def _deliver(handler: Callable[..., None], value: Outcome) -> None:
        try:
            handler(value)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Age signals handler raised: %s", exc)
