"""Provider that talks to a host-side age signals bridge over HTTP."""

from __future__ import annotations

import logging
import threading
from typing import Any, Final

import requests

from ..models import ErrorCode
from .base import ProviderHandle, RawErrorCallback, RawSuccessCallback

log: Final = logging.getLogger("age-signals")

HEALTH_PATH: Final[str] = "/v1/health"
CHECK_PATH: Final[str] = "/v1/age-signals:check"
TEST_RESPONSE_PATH: Final[str] = "/v1/age-signals:test-response"


class BridgeAgeSignalsProvider:
    """Reach the platform age signals manager through a local bridge service.

    The bridge owns the native manager; this class only forwards requests and
    relays the bridge's ``{"errorCode", "message"}`` error bodies unchanged.
    All HTTP traffic for a request (health check, test response, check) runs
    on one worker thread, so neither the caller's thread nor its event loop
    ever waits on the network.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._timeout = timeout
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    def is_available(self) -> bool:
        return bool(self._base_url)

    def close(self) -> None:
        """Close the HTTP session if this provider created it."""
        if self._owns_session:
            self._session.close()

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def initialize(self, context: Any, use_test_mode: bool) -> ProviderHandle:
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
            return
        # Sent by the worker before the check itself.
        handle.state["test_response"] = {
            "userStatus": status,
            "ageLower": age_lower,
            "ageUpper": age_upper,
            "installId": install_id,
            "mostRecentApprovalDate": approval_epoch_millis,
        }

    def request_age_signals(
        self,
        handle: ProviderHandle,
        on_raw_success: RawSuccessCallback,
        on_raw_error: RawErrorCallback,
    ) -> None:
        worker = threading.Thread(
            target=self._check,
            args=(handle, on_raw_success, on_raw_error),
            name="age-signals-bridge",
            daemon=True,
        )
        worker.start()

    def _prepare(self, handle: ProviderHandle) -> None:
        resp = self._session.get(self._url(HEALTH_PATH), timeout=self._timeout)
        resp.raise_for_status()
        test_response = handle.state.get("test_response")
        if test_response is not None:
            resp = self._session.post(
                self._url(TEST_RESPONSE_PATH), json=test_response, timeout=self._timeout
            )
            resp.raise_for_status()
        log.debug("Bridge at %s ready (test_mode=%s)", self._base_url, handle.test_mode)

    def _check(
        self,
        handle: ProviderHandle,
        on_raw_success: RawSuccessCallback,
        on_raw_error: RawErrorCallback,
    ) -> None:
        try:
            self._prepare(handle)
        except Exception as exc:  # pylint: disable=broad-except
            log.error("Age signals bridge initialization failed: %s", exc)
            on_raw_error(int(ErrorCode.INTERNAL_ERROR), f"Initialization failed: {exc}")
            return

        try:
            resp = self._session.post(
                self._url(CHECK_PATH),
                json={"testMode": handle.test_mode},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            log.warning("Age signals bridge request failed: %s", exc)
            on_raw_error(int(ErrorCode.NETWORK_ERROR), str(exc))
            return
        except Exception as exc:  # pylint: disable=broad-except
            log.exception("Unexpected bridge failure: %s", exc)
            on_raw_error(int(ErrorCode.INTERNAL_ERROR), str(exc))
            return

        if resp.ok:
            on_raw_success(resp.text)
            return

        code, message = _parse_error_body(resp)
        on_raw_error(code, message)


def _parse_error_body(resp: requests.Response) -> tuple[int, str]:
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        code = body.get("errorCode")
        if isinstance(code, int) and not isinstance(code, bool):
            return code, str(body.get("message") or "")

    return int(ErrorCode.INTERNAL_ERROR), f"Bridge returned HTTP {resp.status_code}"
