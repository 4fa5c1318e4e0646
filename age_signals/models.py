"""Value types for age signal results and classified failures."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import IntEnum
from typing import Final

ADULT_AGE: Final[int] = 18
AGE_NOT_PROVIDED: Final[int] = -1
NO_APPROVAL_MILLIS: Final[int] = 0


class PayloadDecodeError(ValueError):
    """Raised when a provider success payload cannot be decoded."""


class VerificationStatus(IntEnum):
    VERIFIED = 0
    SUPERVISED = 1
    SUPERVISED_APPROVAL_PENDING = 2
    SUPERVISED_APPROVAL_DENIED = 3
    UNKNOWN = 4
    NOT_APPLICABLE = 5


class ErrorCode(IntEnum):
    API_NOT_AVAILABLE = -1
    PLAY_STORE_NOT_FOUND = -2
    NETWORK_ERROR = -3
    PLAY_SERVICES_NOT_FOUND = -4
    CANNOT_BIND_TO_SERVICE = -5
    PLAY_STORE_VERSION_OUTDATED = -6
    PLAY_SERVICES_VERSION_OUTDATED = -7
    CLIENT_TRANSIENT_ERROR = -8
    APP_NOT_OWNED = -9
    INTERNAL_ERROR = -100
    # Catch-all for codes the provider may add later.
    UNKNOWN = 0

    @classmethod
    def from_raw(cls, code: int) -> ErrorCode:
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


RETRYABLE_CODES: Final[frozenset[ErrorCode]] = frozenset(
    {
        ErrorCode.API_NOT_AVAILABLE,
        ErrorCode.PLAY_STORE_NOT_FOUND,
        ErrorCode.NETWORK_ERROR,
        ErrorCode.PLAY_SERVICES_NOT_FOUND,
        ErrorCode.CANNOT_BIND_TO_SERVICE,
        ErrorCode.PLAY_STORE_VERSION_OUTDATED,
        ErrorCode.PLAY_SERVICES_VERSION_OUTDATED,
        ErrorCode.CLIENT_TRANSIENT_ERROR,
    }
)


def is_retryable_code(code: int) -> bool:
    """Return True when *code* names a transient failure worth retrying."""
    return ErrorCode.from_raw(code) in RETRYABLE_CODES


def millis_to_datetime(epoch_millis: int | None) -> datetime | None:
    """Return a local, timezone-aware datetime or None for the no-approval sentinel."""
    if not epoch_millis or epoch_millis <= NO_APPROVAL_MILLIS:
        return None
    return datetime.fromtimestamp(epoch_millis / 1000, tz=UTC).astimezone()


def datetime_to_millis(value: datetime | None) -> int | None:
    """Convert a calendar timestamp to epoch millis; naive values are local time."""
    if value is None:
        return None
    return int(round(value.timestamp() * 1000))


def _require_int(data: dict[str, object], key: str, default: int) -> int:
    raw = data.get(key)
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise PayloadDecodeError(f"Field {key!r} must be an integer, got {raw!r}")
    return raw


@dataclass(frozen=True, slots=True)
class AgeSignalResult:
    """Outcome of a successful age signal request.

    ``approval_epoch_millis`` is ``None`` when no supervised approval is on
    record; on the wire that is encoded as ``0``.
    """

    status: VerificationStatus
    age_lower: int = AGE_NOT_PROVIDED
    age_upper: int = AGE_NOT_PROVIDED
    install_id: str = ""
    approval_epoch_millis: int | None = None

    @property
    def is_supervised(self) -> bool:
        return self.status in (
            VerificationStatus.SUPERVISED,
            VerificationStatus.SUPERVISED_APPROVAL_PENDING,
        )

    @property
    def is_verified(self) -> bool:
        return self.status is VerificationStatus.VERIFIED

    @property
    def is_unverified(self) -> bool:
        return self.status is VerificationStatus.UNKNOWN

    @property
    def is_not_applicable(self) -> bool:
        return self.status is VerificationStatus.NOT_APPLICABLE

    @property
    def is_minor(self) -> bool:
        return 0 <= self.age_lower < ADULT_AGE

    @property
    def most_recent_approval_date(self) -> datetime | None:
        return millis_to_datetime(self.approval_epoch_millis)

    def with_approval_date(self, value: datetime | None) -> AgeSignalResult:
        millis = datetime_to_millis(value)
        if millis is not None and millis <= NO_APPROVAL_MILLIS:
            millis = None
        return replace(self, approval_epoch_millis=millis)

    def to_payload(self) -> dict[str, object]:
        return {
            "userStatus": int(self.status),
            "ageLower": self.age_lower,
            "ageUpper": self.age_upper,
            "installId": self.install_id,
            "mostRecentApprovalDate": self.approval_epoch_millis or NO_APPROVAL_MILLIS,
        }

    @classmethod
    def from_payload(cls, data: object) -> AgeSignalResult:
        if not isinstance(data, dict):
            raise PayloadDecodeError(f"Payload must be an object, got {type(data).__name__}")

        status_raw = _require_int(data, "userStatus", int(VerificationStatus.NOT_APPLICABLE))
        try:
            status = VerificationStatus(status_raw)
        except ValueError as exc:
            raise PayloadDecodeError(f"Unknown userStatus {status_raw}") from exc

        install_id = data.get("installId")
        if install_id is None:
            install_id = ""
        elif not isinstance(install_id, str):
            raise PayloadDecodeError(f"Field 'installId' must be a string, got {install_id!r}")

        approval = _require_int(data, "mostRecentApprovalDate", NO_APPROVAL_MILLIS)
        try:
            millis_to_datetime(approval)
        except (OverflowError, OSError, ValueError) as exc:
            raise PayloadDecodeError(
                f"Field 'mostRecentApprovalDate' out of range: {approval}"
            ) from exc
        return cls(
            status=status,
            age_lower=_require_int(data, "ageLower", AGE_NOT_PROVIDED),
            age_upper=_require_int(data, "ageUpper", AGE_NOT_PROVIDED),
            install_id=install_id,
            approval_epoch_millis=approval if approval > NO_APPROVAL_MILLIS else None,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_json(cls, raw: str) -> AgeSignalResult:
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as exc:
            raise PayloadDecodeError(f"Invalid JSON payload: {exc}") from exc
        return cls.from_payload(data)

    def test_response_args(self) -> tuple[int, int, int, str, int]:
        """Arguments for a provider's ``set_test_response`` hook."""
        return (
            int(self.status),
            self.age_lower,
            self.age_upper,
            self.install_id,
            self.approval_epoch_millis or NO_APPROVAL_MILLIS,
        )


@dataclass(frozen=True, slots=True)
class AgeSignalError:
    """A classified failure of one request attempt."""

    code: ErrorCode
    message: str = ""
    raw_code: int | None = None

    @classmethod
    def from_raw(cls, code: int, message: str | None) -> AgeSignalError:
        return cls(code=ErrorCode.from_raw(code), message=message or "", raw_code=code)

    @classmethod
    def internal(cls, message: str) -> AgeSignalError:
        return cls(code=ErrorCode.INTERNAL_ERROR, message=message)

    @property
    def wire_code(self) -> int:
        return self.raw_code if self.raw_code is not None else int(self.code)

    @property
    def is_retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    def __str__(self) -> str:
        return f"{self.code.name} ({int(self.code)}): {self.message}"
