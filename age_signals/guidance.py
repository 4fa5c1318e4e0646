"""Caller-facing guidance for terminal age signal failures."""

from __future__ import annotations

from typing import Final

from .models import ErrorCode

UPDATE_PLAY_STORE: Final[str] = "Please update your Play Store app"
INSTALL_PLAY_STORE: Final[str] = "Please install or enable the Play Store"
CHECK_CONNECTION: Final[str] = "Please check your internet connection"
UPDATE_PLAY_SERVICES: Final[str] = "Please install, update, or enable Play Services"
INSTALL_FROM_PLAY: Final[str] = "This app must be installed from Google Play"
TRY_AGAIN_LATER: Final[str] = "An internal error occurred. Please try again later"

_GUIDANCE: Final[dict[ErrorCode, str]] = {
    ErrorCode.API_NOT_AVAILABLE: UPDATE_PLAY_STORE,
    ErrorCode.PLAY_STORE_VERSION_OUTDATED: UPDATE_PLAY_STORE,
    ErrorCode.PLAY_STORE_NOT_FOUND: INSTALL_PLAY_STORE,
    ErrorCode.NETWORK_ERROR: CHECK_CONNECTION,
    ErrorCode.PLAY_SERVICES_NOT_FOUND: UPDATE_PLAY_SERVICES,
    ErrorCode.PLAY_SERVICES_VERSION_OUTDATED: UPDATE_PLAY_SERVICES,
    ErrorCode.APP_NOT_OWNED: INSTALL_FROM_PLAY,
    ErrorCode.INTERNAL_ERROR: TRY_AGAIN_LATER,
}


def user_guidance(code: int) -> str | None:
    """Return the message to show a user for a terminal error code, if any."""
    return _GUIDANCE.get(ErrorCode.from_raw(code))
