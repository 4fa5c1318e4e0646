"""Configuration for the age signals client, read from ``AGE_SIGNALS_*`` variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final, TypeVar

log: Final = logging.getLogger("age-signals")

T = TypeVar("T")

ENV_PREFIX: Final[str] = "AGE_SIGNALS_"

_BOOL_WORDS: Final[dict[str, bool]] = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}


def parse_flag(raw: str) -> bool:
    try:
        return _BOOL_WORDS[raw.strip().lower()]
    except KeyError:
        raise ValueError(f"not a boolean flag: {raw!r}") from None


def env_value(name: str, parse: Callable[[str], T], default: T) -> T:
    """Read ``AGE_SIGNALS_<name>`` through *parse*.

    Unset or blank variables give *default*. Values *parse* rejects are
    logged and also give *default*.
    """
    key = ENV_PREFIX + name
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r; using %r", key, raw, default)
        return default


@dataclass(frozen=True)
class ClientConfig:
    bridge_url: str | None
    test_mode: bool
    max_attempts: int
    backoff_seconds: float
    timeout_seconds: float


def read_client_config() -> ClientConfig:
    return ClientConfig(
        bridge_url=env_value("BRIDGE_URL", str.strip, "") or None,
        test_mode=env_value("TEST_MODE", parse_flag, False),
        max_attempts=max(0, env_value("MAX_ATTEMPTS", int, 3)),
        backoff_seconds=max(0.0, env_value("BACKOFF_SECONDS", float, 1.0)),
        timeout_seconds=env_value("TIMEOUT_SECONDS", float, 10.0),
    )
