"""Provider implementations for the age signals gateway."""

from .base import AgeSignalsProvider, ProviderHandle
from .bridge import BridgeAgeSignalsProvider
from .fake import FakeAgeSignalsProvider, ScriptedError, ScriptedPayload

__all__ = [
    "AgeSignalsProvider",
    "BridgeAgeSignalsProvider",
    "FakeAgeSignalsProvider",
    "ProviderHandle",
    "ScriptedError",
    "ScriptedPayload",
]
