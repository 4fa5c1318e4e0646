from __future__ import annotations

import asyncio

import pytest

from age_signals.gateway import ProviderGateway
from age_signals.orchestrator import RetryOrchestrator
from age_signals.providers import FakeAgeSignalsProvider


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class BlockingSleep:
    """Sleep that parks the session until released."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.entered.set()
        await self.release.wait()


class Handlers:
    """Collect orchestrator callbacks."""

    def __init__(self) -> None:
        self.results = []
        self.errors = []

    def on_success(self, result) -> None:
        self.results.append(result)

    def on_error(self, error) -> None:
        self.errors.append(error)


@pytest.fixture
def provider() -> FakeAgeSignalsProvider:
    return FakeAgeSignalsProvider()


@pytest.fixture
def gateway(provider) -> ProviderGateway:
    return ProviderGateway(provider)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def handlers() -> Handlers:
    return Handlers()


@pytest.fixture
def orchestrator(gateway, recording_sleep) -> RetryOrchestrator:
    return RetryOrchestrator(gateway, sleep=recording_sleep)


@pytest.fixture
def blocking_sleep() -> BlockingSleep:
    return BlockingSleep()
