"""Example client that requests age signals once and logs the outcome."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Sequence

from .config import ClientConfig, read_client_config
from .gateway import ProviderGateway
from .guidance import user_guidance
from .models import AgeSignalError, AgeSignalResult, VerificationStatus
from .orchestrator import AgeSignalsFailure, RetryOrchestrator
from .providers import AgeSignalsProvider, BridgeAgeSignalsProvider, FakeAgeSignalsProvider

log = logging.getLogger("age-signals")

DEMO_TEST_RESULT = AgeSignalResult(
    status=VerificationStatus.VERIFIED,
    age_lower=13,
    age_upper=18,
    install_id="googleplay",
)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--bridge-url",
        help="Base URL of the host age signals bridge (defaults to AGE_SIGNALS_BRIDGE_URL)",
    )
    parser.add_argument(
        "--test-mode",
        action="store_true",
        default=None,
        help="Inject a verified 13-18 test response through the provider",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        help="Maximum number of automatic retries",
    )
    return parser.parse_args(argv)


def apply_overrides(config: ClientConfig, args: argparse.Namespace) -> ClientConfig:
    overrides = {}
    if args.bridge_url:
        overrides["bridge_url"] = args.bridge_url
    if args.test_mode is not None:
        overrides["test_mode"] = args.test_mode
    if args.max_attempts is not None:
        overrides["max_attempts"] = max(0, args.max_attempts)
    return replace(config, **overrides)


def build_provider(config: ClientConfig) -> AgeSignalsProvider:
    if config.bridge_url:
        return BridgeAgeSignalsProvider(config.bridge_url, timeout=config.timeout_seconds)
    log.info("No bridge configured; using the in-memory provider")
    return FakeAgeSignalsProvider()


def build_orchestrator(
    config: ClientConfig, provider: AgeSignalsProvider | None = None
) -> RetryOrchestrator:
    gateway = ProviderGateway(provider if provider is not None else build_provider(config))
    return RetryOrchestrator(
        gateway,
        max_attempts=config.max_attempts,
        backoff_unit=config.backoff_seconds,
    )


def report_success(result: AgeSignalResult) -> None:
    approval = result.most_recent_approval_date
    log.info("Age Signals Success!")
    log.info("User Status: %s", result.status.name)
    log.info("Age Range: %s-%s", result.age_lower, result.age_upper)
    log.info("Install ID: %s", result.install_id)
    log.info("Most Recent Approval: %s", approval.isoformat() if approval else "None")
    log.info("Is Supervised: %s", result.is_supervised)
    log.info("Is Verified: %s", result.is_verified)
    if result.is_minor:
        log.info("User is a minor - apply appropriate restrictions")


def report_failure(error: AgeSignalError) -> None:
    log.error("Age Signals Error: %s - %s", error.code.name, error.message)
    guidance = user_guidance(error.code)
    if guidance:
        log.info("%s", guidance)


async def run(config: ClientConfig) -> int:
    provider = build_provider(config)
    orchestrator = build_orchestrator(config, provider)
    test_result = None
    if config.test_mode:
        test_result = DEMO_TEST_RESULT.with_approval_date(datetime.now())

    try:
        result = await orchestrator.run(test_result)
    except AgeSignalsFailure as exc:
        report_failure(exc.error)
        return 1
    finally:
        provider.close()
    report_success(result)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    config = apply_overrides(read_client_config(), parse_args(argv))
    return asyncio.run(run(config))


__all__ = ["build_orchestrator", "build_provider", "main", "run"]
