"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Recording backoff delays without sleeping
- Building an ApiClient over httpx.MockTransport
- Capturing reported errors
"""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from scanclient.adapters.http.client import ApiClient, RetryPolicy

BASE_URL = "http://backend.test"


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingReporter:
    """ErrorReporter that keeps every report for assertions."""

    def __init__(self) -> None:
        self.reports: list[dict[str, Any]] = []

    def report(self, error, *, category, user_message, context=None, metadata=None) -> None:  # noqa: ANN001
        self.reports.append(
            {
                "error": error,
                "category": category,
                "user_message": user_message,
                "context": context,
                "metadata": dict(metadata or {}),
            }
        )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def make_client(
    sleep: RecordingSleep, reporter: RecordingReporter
) -> Callable[..., ApiClient]:
    """Factory: ApiClient whose requests are answered by `handler`."""

    def factory(handler: Callable[[httpx.Request], Any], **policy: Any) -> ApiClient:
        return ApiClient(
            BASE_URL,
            policy=RetryPolicy(**policy),
            reporter=reporter,
            transport=httpx.MockTransport(handler),
            sleep=sleep,
        )

    return factory
