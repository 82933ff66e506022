"""
Logging error reporter adapter - Implements ErrorReporter protocol.

This module provides a logging-based implementation of the domain's
error reporter port. Crash/telemetry services plug in behind the same
protocol; this adapter is the default sink.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


class LoggingErrorReporter:
    """
    Implements ErrorReporter protocol via stdlib logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def report(
        self,
        error: BaseException,
        *,
        category: str,
        user_message: str,
        context: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Log a classified error at ERROR level.

        Format: [ErrorLogger] <context> category=<category> message=<raw> ...

        Args:
            error: The failure being reported
            category: ErrorCategory value assigned by the classifier
            user_message: Message shown to the user
            context: Where the error happened
            metadata: Extra diagnostic fields (url, status, code)
        """
        self._logger.error(
            "[ErrorLogger] %s category=%s message=%s user_message=%s metadata=%s timestamp=%s",
            context or "unknown",
            category,
            getattr(error, "message", None) or str(error),
            user_message,
            dict(metadata or {}),
            datetime.now(timezone.utc).isoformat(),
        )
