"""Telemetry adapters - error reporting sinks."""

from .logging_reporter import LoggingErrorReporter

__all__ = ["LoggingErrorReporter"]
