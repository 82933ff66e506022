"""
Structured error types shared by the transport and the domain.

Every failure that crosses a component boundary is an ApiError carrying a
human-readable message plus the diagnostic fields (status, code, raw detail)
needed for logging. The category is filled in once the classifier has run.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """
    Bounded error taxonomy.

    Classification is total: every error maps to exactly one category,
    UNKNOWN being the catch-all.
    """

    NETWORK = "network"
    AUTH = "auth"
    VALIDATION = "validation"
    SERVER = "server"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorInfo:
    """Classification result for a single error."""

    category: ErrorCategory
    message: str
    user_message: str
    should_show_to_user: bool
    should_log: bool


class ApiError(Exception):
    """
    Structured transport error.

    Attributes:
        message: Text suitable for direct display (or an actionable diagnostic)
        status: HTTP status, 0 for pure transport failures, None if unknown
        code: Backend error code from the response envelope
        category: ErrorCategory assigned by the classifier
        detail: Raw server/transport message or truncated non-JSON body
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        category: ErrorCategory | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.category = category
        self.detail = detail

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, status={self.status!r}, "
            f"code={self.code!r}, category={self.category!r})"
        )
