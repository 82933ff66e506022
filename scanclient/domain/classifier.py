"""
Error classifier - maps raw failures to a bounded category and user message.

Classification order (first match wins):
    1. NETWORK:    message/code mentions network, fetch or timeout; status 0
    2. AUTH:       message/code mentions auth, unauthorized, forbidden; 401/403
    3. VALIDATION: message/code mentions invalid, validation, required; 400/422
    4. SERVER:     status >= 500; message mentions server or internal;
                   backend server-side error code
    5. UNKNOWN

AUTH is checked before VALIDATION, so free text such as "invalid auth token"
classifies as AUTH.

Every function here is pure. Logging and telemetry are dispatched by the
caller through an ErrorReporter.
"""

from collections.abc import Mapping
from typing import Any

from .errors import ErrorCategory, ErrorInfo

# Backend envelope codes for server-side failures whose message may not say so
_SERVER_CODES = frozenset({"internal_error", "external_service_error"})

_NETWORK_WORDS = ("network", "fetch", "timeout")
_AUTH_WORDS = ("auth", "unauthorized", "forbidden")
_VALIDATION_WORDS = ("invalid", "validation", "required")
_SERVER_WORDS = ("server", "internal")

# Validation messages shorter than this are shown verbatim.
_MAX_VERBATIM_LENGTH = 100

USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Connection problem. Check your internet connection and try again.",
    ErrorCategory.AUTH: "Authorization error. Please sign in again.",
    ErrorCategory.VALIDATION: "Please check the data you entered.",
    ErrorCategory.SERVER: "Server error. Try again later or contact support.",
    ErrorCategory.UNKNOWN: "Something went wrong. Please try again.",
}
WRONG_CREDENTIALS_MESSAGE = "Incorrect email or password. Check your details and try again."


def _field(error: Any, *names: str) -> Any:
    for name in names:
        if isinstance(error, Mapping):
            value = error.get(name)
        else:
            value = getattr(error, name, None)
        if value is not None:
            return value
    return None


def _message(error: Any) -> str:
    message = _field(error, "message")
    if isinstance(message, str):
        return message
    if isinstance(error, BaseException):
        return str(error)
    return ""


def _code(error: Any) -> str:
    code = _field(error, "code")
    return code if isinstance(code, str) else ""


def _status(error: Any) -> int | None:
    status = _field(error, "status", "status_code")
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    return status


def _mentions(text: str, words: tuple[str, ...]) -> bool:
    return any(word in text for word in words)


def classify(error: Any) -> ErrorCategory:
    """
    Map an error to exactly one ErrorCategory.

    Accepts ApiError, IdentityProviderError, plain exceptions, mappings with
    message/code/status keys, or any object exposing those attributes.
    """
    if error is None:
        return ErrorCategory.UNKNOWN

    message = _message(error).lower()
    code = _code(error).lower()
    status = _status(error)

    if _mentions(message, _NETWORK_WORDS) or _mentions(code, _NETWORK_WORDS) or status == 0:
        return ErrorCategory.NETWORK

    if _mentions(message, _AUTH_WORDS) or _mentions(code, _AUTH_WORDS) or status in (401, 403):
        return ErrorCategory.AUTH

    if _mentions(message, _VALIDATION_WORDS) or _mentions(code, _VALIDATION_WORDS) or status in (400, 422):
        return ErrorCategory.VALIDATION

    if (status is not None and status >= 500) or _mentions(message, _SERVER_WORDS) or code in _SERVER_CODES:
        return ErrorCategory.SERVER

    return ErrorCategory.UNKNOWN


def describe(error: Any, category: ErrorCategory) -> str:
    """Return the human-readable message for an already classified error."""
    message = _message(error)

    if category is ErrorCategory.AUTH:
        haystack = f"{message} {_code(error)}".lower()
        if "invalid-credential" in haystack or "wrong-password" in haystack:
            return WRONG_CREDENTIALS_MESSAGE
        return USER_MESSAGES[ErrorCategory.AUTH]

    if category is ErrorCategory.VALIDATION:
        # Validation messages are usually already human-readable
        if message and len(message) < _MAX_VERBATIM_LENGTH:
            return message
        return USER_MESSAGES[ErrorCategory.VALIDATION]

    return USER_MESSAGES[category]


def handle_error(error: Any, context: str | None = None) -> ErrorInfo:
    """
    Classify an error and derive everything the caller needs to surface it.

    Args:
        error: Raw failure (exception, mapping or structured error)
        context: Where the error happened, e.g. "API POST /api/users/register".
            Does not influence the result; callers pass it on to reporting.

    Returns:
        ErrorInfo, a deterministic function of the inputs
    """
    category = classify(error)
    message = _message(error) or (str(error) if error is not None else "") or "Unknown error"
    return ErrorInfo(
        category=category,
        message=message,
        user_message=describe(error, category),
        should_show_to_user=category is not ErrorCategory.UNKNOWN,
        should_log=True,
    )
