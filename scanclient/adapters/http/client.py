"""
HTTP transport client - bounded timeout, bounded retry, structured errors.

Retry decision, evaluated in order for every failed attempt:
    1. Transport failure (connection error, timeout) -> retry
    2. Status >= 500 or 429 -> retry unless the envelope code is a no-retry code
    3. Any other status -> terminal

Attempts for one logical call are strictly sequential: the backoff delay is
awaited before the next attempt is issued, so at most one request is in
flight per call. Retries apply to every verb, including POST/PUT/PATCH/DELETE;
a mutating request whose response was lost may already have been applied
server-side.

On terminal failure or exhausted retries the error is classified, reported
through the ErrorReporter and raised as ApiError (status 0 for transport
failures).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from scanclient.adapters.telemetry.logging_reporter import LoggingErrorReporter
from scanclient.config.settings import Settings
from scanclient.domain.classifier import handle_error
from scanclient.domain.errors import ApiError
from scanclient.domain.ports import ErrorReporter

logger = logging.getLogger(__name__)

# Operational errors: deterministic, retrying cannot change the outcome
DEFAULT_NO_RETRY_CODES = frozenset(
    {
        "NO_CREDITS",
        "USER_NOT_FOUND",
        "VALIDATION_ERROR",
        "INVALID_TOKEN",
        "AUTHENTICATION_ERROR",
        "CONFLICT",
    }
)

# Non-JSON error bodies (proxy pages, plain text) are kept up to this length
MAX_DIAGNOSTIC_LENGTH = 500

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential-backoff retry policy.

    Total elapsed time for a fully retried call is at most
    timeout * (max_retries + 1) + sum(backoff(n) for n in range(max_retries)).
    """

    max_retries: int = 2
    base_delay: float = 0.5
    timeout: float = 20.0
    no_retry_codes: frozenset[str] = DEFAULT_NO_RETRY_CODES

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay_seconds,
            timeout=settings.request_timeout_seconds,
        )

    def backoff(self, attempt: int) -> float:
        """Delay before the retry that follows `attempt` (0.5s, 1s, ...)."""
        return self.base_delay * 2**attempt

    def should_retry_status(self, status: int, code: str | None) -> bool:
        if status >= 500 or status == 429:
            return not code or code not in self.no_retry_codes
        return False


class ApiClient:
    """
    Async HTTP client for the backend.

    The default headers (including the bearer token) live on the instance.
    Headers are copied when each attempt is built, so a token change never
    affects a request that has already been dispatched.
    """

    def __init__(
        self,
        base_url: str,
        *,
        policy: RetryPolicy | None = None,
        reporter: ErrorReporter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: Backend root, e.g. "http://10.0.2.2:4000"
            policy: Retry/timeout policy (defaults: 2 retries, 0.5s base, 20s)
            reporter: Telemetry sink for terminal errors
            transport: Custom httpx transport (tests use httpx.MockTransport)
            sleep: Coroutine used for backoff delays
        """
        self.base_url = base_url.rstrip("/")
        self.policy = policy or RetryPolicy()
        self._reporter = reporter or LoggingErrorReporter()
        self._sleep = sleep
        self._headers: dict[str, str] = {"Content-Type": "application/json"}
        self._http = httpx.AsyncClient(transport=transport, timeout=self.policy.timeout)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "ApiClient":
        return cls(settings.api_base_url, policy=RetryPolicy.from_settings(settings), **kwargs)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._http.aclose()

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._headers)

    def set_auth_token(self, token: str | None) -> None:
        """Set or clear the default `Authorization: Bearer <token>` header."""
        if token:
            self._headers = {**self._headers, "Authorization": f"Bearer {token}"}
        else:
            self._headers = {k: v for k, v in self._headers.items() if k != "Authorization"}

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        attempt: int = 0,
    ) -> Any:
        """
        Issue a request with timeout and retry.

        Args:
            endpoint: Path appended to base_url, e.g. "/api/users/me"
            method: HTTP verb
            json: JSON body
            params: Query parameters
            headers: Per-call headers, override the defaults
            attempt: Attempt to start counting from

        Returns:
            Parsed JSON body, or {} for non-JSON success responses

        Raises:
            ApiError: Classified failure after the retry budget is spent
        """
        url = f"{self.base_url}{endpoint}"
        context = f"API {method} {endpoint}"

        while True:
            request_headers = {**self._headers, **(headers or {})}
            try:
                response = await asyncio.wait_for(
                    self._http.request(method, url, json=json, params=params, headers=request_headers),
                    timeout=self.policy.timeout,
                )
            except (httpx.TransportError, asyncio.TimeoutError) as exc:
                if attempt < self.policy.max_retries:
                    await self._backoff(context, attempt, f"transport failure: {exc!r}")
                    attempt += 1
                    continue
                raise self._fail(self._transport_error(exc), context, url) from exc
            except httpx.RequestError as exc:
                raise self._fail(self._transport_error(exc), context, url) from exc

            if response.is_success:
                return self._parse_success(response, context, url)

            body = self._parse_error_body(response)
            code = body.get("error") or body.get("code")
            code = str(code) if code is not None else None

            if attempt < self.policy.max_retries and self.policy.should_retry_status(
                response.status_code, code
            ):
                await self._backoff(context, attempt, f"HTTP {response.status_code}")
                attempt += 1
                continue

            raise self._fail(self._http_error(response, endpoint, body, code), context, url)

    async def get(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request(endpoint, "GET", **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, "POST", json=data, **kwargs)

    async def put(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, "PUT", json=data, **kwargs)

    async def patch(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, "PATCH", json=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request(endpoint, "DELETE", **kwargs)

    async def _backoff(self, context: str, attempt: int, reason: str) -> None:
        delay = self.policy.backoff(attempt)
        logger.warning(
            "%s failed (%s), retry %d/%d in %.2fs",
            context,
            reason,
            attempt + 1,
            self.policy.max_retries,
            delay,
        )
        await self._sleep(delay)

    def _parse_success(self, response: httpx.Response, context: str, url: str) -> Any:
        if "application/json" not in response.headers.get("content-type", ""):
            return {}
        try:
            return response.json()
        except ValueError as exc:
            error = ApiError(
                "Malformed JSON response",
                status=response.status_code,
                detail=response.text[:MAX_DIAGNOSTIC_LENGTH],
            )
            raise self._fail(error, context, url) from exc

    def _parse_error_body(self, response: httpx.Response) -> dict[str, Any]:
        fallback = {
            "message": f"HTTP {response.status_code}: {response.reason_phrase}",
            "error": response.reason_phrase,
        }
        if "application/json" in response.headers.get("content-type", ""):
            try:
                body = response.json()
            except ValueError:
                return {**fallback, "details": response.text[:MAX_DIAGNOSTIC_LENGTH]}
            return body if isinstance(body, dict) else fallback
        # Proxy/error pages: keep the start of the body for diagnostics
        return {**fallback, "details": response.text[:MAX_DIAGNOSTIC_LENGTH]}

    def _http_error(
        self,
        response: httpx.Response,
        endpoint: str,
        body: Mapping[str, Any],
        code: str | None,
    ) -> ApiError:
        raw = body.get("message") or body.get("error") or "Request failed"
        message = str(raw)
        if response.status_code == 404:
            # Usually a misconfigured base URL rather than a business error
            message = (
                "Endpoint not found (404). Make sure the backend is running and "
                f"reachable at {self.base_url}. Address: {self.base_url}{endpoint}"
            )
        details = body.get("details")
        return ApiError(
            message,
            status=response.status_code,
            code=code,
            detail=str(details) if details else str(raw),
        )

    @staticmethod
    def _transport_error(exc: Exception) -> ApiError:
        if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
            message = "Request timeout"
        else:
            message = f"Network request failed: {exc}" if str(exc) else "Network request failed"
        return ApiError(message, status=0, detail=repr(exc))

    def _fail(self, error: ApiError, context: str, url: str) -> ApiError:
        info = handle_error(error, context)
        self._reporter.report(
            error,
            category=info.category.value,
            user_message=info.user_message,
            context=context,
            metadata={"url": url, "status": error.status, "code": error.code},
        )
        message = error.message if error.status == 404 else info.user_message
        return ApiError(
            message,
            status=error.status,
            code=error.code,
            category=info.category,
            detail=error.detail or error.message,
        )
