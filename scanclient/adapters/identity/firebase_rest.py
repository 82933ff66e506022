"""
Firebase identity adapter - Implements IdentityProvider protocol.

Talks to the Identity Toolkit REST API directly over httpx:

    POST {base_url}/accounts:signUp?key=...             create + sign in
    POST {base_url}/accounts:signInWithPassword?key=... sign in
    POST {token_url}?key=...                            refresh id token

Provider error strings are translated to the "auth/..." codes the domain
understands; transport failures become auth/network-request-failed.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from scanclient.config.settings import Settings
from scanclient.domain.exceptions import IdentityProviderError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://identitytoolkit.googleapis.com/v1"
DEFAULT_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Refresh the id token this many seconds before it expires
TOKEN_REFRESH_MARGIN = 300

_ERROR_CODES = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_EMAIL": "auth/invalid-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "MISSING_PASSWORD": "auth/wrong-password",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "TOKEN_EXPIRED": "auth/user-token-expired",
    "INVALID_REFRESH_TOKEN": "auth/user-token-expired",
    "USER_NOT_FOUND": "auth/user-not-found",
}
NETWORK_ERROR_CODE = "auth/network-request-failed"
INTERNAL_ERROR_CODE = "auth/internal-error"
MALFORMED_RESPONSE = "Malformed identity provider response"


def translate_error(body: Any) -> IdentityProviderError:
    """
    Build an IdentityProviderError from an Identity Toolkit error body.

    Messages may carry a suffix, e.g. "WEAK_PASSWORD : Password should be
    at least 6 characters"; only the leading token selects the code.
    """
    raw = ""
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        raw = str(body["error"].get("message") or "")
    token = raw.split(":", 1)[0].strip()
    code = _ERROR_CODES.get(token, INTERNAL_ERROR_CODE)
    return IdentityProviderError(code, raw or code)


@dataclass
class FirebaseSession:
    """Signed-in user; implements the IdentitySession protocol."""

    uid: str
    email: str | None
    id_token: str
    refresh_token: str
    expires_at: float
    provider: "FirebaseRestIdentityProvider" = field(repr=False)

    async def get_id_token(self, force_refresh: bool = False) -> str:
        """Return a valid id token, refreshing it when close to expiry."""
        if not force_refresh and time.time() < self.expires_at - TOKEN_REFRESH_MARGIN:
            return self.id_token
        await self.provider.refresh(self)
        return self.id_token


class FirebaseRestIdentityProvider:
    """
    Implements IdentityProvider protocol via the Identity Toolkit REST API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._token_url = token_url
        self._http = httpx.AsyncClient(transport=transport, timeout=timeout)
        self._current: FirebaseSession | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "FirebaseRestIdentityProvider":
        if not settings.identity_api_key:
            raise ValueError("identity_api_key is not configured")
        return cls(
            settings.identity_api_key,
            base_url=settings.identity_base_url,
            timeout=settings.request_timeout_seconds,
            **kwargs,
        )

    @property
    def current_user(self) -> FirebaseSession | None:
        return self._current

    async def aclose(self) -> None:
        await self._http.aclose()

    async def create_user(self, email: str, password: str) -> FirebaseSession:
        body = await self._post(
            f"{self._base_url}/accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._current = self._session_from(body)
        logger.info("Created identity uid=%s", self._current.uid)
        return self._current

    async def sign_in(self, email: str, password: str) -> FirebaseSession:
        body = await self._post(
            f"{self._base_url}/accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._current = self._session_from(body)
        logger.info("Signed in uid=%s", self._current.uid)
        return self._current

    async def sign_out(self) -> None:
        self._current = None

    async def refresh(self, session: FirebaseSession) -> None:
        """Exchange the refresh token for a new id token (updates `session`)."""
        body = await self._post(
            self._token_url,
            {"grant_type": "refresh_token", "refresh_token": session.refresh_token},
        )
        session.id_token = _required(body, "id_token")
        session.refresh_token = body.get("refresh_token") or session.refresh_token
        session.expires_at = time.time() + _lifetime(body.get("expires_in"))

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.post(url, params={"key": self._api_key}, json=payload)
        except httpx.TransportError as exc:
            raise IdentityProviderError(NETWORK_ERROR_CODE, str(exc) or NETWORK_ERROR_CODE) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            raise translate_error(body)
        if not isinstance(body, dict):
            raise IdentityProviderError(INTERNAL_ERROR_CODE, MALFORMED_RESPONSE)
        return body

    def _session_from(self, body: dict[str, Any]) -> FirebaseSession:
        return FirebaseSession(
            uid=_required(body, "localId"),
            email=body.get("email"),
            id_token=_required(body, "idToken"),
            refresh_token=body.get("refreshToken", ""),
            expires_at=time.time() + _lifetime(body.get("expiresIn")),
            provider=self,
        )


def _required(body: dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value:
        raise IdentityProviderError(INTERNAL_ERROR_CODE, f"{MALFORMED_RESPONSE}: missing {key}")
    return value


def _lifetime(value: Any) -> int:
    """Token lifetime in seconds; the API sends it as a string."""
    if value is None:
        return 3600
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise IdentityProviderError(INTERNAL_ERROR_CODE, f"{MALFORMED_RESPONSE}: bad lifetime {value!r}") from exc
