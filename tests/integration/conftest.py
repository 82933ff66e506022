"""
Integration fixtures - in-process fake backend and identity provider.

The fake backend is a FastAPI app mounted on httpx.ASGITransport, so the
real ApiClient, AuthApi and UserApi run end to end without sockets. It
answers with the same {"error", "message"} envelope as the production
backend and hashes stored passwords with bcrypt.
"""

import secrets
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

import bcrypt
import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Header, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr

from scanclient.adapters.http import ApiClient, RetryPolicy
from scanclient.adapters.storage import InMemoryVerificationStore
from scanclient.bootstrap import Client, build_client
from scanclient.config.settings import Settings
from scanclient.domain.exceptions import IdentityProviderError

BASE_URL = "http://backend.test"


class EmailBody(BaseModel):
    email: EmailStr


class VerifyBody(BaseModel):
    email: EmailStr
    code: str


class RegisterBody(BaseModel):
    email: EmailStr
    password: str


class ProfileChanges(BaseModel):
    language: str | None = None


def envelope(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


@dataclass
class BackendState:
    """Mutable state behind the fake backend, inspected by tests."""

    codes: dict[str, str] = field(default_factory=dict)
    verified: set[str] = field(default_factory=set)
    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)
    failures: dict[str, list[int]] = field(default_factory=lambda: defaultdict(list))
    hits: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    lost: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    next_code: str = "482913"

    def fail(self, path: str, *statuses: int) -> None:
        """Answer the next requests to path with these statuses, in order."""
        self.failures[path].extend(statuses)

    def lose_response(self, path: str) -> None:
        """Apply the next request to path but answer 503 instead of the result."""
        self.lost[path] += 1


def create_backend(state: BackendState) -> FastAPI:
    """Build the fake backend app over the given state."""
    app = FastAPI(title="fake-scan-backend")

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return envelope(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid email address")

    @app.middleware("http")
    async def inject_failures(request: Request, call_next):  # noqa: ANN001, ANN202
        path = request.url.path
        state.hits[path] += 1
        if state.failures[path]:
            failure = state.failures[path].pop(0)
            return envelope(failure, "INTERNAL_ERROR", "Injected failure")
        if state.lost[path]:
            state.lost[path] -= 1
            applied = await call_next(request)
            async for _ in applied.body_iterator:
                pass
            return envelope(status.HTTP_503_SERVICE_UNAVAILABLE, "INTERNAL_ERROR", "Upstream response lost")
        return await call_next(request)

    def current_email(authorization: str | None) -> str | None:
        if not authorization or not authorization.startswith("Bearer "):
            return None
        return state.tokens.get(authorization.removeprefix("Bearer "))

    @app.post("/api/auth/send-verification-code")
    async def send_code(body: EmailBody) -> dict:
        state.codes[body.email.lower()] = state.next_code
        return {"success": True}

    @app.post("/api/auth/verify-code")
    async def verify_code(body: VerifyBody):  # noqa: ANN202
        email = body.email.lower()
        if state.codes.get(email) != body.code:
            return envelope(status.HTTP_400_BAD_REQUEST, "INVALID_CODE", "Invalid or expired code")
        state.codes.pop(email)
        state.verified.add(email)
        return {"verified": True}

    @app.get("/api/auth/check-email-verified")
    async def check_verified(email: str) -> dict:
        return {"verified": email.lower() in state.verified}

    @app.get("/api/auth/check-email-exists")
    async def check_exists(email: str) -> dict:
        return {"exists": email.lower() in state.users}

    @app.post("/api/users/register", status_code=status.HTTP_201_CREATED)
    async def register(body: RegisterBody, authorization: str | None = Header(default=None)):  # noqa: ANN202
        token_email = current_email(authorization)
        if token_email is None:
            return envelope(status.HTTP_401_UNAUTHORIZED, "INVALID_TOKEN", "Invalid or missing token")
        email = body.email.lower()
        if token_email != email:
            return envelope(status.HTTP_403_FORBIDDEN, "FORBIDDEN", "Token does not match email")
        if email in state.users:
            return envelope(status.HTTP_409_CONFLICT, "CONFLICT", "User already exists")
        state.users[email] = {
            "userId": f"user-{len(state.users) + 1}",
            "email": email,
            "passwordHash": bcrypt.hashpw(body.password.encode(), bcrypt.gensalt(rounds=4)).decode(),
            "scanCredits": 3,
            "language": "en",
        }
        return public_profile(state.users[email])

    @app.get("/api/users/me")
    async def get_me(authorization: str | None = Header(default=None)):  # noqa: ANN202
        email = current_email(authorization)
        if email is None or email not in state.users:
            return envelope(status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_ERROR", "Not signed in")
        return public_profile(state.users[email])

    @app.patch("/api/users/me")
    async def update_me(changes: ProfileChanges, authorization: str | None = Header(default=None)):  # noqa: ANN202
        email = current_email(authorization)
        if email is None or email not in state.users:
            return envelope(status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_ERROR", "Not signed in")
        state.users[email].update(changes.model_dump(exclude_none=True))
        return public_profile(state.users[email])

    return app


def public_profile(user: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in user.items() if key != "passwordHash"}


@dataclass
class FakeSession:
    uid: str
    email: str
    id_token: str

    async def get_id_token(self, force_refresh: bool = False) -> str:
        return self.id_token


class FakeIdentityProvider:
    """
    In-memory identity provider sharing issued tokens with the fake backend.

    Implements IdentityProvider protocol via structural subtyping.
    """

    def __init__(self, state: BackendState) -> None:
        self._state = state
        self._accounts: dict[str, tuple[str, str]] = {}
        self._current: FakeSession | None = None
        self.down = False

    @property
    def current_user(self) -> FakeSession | None:
        return self._current

    def has_account(self, email: str) -> bool:
        return email in self._accounts

    async def create_user(self, email: str, password: str) -> FakeSession:
        self._check_reachable()
        if email in self._accounts:
            raise IdentityProviderError("auth/email-already-in-use")
        if len(password) < 6:
            raise IdentityProviderError("auth/weak-password")
        self._accounts[email] = (f"uid-{len(self._accounts) + 1}", password)
        return self._open_session(email)

    async def sign_in(self, email: str, password: str) -> FakeSession:
        self._check_reachable()
        if email not in self._accounts:
            raise IdentityProviderError("auth/user-not-found")
        if self._accounts[email][1] != password:
            raise IdentityProviderError("auth/invalid-credential")
        return self._open_session(email)

    async def sign_out(self) -> None:
        self._current = None

    def _open_session(self, email: str) -> FakeSession:
        token = secrets.token_hex(8)
        self._state.tokens[token] = email
        self._current = FakeSession(uid=self._accounts[email][0], email=email, id_token=token)
        return self._current

    def _check_reachable(self) -> None:
        if self.down:
            raise IdentityProviderError("auth/network-request-failed")


class NoSleep:
    """Records backoff delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def backend_state() -> BackendState:
    return BackendState()


@pytest.fixture
def identity(backend_state: BackendState) -> FakeIdentityProvider:
    return FakeIdentityProvider(backend_state)


@pytest.fixture
def no_sleep() -> NoSleep:
    return NoSleep()


@pytest.fixture
def store() -> InMemoryVerificationStore:
    return InMemoryVerificationStore()


@pytest_asyncio.fixture
async def client(
    backend_state: BackendState,
    identity: FakeIdentityProvider,
    store: InMemoryVerificationStore,
    no_sleep: NoSleep,
) -> Client:
    """Fully wired Client talking to the fake backend."""
    settings = Settings(api_base_url=BASE_URL)
    api = ApiClient(
        BASE_URL,
        policy=RetryPolicy.from_settings(settings),
        transport=httpx.ASGITransport(app=create_backend(backend_state)),
        sleep=no_sleep,
    )
    wired = build_client(settings, identity_provider=identity, store=store, api=api)
    yield wired
    await wired.aclose()
