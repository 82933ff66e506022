"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Protocol


class RegistrationState(str, Enum):
    """
    Registration protocol states.

    State Transitions (forward-only, one orchestrator step each):
    - UNVERIFIED -> CODE_SENT (verification code issued)
    - CODE_SENT -> EMAIL_VERIFIED (code redeemed against the backend)
    - EMAIL_VERIFIED -> IDENTITY_CREATED (identity created or recovered)
    - IDENTITY_CREATED -> PROFILE_REGISTERED (backend profile created)

    Note: The state is not persisted. It is reconstructed from provider and
    backend responses on every attempt; the identity provider is the source
    of truth for IDENTITY_CREATED.
    """

    UNVERIFIED = "UNVERIFIED"
    CODE_SENT = "CODE_SENT"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    IDENTITY_CREATED = "IDENTITY_CREATED"
    PROFILE_REGISTERED = "PROFILE_REGISTERED"


@dataclass(frozen=True)
class VerifiedEmailRecord:
    """
    Device-side marker written when the backend confirms a verification code.

    Weaker than the backend's authoritative check; only consulted when that
    check is unreachable.
    """

    email: str
    verified_at: datetime

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.verified_at < ttl


class IdentitySession(Protocol):
    """Authenticated identity-provider user."""

    uid: str
    email: str | None

    async def get_id_token(self, force_refresh: bool = False) -> str:
        """Return a bearer token for backend calls."""
        ...


class IdentityProvider(Protocol):
    """Port interface for the external identity provider."""

    async def create_user(self, email: str, password: str) -> IdentitySession:
        """
        Create an account and sign it in.

        Raises:
            IdentityProviderError: With an "auth/..." code on failure
        """
        ...

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        """
        Sign in with email and password.

        Raises:
            IdentityProviderError: With an "auth/..." code on failure
        """
        ...

    async def sign_out(self) -> None:
        """Drop the current session (no-op if none)."""
        ...

    @property
    def current_user(self) -> IdentitySession | None:
        """Currently signed-in session, if any."""
        ...


class AuthBackend(Protocol):
    """Port interface for the backend's auth and profile endpoints."""

    async def send_verification_code(self, email: str) -> None: ...

    async def verify_code(self, email: str, code: str) -> None: ...

    async def check_email_verified(self, email: str) -> bool: ...

    async def check_email_exists(self, email: str) -> bool: ...

    async def register_user(self, email: str, password: str, id_token: str) -> Mapping[str, Any]:
        """
        Create the backend profile for the authenticated identity.

        Args:
            email: Normalized email address
            password: Password as entered (hashed server-side)
            id_token: Identity-provider token sent as bearer authorization
        """
        ...


class TokenHolder(Protocol):
    """Anything holding the default bearer token for backend calls."""

    def set_auth_token(self, token: str | None) -> None: ...


class VerificationStore(Protocol):
    """Port interface for device-local verified-email markers."""

    def save(self, record: VerifiedEmailRecord) -> None: ...

    def load(self, email: str) -> VerifiedEmailRecord | None: ...

    def delete(self, email: str) -> None: ...


class ErrorReporter(Protocol):
    """Port interface for error logging/telemetry dispatch."""

    def report(
        self,
        error: BaseException,
        *,
        category: str,
        user_message: str,
        context: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Record a classified error; must not raise."""
        ...
