"""
Domain exceptions - Semantic error types for registration.

This module defines domain-specific exceptions that communicate
registration failures without leaking infrastructure details.
Each RegistrationError carries the last state the protocol confirmed,
so callers know where a retry resumes.
"""

from .ports import RegistrationState


class IdentityProviderError(Exception):
    """
    Failure reported by the identity provider.

    The code uses the provider's "auth/..." vocabulary
    (e.g. auth/email-already-in-use, auth/wrong-password).
    """

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    def __init__(
        self,
        message: str,
        *,
        state: RegistrationState = RegistrationState.UNVERIFIED,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.state = state


class VerificationFailed(RegistrationError):
    """Verification code could not be sent or redeemed."""

    pass


class IdentityCreationFailed(RegistrationError):
    """Identity provider rejected the account (invalid email, weak password, network)."""

    pass


class EmailRegisteredWithDifferentPassword(RegistrationError):
    """Account exists in the identity provider with other credentials."""

    pass


class EmailAlreadyRegistered(RegistrationError):
    """Account exists in the identity provider and could not be recovered."""

    pass


class ProfileRegistrationFailed(RegistrationError):
    """Identity exists but the backend profile could not be created."""

    pass


class SignInFailed(RegistrationError):
    """Sign-in with email and password was rejected."""

    pass
