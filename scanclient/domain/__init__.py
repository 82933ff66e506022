"""
Domain layer - Pure logic with zero HTTP framework imports.

This package contains error classification, verification bookkeeping and
the registration protocol. It defines its own port interfaces for
infrastructure abstraction; adapters live in scanclient.adapters.
"""

from .classifier import classify, describe, handle_error
from .errors import ApiError, ErrorCategory, ErrorInfo
from .exceptions import (
    EmailAlreadyRegistered,
    EmailRegisteredWithDifferentPassword,
    IdentityCreationFailed,
    IdentityProviderError,
    ProfileRegistrationFailed,
    RegistrationError,
    SignInFailed,
    VerificationFailed,
)
from .ports import (
    AuthBackend,
    ErrorReporter,
    IdentityProvider,
    IdentitySession,
    RegistrationState,
    TokenHolder,
    VerificationStore,
    VerifiedEmailRecord,
)
from .registration import RegistrationOutcome, RegistrationService
from .verification import VerificationBookkeeping

__all__ = [
    "ApiError",
    "AuthBackend",
    "EmailAlreadyRegistered",
    "EmailRegisteredWithDifferentPassword",
    "ErrorCategory",
    "ErrorInfo",
    "ErrorReporter",
    "IdentityCreationFailed",
    "IdentityProvider",
    "IdentityProviderError",
    "IdentitySession",
    "ProfileRegistrationFailed",
    "RegistrationError",
    "RegistrationOutcome",
    "RegistrationService",
    "RegistrationState",
    "SignInFailed",
    "TokenHolder",
    "VerificationBookkeeping",
    "VerificationFailed",
    "VerificationStore",
    "VerifiedEmailRecord",
    "classify",
    "describe",
    "handle_error",
]
