"""
Registration domain service - multi-step account registration.

This module keeps two independently failing systems consistent: the
external identity provider (credentials, sessions) and the backend's
profile store.

Registration protocol (forward-only)
====================================

    UNVERIFIED --send code--> CODE_SENT --verify code--> EMAIL_VERIFIED
        --create or recover identity--> IDENTITY_CREATED
        --register profile--> PROFILE_REGISTERED

A failed step leaves the caller in the state preceding it; the raised
RegistrationError carries that state.

The identity provider and the backend are not updated atomically. The only
compensating action is the email-already-in-use path: when a previous run
created the identity but never registered the profile, signing in with the
same credentials and registering the profile completes that run. A CONFLICT
answer from profile registration means the profile is already written (the
earlier response was lost, or the run already completed) and counts as
PROFILE_REGISTERED. There is no rollback of the identity if profile
registration fails.
"""

import logging
from dataclasses import dataclass, field

from .errors import ApiError, ErrorCategory
from .exceptions import (
    EmailAlreadyRegistered,
    EmailRegisteredWithDifferentPassword,
    IdentityCreationFailed,
    IdentityProviderError,
    ProfileRegistrationFailed,
    SignInFailed,
    VerificationFailed,
)
from .ports import AuthBackend, IdentityProvider, IdentitySession, RegistrationState, TokenHolder
from .verification import VerificationBookkeeping

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "auth/email-already-in-use"
_CREDENTIAL_MISMATCH_CODES = frozenset(
    {"auth/wrong-password", "auth/user-not-found", "auth/invalid-credential"}
)

NETWORK_MESSAGE = "Network problem. Check your internet connection."
INVALID_EMAIL_MESSAGE = "Invalid email format."
DIFFERENT_PASSWORD_MESSAGE = (
    "This email is already registered with a different password. "
    "Sign in or reset your password."
)
ALREADY_REGISTERED_MESSAGE = "This email is already registered. Please sign in."
PROFILE_UNREACHABLE_MESSAGE = (
    "Could not create your profile. Make sure the backend is reachable and try again."
)

# Backend answer when the profile was already written (lost response, re-run)
PROFILE_EXISTS_CODE = "CONFLICT"

_CREATE_MESSAGES = {
    "auth/invalid-email": INVALID_EMAIL_MESSAGE,
    "auth/weak-password": "Password is too weak. Use at least 6 characters.",
    "auth/network-request-failed": NETWORK_MESSAGE,
}

_SIGN_IN_MESSAGES = {
    "auth/user-not-found": "Incorrect email or password.",
    "auth/wrong-password": "Incorrect email or password.",
    "auth/invalid-credential": "Incorrect email or password.",
    "auth/invalid-email": INVALID_EMAIL_MESSAGE,
    "auth/network-request-failed": NETWORK_MESSAGE,
    "auth/too-many-requests": "Too many sign-in attempts. Try again later.",
    "auth/user-disabled": "This account has been disabled. Contact support.",
}


@dataclass
class RegistrationOutcome:
    """
    Result of a completed registration.

    Attributes:
        session: Authenticated identity-provider session
        confirmed: States confirmed during this run, in order
        recovered: True when a previously interrupted registration was
            completed through the email-already-in-use path
    """

    session: IdentitySession
    confirmed: list[RegistrationState] = field(default_factory=list)
    recovered: bool = False

    @property
    def state(self) -> RegistrationState:
        return self.confirmed[-1] if self.confirmed else RegistrationState.EMAIL_VERIFIED


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates verification, identity creation and profile registration
    against the identity provider and the backend.
    """

    identity_provider: IdentityProvider
    backend: AuthBackend
    token_holder: TokenHolder
    bookkeeping: VerificationBookkeeping

    async def send_verification_code(self, email: str) -> RegistrationState:
        """
        Ask the backend to email a verification code.

        Returns:
            CODE_SENT

        Raises:
            VerificationFailed: Backend rejected or was unreachable
        """
        normalized_email = self._normalize_email(email)
        try:
            await self.backend.send_verification_code(normalized_email)
        except ApiError as exc:
            raise VerificationFailed(
                exc.message or "Could not send the verification code.",
                state=RegistrationState.UNVERIFIED,
            ) from exc
        logger.info("Verification code sent to %s", normalized_email)
        return RegistrationState.CODE_SENT

    async def verify_email_code(self, email: str, code: str) -> RegistrationState:
        """
        Redeem a verification code against the backend.

        No identity or profile is created here. On success a local marker is
        written for the degraded verified-email check.

        Returns:
            EMAIL_VERIFIED

        Raises:
            VerificationFailed: Code rejected or backend unreachable
        """
        normalized_email = self._normalize_email(email)
        try:
            await self.backend.verify_code(normalized_email, code.strip())
        except ApiError as exc:
            raise VerificationFailed(
                exc.message or "Could not verify the code.",
                state=RegistrationState.CODE_SENT,
            ) from exc

        try:
            self.bookkeeping.mark_verified(normalized_email)
        except Exception:
            logger.warning("Could not store verification marker for %s", normalized_email, exc_info=True)
        logger.info("Email %s verified", normalized_email)
        return RegistrationState.EMAIL_VERIFIED

    async def is_email_verified(self, email: str) -> bool:
        return await self.bookkeeping.is_email_verified(self._normalize_email(email))

    async def check_email_exists(self, email: str) -> bool:
        """Pre-flight duplicate check against the backend profile store."""
        return await self.backend.check_email_exists(self._normalize_email(email))

    async def register(self, email: str, password: str) -> RegistrationOutcome:
        """
        Create the identity and the backend profile for a verified email.

        Postcondition: either both the identity and the profile exist, or a
        RegistrationError was raised. Partial state is not rolled back.

        Args:
            email: Verified email (will be normalized)
            password: Chosen password

        Returns:
            RegistrationOutcome with the authenticated session

        Raises:
            IdentityCreationFailed: Provider rejected the new account
            EmailRegisteredWithDifferentPassword: Account exists with other credentials
            EmailAlreadyRegistered: Account exists and could not be recovered
            ProfileRegistrationFailed: Identity exists, backend profile does not
        """
        normalized_email = self._normalize_email(email)
        self.bookkeeping.clear(normalized_email)

        session, recovered = await self._create_or_recover_identity(normalized_email, password)
        confirmed = [RegistrationState.IDENTITY_CREATED]

        await self._register_profile(session, normalized_email, password)
        confirmed.append(RegistrationState.PROFILE_REGISTERED)

        logger.info(
            "Registration complete for %s (uid=%s, recovered=%s)",
            normalized_email,
            session.uid,
            recovered,
        )
        current = self.identity_provider.current_user
        return RegistrationOutcome(session=current or session, confirmed=confirmed, recovered=recovered)

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        """
        Sign in and attach the session token to backend calls.

        Raises:
            SignInFailed: With a user-facing message for the provider error
        """
        normalized_email = self._normalize_email(email)
        try:
            session = await self.identity_provider.sign_in(normalized_email, password)
        except IdentityProviderError as exc:
            message = _SIGN_IN_MESSAGES.get(exc.code) or exc.message or "Sign-in failed. Please try again."
            raise SignInFailed(message, state=RegistrationState.UNVERIFIED) from exc

        self.token_holder.set_auth_token(await session.get_id_token())
        return session

    async def sign_out(self) -> None:
        """Sign out and stop sending the bearer token. No-op when signed out."""
        if self.identity_provider.current_user is not None:
            await self.identity_provider.sign_out()
        self.token_holder.set_auth_token(None)

    async def _create_or_recover_identity(
        self, email: str, password: str
    ) -> tuple[IdentitySession, bool]:
        try:
            return await self.identity_provider.create_user(email, password), False
        except IdentityProviderError as exc:
            if exc.code != EMAIL_IN_USE:
                message = _CREATE_MESSAGES.get(exc.code) or exc.message or "Could not create the account."
                raise IdentityCreationFailed(message, state=RegistrationState.EMAIL_VERIFIED) from exc

        # A previous run may have created the identity without the profile
        logger.info("Identity for %s already exists, attempting recovery via sign-in", email)
        try:
            session = await self.identity_provider.sign_in(email, password)
        except IdentityProviderError as exc:
            if exc.code in _CREDENTIAL_MISMATCH_CODES:
                raise EmailRegisteredWithDifferentPassword(
                    DIFFERENT_PASSWORD_MESSAGE, state=RegistrationState.EMAIL_VERIFIED
                ) from exc
            raise EmailAlreadyRegistered(
                ALREADY_REGISTERED_MESSAGE, state=RegistrationState.EMAIL_VERIFIED
            ) from exc
        return session, True

    async def _register_profile(self, session: IdentitySession, email: str, password: str) -> None:
        try:
            token = await session.get_id_token()
            # Later calls (profile reads) reuse the token from the default headers
            self.token_holder.set_auth_token(token)
            await self.backend.register_user(email, password, token)
        except ApiError as exc:
            if self._profile_exists(exc):
                logger.info("Profile for %s already exists, treating as registered", email)
                return
            raise ProfileRegistrationFailed(
                self._profile_failure_message(exc), state=RegistrationState.IDENTITY_CREATED
            ) from exc
        except IdentityProviderError as exc:
            raise ProfileRegistrationFailed(
                _CREATE_MESSAGES.get(exc.code) or PROFILE_UNREACHABLE_MESSAGE,
                state=RegistrationState.IDENTITY_CREATED,
            ) from exc

    @staticmethod
    def _profile_exists(exc: ApiError) -> bool:
        return exc.code == PROFILE_EXISTS_CODE or exc.status == 409

    @staticmethod
    def _profile_failure_message(exc: ApiError) -> str:
        if exc.status in (401, 403, 404) or exc.category is ErrorCategory.AUTH:
            return PROFILE_UNREACHABLE_MESSAGE
        return exc.message or "Could not create the account."

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
