"""
Auth API adapter - Implements AuthBackend protocol.

Thin wrappers over the backend's verification and registration endpoints.
All calls go through ApiClient, so they share its timeout, retry policy
and error normalization.
"""

from collections.abc import Mapping
from typing import Any

from . import endpoints
from .client import ApiClient
from .models import (
    CheckEmailExistsResponse,
    CheckEmailVerifiedResponse,
    EmailRequest,
    RegisterUserRequest,
    VerifyCodeRequest,
)


class AuthApi:
    """
    Implements AuthBackend protocol over ApiClient.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def send_verification_code(self, email: str) -> None:
        """Ask the backend to email a time-boxed verification code."""
        await self._client.post(
            endpoints.AUTH_SEND_VERIFICATION_CODE,
            EmailRequest(email=email).model_dump(),
        )

    async def verify_code(self, email: str, code: str) -> None:
        """Redeem a code; the backend marks the email verified on success."""
        await self._client.post(
            endpoints.AUTH_VERIFY_CODE,
            VerifyCodeRequest(email=email, code=code).model_dump(),
        )

    async def check_email_verified(self, email: str) -> bool:
        body = await self._client.get(endpoints.AUTH_CHECK_EMAIL_VERIFIED, params={"email": email})
        return bool(CheckEmailVerifiedResponse.model_validate(body or {}).verified)

    async def check_email_exists(self, email: str) -> bool:
        body = await self._client.get(endpoints.AUTH_CHECK_EMAIL_EXISTS, params={"email": email})
        return CheckEmailExistsResponse.model_validate(body or {}).exists

    async def register_user(self, email: str, password: str, id_token: str) -> Mapping[str, Any]:
        """
        Create the backend profile after the identity exists.

        The token is sent explicitly on this call instead of relying on the
        client's default header, so the request is authenticated even if the
        default is changed concurrently.
        """
        return await self._client.post(
            endpoints.USERS_REGISTER,
            RegisterUserRequest(email=email, password=password).model_dump(),
            headers={"Authorization": f"Bearer {id_token}"},
        )
