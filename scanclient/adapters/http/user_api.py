"""User profile API - read and update the signed-in user's profile."""

from typing import Any

from . import endpoints
from .client import ApiClient
from .models import UserProfile


class UserApi:
    """Profile endpoints; requires the client to carry a bearer token."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_me(self) -> UserProfile:
        """Get (or lazily create) the profile of the authenticated user."""
        body = await self._client.get(endpoints.USERS_ME)
        return UserProfile.model_validate(body)

    async def update_me(self, changes: dict[str, Any], *, method: str = "PATCH") -> UserProfile:
        """
        Update profile fields.

        Args:
            changes: Partial profile, wire (camelCase) field names
            method: PATCH (partial update) or PUT
        """
        body = await self._client.request(endpoints.USERS_ME, method, json=changes)
        return UserProfile.model_validate(body)
