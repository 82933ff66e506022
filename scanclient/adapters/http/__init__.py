"""HTTP adapters - backend transport and endpoint wrappers."""

from .auth_api import AuthApi
from .client import DEFAULT_NO_RETRY_CODES, ApiClient, RetryPolicy
from .user_api import UserApi

__all__ = ["DEFAULT_NO_RETRY_CODES", "ApiClient", "AuthApi", "RetryPolicy", "UserApi"]
