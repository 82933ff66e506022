"""
Wiring - factories that assemble the domain services from settings.

The ApiClient is created explicitly and passed to everything that needs it;
there is no module-level singleton transport.
"""

from dataclasses import dataclass
from datetime import timedelta

from scanclient.adapters.http import ApiClient, AuthApi, UserApi
from scanclient.adapters.identity import FirebaseRestIdentityProvider
from scanclient.adapters.storage import JsonFileVerificationStore
from scanclient.config.settings import Settings, get_settings
from scanclient.domain.ports import IdentityProvider, VerificationStore
from scanclient.domain.registration import RegistrationService
from scanclient.domain.verification import VerificationBookkeeping


@dataclass
class Client:
    """Assembled client: transport, backend APIs and the registration service."""

    api: ApiClient
    auth_api: AuthApi
    user_api: UserApi
    registration: RegistrationService

    async def aclose(self) -> None:
        await self.api.aclose()


def get_verification_store(settings: Settings) -> JsonFileVerificationStore:
    """Create the device-local verified-email store."""
    return JsonFileVerificationStore(settings.verification_store_path)


def get_registration_service(
    api: ApiClient,
    auth_api: AuthApi,
    identity_provider: IdentityProvider,
    store: VerificationStore,
    settings: Settings,
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires the backend API, identity provider and bookkeeping together;
    the ApiClient doubles as the token holder.
    """
    bookkeeping = VerificationBookkeeping(
        backend=auth_api,
        store=store,
        ttl=timedelta(seconds=settings.verified_email_ttl_seconds),
    )
    return RegistrationService(
        identity_provider=identity_provider,
        backend=auth_api,
        token_holder=api,
        bookkeeping=bookkeeping,
    )


def build_client(
    settings: Settings | None = None,
    *,
    identity_provider: IdentityProvider | None = None,
    store: VerificationStore | None = None,
    api: ApiClient | None = None,
) -> Client:
    """
    Assemble a Client from settings.

    Every collaborator can be overridden (tests pass fakes); the defaults
    are the httpx transport, the Firebase REST provider and the JSON store.
    """
    settings = settings or get_settings()
    api = api or ApiClient.from_settings(settings)
    provider = identity_provider or FirebaseRestIdentityProvider.from_settings(settings)
    auth_api = AuthApi(api)
    registration = get_registration_service(
        api,
        auth_api,
        provider,
        store or get_verification_store(settings),
        settings,
    )
    return Client(
        api=api,
        auth_api=auth_api,
        user_api=UserApi(api),
        registration=registration,
    )
