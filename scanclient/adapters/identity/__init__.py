"""Identity provider adapters."""

from .firebase_rest import FirebaseRestIdentityProvider, FirebaseSession

__all__ = ["FirebaseRestIdentityProvider", "FirebaseSession"]
