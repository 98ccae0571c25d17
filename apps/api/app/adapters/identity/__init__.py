"""Client-side identity provider adapters."""

from .backend_probe import AUTH_USER_PATH, HttpIdentityProbe, IdentityProbe, IdentityProbeError
from .base import (
    AuthStateChannel,
    AuthStateListener,
    FederatedPrompt,
    FederatedSignInCancelled,
    IdentityClient,
    ProviderAuthError,
    Subscription,
)
from .firebase_identity import FirebaseIdentityClient
from .memory_identity import InMemoryIdentityClient

__all__ = [
    "AUTH_USER_PATH",
    "AuthStateChannel",
    "AuthStateListener",
    "FederatedPrompt",
    "FederatedSignInCancelled",
    "FirebaseIdentityClient",
    "HttpIdentityProbe",
    "IdentityClient",
    "IdentityProbe",
    "IdentityProbeError",
    "InMemoryIdentityClient",
    "ProviderAuthError",
    "Subscription",
]
