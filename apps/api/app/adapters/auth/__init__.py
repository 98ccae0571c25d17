"""Auth verifier adapters."""

from .base import AuthVerificationError, ProviderUnavailableError, TokenVerifier
from .firebase_auth import FirebaseTokenVerifier
from .mock_auth import MOCK_TOKEN_PREFIX, MockTokenVerifier

__all__ = [
    "AuthVerificationError",
    "ProviderUnavailableError",
    "TokenVerifier",
    "FirebaseTokenVerifier",
    "MOCK_TOKEN_PREFIX",
    "MockTokenVerifier",
]
