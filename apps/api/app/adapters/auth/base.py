"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from app.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a token cannot be verified or normalized."""


class ProviderUnavailableError(AuthVerificationError):
    """Raised when the verification service itself cannot be reached or loaded."""


class TokenVerifier(ABC):
    """Provider-neutral token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify signature, expiry and revocation; return the normalized principal."""


__all__ = ["AuthVerificationError", "ProviderUnavailableError", "TokenVerifier"]
