"""Mock auth verifier for local development and tests."""

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.schemas.auth import AuthPrincipal

MOCK_TOKEN_PREFIX = "test:"


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens of the form ``test:<user_id>``.

    These are the tokens issued by the in-memory identity client.
    """

    def verify_token(self, token: str) -> AuthPrincipal:
        if not token.startswith(MOCK_TOKEN_PREFIX):
            raise AuthVerificationError("Invalid bearer token")

        user_id = token[len(MOCK_TOKEN_PREFIX):].strip()
        if not user_id or ":" in user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return AuthPrincipal(user_id=user_id)


__all__ = ["MOCK_TOKEN_PREFIX", "MockTokenVerifier"]
