"""Firebase Auth token verifier adapter."""

from __future__ import annotations

import threading
from typing import Any

from app.adapters.auth.base import AuthVerificationError, ProviderUnavailableError, TokenVerifier
from app.schemas.auth import AuthPrincipal

# Verification runs in worker threads; only one may create the default app.
_APP_INIT_LOCK = threading.Lock()


def _ensure_app(firebase_admin: Any, project_id: str | None, service_account: dict[str, str] | None) -> Any:
    """Initialize the default Admin SDK app once per process."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    with _APP_INIT_LOCK:
        if firebase_admin._apps:
            return firebase_admin.get_app()

        options = {"projectId": project_id} if project_id else None
        if service_account is None:
            return firebase_admin.initialize_app(options=options)

        from firebase_admin import credentials

        return firebase_admin.initialize_app(credentials.Certificate(service_account), options=options)


class FirebaseTokenVerifier(TokenVerifier):
    """Verifies Firebase ID tokens and normalizes principal data."""

    def __init__(self, project_id: str | None, service_account: dict[str, str] | None = None) -> None:
        self._project_id = project_id
        self._service_account = service_account

    def verify_token(self, token: str) -> AuthPrincipal:
        try:
            import firebase_admin
            from firebase_admin import auth as firebase_auth
        except ImportError as exc:  # pragma: no cover - depends on installed package
            raise ProviderUnavailableError("Firebase auth verifier is unavailable") from exc

        try:
            app = _ensure_app(firebase_admin, self._project_id, self._service_account)
        except ValueError as exc:
            raise ProviderUnavailableError("Firebase app could not be initialized") from exc

        try:
            decoded = firebase_auth.verify_id_token(token, app=app, check_revoked=True)
        except firebase_auth.CertificateFetchError as exc:
            raise ProviderUnavailableError("Firebase public keys could not be fetched") from exc
        except Exception as exc:  # provider exception surface: expired, revoked, malformed, disabled
            raise AuthVerificationError("Invalid bearer token") from exc

        if self._project_id and decoded.get("aud") != self._project_id:
            raise AuthVerificationError("Invalid bearer token audience")

        user_id = str(decoded.get("uid") or decoded.get("sub") or "").strip()
        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return AuthPrincipal(user_id=user_id)


__all__ = ["FirebaseTokenVerifier"]
