"""Firebase identity client over the Identity Toolkit REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from app.adapters.identity.base import FederatedPrompt, IdentityClient, ProviderAuthError
from app.schemas.credentials import FederatedProviderDescriptor
from app.schemas.session import Subject

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

_TOKEN_REFRESH_MARGIN = timedelta(minutes=5)

# REST error identifiers mapped onto the codes the web SDK reports.
_REST_ERROR_CODES: dict[str, str] = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "INVALID_EMAIL": "auth/invalid-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-login-credentials",
    "INVALID_IDP_RESPONSE": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
    "MISSING_EMAIL": "auth/missing-email",
    "MISSING_PASSWORD": "auth/missing-password",
    "TOKEN_EXPIRED": "auth/user-token-expired",
    "USER_NOT_FOUND": "auth/user-token-expired",
    "INVALID_REFRESH_TOKEN": "auth/invalid-user-token",
    "INVALID_API_KEY": "auth/invalid-api-key",
    "API_KEY_INVALID": "auth/invalid-api-key",
}


def provider_error_from_response(body: Any) -> ProviderAuthError:
    """Translate an Identity Toolkit error body into a provider error."""
    raw = ""
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        raw = str(body["error"].get("message") or "")

    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters".
    identifier, _, detail = raw.partition(" : ")
    identifier = identifier.strip()
    code = _REST_ERROR_CODES.get(identifier, "auth/internal-error")
    detail = detail.strip()
    if detail:
        return ProviderAuthError(code, f"Firebase: {detail} ({code}).")
    return ProviderAuthError(code)


@dataclass(slots=True)
class _ProviderSession:
    subject: Subject
    id_token: str
    refresh_token: str
    expires_at: datetime


class FirebaseIdentityClient(IdentityClient):
    """Talks to Firebase Auth the way the web SDK does, without browser persistence."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        emit_initial_state: bool = True,
    ) -> None:
        super().__init__(emit_initial_state=emit_initial_state)
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        # Keyed by uid; a notified subject keeps its credentials after a later sign-out.
        self._sessions: dict[str, _ProviderSession] = {}

    async def aclose(self) -> None:
        await super().aclose()
        if self._owns_client:
            await self._client.aclose()

    async def sign_in_with_password(self, email: str, password: str) -> Subject:
        body = await self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return self._commit(body, provider_id="password")

    async def create_user_with_password(self, email: str, password: str) -> Subject:
        body = await self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:signUp",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return self._commit(body, provider_id="password")

    async def sign_in_with_federated(
        self,
        descriptor: FederatedProviderDescriptor,
        prompt: FederatedPrompt,
    ) -> Subject:
        credential = await prompt(descriptor)
        if credential.provider_id != descriptor.provider_id:
            raise ProviderAuthError("auth/invalid-credential")

        body = await self._post(
            f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithIdp",
            json={
                "postBody": credential.post_body(),
                "requestUri": descriptor.request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return self._commit(body, provider_id=descriptor.provider_id)

    async def sign_out(self) -> None:
        self._set_current(None)

    async def get_id_token(self, subject: Subject, *, force_refresh: bool = False) -> str:
        session = self._sessions.get(subject.uid)
        if session is None:
            raise ProviderAuthError("auth/no-current-user")

        if force_refresh or datetime.now(UTC) >= session.expires_at - _TOKEN_REFRESH_MARGIN:
            body = await self._post(
                SECURE_TOKEN_URL,
                data={"grant_type": "refresh_token", "refresh_token": session.refresh_token},
            )
            try:
                id_token = str(body["id_token"])
                expires_at = _expiry(body.get("expires_in"))
            except (KeyError, ValueError) as exc:
                raise ProviderAuthError("auth/internal-error") from exc
            session.id_token = id_token
            session.refresh_token = str(body.get("refresh_token") or session.refresh_token)
            session.expires_at = expires_at

        return session.id_token

    async def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.post(url, params={"key": self._api_key}, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("identity.request_failed endpoint=%s reason=%s", url.rsplit("/", 1)[-1], type(exc).__name__)
            raise ProviderAuthError("auth/network-request-failed") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            raise provider_error_from_response(body)
        if not isinstance(body, dict):
            raise ProviderAuthError("auth/internal-error")
        return body

    def _commit(self, body: dict[str, Any], *, provider_id: str) -> Subject:
        try:
            subject = Subject(
                uid=str(body["localId"]),
                email=body.get("email"),
                display_name=body.get("displayName") or None,
                photo_url=body.get("photoUrl") or None,
                email_verified=bool(body.get("emailVerified", False)),
                provider_id=provider_id,
            )
            session = _ProviderSession(
                subject=subject,
                id_token=str(body["idToken"]),
                refresh_token=str(body["refreshToken"]),
                expires_at=_expiry(body.get("expiresIn")),
            )
        except (KeyError, ValueError) as exc:
            raise ProviderAuthError("auth/internal-error") from exc

        self._sessions[subject.uid] = session
        self._set_current(subject)
        return subject


def _expiry(expires_in: Any) -> datetime:
    return datetime.now(UTC) + timedelta(seconds=int(expires_in or 3600))


__all__ = ["FirebaseIdentityClient", "provider_error_from_response"]
