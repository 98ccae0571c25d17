"""Backend round-trip used to confirm a provider-reported identity."""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from app.schemas.auth import AuthUserResponse, VerifiedIdentity
from app.schemas.session import Subject

AUTH_USER_PATH = "/api/auth/user"


class IdentityProbeError(Exception):
    """Raised when the backend does not confirm the identity."""


class IdentityProbe(ABC):
    async def aclose(self) -> None:
        return None

    @abstractmethod
    async def confirm(self, subject: Subject, token: str) -> VerifiedIdentity:
        """Return the backend's view of the token, or raise ``IdentityProbeError``."""


class HttpIdentityProbe(IdentityProbe):
    """Calls ``GET /api/auth/user`` with the subject's bearer token."""

    def __init__(self, base_url: str, *, timeout: float = 10.0, http_client: httpx.AsyncClient | None = None) -> None:
        self._url = base_url.rstrip("/") + AUTH_USER_PATH
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def confirm(self, subject: Subject, token: str) -> VerifiedIdentity:
        try:
            response = await self._client.get(self._url, headers={"Authorization": f"Bearer {token}"})
            response.raise_for_status()
            body = AuthUserResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            raise IdentityProbeError(f"backend rejected identity: {type(exc).__name__}") from exc

        if body.user_id != subject.uid:
            raise IdentityProbeError("backend resolved a different identity")
        return VerifiedIdentity(user_id=body.user_id, token=body.token)


__all__ = ["AUTH_USER_PATH", "HttpIdentityProbe", "IdentityProbe", "IdentityProbeError"]
