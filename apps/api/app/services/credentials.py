"""Credential gateway: provider calls normalized into uniform results."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from app.adapters.identity import FederatedPrompt, IdentityClient, ProviderAuthError
from app.core.logging_safety import safe_log_email, safe_log_identifier
from app.schemas.credentials import AuthFailure, AuthResult, FederatedProviderDescriptor, SignOutResult
from app.schemas.session import Subject

logger = logging.getLogger(__name__)

_MISSING_EMAIL = AuthFailure(
    code="auth/missing-email",
    message="Firebase: Email address is required (auth/missing-email).",
)
_MISSING_PASSWORD = AuthFailure(
    code="auth/missing-password",
    message="Firebase: Password is required (auth/missing-password).",
)
_FEDERATED_UNAVAILABLE = AuthFailure(
    code="auth/operation-not-supported-in-this-environment",
    message="Firebase: Federated sign-in is not available here (auth/operation-not-supported-in-this-environment).",
)


def _missing_input(email: str, password: str) -> AuthFailure | None:
    if not email or not email.strip():
        return _MISSING_EMAIL
    if not password:
        return _MISSING_PASSWORD
    return None


class CredentialGateway:
    """Delegates credential operations to the identity provider.

    No method raises: every provider exception becomes the ``failure`` field.
    Session state changes arrive separately through the provider's
    notification stream.
    """

    def __init__(
        self,
        client: IdentityClient,
        *,
        federated_provider: FederatedProviderDescriptor | None = None,
        federated_prompt: FederatedPrompt | None = None,
    ) -> None:
        self._client = client
        self._federated_provider = federated_provider or FederatedProviderDescriptor()
        self._federated_prompt = federated_prompt

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        missing = _missing_input(email, password)
        if missing is not None:
            return AuthResult(failure=missing)
        return await self._resolve(
            "sign_in_with_password",
            email,
            lambda: self._client.sign_in_with_password(email.strip(), password),
        )

    async def register_with_password(self, email: str, password: str) -> AuthResult:
        missing = _missing_input(email, password)
        if missing is not None:
            return AuthResult(failure=missing)
        return await self._resolve(
            "register_with_password",
            email,
            lambda: self._client.create_user_with_password(email.strip(), password),
        )

    async def sign_in_with_federated_provider(self) -> AuthResult:
        prompt = self._federated_prompt
        if prompt is None:
            return AuthResult(failure=_FEDERATED_UNAVAILABLE)
        return await self._resolve(
            "sign_in_with_federated_provider",
            None,
            lambda: self._client.sign_in_with_federated(self._federated_provider, prompt),
        )

    async def sign_out(self) -> SignOutResult:
        try:
            await self._client.sign_out()
        except ProviderAuthError as exc:
            logger.info("credentials.failed operation=sign_out code=%s", exc.code)
            return SignOutResult(failure=AuthFailure(code=exc.code, message=exc.message))
        except Exception as exc:
            logger.warning("credentials.failed operation=sign_out reason=%s", type(exc).__name__)
            return SignOutResult(failure=AuthFailure(message=str(exc) or None))
        logger.info("credentials.succeeded operation=sign_out")
        return SignOutResult()

    async def _resolve(
        self,
        operation: str,
        email: str | None,
        call: Callable[[], Awaitable[Subject]],
    ) -> AuthResult:
        safe_email = safe_log_email(email)
        try:
            subject = await call()
        except ProviderAuthError as exc:
            logger.info("credentials.failed operation=%s email=%s code=%s", operation, safe_email, exc.code)
            return AuthResult(failure=AuthFailure(code=exc.code, message=exc.message))
        except Exception as exc:
            logger.warning("credentials.failed operation=%s email=%s reason=%s", operation, safe_email, type(exc).__name__)
            return AuthResult(failure=AuthFailure(message=str(exc) or None))

        logger.info(
            "credentials.succeeded operation=%s subject_id=%s",
            operation,
            safe_log_identifier(subject.uid, prefix="sid"),
        )
        return AuthResult(subject=subject)


__all__ = ["CredentialGateway"]
