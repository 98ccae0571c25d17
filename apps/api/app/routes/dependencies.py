"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader

from app.adapters.auth import FirebaseTokenVerifier, MockTokenVerifier, TokenVerifier
from app.core.config import Settings, get_settings
from app.core.logging_safety import safe_log_identifier
from app.schemas.auth import VerifiedIdentity
from app.services.token_verification import TokenVerificationService

# Raw header access: the scheme prefix is matched literally, not case-folded.
authorization_header_scheme = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    scheme_name="bearerAuth",
    description="Firebase ID token as `Bearer <token>`.",
)
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "firebase":
        return FirebaseTokenVerifier(
            project_id=settings.firebase_project_id,
            service_account=settings.firebase_service_account(),
        )
    return MockTokenVerifier()


def get_token_verification_service(
    settings: Annotated[Settings, Depends(get_settings)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> TokenVerificationService:
    return TokenVerificationService(verifier, timeout_seconds=settings.verification_timeout_seconds)


async def get_verified_identity(
    request: Request,
    authorization: Annotated[str | None, Security(authorization_header_scheme)],
    service: Annotated[TokenVerificationService, Depends(get_token_verification_service)],
) -> VerifiedIdentity:
    """Verify the bearer token and attach the identity to request context."""
    correlation_id = _request_correlation_id(request)
    logger.debug(
        "auth.verifying correlation_id=%s method=%s path=%s",
        safe_log_identifier(correlation_id, prefix="cid"),
        request.method,
        request.url.path,
    )
    identity = await service.verify(authorization, correlation_id=correlation_id)
    request.state.verified_identity = identity
    return identity
