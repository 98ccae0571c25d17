"""Bearer token verification at the backend boundary."""

from __future__ import annotations

import asyncio
import logging

from app.adapters.auth import AuthVerificationError, ProviderUnavailableError, TokenVerifier
from app.core.logging_safety import safe_log_identifier
from app.errors import ApiError, not_authorized
from app.schemas.auth import VerifiedIdentity

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class TokenVerificationService:
    """Stateless per call: resolves an ``Authorization`` value to a verified identity.

    Every failure is the same ``401 Not authorized``; the cause only reaches
    the operator log.
    """

    def __init__(self, verifier: TokenVerifier, *, timeout_seconds: float = 10.0) -> None:
        self._verifier = verifier
        self._timeout_seconds = timeout_seconds

    async def verify(self, authorization: str | None, *, correlation_id: str | None = None) -> VerifiedIdentity:
        safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise self._rejected(safe_correlation_id, "missing_or_malformed_header")

        token = authorization[len(BEARER_PREFIX):]
        if not token:
            raise self._rejected(safe_correlation_id, "missing_or_malformed_header")

        try:
            principal = await asyncio.wait_for(
                asyncio.to_thread(self._verifier.verify_token, token),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise self._rejected(safe_correlation_id, "provider_timeout") from exc
        except ProviderUnavailableError as exc:
            raise self._rejected(safe_correlation_id, "provider_unavailable") from exc
        except AuthVerificationError as exc:
            raise self._rejected(safe_correlation_id, "token_verification_failed") from exc
        except Exception as exc:
            raise self._rejected(safe_correlation_id, f"verifier_error:{type(exc).__name__}") from exc

        logger.info(
            "auth.accepted correlation_id=%s principal_id=%s",
            safe_correlation_id,
            safe_log_identifier(principal.user_id, prefix="pid"),
        )
        return VerifiedIdentity(user_id=principal.user_id, token=token)

    @staticmethod
    def _rejected(safe_correlation_id: str, reason: str) -> ApiError:
        logger.warning("auth.rejected correlation_id=%s reason=%s", safe_correlation_id, reason)
        return not_authorized()


__all__ = ["BEARER_PREFIX", "TokenVerificationService"]
