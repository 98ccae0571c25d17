"""Application-scoped auth context exposed to the presentation layer."""

from __future__ import annotations

from collections.abc import Callable

from app.adapters.identity import (
    FederatedPrompt,
    FirebaseIdentityClient,
    HttpIdentityProbe,
    IdentityClient,
    IdentityProbe,
    InMemoryIdentityClient,
)
from app.core.config import Settings
from app.domain.auth_errors import classify
from app.schemas.credentials import AuthResult, FederatedProviderDescriptor, SignOutResult
from app.schemas.session import SessionState
from app.services.credentials import CredentialGateway
from app.services.session_observer import SessionObserver, SessionPolicy, SessionWatcher


class AuthContext:
    """Single owner of the session state plus the four credential actions.

    Mount it once when the application starts and unmount it on shutdown;
    ``async with`` does both.
    """

    def __init__(
        self,
        client: IdentityClient,
        observer: SessionObserver,
        gateway: CredentialGateway,
        *,
        probe: IdentityProbe | None = None,
    ) -> None:
        self._client = client
        self._observer = observer
        self._gateway = gateway
        self._probe = probe

    @property
    def state(self) -> SessionState:
        return self._observer.state

    def watch(self, watcher: SessionWatcher) -> Callable[[], None]:
        return self._observer.watch(watcher)

    def mount(self) -> None:
        self._observer.mount()

    def unmount(self) -> None:
        self._observer.unmount()

    async def aclose(self) -> None:
        self._observer.unmount()
        await self._client.aclose()
        if self._probe is not None:
            await self._probe.aclose()

    async def __aenter__(self) -> AuthContext:
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        return await self._gateway.sign_in_with_password(email, password)

    async def register_with_password(self, email: str, password: str) -> AuthResult:
        return await self._gateway.register_with_password(email, password)

    async def sign_in_with_federated_provider(self) -> AuthResult:
        return await self._gateway.sign_in_with_federated_provider()

    async def sign_out(self) -> SignOutResult:
        return await self._gateway.sign_out()

    @staticmethod
    def failure_message(result: AuthResult | SignOutResult) -> str | None:
        """The one user-facing sentence for a failed action, or None on success."""
        if result.failure is None:
            return None
        return classify(result.failure)


def build_auth_context(
    settings: Settings,
    *,
    federated_prompt: FederatedPrompt | None = None,
    client: IdentityClient | None = None,
    probe: IdentityProbe | None = None,
) -> AuthContext:
    """Wire an auth context from configuration."""
    if client is None:
        if settings.auth_provider == "firebase":
            if settings.firebase_api_key is None:
                raise ValueError("firebase_api_key is required for the firebase identity client")
            client = FirebaseIdentityClient(
                settings.firebase_api_key.get_secret_value(),
                timeout=settings.client_request_timeout_seconds,
            )
        else:
            client = InMemoryIdentityClient()

    policy = SessionPolicy(settings.session_policy)
    if probe is None and policy is SessionPolicy.VERIFY_WITH_BACKEND:
        probe = HttpIdentityProbe(settings.api_base_url, timeout=settings.client_request_timeout_seconds)

    observer = SessionObserver(
        client,
        policy=policy,
        probe=probe,
        settle_timeout=settings.session_settle_timeout_seconds,
    )
    gateway = CredentialGateway(
        client,
        federated_provider=FederatedProviderDescriptor(
            provider_id=settings.federated_provider_id,
            request_uri=settings.federated_request_uri,
        ),
        federated_prompt=federated_prompt,
    )
    return AuthContext(client, observer, gateway, probe=probe)


__all__ = ["AuthContext", "build_auth_context"]
