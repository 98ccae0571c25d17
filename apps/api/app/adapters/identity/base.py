"""Client-side identity provider interfaces."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Awaitable, Callable

from app.schemas.credentials import FederatedCredential, FederatedProviderDescriptor
from app.schemas.session import Subject

logger = logging.getLogger(__name__)

AuthStateListener = Callable[[Subject | None], Awaitable[None]]
FederatedPrompt = Callable[[FederatedProviderDescriptor], Awaitable[FederatedCredential]]


class ProviderAuthError(Exception):
    """Opaque provider failure carrying an ``auth/<code>`` identifier."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or f"Firebase: Error ({code})."
        super().__init__(self.message)


class FederatedSignInCancelled(ProviderAuthError):
    """Raised by a federated prompt when the user abandons the flow."""

    def __init__(self) -> None:
        super().__init__("auth/popup-closed-by-user")


class Subscription:
    """Cancellable auth-state subscription; nothing is delivered once released."""

    __slots__ = ("_listener", "_release", "_active")

    def __init__(self, listener: AuthStateListener, release: Callable[[Subscription], None]) -> None:
        self._listener = listener
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._release(self)

    async def deliver(self, subject: Subject | None) -> None:
        if self._active:
            await self._listener(subject)


class AuthStateChannel:
    """Ordered auth-state fan-out with a single notification in flight.

    Notifications are queued by ``publish`` and delivered by one worker task,
    so publishers never wait on subscribers.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._pending: deque[tuple[Subscription | None, Subject | None]] = deque()
        self._worker: asyncio.Task[None] | None = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: AuthStateListener, *, replay: bool = False, current: Subject | None = None) -> Subscription:
        subscription = Subscription(listener, self._subscriptions.remove)
        self._subscriptions.append(subscription)
        if replay:
            self._enqueue(subscription, current)
        return subscription

    def publish(self, subject: Subject | None) -> None:
        self._enqueue(None, subject)

    async def drain(self) -> None:
        """Wait until every queued notification has been delivered."""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    async def aclose(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        self._pending.clear()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None

    def _enqueue(self, target: Subscription | None, subject: Subject | None) -> None:
        self._pending.append((target, subject))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._deliver_pending())

    async def _deliver_pending(self) -> None:
        while self._pending:
            target, subject = self._pending.popleft()
            recipients = [target] if target is not None else list(self._subscriptions)
            for subscription in recipients:
                try:
                    await subscription.deliver(subject)
                except Exception:
                    logger.exception("auth_state.listener_failed")


class IdentityClient(ABC):
    """Capability set the client-side auth core needs from an identity provider."""

    def __init__(self, *, emit_initial_state: bool = True) -> None:
        self._channel = AuthStateChannel()
        self._current: Subject | None = None
        self._emit_initial_state = emit_initial_state

    @property
    def current_subject(self) -> Subject | None:
        return self._current

    def on_auth_state_changed(self, listener: AuthStateListener) -> Subscription:
        """Subscribe to sign-in/sign-out notifications.

        Like the provider's own SDK, a new subscriber first receives the
        current state unless the client was built with ``emit_initial_state=False``.
        """
        return self._channel.subscribe(listener, replay=self._emit_initial_state, current=self._current)

    async def drain_notifications(self) -> None:
        await self._channel.drain()

    async def aclose(self) -> None:
        await self._channel.aclose()

    def _set_current(self, subject: Subject | None) -> None:
        self._current = subject
        self._channel.publish(subject)

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> Subject:
        """Sign in an existing account."""

    @abstractmethod
    async def create_user_with_password(self, email: str, password: str) -> Subject:
        """Register a new account and sign it in."""

    @abstractmethod
    async def sign_in_with_federated(
        self,
        descriptor: FederatedProviderDescriptor,
        prompt: FederatedPrompt,
    ) -> Subject:
        """Run the interactive third-party flow and exchange its credential."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session; succeeds when none is active."""

    @abstractmethod
    async def get_id_token(self, subject: Subject, *, force_refresh: bool = False) -> str:
        """Return a bearer token for a subject this client has signed in, current or not."""


__all__ = [
    "AuthStateChannel",
    "AuthStateListener",
    "FederatedPrompt",
    "FederatedSignInCancelled",
    "IdentityClient",
    "ProviderAuthError",
    "Subscription",
]
