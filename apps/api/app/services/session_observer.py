"""Session observer: provider notifications republished as ``{subject, loading}``."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from app.adapters.identity import IdentityClient, IdentityProbe, Subscription
from app.core.logging_safety import safe_log_identifier
from app.domain.session_fsm import initial_state, settled_state, state_for_notification
from app.schemas.session import SessionState, Subject

logger = logging.getLogger(__name__)

SessionWatcher = Callable[[SessionState], None]


class SessionPolicy(str, Enum):
    """How far a provider-reported sign-in is trusted."""

    VERIFY_WITH_BACKEND = "verify_with_backend"
    TRUST_PROVIDER = "trust_provider"


class SessionObserver:
    """Owns the process-wide session state for one mounted application.

    Each provider notification yields exactly one published state, in delivery
    order. Under ``VERIFY_WITH_BACKEND`` a signed-in subject is committed only
    after its token round-trips through the backend; otherwise the
    notification publishes as signed out.
    """

    def __init__(
        self,
        client: IdentityClient,
        *,
        policy: SessionPolicy = SessionPolicy.VERIFY_WITH_BACKEND,
        probe: IdentityProbe | None = None,
        settle_timeout: float = 5.0,
    ) -> None:
        if policy is SessionPolicy.VERIFY_WITH_BACKEND and probe is None:
            raise ValueError("verify_with_backend policy requires an identity probe")
        self._client = client
        self._policy = policy
        self._probe = probe
        self._settle_timeout = settle_timeout
        self._state = initial_state()
        self._watchers: list[SessionWatcher] = []
        self._subscription: Subscription | None = None
        self._settle_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def policy(self) -> SessionPolicy:
        return self._policy

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    def watch(self, watcher: SessionWatcher) -> Callable[[], None]:
        """Register a consumer for published states; returns the unwatch callable."""
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def mount(self) -> None:
        if self._subscription is not None:
            raise RuntimeError("session observer is already mounted")
        self._state = initial_state()
        self._subscription = self._client.on_auth_state_changed(self._on_auth_state)
        self._settle_task = asyncio.get_running_loop().create_task(self._settle_after_timeout())

    def unmount(self) -> None:
        subscription = self._subscription
        if subscription is None:
            return
        self._subscription = None
        subscription.unsubscribe()
        self._cancel_settle()

    async def __aenter__(self) -> SessionObserver:
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unmount()

    async def _on_auth_state(self, subject: Subject | None) -> None:
        self._cancel_settle()
        if subject is not None and self._policy is SessionPolicy.VERIFY_WITH_BACKEND:
            subject = await self._confirm_with_backend(subject)

        # Released while the liveness round-trip was pending.
        if self._subscription is None:
            return
        self._publish(state_for_notification(subject))

    async def _confirm_with_backend(self, subject: Subject) -> Subject | None:
        try:
            token = await self._client.get_id_token(subject)
            await self._probe.confirm(subject, token)
        except Exception as exc:
            logger.warning(
                "session.liveness_failed subject_id=%s reason=%s",
                safe_log_identifier(subject.uid, prefix="sid"),
                type(exc).__name__,
            )
            return None
        return subject

    async def _settle_after_timeout(self) -> None:
        await asyncio.sleep(self._settle_timeout)
        if self._subscription is None:
            return
        settled = settled_state(self._state)
        if settled == self._state:
            return
        logger.info("session.settled_without_notification timeout=%s", self._settle_timeout)
        self._publish(settled)

    def _cancel_settle(self) -> None:
        task = self._settle_task
        self._settle_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _publish(self, state: SessionState) -> None:
        self._state = state
        subject_id = state.subject.uid if state.subject else None
        logger.info(
            "session.transition phase=%s subject_id=%s",
            state.phase.value,
            safe_log_identifier(subject_id, prefix="sid"),
        )
        for watcher in list(self._watchers):
            try:
                watcher(state)
            except Exception:
                logger.exception("session.watcher_failed")


__all__ = ["SessionObserver", "SessionPolicy", "SessionWatcher"]
