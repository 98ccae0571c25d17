"""Session observer state machine tests."""

from __future__ import annotations

import asyncio
import unittest

from app.adapters.identity import IdentityProbe, IdentityProbeError, InMemoryIdentityClient
from app.schemas.auth import VerifiedIdentity
from app.schemas.session import SessionPhase, SessionState, Subject
from app.services.session_observer import SessionObserver, SessionPolicy


class _RecordingProbe(IdentityProbe):
    def __init__(self, rejected_uids: set[str] | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self._rejected_uids = rejected_uids or set()

    async def confirm(self, subject: Subject, token: str) -> VerifiedIdentity:
        self.calls.append((subject.uid, token))
        if subject.uid in self._rejected_uids:
            raise IdentityProbeError("backend rejected identity")
        return VerifiedIdentity(user_id=subject.uid, token=token)


class _BlockingProbe(IdentityProbe):
    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def confirm(self, subject: Subject, token: str) -> VerifiedIdentity:
        self.entered.set()
        await self.release.wait()
        return VerifiedIdentity(user_id=subject.uid, token=token)


class _ObserverCase(unittest.IsolatedAsyncioTestCase):
    policy = SessionPolicy.TRUST_PROVIDER
    settle_timeout = 5.0
    emit_initial_state = False

    async def asyncSetUp(self) -> None:
        self.client = InMemoryIdentityClient(emit_initial_state=self.emit_initial_state)
        self.alice = self.client.add_account("alice@example.com", "secret1", uid="uid-alice")
        self.bob = self.client.add_account("bob@example.com", "secret2", uid="uid-bob")
        self.probe = _RecordingProbe()
        self.observer = SessionObserver(
            self.client,
            policy=self.policy,
            probe=self.probe,
            settle_timeout=self.settle_timeout,
        )
        self.published: list[SessionState] = []
        self.observer.watch(self.published.append)

    async def asyncTearDown(self) -> None:
        self.observer.unmount()
        await self.client.aclose()


class TrustProviderObserverTests(_ObserverCase):
    async def test_mount_starts_initializing_without_publishing(self) -> None:
        self.observer.mount()

        self.assertEqual(self.observer.state, SessionState(subject=None, loading=True))
        self.assertIs(self.observer.state.phase, SessionPhase.INITIALIZING)
        self.assertEqual(self.published, [])

    async def test_sign_in_sign_out_sign_in_publishes_every_transition_in_order(self) -> None:
        self.observer.mount()

        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.sign_out()
        await self.client.sign_in_with_password("bob@example.com", "secret2")
        await self.client.drain_notifications()

        self.assertEqual(
            self.published,
            [
                SessionState(subject=self.alice, loading=False),
                SessionState(subject=None, loading=False),
                SessionState(subject=self.bob, loading=False),
            ],
        )
        self.assertEqual(self.observer.state.subject, self.bob)

    async def test_repeated_sign_out_publishes_identical_state_twice(self) -> None:
        self.observer.mount()

        await self.client.sign_out()
        await self.client.sign_out()
        await self.client.drain_notifications()

        signed_out = SessionState(subject=None, loading=False)
        self.assertEqual(self.published, [signed_out, signed_out])

    async def test_trusting_policy_never_contacts_backend(self) -> None:
        self.observer.mount()

        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.drain_notifications()

        self.assertEqual(self.probe.calls, [])
        self.assertIs(self.observer.state.phase, SessionPhase.AUTHENTICATED)

    async def test_no_delivery_after_unmount(self) -> None:
        self.observer.mount()
        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.drain_notifications()

        self.observer.unmount()
        await self.client.sign_out()
        await self.client.drain_notifications()

        self.assertEqual(len(self.published), 1)
        self.assertEqual(self.observer.state.subject, self.alice)
        self.assertFalse(self.observer.mounted)

    async def test_unmount_is_idempotent_and_double_mount_is_rejected(self) -> None:
        self.observer.mount()
        with self.assertRaises(RuntimeError):
            self.observer.mount()

        self.observer.unmount()
        self.observer.unmount()
        self.assertFalse(self.observer.mounted)

    async def test_failing_watcher_does_not_block_other_watchers(self) -> None:
        def broken(_: SessionState) -> None:
            raise RuntimeError("render failed")

        later: list[SessionState] = []
        self.observer.watch(broken)
        self.observer.watch(later.append)
        self.observer.mount()

        with self.assertLogs("app.services.session_observer", level="ERROR"):
            await self.client.sign_out()
            await self.client.drain_notifications()

        self.assertEqual(len(self.published), 1)
        self.assertEqual(len(later), 1)

    async def test_unwatch_stops_delivery_to_that_watcher(self) -> None:
        extra: list[SessionState] = []
        unwatch = self.observer.watch(extra.append)
        self.observer.mount()

        unwatch()
        await self.client.sign_out()
        await self.client.drain_notifications()

        self.assertEqual(extra, [])
        self.assertEqual(len(self.published), 1)


class SettleTimeoutObserverTests(_ObserverCase):
    settle_timeout = 0.05

    async def test_silent_provider_settles_to_signed_out_after_timeout(self) -> None:
        self.observer.mount()
        self.assertTrue(self.observer.state.loading)

        await asyncio.sleep(0.2)

        self.assertEqual(self.published, [SessionState(subject=None, loading=False)])
        self.assertIs(self.observer.state.phase, SessionPhase.UNAUTHENTICATED)

    async def test_first_notification_cancels_settle(self) -> None:
        self.observer.mount()
        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.drain_notifications()

        await asyncio.sleep(0.2)

        self.assertEqual(self.published, [SessionState(subject=self.alice, loading=False)])

    async def test_late_settle_leaves_resolved_session_alone(self) -> None:
        self.observer.mount()
        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.drain_notifications()

        await self.observer._settle_after_timeout()

        self.assertEqual(self.published, [SessionState(subject=self.alice, loading=False)])
        self.assertIs(self.observer.state.phase, SessionPhase.AUTHENTICATED)

    async def test_unmount_before_timeout_publishes_nothing(self) -> None:
        self.observer.mount()
        self.observer.unmount()

        await asyncio.sleep(0.2)

        self.assertEqual(self.published, [])


class InitialStateReplayObserverTests(_ObserverCase):
    emit_initial_state = True

    async def test_provider_replays_current_state_on_subscribe(self) -> None:
        self.observer.mount()
        await self.client.drain_notifications()

        self.assertEqual(self.published, [SessionState(subject=None, loading=False)])


class VerifyWithBackendObserverTests(_ObserverCase):
    policy = SessionPolicy.VERIFY_WITH_BACKEND

    async def test_default_policy_is_verify_with_backend(self) -> None:
        observer = SessionObserver(self.client, probe=self.probe)

        self.assertIs(observer.policy, SessionPolicy.VERIFY_WITH_BACKEND)

    async def test_verify_policy_requires_probe(self) -> None:
        with self.assertRaises(ValueError):
            SessionObserver(self.client, policy=SessionPolicy.VERIFY_WITH_BACKEND)

    async def test_verified_sign_in_commits_authenticated(self) -> None:
        self.observer.mount()

        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.drain_notifications()

        self.assertEqual(self.probe.calls, [("uid-alice", "test:uid-alice")])
        self.assertEqual(self.published, [SessionState(subject=self.alice, loading=False)])

    async def test_queued_transitions_are_verified_and_published_in_order(self) -> None:
        self.observer.mount()

        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await self.client.sign_out()
        await self.client.sign_in_with_password("bob@example.com", "secret2")
        await self.client.drain_notifications()

        self.assertEqual(
            self.published,
            [
                SessionState(subject=self.alice, loading=False),
                SessionState(subject=None, loading=False),
                SessionState(subject=self.bob, loading=False),
            ],
        )
        self.assertEqual(
            self.probe.calls,
            [("uid-alice", "test:uid-alice"), ("uid-bob", "test:uid-bob")],
        )

    async def test_backend_rejection_turns_sign_in_into_signed_out(self) -> None:
        self.probe = _RecordingProbe(rejected_uids={"uid-alice"})
        observer = SessionObserver(self.client, policy=self.policy, probe=self.probe)
        published: list[SessionState] = []
        observer.watch(published.append)
        observer.mount()

        with self.assertLogs("app.services.session_observer", level="WARNING") as logs:
            await self.client.sign_in_with_password("alice@example.com", "secret1")
            await self.client.drain_notifications()
        observer.unmount()

        self.assertEqual(published, [SessionState(subject=None, loading=False)])
        self.assertIn("session.liveness_failed", logs.output[0])
        self.assertNotIn("uid-alice", logs.output[0])

    async def test_sign_out_skips_backend_round_trip(self) -> None:
        self.observer.mount()

        await self.client.sign_out()
        await self.client.drain_notifications()

        self.assertEqual(self.probe.calls, [])
        self.assertEqual(self.published, [SessionState(subject=None, loading=False)])

    async def test_unmount_during_liveness_check_drops_result(self) -> None:
        probe = _BlockingProbe()
        observer = SessionObserver(self.client, policy=self.policy, probe=probe)
        published: list[SessionState] = []
        observer.watch(published.append)
        observer.mount()

        await self.client.sign_in_with_password("alice@example.com", "secret1")
        await probe.entered.wait()
        observer.unmount()
        probe.release.set()
        await self.client.drain_notifications()

        self.assertEqual(published, [])
        self.assertTrue(observer.state.loading)


if __name__ == "__main__":
    unittest.main()
