"""In-memory identity client for local development and tests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from uuid import uuid4

from app.adapters.auth.mock_auth import MOCK_TOKEN_PREFIX
from app.adapters.identity.base import FederatedPrompt, IdentityClient, ProviderAuthError
from app.schemas.credentials import FederatedProviderDescriptor
from app.schemas.session import Subject

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(slots=True)
class _Account:
    subject: Subject
    password: str | None


class InMemoryIdentityClient(IdentityClient):
    """Applies the provider's account policy locally and issues ``test:<uid>`` tokens."""

    def __init__(self, *, emit_initial_state: bool = True, min_password_length: int = 6) -> None:
        super().__init__(emit_initial_state=emit_initial_state)
        self._min_password_length = min_password_length
        self._accounts: dict[str, _Account] = {}
        self._issued_uids: set[str] = set()

    def add_account(self, email: str, password: str | None, *, uid: str | None = None, provider_id: str = "password") -> Subject:
        subject = Subject(uid=uid or uuid4().hex, email=email, provider_id=provider_id)
        self._accounts[email.strip().lower()] = _Account(subject=subject, password=password)
        return subject

    async def sign_in_with_password(self, email: str, password: str) -> Subject:
        self._check_email(email)
        account = self._accounts.get(email.strip().lower())
        if account is None:
            raise ProviderAuthError("auth/user-not-found")
        if account.password is None or account.password != password:
            raise ProviderAuthError("auth/wrong-password")
        self._start_session(account.subject)
        return account.subject

    async def create_user_with_password(self, email: str, password: str) -> Subject:
        self._check_email(email)
        if email.strip().lower() in self._accounts:
            raise ProviderAuthError("auth/email-already-in-use")
        if len(password) < self._min_password_length:
            raise ProviderAuthError(
                "auth/weak-password",
                "Firebase: Password should be at least 6 characters (auth/weak-password).",
            )
        subject = self.add_account(email, password)
        self._start_session(subject)
        return subject

    async def sign_in_with_federated(
        self,
        descriptor: FederatedProviderDescriptor,
        prompt: FederatedPrompt,
    ) -> Subject:
        credential = await prompt(descriptor)
        if credential.provider_id != descriptor.provider_id or not credential.email:
            raise ProviderAuthError("auth/invalid-credential")

        account = self._accounts.get(credential.email.strip().lower())
        if account is None:
            subject = self.add_account(credential.email, None, provider_id=descriptor.provider_id)
        else:
            subject = account.subject
        self._start_session(subject)
        return subject

    async def sign_out(self) -> None:
        self._set_current(None)

    async def get_id_token(self, subject: Subject, *, force_refresh: bool = False) -> str:
        # Tokens outlive a later sign-out for any subject that was signed in.
        if subject.uid not in self._issued_uids:
            raise ProviderAuthError("auth/no-current-user")
        return f"{MOCK_TOKEN_PREFIX}{subject.uid}"

    def _start_session(self, subject: Subject) -> None:
        self._issued_uids.add(subject.uid)
        self._set_current(subject)

    def _check_email(self, email: str) -> None:
        if not _EMAIL_PATTERN.match(email.strip()):
            raise ProviderAuthError("auth/invalid-email")


__all__ = ["InMemoryIdentityClient"]
