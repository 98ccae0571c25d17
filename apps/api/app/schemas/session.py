"""Session state schemas shared by the client-side auth components."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Subject(BaseModel):
    """Immutable snapshot of a provider-owned identity record."""

    model_config = ConfigDict(frozen=True)

    uid: str = Field(min_length=1)
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    email_verified: bool = False
    provider_id: str = "password"


class SessionPhase(str, Enum):
    INITIALIZING = "INITIALIZING"
    AUTHENTICATED = "AUTHENTICATED"
    UNAUTHENTICATED = "UNAUTHENTICATED"


class SessionState(BaseModel):
    """The ``{subject, loading}`` view published to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    subject: Subject | None = None
    loading: bool = True

    @model_validator(mode="after")
    def _reject_torn_state(self) -> "SessionState":
        if self.loading and self.subject is not None:
            raise ValueError("a loading session cannot carry a subject")
        return self

    @property
    def phase(self) -> SessionPhase:
        if self.loading:
            return SessionPhase.INITIALIZING
        if self.subject is None:
            return SessionPhase.UNAUTHENTICATED
        return SessionPhase.AUTHENTICATED
