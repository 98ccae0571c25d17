"""Credential operation schemas."""

from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.session import Subject


class AuthFailure(BaseModel):
    """Transient failure value produced by the credential gateway."""

    model_config = ConfigDict(frozen=True)

    code: str | None = None
    message: str | None = None


class AuthResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: Subject | None = None
    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.subject is not None


class SignOutResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    failure: AuthFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class FederatedProviderDescriptor(BaseModel):
    """Pre-configured third-party provider used by the interactive sign-in flow."""

    model_config = ConfigDict(frozen=True)

    provider_id: str = Field(default="google.com", min_length=1)
    scopes: tuple[str, ...] = ("openid", "email", "profile")
    request_uri: str = "http://localhost"


class FederatedCredential(BaseModel):
    """Credential returned by the third-party flow once the user consents."""

    model_config = ConfigDict(frozen=True)

    provider_id: str = Field(min_length=1)
    id_token: str | None = None
    access_token: str | None = None
    email: str | None = None
    display_name: str | None = None

    def post_body(self) -> str:
        """Encode the credential as the Identity Toolkit ``postBody`` form string."""
        params = {"providerId": self.provider_id}
        if self.id_token:
            params["id_token"] = self.id_token
        if self.access_token:
            params["access_token"] = self.access_token
        return urlencode(params)
