"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, Field


class AuthPrincipal(BaseModel):
    """Normalized principal produced by a token verifier."""

    user_id: str = Field(min_length=1)


class VerifiedIdentity(BaseModel):
    """Outcome of a successful bearer-token verification."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    token: str = Field(min_length=1)


class AuthUserResponse(BaseModel):
    """Response body of ``GET /api/auth/user``."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    token: str
