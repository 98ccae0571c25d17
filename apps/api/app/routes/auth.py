"""Auth routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.routes.dependencies import get_verified_identity
from app.schemas.auth import AuthUserResponse, VerifiedIdentity
from app.schemas.error import ErrorResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get(
    "/user",
    response_model=AuthUserResponse,
    responses={401: {"model": ErrorResponse}},
)
async def get_auth_user(
    identity: Annotated[VerifiedIdentity, Depends(get_verified_identity)],
) -> AuthUserResponse:
    return AuthUserResponse(user_id=identity.user_id, token=identity.token)
