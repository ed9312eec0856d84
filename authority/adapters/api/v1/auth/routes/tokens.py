from __future__ import annotations

"""Refresh and logout endpoints."""

from fastapi import APIRouter, status

from authority.adapters.api.v1.auth.schemas import (
    AccessTokenResponse,
    LogoutAllResponse,
    MessageResponse,
    RefreshTokenRequest,
)
from authority.core.dependencies.auth import AuthorityDep, CurrentAccount

router = APIRouter()


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    summary="Exchange a refresh token for a new access token",
    description=(
        "The refresh token is not rotated: it stays valid until it expires "
        "or is revoked."
    ),
    responses={401: {"description": "Refresh token unknown, expired or revoked"}},
)
async def refresh_access_token(
    payload: RefreshTokenRequest, authority: AuthorityDep
) -> AccessTokenResponse:
    result = await authority.refresh_access_token(payload.refresh_token)
    return AccessTokenResponse.from_result(result)


@router.post(
    "/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Revoke one refresh token",
    description="Idempotent: unknown or already revoked tokens are accepted.",
)
async def logout(payload: RefreshTokenRequest, authority: AuthorityDep) -> MessageResponse:
    await authority.logout(payload.refresh_token)
    return MessageResponse(message="Logged out")


@router.post(
    "/logout-all",
    response_model=LogoutAllResponse,
    summary="Revoke every refresh session of the current account",
)
async def logout_all(current_account: CurrentAccount, authority: AuthorityDep) -> LogoutAllResponse:
    revoked = await authority.logout_all(current_account.id)
    return LogoutAllResponse(revoked_sessions=revoked)
