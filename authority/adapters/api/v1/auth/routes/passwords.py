from __future__ import annotations

"""Password change and self-service reset endpoints.

Every successful password update revokes all refresh sessions of the account.
"""

from fastapi import APIRouter, status

from authority.adapters.api.v1.auth.schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
)
from authority.core.dependencies.auth import AuthorityDep, CurrentAccount

router = APIRouter()


@router.put(
    "/change-password",
    response_model=MessageResponse,
    summary="Change the current account's password",
    responses={
        400: {"description": "Current password is incorrect"},
        422: {"description": "New password does not satisfy the policy"},
    },
)
async def change_password(
    payload: ChangePasswordRequest, current_account: CurrentAccount, authority: AuthorityDep
) -> MessageResponse:
    await authority.change_password(
        current_account.id, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password changed")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request a password reset email",
    description="Always accepted, so the endpoint cannot be used to probe for accounts.",
)
async def forgot_password(
    payload: ForgotPasswordRequest, authority: AuthorityDep
) -> MessageResponse:
    await authority.request_password_reset(payload.email)
    return MessageResponse(message="If the account exists, a reset email has been sent")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password with a reset token",
    responses={401: {"description": "Reset token invalid or expired"}},
)
async def reset_password(payload: ResetPasswordRequest, authority: AuthorityDep) -> MessageResponse:
    await authority.complete_password_reset(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset")
