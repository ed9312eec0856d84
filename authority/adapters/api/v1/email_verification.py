from __future__ import annotations

"""Email verification endpoints.

Verifying an already verified account is a success with
``already_verified=true``, not an error.
"""

from fastapi import APIRouter, status

from authority.adapters.api.v1.auth.schemas import (
    MessageResponse,
    ResendVerificationRequest,
    VerificationResponse,
    VerificationStatusResponse,
    VerifyEmailRequest,
)
from authority.core.dependencies.auth import AuthorityDep, CurrentAccount

router = APIRouter()


@router.post(
    "/verify",
    response_model=VerificationResponse,
    summary="Consume a verification token",
    responses={401: {"description": "Token unknown, superseded or expired"}},
)
async def verify_email(payload: VerifyEmailRequest, authority: AuthorityDep) -> VerificationResponse:
    result = await authority.verify_email(payload.token)
    return VerificationResponse.from_result(result)


@router.post(
    "/resend",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a fresh verification email",
    description=(
        "Replaces any pending ticket. Unknown and already verified addresses "
        "are accepted without sending anything."
    ),
)
async def resend_verification(
    payload: ResendVerificationRequest, authority: AuthorityDep
) -> MessageResponse:
    await authority.resend_verification(payload.email)
    return MessageResponse(message="If the account needs verification, an email has been sent")


@router.get(
    "/status",
    response_model=VerificationStatusResponse,
    summary="Verification state of the current account",
)
async def verification_status(
    current_account: CurrentAccount, authority: AuthorityDep
) -> VerificationStatusResponse:
    result = await authority.verification_status(current_account.id)
    return VerificationStatusResponse.from_status(result)
