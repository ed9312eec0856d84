from __future__ import annotations

"""Registration endpoint."""

from fastapi import APIRouter, status
from structlog import get_logger

from authority.adapters.api.v1.auth.schemas import AuthResponse, RegisterRequest
from authority.core.dependencies.auth import AuthorityDep
from authority.utils.security import mask_email

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a local account",
    description=(
        "Creates an account with an unverified email, issues the first "
        "verification ticket and returns an access token plus refresh token."
    ),
    responses={
        409: {"description": "Email is already registered"},
        422: {"description": "Password does not satisfy the policy"},
    },
)
async def register_account(payload: RegisterRequest, authority: AuthorityDep) -> AuthResponse:
    logger.info("Registration attempt", email=mask_email(payload.email))
    result = await authority.register(
        email=payload.email,
        password=payload.password,
        device_info=payload.device_info,
        phone=payload.phone,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return AuthResponse.from_result(result)
