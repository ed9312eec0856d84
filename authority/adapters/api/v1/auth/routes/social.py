from __future__ import annotations

"""Social login endpoint."""

from fastapi import APIRouter

from authority.adapters.api.v1.auth.schemas import AuthResponse, SocialLoginRequest
from authority.core.dependencies.auth import AuthorityDep

router = APIRouter()


@router.post(
    "",
    response_model=AuthResponse,
    summary="Sign in with a social provider token",
    description=(
        "Fetches the profile from the provider, then links it to the account "
        "with the same email or creates a new account."
    ),
    responses={
        400: {"description": "Unsupported provider or empty token"},
        502: {"description": "Provider call failed or returned no email"},
    },
)
async def social_login(
    payload: SocialLoginRequest, authority: AuthorityDep
) -> AuthResponse:
    result = await authority.social_login(
        payload.provider,
        payload.access_token,
        device_info=payload.device_info,
    )
    return AuthResponse.from_result(result)
