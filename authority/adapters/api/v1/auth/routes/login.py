from __future__ import annotations

"""Login endpoint.

Authentication failures are uniform: an unknown email, a social-only account
and a wrong password all produce the same 401 body.
"""

from fastapi import APIRouter, Request, status
from structlog import get_logger

from authority.adapters.api.v1.auth.schemas import AuthResponse, LoginRequest
from authority.core.dependencies.auth import AuthorityDep
from authority.utils.security import mask_email

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Authenticate with email and password",
    responses={401: {"description": "Invalid email or password"}},
)
async def login_account(
    request: Request, payload: LoginRequest, authority: AuthorityDep
) -> AuthResponse:
    client_ip = request.client.host if request.client else "unknown"
    device_info = payload.device_info or request.headers.get("user-agent")
    request_logger = logger.bind(client_ip=client_ip, endpoint="login")
    request_logger.info("Login attempt", email=mask_email(payload.email))

    result = await authority.login(payload.email, payload.password, device_info=device_info)

    request_logger.info("Login succeeded", account_id=result.account.id)
    return AuthResponse.from_result(result)
