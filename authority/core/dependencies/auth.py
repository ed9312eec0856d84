from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authority.core.exceptions import AuthenticationError, PermissionDeniedError
from authority.domain.entities.account import Account
from authority.domain.services.identity_authority import IdentityAuthority
from authority.infrastructure.dependency_injection.container import Container

__all__ = [
    "get_container",
    "get_identity_authority",
    "get_current_account",
    "get_current_admin",
    "AuthorityDep",
    "CurrentAccount",
    "AdminAccount",
]

_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Container access
# ---------------------------------------------------------------------------


def get_container(request: Request) -> Container:
    """Return the container the lifespan attached to the application state."""
    return request.app.state.container


def get_identity_authority(
    container: Annotated[Container, Depends(get_container)],
) -> IdentityAuthority:
    return container.authority


AuthorityDep = Annotated[IdentityAuthority, Depends(get_identity_authority)]
BearerCredentials = Annotated[Optional[HTTPAuthorizationCredentials], Depends(_bearer)]


# ---------------------------------------------------------------------------
# Public dependencies
# ---------------------------------------------------------------------------


async def get_current_account(authority: AuthorityDep, credentials: BearerCredentials) -> Account:
    """Return the account named by the bearer access token.

    Performs no role checks. Use `get_current_admin` for admin-only routes.

    Raises:
        AuthenticationError: No bearer token was sent.
        TokenError: The token is expired, malformed, or its account is gone.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token", code="missing_bearer_token")
    return await authority.authenticate_access_token(credentials.credentials)


CurrentAccount = Annotated[Account, Depends(get_current_account)]


def get_current_admin(current_account: CurrentAccount) -> Account:
    """Ensure the authenticated account has the ADMIN role."""
    if not current_account.is_admin:
        raise PermissionDeniedError("Admin privileges required", code="admin_required")
    return current_account


AdminAccount = Annotated[Account, Depends(get_current_admin)]
