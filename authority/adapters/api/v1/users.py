from __future__ import annotations

"""Account endpoints.

``/users/me`` is available to any authenticated account; everything else
requires the ADMIN role.
"""

from fastapi import APIRouter, Query, status
from structlog import get_logger

from authority.adapters.api.v1.auth.schemas import (
    AccountListResponse,
    AccountOut,
    AdminResetPasswordRequest,
    MessageResponse,
    UpdateRoleRequest,
)
from authority.core.dependencies.auth import AdminAccount, AuthorityDep, CurrentAccount

logger = get_logger(__name__)
router = APIRouter()


@router.get("/me", response_model=AccountOut, summary="The authenticated account")
async def read_me(current_account: CurrentAccount) -> AccountOut:
    return AccountOut.from_entity(current_account)


@router.get("", response_model=AccountListResponse, summary="List accounts")
async def list_accounts(
    admin: AdminAccount,
    authority: AuthorityDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
) -> AccountListResponse:
    accounts = await authority.list_accounts(offset=offset, limit=limit)
    return AccountListResponse(
        accounts=[AccountOut.from_entity(a) for a in accounts], offset=offset, limit=limit
    )


@router.get("/{account_id}", response_model=AccountOut, summary="Read one account")
async def read_account(account_id: int, admin: AdminAccount, authority: AuthorityDep) -> AccountOut:
    return AccountOut.from_entity(await authority.get_account(account_id))


@router.put(
    "/{account_id}/role",
    response_model=AccountOut,
    summary="Change an account's role",
    description="Revokes every refresh session of the account when the role changes.",
)
async def update_role(
    account_id: int, payload: UpdateRoleRequest, admin: AdminAccount, authority: AuthorityDep
) -> AccountOut:
    logger.info("Role change requested", admin_id=admin.id, account_id=account_id, role=payload.role.value)
    account = await authority.update_role(account_id, payload.role)
    return AccountOut.from_entity(account)


@router.put(
    "/{account_id}/password",
    response_model=MessageResponse,
    summary="Set an account's password",
    description="Administrative reset. Revokes every refresh session of the account.",
)
async def reset_account_password(
    account_id: int,
    payload: AdminResetPasswordRequest,
    admin: AdminAccount,
    authority: AuthorityDep,
) -> MessageResponse:
    logger.info("Administrative password reset", admin_id=admin.id, account_id=account_id)
    await authority.reset_password(account_id, payload.new_password)
    return MessageResponse(message="Password has been reset")


@router.delete(
    "/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an account",
)
async def delete_account(account_id: int, admin: AdminAccount, authority: AuthorityDep) -> None:
    logger.info("Account deletion requested", admin_id=admin.id, account_id=account_id)
    await authority.delete_account(account_id)
