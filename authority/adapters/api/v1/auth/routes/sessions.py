from __future__ import annotations

from fastapi import APIRouter

from authority.adapters.api.v1.auth.schemas import SessionListResponse, SessionOut
from authority.core.dependencies.auth import AuthorityDep, CurrentAccount

router = APIRouter()


@router.get(
    "",
    response_model=SessionListResponse,
    summary="List the current account's active refresh sessions",
)
async def list_sessions(current_account: CurrentAccount, authority: AuthorityDep) -> SessionListResponse:
    sessions = await authority.active_sessions(current_account.id)
    return SessionListResponse(sessions=[SessionOut.from_entity(s) for s in sessions])
