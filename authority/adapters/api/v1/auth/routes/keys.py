from __future__ import annotations

"""Public key distribution for independent access token verifiers."""

from typing import Annotated

from fastapi import APIRouter, Depends

from authority.adapters.api.v1.auth.schemas import PublicKeyResponse
from authority.core.dependencies.auth import get_container
from authority.infrastructure.dependency_injection.container import Container

router = APIRouter()


@router.get(
    "",
    response_model=PublicKeyResponse,
    summary="PEM public key used to verify access tokens",
)
async def get_public_key(container: Annotated[Container, Depends(get_container)]) -> PublicKeyResponse:
    issuer = container.token_issuer
    return PublicKeyResponse(
        public_key=issuer.get_public_key(),
        algorithm=issuer.algorithm,
        key_id=issuer.key_id,
    )
