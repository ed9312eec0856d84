"""Standard discovery documents served outside the versioned API."""

from typing import Annotated

from fastapi import APIRouter, Depends

from authority.adapters.api.v1.auth.schemas import JwksResponse
from authority.core.dependencies.auth import get_container
from authority.infrastructure.dependency_injection.container import Container

router = APIRouter(prefix="/.well-known", tags=["keys"])


@router.get("/jwks.json", response_model=JwksResponse, summary="JSON Web Key Set")
async def jwks(container: Annotated[Container, Depends(get_container)]) -> JwksResponse:
    return JwksResponse(**container.token_issuer.jwks())
