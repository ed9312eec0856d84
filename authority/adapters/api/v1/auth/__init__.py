from __future__ import annotations

"""Authentication router package: credentials, tokens, social login and passwords."""

from fastapi import APIRouter

from .routes import keys as keys_route
from .routes import login as login_route
from .routes import passwords as passwords_route
from .routes import register as register_route
from .routes import sessions as sessions_route
from .routes import social as social_route
from .routes import tokens as tokens_route

router = APIRouter(prefix="/auth", tags=["auth"])

# Delegate to sub-routers ----------------------------------------------------

router.include_router(register_route.router, prefix="/register")
router.include_router(login_route.router, prefix="/login")
router.include_router(tokens_route.router)
router.include_router(social_route.router, prefix="/social")
router.include_router(passwords_route.router)
router.include_router(keys_route.router, prefix="/public-key")
router.include_router(sessions_route.router, prefix="/sessions")

__all__ = ["router"]
