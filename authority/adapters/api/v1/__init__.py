"""API v1 router configuration.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .email_verification import router as email_verification_router
from .health import router as health_router
from .users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(
    email_verification_router, prefix="/email-verification", tags=["email-verification"]
)
api_router.include_router(users_router, prefix="/users", tags=["users"])
