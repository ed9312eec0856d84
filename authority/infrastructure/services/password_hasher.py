"""Bcrypt credential hasher.

Wraps a passlib `CryptContext`. Bcrypt is CPU-bound, so every call runs in a
worker thread and request handling on the event loop is never blocked.
"""

import asyncio

from passlib.context import CryptContext
from structlog import get_logger

from authority.domain.interfaces.services import ICredentialHasher

logger = get_logger(__name__)


class BcryptCredentialHasher(ICredentialHasher):
    """`ICredentialHasher` backed by passlib's bcrypt scheme.

    Args:
        rounds: Bcrypt work factor (log2 of the iteration count).
    """

    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        # Verified when there is no real hash, so "no such account" costs the
        # same as "wrong password".
        self._dummy_hash = self.pwd_context.hash("dummy-password-for-timing")

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.pwd_context.hash, plaintext)

    async def verify(self, plaintext: str, hashed: str) -> bool:
        try:
            return await asyncio.to_thread(self.pwd_context.verify, plaintext, hashed)
        except (ValueError, TypeError) as e:
            logger.warning("Password hash could not be parsed", error=str(e))
            return False

    async def verify_dummy(self, plaintext: str) -> None:
        await asyncio.to_thread(self.pwd_context.verify, plaintext, self._dummy_hash)
