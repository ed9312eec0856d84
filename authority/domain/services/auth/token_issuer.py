"""RS256 access token issuer.

Access tokens are short-lived JWTs signed with a private key that never leaves
this process. Any holder of the public key (published as PEM and as a JWKS)
can verify them without calling back into the service.
"""

import hashlib
import json
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm
from structlog import get_logger

from authority.core.exceptions import (
    SigningKeyUnavailableError,
    TokenExpiredError,
    TokenInvalidError,
)
from authority.domain.entities.account import Account
from authority.utils.security import utc_now

logger = get_logger(__name__)


class TokenIssuer:
    """Mints and statelessly verifies RS256 access tokens.

    Claims: ``sub`` (account id), ``email``, ``role``, ``iss``, ``aud``,
    ``iat``, ``exp`` and ``jti``. The header carries a ``kid`` derived from the
    public key so verifiers can select the right JWK.

    Raises:
        SigningKeyUnavailableError: At construction, if the private key is
            missing, malformed, not RSA, or does not match the public key.
    """

    algorithm = "RS256"

    def __init__(
        self,
        private_key_pem: str,
        issuer: str,
        audience: str,
        access_token_ttl: timedelta = timedelta(minutes=15),
        public_key_pem: str = "",
    ):
        self.issuer = issuer
        self.audience = audience
        self.access_token_ttl = access_token_ttl
        self._private_key = self._load_private_key(private_key_pem)
        self._public_key = self._private_key.public_key()
        if public_key_pem:
            self._check_public_key(public_key_pem)

        self.public_key_pem = self._public_key.public_bytes(
            serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode("ascii")
        der = self._public_key.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        self.key_id = hashlib.sha256(der).hexdigest()[:16]
        logger.info("Token issuer ready", algorithm=self.algorithm, kid=self.key_id)

    @classmethod
    def from_settings(cls, settings) -> "TokenIssuer":
        return cls(
            private_key_pem=settings.JWT_PRIVATE_KEY.get_secret_value(),
            public_key_pem=settings.JWT_PUBLIC_KEY,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    @staticmethod
    def _load_private_key(private_key_pem: str) -> rsa.RSAPrivateKey:
        if not private_key_pem or not private_key_pem.strip():
            raise SigningKeyUnavailableError("JWT private key is not configured")
        try:
            key = serialization.load_pem_private_key(private_key_pem.encode("utf-8"), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningKeyUnavailableError("JWT private key could not be loaded") from e
        if not isinstance(key, rsa.RSAPrivateKey):
            raise SigningKeyUnavailableError("JWT private key must be an RSA key")
        return key

    def _check_public_key(self, public_key_pem: str) -> None:
        try:
            configured = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningKeyUnavailableError("JWT public key could not be loaded") from e
        if (
            not isinstance(configured, rsa.RSAPublicKey)
            or configured.public_numbers() != self._public_key.public_numbers()
        ):
            raise SigningKeyUnavailableError("JWT public key does not match the private key")

    @property
    def access_token_ttl_seconds(self) -> int:
        return int(self.access_token_ttl.total_seconds())

    def issue_access_token(self, account: Account, now: Optional[datetime] = None) -> str:
        now = now or utc_now()
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "role": account.role.value,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + self.access_token_ttl,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(
            payload, self._private_key, algorithm=self.algorithm, headers={"kid": self.key_id}
        )
        logger.debug("Access token created", account_id=account.id, jti=payload["jti"][:8])
        return token

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """Verify signature, issuer, audience and expiry.

        Raises:
            TokenExpiredError: The token is past ``exp``.
            TokenInvalidError: Anything else wrong with the token.
        """
        try:
            return jwt.decode(
                token,
                self._public_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Access token has expired", code="access_token_expired") from e
        except jwt.PyJWTError as e:
            logger.info("Access token rejected", reason=type(e).__name__)
            raise TokenInvalidError("Access token is invalid", code="access_token_invalid") from e

    def get_public_key(self) -> str:
        return self.public_key_pem

    def jwks(self) -> Dict[str, Any]:
        jwk = json.loads(RSAAlgorithm.to_jwk(self._public_key))
        jwk.update({"kid": self.key_id, "alg": self.algorithm, "use": "sig"})
        return {"keys": [jwk]}
