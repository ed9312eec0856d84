"""Authentication, token and social login settings.
"""

import logging
from pathlib import Path

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Defines settings for authentication, including social providers and JWT configuration.
    It handles loading JWT keys from PEM files or environment variables.

    Security Note:
        - The JWT private key never leaves this process; only the public key is
          published for independent verifiers.
        - Social client secrets should never be exposed in logs or version control.
        - Ensure PEM files are readable only by the application user (chmod 600).
    """

    # Social providers
    GOOGLE_CLIENT_ID: str = ""
    FACEBOOK_CLIENT_ID: str = ""
    MICROSOFT_CLIENT_ID: str = ""
    SOCIAL_PROVIDERS_ENABLED: list[str] = Field(default_factory=lambda: ["GOOGLE", "FACEBOOK"])
    SOCIAL_PROVIDER_TIMEOUT_SECONDS: float = Field(gt=0, default=5.0)
    SOCIAL_PROVIDER_MAX_ATTEMPTS: int = Field(ge=1, le=5, default=2)

    # JWT settings
    JWT_PRIVATE_KEY: SecretStr = SecretStr("")
    JWT_PUBLIC_KEY: str = ""
    JWT_PRIVATE_KEY_PATH: str = "private.pem"
    JWT_PUBLIC_KEY_PATH: str = "public.pem"
    JWT_ALGORITHM: str = "RS256"
    JWT_ISSUER: str = "https://auth.example.com"
    JWT_AUDIENCE: str = "identity-authority:api"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(ge=1, default=15)

    # Refresh sessions
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(ge=1, default=7)
    REFRESH_SESSION_RETENTION_DAYS: int = Field(ge=0, default=30)

    # Password hashing and policy
    BCRYPT_WORK_FACTOR: int = Field(ge=4, le=31, default=12)
    PASSWORD_MIN_LENGTH: int = Field(ge=1, default=8)
    PASSWORD_MAX_LENGTH: int = Field(ge=8, default=128)
    PASSWORD_REQUIRE_UPPERCASE: bool = True
    PASSWORD_REQUIRE_LOWERCASE: bool = True
    PASSWORD_REQUIRE_DIGIT: bool = True
    PASSWORD_REQUIRE_SPECIAL_CHAR: bool = True

    # Email verification and password reset
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = Field(ge=1, default=24)
    EMAIL_VERIFICATION_SWEEP_INTERVAL_SECONDS: float = Field(gt=0, default=3600.0)
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = Field(ge=1, le=1440, default=60)

    @model_validator(mode="after")
    def _load_jwt_keys(self) -> "AuthSettings":
        """Loads JWT keys, prioritizing .pem files over environment variables.

        Missing keys are not an error here: the token issuer refuses to start
        without a usable signing key.
        """
        self._load_keys_from_pem_files()
        if not self.JWT_PRIVATE_KEY.get_secret_value():
            logger.warning("JWT private key not configured.")
        return self

    def _load_keys_from_pem_files(self) -> None:
        """Loads JWT keys from the configured PEM files if they exist.
        These files override any existing environment variables.
        """
        private_key_path = Path(self.JWT_PRIVATE_KEY_PATH).resolve()
        public_key_path = Path(self.JWT_PUBLIC_KEY_PATH).resolve()

        if private_key_path.is_file():
            try:
                private_key = private_key_path.read_text().strip()
                if private_key:
                    self.JWT_PRIVATE_KEY = SecretStr(private_key)
                    logger.info("Loaded JWT private key from %s", private_key_path.name)
            except OSError as e:
                logger.error("Failed to read %s: %s", private_key_path.name, e)

        if public_key_path.is_file():
            try:
                public_key = public_key_path.read_text().strip()
                if public_key:
                    self.JWT_PUBLIC_KEY = public_key
                    logger.info("Loaded JWT public key from %s", public_key_path.name)
            except OSError as e:
                logger.error("Failed to read %s: %s", public_key_path.name, e)
