"""
Redis connection settings.
"""

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings


class RedisSettings(BaseSettings):
    """
    Defines settings for the Redis instance backing the lifecycle event stream.

    Security Note:
        - Use `rediss://` (TLS) when Redis is reached over an untrusted network.
        - REDIS_PASSWORD is a secret and must never be logged.
    """

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_DB: int = Field(ge=0, default=0)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = ""

    @model_validator(mode="after")
    def assemble_redis_url(self) -> "RedisSettings":
        if self.REDIS_URL:
            return self
        scheme = "rediss" if self.REDIS_SSL else "redis"
        password = self.REDIS_PASSWORD.get_secret_value()
        auth = f":{password}@" if password else ""
        self.REDIS_URL = f"{scheme}://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return self
