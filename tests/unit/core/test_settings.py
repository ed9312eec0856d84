import pytest
from pydantic import ValidationError

from authority.core.config.settings import Settings


class TestSettings:
    def test_urls_are_assembled(self):
        settings = Settings(
            _env_file=None,
            APP_ENV="production",
            POSTGRES_USER="svc",
            POSTGRES_PASSWORD="pw",
            POSTGRES_HOST="db",
            POSTGRES_DB="ids",
            REDIS_HOST="cache",
            JWT_PRIVATE_KEY_PATH="/nonexistent/private.pem",
            JWT_PUBLIC_KEY_PATH="/nonexistent/public.pem",
        )
        assert settings.DATABASE_URL == "postgresql+asyncpg://svc:pw@db:5432/ids"
        assert settings.REDIS_URL == "redis://cache:6379/0"
        assert settings.EMAIL_TEST_MODE is False

    def test_test_environment_enables_email_test_mode(self, test_settings):
        assert test_settings.EMAIL_TEST_MODE is True
        assert test_settings.FRONTEND_URL == "https://app.test"

    def test_cors_origins_are_split(self):
        settings = Settings(
            _env_file=None,
            ALLOWED_ORIGINS="https://a.test, https://b.test",
            JWT_PRIVATE_KEY_PATH="/nonexistent/private.pem",
        )
        assert settings.ALLOWED_ORIGINS == ["https://a.test", "https://b.test"]

    def test_pem_files_override_environment(self, tmp_path, private_key_pem):
        key_file = tmp_path / "private.pem"
        key_file.write_text(private_key_pem)
        settings = Settings(_env_file=None, JWT_PRIVATE_KEY="ignored", JWT_PRIVATE_KEY_PATH=str(key_file))
        assert settings.JWT_PRIVATE_KEY.get_secret_value() == private_key_pem.strip()

    def test_invalid_event_backend(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, EVENT_BUS_BACKEND="kafka")

    def test_production_requires_smtp_credentials(self):
        settings = Settings(
            _env_file=None, APP_ENV="production", JWT_PRIVATE_KEY_PATH="/nonexistent/private.pem"
        )
        with pytest.raises(ValueError):
            settings.validate_smtp_config()
