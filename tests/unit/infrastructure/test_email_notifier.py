from unittest.mock import AsyncMock

import pytest
from fastapi_mail import MessageType

from authority.core.exceptions import NotificationError
from authority.domain.value_objects.notifications import NotificationKind
from authority.infrastructure.services.email_notifier import EmailNotifier
from tests.factories.account import create_fake_account


@pytest.fixture
def account():
    account = create_fake_account(id=1, email="alice@example.com")
    account.first_name = "Alice"
    return account


class TestEmailNotifier:
    def test_renders_verification_link_escaped(self, test_settings, account):
        notifier = EmailNotifier(test_settings)
        subject, body = notifier.render(
            NotificationKind.VERIFICATION_EMAIL,
            account,
            {"link": "https://app.test/verify-email?token=abc&x=<y>", "expires_in_hours": 24},
        )
        assert subject == "Verify your email address"
        assert "Alice" in body
        assert "token=abc&amp;x=&lt;y&gt;" in body
        assert "24" in body

    def test_welcome_subject_names_the_application(self, test_settings, account):
        subject, _ = EmailNotifier(test_settings).render(NotificationKind.WELCOME_EMAIL, account, {})
        assert subject == f"Welcome to {test_settings.PROJECT_NAME}"

    @pytest.mark.asyncio
    async def test_test_mode_does_not_send(self, test_settings, account):
        notifier = EmailNotifier(test_settings)
        assert notifier.fastmail is None
        await notifier.notify(
            NotificationKind.PASSWORD_RESET_EMAIL,
            account,
            {"link": "https://app.test/reset-password?token=t", "expires_in_minutes": 60},
        )

    @pytest.mark.asyncio
    async def test_sends_html_message(self, test_settings, account):
        fastmail = AsyncMock()
        notifier = EmailNotifier(test_settings, fastmail=fastmail)

        await notifier.notify(NotificationKind.WELCOME_EMAIL, account)

        message = fastmail.send_message.await_args.args[0]
        assert message.recipients[0].email == "alice@example.com"
        assert message.subtype == MessageType.html

    @pytest.mark.asyncio
    async def test_delivery_failure(self, test_settings, account):
        fastmail = AsyncMock()
        fastmail.send_message.side_effect = OSError("smtp down")
        notifier = EmailNotifier(test_settings, fastmail=fastmail)

        with pytest.raises(NotificationError):
            await notifier.notify(NotificationKind.WELCOME_EMAIL, account)

    def test_missing_template(self, test_settings, account, tmp_path):
        test_settings.EMAIL_TEMPLATES_DIR = str(tmp_path)
        with pytest.raises(NotificationError):
            EmailNotifier(test_settings).render(NotificationKind.WELCOME_EMAIL, account, {})
