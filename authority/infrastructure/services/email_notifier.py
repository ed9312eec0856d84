"""Email notifier.

Renders account notifications with Jinja2 and delivers them through
fastapi-mail. In test mode emails are logged instead of sent.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from structlog import get_logger

from authority.core.config.settings import Settings
from authority.core.exceptions import NotificationError
from authority.domain.entities.account import Account
from authority.domain.interfaces.services import INotifier
from authority.domain.value_objects.notifications import NotificationKind
from authority.utils.security import mask_email

logger = get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates" / "email"

_TEMPLATES = {
    NotificationKind.VERIFICATION_EMAIL: ("verification_email.html", "Verify your email address"),
    NotificationKind.WELCOME_EMAIL: ("welcome_email.html", "Welcome to {app_name}"),
    NotificationKind.PASSWORD_RESET_EMAIL: ("password_reset_email.html", "Reset your password"),
}


class EmailNotifier(INotifier):
    """`INotifier` that sends HTML email.

    Attributes:
        jinja_env: Jinja2 environment with HTML auto-escaping.
        fastmail: FastMail client, or None in test mode.
    """

    def __init__(self, settings: Settings, fastmail: Optional[FastMail] = None):
        self.settings = settings
        templates_dir = Path(settings.EMAIL_TEMPLATES_DIR or DEFAULT_TEMPLATES_DIR)
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.fastmail = fastmail
        if self.fastmail is None and not settings.EMAIL_TEST_MODE:
            self.fastmail = FastMail(self._connection_config())
        logger.info(
            "Email notifier initialized",
            test_mode=settings.EMAIL_TEST_MODE,
            smtp_host=settings.EMAIL_SMTP_HOST,
        )

    def _connection_config(self) -> ConnectionConfig:
        password = self.settings.EMAIL_SMTP_PASSWORD
        return ConnectionConfig(
            MAIL_USERNAME=self.settings.EMAIL_SMTP_USERNAME or "",
            MAIL_PASSWORD=password.get_secret_value() if password else "",
            MAIL_FROM=self.settings.EMAIL_FROM_ADDRESS,
            MAIL_FROM_NAME=self.settings.EMAIL_FROM_NAME,
            MAIL_PORT=self.settings.EMAIL_SMTP_PORT,
            MAIL_SERVER=self.settings.EMAIL_SMTP_HOST,
            MAIL_STARTTLS=self.settings.EMAIL_SMTP_USE_TLS,
            MAIL_SSL_TLS=self.settings.EMAIL_SMTP_USE_SSL,
            USE_CREDENTIALS=bool(self.settings.EMAIL_SMTP_USERNAME and password),
            VALIDATE_CERTS=True,
        )

    def render(self, kind: NotificationKind, account: Account, payload: Mapping[str, Any]) -> tuple[str, str]:
        """Render the subject and HTML body for a notification.

        Raises:
            NotificationError: If the template is missing or fails to render.
        """
        template_name, subject = _TEMPLATES[kind]
        context = {
            "app_name": self.settings.PROJECT_NAME,
            "email": account.email,
            "first_name": account.first_name,
            **payload,
        }
        try:
            body = self.jinja_env.get_template(template_name).render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed", template=template_name, error=str(e))
            raise NotificationError(f"Template rendering failed: {template_name}") from e
        return subject.format(app_name=self.settings.PROJECT_NAME), body

    async def notify(
        self, kind: NotificationKind, account: Account, payload: Optional[Mapping[str, Any]] = None
    ) -> None:
        subject, body = self.render(kind, account, payload or {})

        if self.fastmail is None:
            logger.info(
                "Email sent in test mode",
                kind=kind.value,
                to_email=mask_email(account.email),
                subject=subject,
                html_length=len(body),
            )
            return

        message = MessageSchema(
            subject=subject,
            recipients=[account.email],
            body=body,
            subtype=MessageType.html,
        )
        try:
            await self.fastmail.send_message(message)
        except Exception as e:
            logger.error(
                "Failed to send email",
                kind=kind.value,
                to_email=mask_email(account.email),
                error=str(e),
            )
            raise NotificationError(f"Failed to send {kind.value}") from e
        logger.info("Email sent", kind=kind.value, to_email=mask_email(account.email))
