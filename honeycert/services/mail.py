"""
Mail transports and the admin confirmation email
"""

from email.message import EmailMessage
from typing import Optional, Protocol, Tuple

import aiosmtplib
from jinja2 import Environment
import structlog

from honeycert.core.config import Settings

logger = structlog.get_logger(__name__)


class MailTransport(Protocol):
    async def send(self, to: str, subject: str, html: str) -> bool: ...


class ConsoleMailTransport:
    """Logs messages instead of sending them; the default outside production"""

    async def send(self, to: str, subject: str, html: str) -> bool:
        logger.info("Email (console transport)", to=to, subject=subject, size=len(html))
        return True


class SMTPMailTransport:
    """Sends HTML mail through an SMTP relay"""

    def __init__(
        self,
        hostname: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: bool = True,
    ):
        self.hostname = hostname
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.start_tls = start_tls

    def build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, html: str) -> bool:
        try:
            await aiosmtplib.send(
                self.build_message(to, subject, html),
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.start_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {to} failed: {e}")
            return False

        logger.info(f"Email sent to {to}", subject=subject)
        return True


def build_mail_transport(settings: Settings) -> MailTransport:
    if settings.EMAIL_BACKEND == "smtp":
        return SMTPMailTransport(
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.EMAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            start_tls=settings.SMTP_START_TLS,
        )
    return ConsoleMailTransport()


CONFIRMATION_SUBJECT = "Confirm Your Admin Account"


def confirmation_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/admin/confirm-email?token={token}"


_CONFIRMATION_BODY = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{{ subject }}</title></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>Hello {{ admin_name }}!</h2>
    <p>Thank you for registering as an administrator. Please confirm your email
    address to activate your account and your workspace.</p>
    <p style="text-align: center;">
      <a href="{{ url }}" style="display: inline-block; padding: 15px 30px; background: #3B82F6;
         color: white; text-decoration: none; border-radius: 8px;">Confirm Admin Account</a>
    </p>
    <p><strong>This confirmation link expires in {{ ttl_hours }} hours.</strong></p>
    <p>If the button does not work, copy this link into your browser:</p>
    <p style="word-break: break-all;">{{ url }}</p>
    <p>If you did not request this account, you can ignore this email.</p>
  </div>
</body>
</html>
"""

# HTML bodies; every substituted value is escaped
_templates = Environment(autoescape=True)
_confirmation_subject = _templates.from_string(CONFIRMATION_SUBJECT)
_confirmation_body = _templates.from_string(_CONFIRMATION_BODY)


def render_confirmation_email(admin_name: str, url: str, ttl_hours: int = 24) -> Tuple[str, str]:
    """Subject and HTML body of the confirmation email"""
    subject = _confirmation_subject.render()
    body = _confirmation_body.render(subject=subject, admin_name=admin_name, url=url, ttl_hours=ttl_hours)
    return subject, body


async def send_confirmation_email(
    transport: MailTransport,
    to: str,
    admin_name: str,
    token: str,
    base_url: str,
    ttl_hours: int = 24,
) -> bool:
    subject, html = render_confirmation_email(admin_name, confirmation_url(base_url, token), ttl_hours)
    return await transport.send(to, subject, html)
