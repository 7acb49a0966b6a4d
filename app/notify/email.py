import html
import logging
import re
import smtplib
import ssl
from email.message import EmailMessage

from app.config import settings

logger = logging.getLogger(__name__)

class EmailNotConfiguredError(RuntimeError):
    pass

def _strip_html(body: str) -> str:
    return re.sub(r"<[^>]+>", "", body)

class EmailSender:
    """Delivers one message over SMTP. Raises on any delivery failure."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        from_address: str | None = None,
    ):
        self.host = host if host is not None else settings.smtp_host
        self.port = port if port is not None else settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password
        self.use_tls = use_tls if use_tls is not None else settings.smtp_use_tls
        self.from_address = from_address or settings.smtp_from

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_address)

    def build_message(self, to: str, subject: str, body_html: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_address
        message["To"] = to
        message.set_content(_strip_html(body_html))
        message.add_alternative(body_html, subtype="html")
        return message

    def send(self, to: str, subject: str, body_html: str) -> None:
        if not self.configured:
            raise EmailNotConfiguredError("SMTP host or from address missing")

        message = self.build_message(to, subject, body_html)
        with smtplib.SMTP(self.host, self.port, timeout=10) as client:
            client.ehlo()
            if self.use_tls:
                client.starttls(context=ssl.create_default_context())
                client.ehlo()
            if self.username and self.password:
                client.login(self.username, self.password)
            client.send_message(message)

        logger.info("sent email to=%s subject=%r", to, subject)

def invite_link(token: str) -> str:
    return f"{settings.base_url.rstrip('/')}/invites/{token}"

def render_invite_email(workspace_name: str, inviter_name: str, token: str) -> tuple[str, str]:
    """Subject and HTML body for a workspace invitation."""
    ws = html.escape(workspace_name)
    who = html.escape(inviter_name)
    link = html.escape(invite_link(token))
    subject = f"{inviter_name} invited you to {workspace_name}"
    body = (
        f"<p>{who} invited you to join <strong>{ws}</strong>.</p>"
        f'<p><a href="{link}">Accept the invitation</a></p>'
        f"<p>This invitation expires in {settings.invite_expires_days} days.</p>"
    )
    return subject, body
