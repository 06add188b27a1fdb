import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from typing import Optional

from glycorisk.core.config import Settings

logger = logging.getLogger(__name__)


class EmailNotConfigured(RuntimeError):
    pass


class SmtpTransport:
    """Plain-text email over SMTP. ``send`` raises on any failure."""

    def __init__(
        self,
        smtp_server: Optional[str],
        smtp_port: int,
        smtp_username: Optional[str],
        smtp_password: Optional[str],
        from_email: Optional[str],
        timeout: float = 10.0,
    ):
        self.smtp_server = smtp_server
        self.smtp_port = int(smtp_port)
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport":
        return cls(
            smtp_server=settings.SMTP_SERVER,
            smtp_port=settings.SMTP_PORT,
            smtp_username=settings.SMTP_USERNAME,
            smtp_password=settings.SMTP_PASSWORD,
            from_email=settings.FROM_EMAIL,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    def send(self, address: str, subject: str, body: str) -> None:
        if not self.smtp_server or not self.from_email:
            raise EmailNotConfigured("SMTP_SERVER/FROM_EMAIL not configured")

        msg = MIMEText(body, "plain")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = address

        context = ssl.create_default_context()
        if self.smtp_port == 465:
            # SSL connection for port 465
            with smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, context=context, timeout=self.timeout) as server:
                self._login(server)
                server.send_message(msg)
        else:
            # STARTTLS for port 587
            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                server.starttls(context=context)
                self._login(server)
                server.send_message(msg)
        logger.debug("Email sent via %s:%s", self.smtp_server, self.smtp_port)

    def _login(self, server: smtplib.SMTP) -> None:
        if self.smtp_username and self.smtp_password:
            server.login(self.smtp_username, self.smtp_password)
