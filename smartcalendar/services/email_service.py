import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from smartcalendar.core.config import settings
from smartcalendar.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(
        self,
        smtp_server: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        use_ssl: Optional[bool] = None,
        timeout: Optional[int] = None,
    ):
        self.smtp_server = smtp_server or settings.SMTP_SERVER
        self.smtp_port = int(smtp_port or settings.SMTP_PORT)
        self.smtp_username = smtp_username if smtp_username is not None else settings.SMTP_USERNAME
        self.smtp_password = smtp_password if smtp_password is not None else settings.SMTP_PASSWORD
        self.from_email = from_email or settings.FROM_EMAIL or self.smtp_username
        self.use_ssl = settings.SMTP_USE_SSL if use_ssl is None else use_ssl
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

        # Validate required email configuration
        if not self.smtp_server:
            raise ValueError("SMTP_SERVER is required but not configured")
        if not self.from_email:
            raise ValueError("FROM_EMAIL is required but not configured")

    def send_email(self, to_email: str, subject: str, text_content: str, html_content: str) -> None:
        """
        Send a multipart (plain + HTML) email. Raises EmailDeliveryError on failure.
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email

        msg.attach(MIMEText(text_content, "plain", "utf-8"))
        msg.attach(MIMEText(html_content, "html", "utf-8"))

        self._send_email(msg, to_email)

    @property
    def _implicit_tls(self) -> bool:
        return self.use_ssl or self.smtp_port == 465

    def _connect(self) -> smtplib.SMTP:
        if self._implicit_tls:
            return smtplib.SMTP_SSL(
                self.smtp_server, self.smtp_port, context=ssl.create_default_context(), timeout=self.timeout
            )
        return smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout)

    def _start_tls(self, server: smtplib.SMTP) -> None:
        try:
            server.starttls(context=ssl.create_default_context())
        except smtplib.SMTPNotSupportedError:
            logger.warning(f"SMTP server {self.smtp_server} does not support STARTTLS; sending in clear text")

    def _send_email(self, msg: MIMEMultipart, to_email: str) -> None:
        """Send email using SMTP"""
        try:
            with self._connect() as server:
                if not self._implicit_tls:
                    self._start_tls(server)
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {to_email} via {self.smtp_server}:{self.smtp_port} failed: {e}")
            raise EmailDeliveryError(to_email, str(e)) from e

        logger.info(f"Email sent to {to_email}")
