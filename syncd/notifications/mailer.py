from __future__ import annotations

import smtplib
import ssl
from email.mime.text import MIMEText

from loguru import logger

from syncd.config import get_settings


class EmailSender:
    """Send HTML mail through the configured SMTP server."""

    def __init__(self):
        settings = get_settings()
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.from_addr = settings.smtp_from or settings.smtp_user
        self.use_ssl = settings.smtp_use_ssl
        self.timeout = settings.smtp_timeout

    @classmethod
    def is_configured(cls) -> bool:
        """Check if an SMTP host and a sender address are set."""
        settings = get_settings()
        return bool(settings.smtp_host and (settings.smtp_from or settings.smtp_user))

    def send(self, to_addr: str, subject: str, html: str) -> bool:
        """Send one message.

        Args:
            to_addr: Recipient address.
            subject: Subject line.
            html: HTML body.

        Returns:
            True if sent successfully, False otherwise.
        """
        if not to_addr:
            logger.warning(f"Email send called without a recipient: {subject}")
            return False

        msg = MIMEText(html, "html", "utf-8")
        msg["Subject"] = subject
        msg["From"] = f'"Syncd" <{self.from_addr}>'
        msg["To"] = to_addr

        try:
            context = ssl.create_default_context()
            if self.use_ssl:
                with smtplib.SMTP_SSL(
                    self.host, self.port, context=context, timeout=self.timeout
                ) as server:
                    self._deliver(server, msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    self._deliver(server, msg)

            logger.info(f"Email sent to {to_addr}: {subject}")
            return True
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP auth failed, check SMTP_USER/SMTP_PASSWORD: {e}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email to {to_addr} failed: {e}")
            return False

    def _deliver(self, server: smtplib.SMTP, msg: MIMEText) -> None:
        if self.user and self.password:
            server.login(self.user, self.password)
        server.send_message(msg)
