"""
Outbound email delivery.

Mailer is the seam the alert notifier sends through; SMTPMailer is the
production implementation over smtplib. get_mailer() returns None when
SMTP is not configured, which the notifier reports as a skipped alert.
"""

from __future__ import annotations

import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from verifyit.config import Settings


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


class Mailer(ABC):
    """Synchronous email sender. Raises on delivery failure."""

    @abstractmethod
    def send(self, to: str, content: EmailContent) -> None:
        ...


class SMTPMailer(Mailer):

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_address: str = "",
        from_name: str = "VerifyIt",
        timeout: float = 20.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address or username
        self.from_name = from_name
        self.timeout = timeout

    def _message(self, to: str, content: EmailContent) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = content.subject
        msg["From"] = formataddr((self.from_name, self.from_address))
        msg["To"] = to
        msg.set_content(content.text)
        msg.add_alternative(content.html, subtype="html")
        return msg

    def send(self, to: str, content: EmailContent) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(self._message(to, content))


def get_mailer(config: Settings) -> Optional[Mailer]:
    """SMTP mailer from settings, or None when SMTP is not configured."""
    if not config.SMTP_HOST:
        return None
    if not (config.EMAIL_FROM_ADDRESS or config.SMTP_USER):
        return None
    return SMTPMailer(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USER,
        password=config.SMTP_PASSWORD,
        use_tls=config.SMTP_USE_TLS,
        from_address=config.EMAIL_FROM_ADDRESS,
        from_name=config.EMAIL_FROM_NAME,
    )
