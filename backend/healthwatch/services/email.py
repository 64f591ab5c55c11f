"""Outbound email transports."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import uuid
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Protocol

from healthwatch.config import settings

logger = logging.getLogger("healthwatch.email")


@dataclass(frozen=True)
class EmailSendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailTransport(Protocol):
    async def send(
        self, to_address: str, subject: str, html_body: str, text_body: str
    ) -> EmailSendResult:
        ...


class SMTPEmailTransport:
    """Sends multipart mail through an SMTP relay on a worker thread."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(
        self, to_address: str, subject: str, html_body: str, text_body: str
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to_address
        message["Message-ID"] = make_msgid(domain=self.sender.rpartition("@")[2] or None)
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(message)

    async def send(
        self, to_address: str, subject: str, html_body: str, text_body: str
    ) -> EmailSendResult:
        message = self._build_message(to_address, subject, html_body, text_body)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP delivery to %s failed: %s", to_address, exc)
            return EmailSendResult(success=False, error=str(exc) or exc.__class__.__name__)
        return EmailSendResult(success=True, message_id=message["Message-ID"])


class LogEmailTransport:
    """Development transport: logs the message instead of sending it."""

    async def send(
        self, to_address: str, subject: str, html_body: str, text_body: str
    ) -> EmailSendResult:
        message_id = f"log-{uuid.uuid4()}"
        logger.info(
            "Email not sent (SMTP disabled) to=%s subject=%r preview=%r id=%s",
            to_address,
            subject,
            text_body[:100],
            message_id,
        )
        return EmailSendResult(success=True, message_id=message_id)


def build_email_transport() -> EmailTransport:
    if not settings.smtp_enabled:
        logger.info("SMTP disabled. Using log-only email transport.")
        return LogEmailTransport()
    if not settings.smtp_host or not settings.smtp_from:
        logger.warning("SMTP is enabled but host/from are not configured. Using log-only transport.")
        return LogEmailTransport()
    return SMTPEmailTransport(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.smtp_from,
        user=settings.smtp_user,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout_seconds,
    )
