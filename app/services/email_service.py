"""
app/services/email_service.py

Purpose: Receipt email relay

- Builds a message with the receipt attached
- Sends it over SMTP (optional STARTTLS) in a worker thread
- Bounded by a send timeout; failures surface as TransportFailureError
"""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import TransportFailureError
from app.core.logging import get_logger
from utils.constants import (
    RECEIPT_ATTACHMENT_NAME,
    RECEIPT_ATTACHMENT_TYPE,
    RECEIPT_EMAIL_SUBJECT,
    RECEIPT_EMAIL_TEXT,
)
from utils.validation_utils import sanitize_filename

logger = get_logger(__name__)


class EmailRelay:
    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_email: str = "no-reply@receiptify.app",
        starttls: bool = True,
        timeout: float = 20.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.starttls = starttls
        self.timeout = timeout

    def create_message(
        self,
        to_email: str,
        attachment: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = RECEIPT_EMAIL_SUBJECT
        message["From"] = self.from_email
        message["To"] = to_email
        message.set_content(RECEIPT_EMAIL_TEXT)

        content_type = content_type or RECEIPT_ATTACHMENT_TYPE
        if "/" not in content_type:
            content_type = "application/octet-stream"
        maintype, subtype = content_type.split("/", 1)

        message.add_attachment(
            attachment,
            maintype=maintype,
            subtype=subtype,
            filename=sanitize_filename(filename, default=RECEIPT_ATTACHMENT_NAME),
        )
        return message

    def _send_message(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.starttls:
                server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(message)

    async def send(
        self,
        to_email: str,
        attachment: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Emails the receipt to to_email. Attempted once.

        Raises:
            TransportFailureError: SMTP not configured, refused, or timed out
        """
        if not self.host:
            logger.error("SMTP host not configured")
            raise TransportFailureError("Email transport is not configured")

        message = self.create_message(to_email, attachment, filename, content_type)

        try:
            await asyncio.wait_for(run_in_threadpool(self._send_message, message), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"SMTP send to {to_email} timed out")
            raise TransportFailureError("Email transport timed out") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise TransportFailureError() from e

        logger.info(f"Receipt emailed to {to_email}")
