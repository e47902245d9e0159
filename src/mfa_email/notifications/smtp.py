"""SMTP email transport."""

from __future__ import annotations

import email.message
import email.policy
import logging

import aiosmtplib

from .delivery import DeliveryRecord, MailSender, RenderedNotification
from .ports import INotificationSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(INotificationSender):
    """
    Async SMTP email sender using aiosmtplib.

    ``timeout`` bounds every SMTP operation, so a hanging mail server cannot
    hold the login request indefinitely.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
        default_sender: MailSender | None = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.default_sender = default_sender

    def build_message(
        self,
        recipient: str,
        content: RenderedNotification,
        sender: MailSender,
    ) -> email.message.EmailMessage:
        message = email.message.EmailMessage(policy=email.policy.default)
        message["To"] = recipient
        message["From"] = sender.formatted()
        if content.subject:
            message["Subject"] = content.subject

        if content.body_html:
            # Multipart with both text and HTML
            message.set_content(content.body_text, subtype="plain", charset="utf-8")
            message.add_alternative(content.body_html, subtype="html", charset="utf-8")
        else:
            message.set_content(content.body_text, charset="utf-8")
        return message

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        sender: MailSender | None = None,
    ) -> DeliveryRecord:
        from_addr = sender or self.default_sender
        if from_addr is None:
            logger.error(f"No sender configured for email to {recipient}")
            return DeliveryRecord.failed(
                recipient, error="Sender email is required (no default sender configured)."
            )

        try:
            message = self.build_message(recipient, content, from_addr)

            async with aiosmtplib.SMTP(
                hostname=self.host,
                port=self.port,
                timeout=self.timeout,
                start_tls=False,
            ) as smtp:
                if self.use_tls:
                    await smtp.starttls()
                if self.username and self.password:
                    await smtp.login(self.username, self.password)

                await smtp.send_message(message)

            logger.info(f"Email sent to {recipient} via SMTP")
            return DeliveryRecord.sent(recipient, provider_id="smtp")

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return DeliveryRecord.failed(recipient, error=str(e))


__all__: list[str] = ["SmtpEmailSender"]
