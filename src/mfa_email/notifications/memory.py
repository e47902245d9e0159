"""In-memory senders for test assertions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .delivery import DeliveryRecord, MailSender, RenderedNotification
from .ports import INotificationSender

logger = logging.getLogger(__name__)


@dataclass
class SentMessage:
    """Record of a sent message for test assertions."""

    recipient: str
    content: RenderedNotification
    sender: MailSender | None


class InMemorySender(INotificationSender):
    """
    Test double (Fake) that stores messages in a list for assertions.
    """

    def __init__(self) -> None:
        self.sent_messages: list[SentMessage] = []

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        sender: MailSender | None = None,
    ) -> DeliveryRecord:
        self.sent_messages.append(SentMessage(recipient, content, sender))
        return DeliveryRecord.sent(recipient, provider_id="test-id")

    def assert_sent(self, recipient: str, count: int = 1) -> None:
        """Helper for test assertions."""
        matches = [m for m in self.sent_messages if m.recipient == recipient]
        if len(matches) != count:
            raise AssertionError(
                f"Expected {count} messages to {recipient}, but found {len(matches)}."
            )

    def clear(self) -> None:
        """Clear all sent messages."""
        self.sent_messages.clear()


class FailingSender(INotificationSender):
    """
    Test double whose transport always fails.
    """

    def __init__(self, error: str = "connection refused") -> None:
        self.error = error
        self.attempts = 0

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        sender: MailSender | None = None,
    ) -> DeliveryRecord:
        self.attempts += 1
        logger.debug(f"FailingSender rejected mail to {recipient}")
        return DeliveryRecord.failed(recipient, error=self.error)


__all__: list[str] = ["SentMessage", "InMemorySender", "FailingSender"]
