"""User-visible flash messages.

The host renders queued messages on the next page. Only the built-in English
texts are shipped; message keys follow ``<key>.title`` / ``<key>.message``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class FlashSeverity(Enum):
    """Severity of a flash message."""

    NOTICE = "notice"
    INFO = "info"
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FlashMessage:
    """Immutable flash message."""

    message: str
    title: str = ""
    severity: FlashSeverity = FlashSeverity.OK
    store_in_session: bool = False


_MESSAGES: dict[str, str] = {
    "error.email.empty.title": "Email address missing",
    "error.email.empty.message": "Please enter the email address the codes should be sent to.",
    "error.email.notvalid.title": "Invalid email address",
    "error.email.notvalid.message": "The given email address is not valid.",
}


def translate(key: str) -> str:
    """Resolve a message key, falling back to the key itself."""
    return _MESSAGES.get(key, key)


def flash_message_for(
    message_key: str, severity: FlashSeverity = FlashSeverity.ERROR
) -> FlashMessage:
    """Build the flash message registered under ``message_key``."""
    return FlashMessage(
        message=translate(f"{message_key}.message"),
        title=translate(f"{message_key}.title"),
        severity=severity,
        store_in_session=True,
    )


@runtime_checkable
class IFlashMessageQueue(Protocol):
    """Protocol for the host's flash message queue."""

    def add(self, message: FlashMessage) -> None:
        """Enqueue a message for display."""
        ...


class InMemoryFlashMessageQueue(IFlashMessageQueue):
    """In-memory flash message queue for testing."""

    def __init__(self) -> None:
        self.messages: list[FlashMessage] = []

    def add(self, message: FlashMessage) -> None:
        logger.debug(f"Flash message queued: {message.title}")
        self.messages.append(message)

    def pop_all(self) -> list[FlashMessage]:
        """Return and remove all queued messages."""
        messages, self.messages = self.messages, []
        return messages


__all__: list[str] = [
    "FlashSeverity",
    "FlashMessage",
    "IFlashMessageQueue",
    "InMemoryFlashMessageQueue",
    "flash_message_for",
    "translate",
]
