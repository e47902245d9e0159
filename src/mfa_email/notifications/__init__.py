"""Auth code delivery: templates, Jinja2 rendering, SMTP transport."""

from __future__ import annotations

from .delivery import DeliveryRecord, DeliveryStatus, MailSender, RenderedNotification
from .jinja import JinjaTemplateRenderer
from .memory import FailingSender, InMemorySender, SentMessage
from .notifier import TemplatedEmailNotifier
from .ports import IAuthCodeNotifier, INotificationSender, ITemplateRenderer
from .smtp import SmtpEmailSender
from .templates import (
    DEFAULT_LAYOUT,
    DEFAULT_TEMPLATE,
    InMemoryTemplateProvider,
    ITemplateProvider,
    MailLayout,
    MailTemplate,
)

__all__: list[str] = [
    # Types
    "DeliveryRecord",
    "DeliveryStatus",
    "MailSender",
    "RenderedNotification",
    "MailTemplate",
    "MailLayout",
    "DEFAULT_TEMPLATE",
    "DEFAULT_LAYOUT",
    # Ports
    "IAuthCodeNotifier",
    "INotificationSender",
    "ITemplateRenderer",
    "ITemplateProvider",
    # Implementations
    "TemplatedEmailNotifier",
    "JinjaTemplateRenderer",
    "SmtpEmailSender",
    "InMemoryTemplateProvider",
    "InMemorySender",
    "FailingSender",
    "SentMessage",
]
