"""Notification ports: renderer, sender, auth code notifier."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .delivery import DeliveryRecord, MailSender, RenderedNotification
    from .templates import MailLayout, MailTemplate


@runtime_checkable
class ITemplateRenderer(Protocol):
    """Protocol for rendering mail templates."""

    async def render(
        self,
        template: MailTemplate,
        context: dict[str, Any],
        layout: MailLayout | None = None,
    ) -> RenderedNotification:
        """Render subject and body of a mail template."""
        ...


@runtime_checkable
class INotificationSender(Protocol):
    """Protocol for the mail transport.

    Transport failures are reported as a failed ``DeliveryRecord``.
    """

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        sender: MailSender | None = None,
    ) -> DeliveryRecord:
        """Send an email and return the delivery record."""
        ...


@runtime_checkable
class IAuthCodeNotifier(Protocol):
    """Protocol for delivering an auth code to an email address.

    The provider hands over the destination, the template name and the
    template variables; rendering and transport are the notifier's business.
    """

    async def notify(
        self,
        recipient: str,
        template_name: str,
        variables: dict[str, Any],
        *,
        layout_name: str | None = None,
        sender: MailSender | None = None,
    ) -> DeliveryRecord:
        """Render and send a message.

        Raises:
            NotificationError: If the message cannot be rendered or sent.
        """
        ...


__all__: list[str] = ["ITemplateRenderer", "INotificationSender", "IAuthCodeNotifier"]
