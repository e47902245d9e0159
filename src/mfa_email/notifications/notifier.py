"""Templated email notifier used to deliver auth codes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateError

from ..exceptions import NotificationDeliveryError, TemplateNotFoundError
from .ports import IAuthCodeNotifier

if TYPE_CHECKING:
    from .delivery import DeliveryRecord, MailSender
    from .ports import INotificationSender, ITemplateRenderer
    from .templates import ITemplateProvider

logger = logging.getLogger(__name__)


class TemplatedEmailNotifier(IAuthCodeNotifier):
    """Looks up a mail template, renders it and hands it to the transport.

    Example:
        ```python
        notifier = TemplatedEmailNotifier(
            template_provider=InMemoryTemplateProvider(),
            renderer=JinjaTemplateRenderer(),
            sender=SmtpEmailSender("smtp.example.com", default_sender=...),
        )
        record = await notifier.notify(
            "user@example.com", "MfaEmail", {"authCode": "048213"}
        )
        ```
    """

    def __init__(
        self,
        *,
        template_provider: ITemplateProvider,
        renderer: ITemplateRenderer,
        sender: INotificationSender,
    ) -> None:
        self.template_provider = template_provider
        self.renderer = renderer
        self.sender = sender

    async def notify(
        self,
        recipient: str,
        template_name: str,
        variables: dict[str, Any],
        *,
        layout_name: str | None = None,
        sender: MailSender | None = None,
    ) -> DeliveryRecord:
        """Render the named template and send it to ``recipient``.

        Raises:
            TemplateNotFoundError: If the template or layout is unknown.
            NotificationDeliveryError: If rendering fails.
        """
        template = await self.template_provider.load_template(template_name)
        if template is None:
            raise TemplateNotFoundError(template_name)

        layout = None
        if layout_name:
            layout = await self.template_provider.load_layout(layout_name)
            if layout is None:
                raise TemplateNotFoundError(layout_name, kind="layout")

        try:
            content = await self.renderer.render(template, variables, layout)
        except TemplateError as e:
            raise NotificationDeliveryError(recipient, f"rendering failed: {e}") from e

        record = await self.sender.send(recipient, content, sender)
        if record.succeeded:
            logger.debug(f"Template {template_name!r} delivered to {recipient}")
        else:
            logger.warning(
                f"Template {template_name!r} not delivered to {recipient}: {record.error}"
            )
        return record


__all__: list[str] = ["TemplatedEmailNotifier"]
