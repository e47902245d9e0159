"""Jinja2 mail template renderer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, StrictUndefined, TemplateError
from markupsafe import Markup

from .delivery import RenderedNotification
from .ports import ITemplateRenderer

if TYPE_CHECKING:
    from .templates import MailLayout, MailTemplate

logger = logging.getLogger(__name__)


class JinjaTemplateRenderer(ITemplateRenderer):
    """
    Renders auth code emails using the Jinja2 engine.

    The subject is rendered on its own from ``subject_template``; the body is
    rendered with HTML autoescaping and then wrapped in the layout, if any.
    A plain-text alternative is derived from the rendered body.
    """

    def __init__(self) -> None:
        self._html_env = Environment(autoescape=True, undefined=StrictUndefined)
        self._text_env = Environment(autoescape=False, undefined=StrictUndefined)

    def render_subject(self, template: MailTemplate, context: dict[str, Any]) -> str:
        """Compute the subject line of a mail template."""
        subject = self._text_env.from_string(template.subject_template).render(**context)
        return " ".join(subject.split())

    async def render(
        self,
        template: MailTemplate,
        context: dict[str, Any],
        layout: MailLayout | None = None,
    ) -> RenderedNotification:
        """Render template (and layout) using Jinja2."""
        try:
            subject = self.render_subject(template, context)
            body = self._html_env.from_string(template.body_template).render(**context)

            body_html = body
            if layout is not None:
                body_html = self._html_env.from_string(layout.template).render(
                    **context, content=Markup(body)
                )

            return RenderedNotification(
                subject=subject,
                body_text=Markup(body).striptags(),
                body_html=body_html,
            )
        except TemplateError as e:
            logger.error(f"Jinja2 rendering of {template.name!r} failed: {e}")
            raise


__all__: list[str] = ["JinjaTemplateRenderer"]
