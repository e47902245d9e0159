"""Mail templates and layouts for auth code emails."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..config import DEFAULT_MAIL_LAYOUT, DEFAULT_MAIL_TEMPLATE


@dataclass(frozen=True)
class MailTemplate:
    """Immutable mail template.

    Attributes:
        name: Template name, referenced by ``mail_template_name``.
        subject_template: Template of the subject line.
        body_template: Template of the message body (HTML).
    """

    name: str
    subject_template: str
    body_template: str


@dataclass(frozen=True)
class MailLayout:
    """Immutable layout wrapping a rendered mail body.

    The layout receives the rendered body as ``content`` plus the variables
    of the mail itself.
    """

    name: str
    template: str


DEFAULT_TEMPLATE = MailTemplate(
    name=DEFAULT_MAIL_TEMPLATE,
    subject_template="Your login verification code",
    body_template=(
        "<p>Hello,</p>\n"
        "<p>use the following code to complete your login:</p>\n"
        "<p><strong>{{ authCode }}</strong></p>\n"
        "<p>This code was sent to {{ email }}. If you did not try to log in, "
        "please contact your administrator.</p>"
    ),
)

DEFAULT_LAYOUT = MailLayout(
    name=DEFAULT_MAIL_LAYOUT,
    template=(
        "<html><body>\n"
        "{{ content }}\n"
        "</body></html>"
    ),
)


@runtime_checkable
class ITemplateProvider(Protocol):
    """Protocol for looking up mail templates and layouts by name."""

    async def load_template(self, name: str) -> MailTemplate | None:
        ...

    async def load_layout(self, name: str) -> MailLayout | None:
        ...


class InMemoryTemplateProvider(ITemplateProvider):
    """In-memory template provider, preloaded with the default template."""

    def __init__(self, *, include_defaults: bool = True) -> None:
        self._templates: dict[str, MailTemplate] = {}
        self._layouts: dict[str, MailLayout] = {}
        if include_defaults:
            self.add_template(DEFAULT_TEMPLATE)
            self.add_layout(DEFAULT_LAYOUT)

    async def load_template(self, name: str) -> MailTemplate | None:
        return self._templates.get(name)

    async def load_layout(self, name: str) -> MailLayout | None:
        return self._layouts.get(name)

    def add_template(self, template: MailTemplate) -> None:
        self._templates[template.name] = template

    def add_layout(self, layout: MailLayout) -> None:
        self._layouts[layout.name] = layout


__all__: list[str] = [
    "MailTemplate",
    "MailLayout",
    "DEFAULT_TEMPLATE",
    "DEFAULT_LAYOUT",
    "ITemplateProvider",
    "InMemoryTemplateProvider",
]
