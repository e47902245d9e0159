"""Provider views (setup/edit and auth screens).

Hosts usually render with their own template engine; ``IViewRenderer`` is
the seam. ``JinjaViewRenderer`` ships minimal built-in templates.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlencode

from jinja2 import DictLoader, Environment, StrictUndefined

EDIT_TEMPLATE = "Edit"
AUTH_TEMPLATE = "Auth"

DEFAULT_VIEW_TEMPLATES: dict[str, str] = {
    EDIT_TEMPLATE: (
        '<div class="mfa-email" data-provider="{{ providerIdentifier }}">\n'
        '  <label for="email">Email address</label>\n'
        '  <input type="email" id="email" name="email" value="{{ email }}" required>\n'
        "  {% if lastUsed %}<p>Last used: {{ lastUsed }}</p>{% endif %}\n"
        "  {% if updated %}<p>Last updated: {{ updated }}</p>{% endif %}\n"
        "</div>"
    ),
    AUTH_TEMPLATE: (
        '<div class="mfa-email" data-provider="{{ providerIdentifier }}">\n'
        "  {% if isLocked %}\n"
        "  <p>Too many failed attempts. This provider is locked.</p>\n"
        "  {% else %}\n"
        "  {% if deliveryFailed %}<p>The code could not be sent.</p>{% endif %}\n"
        '  <label for="authCode">Code</label>\n'
        '  <input type="text" id="authCode" name="authCode" inputmode="numeric"'
        ' autocomplete="one-time-code" maxlength="6" required>\n'
        '  <a href="{{ resendLink }}">Send a new code</a>\n'
        "  {% endif %}\n"
        "</div>"
    ),
}


@runtime_checkable
class IViewRenderer(Protocol):
    """Protocol for rendering provider views."""

    def render(self, template_name: str, variables: Mapping[str, Any]) -> str:
        ...


class JinjaViewRenderer(IViewRenderer):
    """Renders provider views from a name -> template source mapping."""

    def __init__(self, templates: Mapping[str, str] | None = None) -> None:
        sources = {**DEFAULT_VIEW_TEMPLATES, **(templates or {})}
        self._env = Environment(
            loader=DictLoader(sources),
            autoescape=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, variables: Mapping[str, Any]) -> str:
        return self._env.get_template(template_name).render(**variables)


def format_timestamp(timestamp: Any, date_format: str) -> str:
    """Format a unix timestamp in local time; 0 or missing gives ``""``."""
    try:
        value = int(timestamp or 0)
    except (TypeError, ValueError):
        return ""
    if value == 0:
        return ""
    try:
        return datetime.fromtimestamp(value).strftime(date_format)
    except (OverflowError, OSError, ValueError):
        return ""


def build_resend_link(query_params: Mapping[str, Any]) -> str:
    """Current query parameters plus an explicit resend marker."""
    params = {**query_params, "resend": "1"}
    return "?" + urlencode(params, doseq=True)


__all__: list[str] = [
    "EDIT_TEMPLATE",
    "AUTH_TEMPLATE",
    "DEFAULT_VIEW_TEMPLATES",
    "IViewRenderer",
    "JinjaViewRenderer",
    "format_timestamp",
    "build_resend_link",
]
