"""Request, response and user shapes exchanged with the host platform."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MfaViewType(Enum):
    """Views the host asks a provider to render."""

    SETUP = "setup"
    EDIT = "edit"
    AUTH = "auth"


@dataclass(frozen=True)
class MfaUser:
    """The user whose provider is being handled.

    Attributes:
        user_id: Unique user identifier, scopes the provider properties.
        email: Account email, suggested in the setup view.
        username: Display name.
    """

    user_id: str
    email: str | None = None
    username: str | None = None


@dataclass(frozen=True)
class MfaRequest:
    """Inbound request: query parameters and parsed body fields."""

    query_params: Mapping[str, Any] = field(default_factory=dict)
    parsed_body: Mapping[str, Any] | None = None

    def get_query_param(self, name: str, default: Any = None) -> Any:
        return self.query_params.get(name, default)

    def get_body_field(self, name: str, default: Any = None) -> Any:
        if self.parsed_body is None:
            return default
        return self.parsed_body.get(name, default)

    def get_param(self, name: str, default: Any = None) -> Any:
        """Read a value from the query, falling back to the body."""
        value = self.get_query_param(name)
        if value is None:
            value = self.get_body_field(name)
        return default if value is None else value


@dataclass(frozen=True)
class MfaResponse:
    """Rendered provider view."""

    body: str
    status: int = 200
    content_type: str = "text/html; charset=utf-8"


__all__: list[str] = ["MfaViewType", "MfaUser", "MfaRequest", "MfaResponse"]
