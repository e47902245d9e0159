"""Provider configuration.

Host platforms usually hand extension settings over as a flat, string-typed
mapping with camelCase keys. ``MailProviderConfig.from_mapping`` accepts that
shape; the model coerces and normalises the values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# Attempt limit used when no limit is configured (or -1 is configured).
UNLIMITED_ATTEMPTS = 9_999_999

DEFAULT_MAIL_TEMPLATE = "MfaEmail"
DEFAULT_MAIL_LAYOUT = "MfaEmail"
DEFAULT_DATE_FORMAT = "%d-%m-%y %H:%M"

_MAPPING_KEYS: dict[str, str] = {
    "maxAttempts": "max_attempts",
    "mailSenderEmail": "mail_sender_email",
    "mailSenderName": "mail_sender_name",
    "mailTemplateName": "mail_template_name",
    "mailLayoutName": "mail_layout_name",
    "dateFormat": "date_format",
}


class MailProviderConfig(BaseModel):
    """Configuration of the email MFA provider.

    Attributes:
        max_attempts: Consecutive failed verifications allowed before lockout.
            ``-1`` or ``None`` mean unlimited.
        mail_sender_email: Sender address for code emails. ``None`` uses the
            transport default.
        mail_sender_name: Display name of the sender.
        mail_template_name: Name of the mail template for code emails.
        mail_layout_name: Name of the layout wrapping the mail template.
        date_format: strftime pattern for timestamps in the edit view.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = UNLIMITED_ATTEMPTS
    mail_sender_email: str | None = None
    mail_sender_name: str | None = None
    mail_template_name: str = DEFAULT_MAIL_TEMPLATE
    mail_layout_name: str = DEFAULT_MAIL_LAYOUT
    date_format: str = DEFAULT_DATE_FORMAT

    @field_validator("max_attempts", mode="before")
    @classmethod
    def _normalize_max_attempts(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return UNLIMITED_ATTEMPTS
        if isinstance(value, str):
            value = value.strip()
        if str(value) == "-1":
            return UNLIMITED_ATTEMPTS
        return value

    @field_validator("mail_sender_email", "mail_sender_name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("mail_template_name", mode="before")
    @classmethod
    def _default_template(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_MAIL_TEMPLATE
        return value

    @field_validator("mail_layout_name", mode="before")
    @classmethod
    def _default_layout(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_MAIL_LAYOUT
        return value

    @property
    def has_attempt_limit(self) -> bool:
        return self.max_attempts != UNLIMITED_ATTEMPTS

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any] | None) -> MailProviderConfig:
        """Build a config from host extension settings.

        Both camelCase keys (``maxAttempts``) and field names
        (``max_attempts``) are accepted; unknown keys are ignored.

        Args:
            settings: Raw settings mapping, may be ``None``.

        Returns:
            Validated configuration.
        """
        values: dict[str, Any] = {}
        for key, value in (settings or {}).items():
            field_name = _MAPPING_KEYS.get(key, key)
            if field_name in cls.model_fields:
                values[field_name] = value
        return cls(**values)


__all__: list[str] = [
    "MailProviderConfig",
    "UNLIMITED_ATTEMPTS",
    "DEFAULT_MAIL_TEMPLATE",
    "DEFAULT_MAIL_LAYOUT",
    "DEFAULT_DATE_FORMAT",
]
