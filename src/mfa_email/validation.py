"""Email address validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import EmailStr, TypeAdapter, ValidationError

from .exceptions import EmailValidationError
from .flash import flash_message_for

if TYPE_CHECKING:
    from .flash import IFlashMessageQueue

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)

EMPTY_EMAIL_KEY = "error.email.empty"
INVALID_EMAIL_KEY = "error.email.notvalid"


def is_email_valid(email: str) -> bool:
    """Syntax check of an email address (no deliverability lookup)."""
    # EmailStr also accepts the "Name <address>" form
    if "<" in email or ">" in email:
        return False
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return True


def validate_email(email: str) -> str:
    """Validate an email address.

    Args:
        email: Trimmed candidate address.

    Returns:
        The address, unchanged.

    Raises:
        EmailValidationError: If the address is empty or invalid.
    """
    if not email:
        raise EmailValidationError("Email address is empty", EMPTY_EMAIL_KEY)
    if not is_email_valid(email):
        raise EmailValidationError("Email address is not valid", INVALID_EMAIL_KEY)
    return email


def check_valid_email(email: str, flash_messages: IFlashMessageQueue) -> bool:
    """Validate an address and queue a flash message when it is rejected."""
    try:
        validate_email(email)
    except EmailValidationError as e:
        flash_messages.add(flash_message_for(e.message_key or INVALID_EMAIL_KEY))
        return False
    return True


__all__: list[str] = [
    "EMPTY_EMAIL_KEY",
    "INVALID_EMAIL_KEY",
    "is_email_valid",
    "validate_email",
    "check_valid_email",
]
