"""Exception hierarchy for the email MFA provider.

The provider's public operations signal failure with booleans. These
exceptions are raised by the collaborators (property store, notifier,
validation) and handled inside the provider.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════
# BASE ERROR
# ═══════════════════════════════════════════════════════════════


class MfaEmailError(Exception):
    """Root exception for the mfa-email package."""


# ═══════════════════════════════════════════════════════════════
# VALIDATION & POLICY ERRORS
# ═══════════════════════════════════════════════════════════════


class MfaValidationError(MfaEmailError):
    """Raised when user input cannot be accepted.

    Attributes:
        message_key: Key of the user-visible message describing the problem.
    """

    def __init__(self, message: str, message_key: str | None = None) -> None:
        super().__init__(message)
        self.message_key = message_key


class EmailValidationError(MfaValidationError):
    """Raised when an email address is empty or syntactically invalid."""


class MfaPolicyError(MfaEmailError):
    """Base class for operations not allowed in the provider's current state."""


class ProviderInactiveError(MfaPolicyError):
    """Raised when an operation requires an active provider."""


class ProviderLockedError(MfaPolicyError):
    """Raised when verification is attempted on a locked provider.

    Attributes:
        attempts: Failed attempts recorded for the provider.
        max_attempts: Configured attempt limit.
    """

    def __init__(
        self,
        message: str = "Provider is locked due to too many failed attempts",
        attempts: int | None = None,
        max_attempts: int | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.max_attempts = max_attempts


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE ERRORS
# ═══════════════════════════════════════════════════════════════


class MfaInfrastructureError(MfaEmailError):
    """Base class for failures of external collaborators."""


class PropertyStoreError(MfaInfrastructureError):
    """Raised when the provider property store cannot read or write."""


class ConcurrentUpdateError(PropertyStoreError):
    """Raised when a conditional write finds a newer stored version.

    Attributes:
        expected_version: Version the writer based its change on.
        actual_version: Version currently stored.
    """

    def __init__(self, expected_version: int, actual_version: int | None) -> None:
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Expected version {expected_version}, found {actual_version}"
        )


class NotificationError(MfaInfrastructureError):
    """Base exception for notification failures."""


class NotificationDeliveryError(NotificationError):
    """Raised when delivery fails (network, provider error, etc.)."""

    def __init__(self, recipient: str, reason: str) -> None:
        self.recipient = recipient
        super().__init__(f"Failed to deliver email to {recipient}: {reason}")


class TemplateNotFoundError(NotificationError):
    """Raised when no mail template or layout is registered under a name."""

    def __init__(self, name: str, kind: str = "template") -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"No mail {kind} named {name!r}")


__all__: list[str] = [
    "MfaEmailError",
    "MfaValidationError",
    "EmailValidationError",
    "MfaPolicyError",
    "ProviderInactiveError",
    "ProviderLockedError",
    "MfaInfrastructureError",
    "PropertyStoreError",
    "ConcurrentUpdateError",
    "NotificationError",
    "NotificationDeliveryError",
    "TemplateNotFoundError",
]
