"""mfa-email

Email one-time-code second factor for backend logins.

A 6-digit code is mailed to the user's registered address when the auth
screen is shown and verified on submit, with attempt tracking and lockout.
Persistence, mail transport and flash messages are ports the host platform
implements; in-memory adapters are included for tests.

Usage:
    ```python
    from mfa_email import (
        EmailMfaProvider,
        MailProviderConfig,
        MfaProviderPropertyManager,
        MfaRequest,
        MfaViewType,
    )

    manager = await MfaProviderPropertyManager.load(store, user, "email")
    await provider.activate(MfaRequest(parsed_body={"email": "me@example.com"}), manager)
    await provider.handle_request(MfaRequest(), manager, MfaViewType.AUTH)
    ok = await provider.verify(MfaRequest(parsed_body={"authCode": code}), manager)
    ```

Submodules:
    - `properties`: property store port, scoped manager, in-memory store
    - `notifications`: mail templates, Jinja2 renderer, SMTP sender
    - `audit`: MFA audit events
    - `views`: edit/auth view rendering
"""

from __future__ import annotations

from .audit import IMfaAuditStore, InMemoryMfaAuditStore, MfaAuditEvent, MfaEventType
from .codes import coerce_attempts, codes_match, generate_auth_code, is_auth_code
from .config import UNLIMITED_ATTEMPTS, MailProviderConfig
from .exceptions import (
    ConcurrentUpdateError,
    EmailValidationError,
    MfaEmailError,
    MfaInfrastructureError,
    MfaPolicyError,
    MfaValidationError,
    NotificationDeliveryError,
    NotificationError,
    PropertyStoreError,
    ProviderInactiveError,
    ProviderLockedError,
    TemplateNotFoundError,
)
from .flash import (
    FlashMessage,
    FlashSeverity,
    IFlashMessageQueue,
    InMemoryFlashMessageQueue,
)
from .properties import (
    InMemoryPropertyStore,
    IPropertyStore,
    MfaProviderPropertyManager,
    StoredEntry,
)
from .provider import PROVIDER_IDENTIFIER, EmailMfaProvider
from .request import MfaRequest, MfaResponse, MfaUser, MfaViewType
from .validation import check_valid_email, is_email_valid
from .views import IViewRenderer, JinjaViewRenderer

__version__ = "2.0.0"

__all__: list[str] = [
    # Provider
    "EmailMfaProvider",
    "PROVIDER_IDENTIFIER",
    "MailProviderConfig",
    "UNLIMITED_ATTEMPTS",
    # Request / response
    "MfaRequest",
    "MfaResponse",
    "MfaUser",
    "MfaViewType",
    # Properties
    "IPropertyStore",
    "StoredEntry",
    "MfaProviderPropertyManager",
    "InMemoryPropertyStore",
    # Codes & validation
    "generate_auth_code",
    "is_auth_code",
    "coerce_attempts",
    "codes_match",
    "is_email_valid",
    "check_valid_email",
    # Flash messages
    "FlashMessage",
    "FlashSeverity",
    "IFlashMessageQueue",
    "InMemoryFlashMessageQueue",
    # Views
    "IViewRenderer",
    "JinjaViewRenderer",
    # Audit
    "MfaEventType",
    "MfaAuditEvent",
    "IMfaAuditStore",
    "InMemoryMfaAuditStore",
    # Exceptions
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
