"""Email MFA provider.

Sends a one-time numeric code to the user's registered email address and
verifies it, with attempt tracking and lockout. All state lives in the
provider properties of the user (see ``MfaProviderPropertyManager``); the
provider itself only holds configuration and collaborators.

Public operations return booleans. Validation errors are reported to the user
through the flash message queue; policy violations (inactive, locked) are
silent no-ops; store failures are logged and returned as ``False``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .audit import MfaAuditEvent, MfaEventType
from .codes import codes_match, coerce_attempts, generate_auth_code, is_auth_code
from .config import MailProviderConfig
from .exceptions import (
    ConcurrentUpdateError,
    MfaPolicyError,
    NotificationError,
    PropertyStoreError,
    ProviderInactiveError,
    ProviderLockedError,
)
from .notifications.delivery import DeliveryRecord, MailSender
from .request import MfaResponse, MfaViewType
from .validation import check_valid_email
from .views import (
    AUTH_TEMPLATE,
    EDIT_TEMPLATE,
    JinjaViewRenderer,
    build_resend_link,
    format_timestamp,
)

if TYPE_CHECKING:
    from .audit import IMfaAuditStore
    from .flash import IFlashMessageQueue
    from .notifications.ports import IAuthCodeNotifier
    from .properties.manager import MfaProviderPropertyManager
    from .request import MfaRequest
    from .views import IViewRenderer

logger = logging.getLogger(__name__)

PROVIDER_IDENTIFIER = "email"

# Conditional writes lost to a concurrent request are retried this often.
_MAX_WRITE_CONFLICTS = 3


class EmailMfaProvider:
    """Email one-time-code MFA provider.

    Example:
        ```python
        provider = EmailMfaProvider(
            config=MailProviderConfig(max_attempts=3),
            notifier=TemplatedEmailNotifier(
                template_provider=InMemoryTemplateProvider(),
                renderer=JinjaTemplateRenderer(),
                sender=SmtpEmailSender("smtp.example.com", default_sender=...),
            ),
            flash_messages=flash_queue,
        )

        manager = await MfaProviderPropertyManager.load(store, user, "email")

        # Showing the auth screen issues (and mails) a code
        response = await provider.handle_request(request, manager, MfaViewType.AUTH)

        # The submitted form is verified against the stored code
        if await provider.verify(submitted, manager):
            ...
        ```
    """

    def __init__(
        self,
        *,
        notifier: IAuthCodeNotifier,
        flash_messages: IFlashMessageQueue,
        config: MailProviderConfig | None = None,
        view_renderer: IViewRenderer | None = None,
        audit_store: IMfaAuditStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            notifier: Delivers auth code emails.
            flash_messages: Queue for user-visible error messages.
            config: Provider configuration (defaults: unlimited attempts).
            view_renderer: Renderer for the edit/auth views.
            audit_store: Optional store for audit events.
            clock: Time source returning a unix timestamp.
        """
        self.notifier = notifier
        self.flash_messages = flash_messages
        self.config = config or MailProviderConfig()
        self.view_renderer = view_renderer or JinjaViewRenderer()
        self.audit_store = audit_store
        self._clock = clock or time.time

    # ── State queries ────────────────────────────────────────────────

    def can_process(self, request: MfaRequest) -> bool:
        """Whether the provider can handle the request (always)."""
        return True

    def is_active(self, properties: MfaProviderPropertyManager) -> bool:
        """Evaluate if the provider is activated."""
        return bool(properties.get_property("active", False))

    def is_locked(self, properties: MfaProviderPropertyManager) -> bool:
        """Evaluate if the provider is temporarily locked.

        A provider can only be locked if it was set up, so stale attempt
        counters of a missing entry never lock it.
        """
        attempts = coerce_attempts(properties.get_property("attempts", 0))
        return (
            properties.has_provider_entry()
            and self.config.has_attempt_limit
            and attempts >= self.config.max_attempts
        )

    def _ensure_usable(self, properties: MfaProviderPropertyManager) -> None:
        if not self.is_active(properties):
            raise ProviderInactiveError(
                f"Email MFA is not active for user {properties.user.user_id}"
            )
        if self.is_locked(properties):
            raise ProviderLockedError(
                attempts=coerce_attempts(properties.get_property("attempts", 0)),
                max_attempts=self.config.max_attempts,
            )

    # ── Lifecycle ────────────────────────────────────────────────────

    async def activate(
        self, request: MfaRequest, properties: MfaProviderPropertyManager
    ) -> bool:
        """Activate the provider (same as ``update``)."""
        return await self.update(request, properties)

    async def update(
        self, request: MfaRequest, properties: MfaProviderPropertyManager
    ) -> bool:
        """Store the submitted email address and activate the provider.

        Creates the provider entry on first use. Empty or invalid addresses
        queue a flash message and leave the properties untouched.
        """
        if not self.can_process(request):
            return False

        email = str(request.get_body_field("email") or "").strip()
        if not check_valid_email(email, self.flash_messages):
            logger.info(
                f"Rejected email address for user {properties.user.user_id}"
            )
            return False

        values: dict[str, Any] = {"email": email, "active": True}
        if properties.has_provider_entry():
            event_type = (
                MfaEventType.UPDATED
                if self.is_active(properties)
                else MfaEventType.ENABLED
            )
            result = await properties.update_properties(values)
        else:
            event_type = MfaEventType.ENABLED
            result = await properties.create_provider_entry(
                {**values, "authCode": "", "attempts": 0}
            )

        if result:
            logger.info(
                f"Email MFA {event_type.name.lower()} for user {properties.user.user_id}"
            )
            await self._audit(event_type, properties)
        return result

    async def deactivate(
        self, request: MfaRequest, properties: MfaProviderPropertyManager
    ) -> bool:
        """Deactivate the provider, keeping email, code and attempts."""
        if not self.is_active(properties):
            return False

        result = await properties.update_properties({"active": False})
        if result:
            logger.info(f"Email MFA disabled for user {properties.user.user_id}")
            await self._audit(MfaEventType.DISABLED, properties)
        return result

    async def unlock(
        self, request: MfaRequest, properties: MfaProviderPropertyManager
    ) -> bool:
        """Reset the attempt counter of an active, locked provider."""
        if not self.is_active(properties) or not self.is_locked(properties):
            return False

        result = await properties.update_properties({"attempts": 0})
        if result:
            logger.info(f"Email MFA unlocked for user {properties.user.user_id}")
            await self._audit(MfaEventType.UNLOCKED, properties)
        return result

    # ── Code issuance ────────────────────────────────────────────────

    async def issue_or_resend_code(
        self,
        properties: MfaProviderPropertyManager,
        force_resend: bool = False,
    ) -> DeliveryRecord | None:
        """Make sure an auth code is outstanding and mail it if needed.

        A new code is generated and stored when none is outstanding. The code
        is mailed when it was just generated or ``force_resend`` is set. The
        code is stored before sending, so a failing transport leaves a valid
        code behind (the user can ask for a resend).

        Returns:
            The delivery record, or None if nothing was sent.
        """
        user_id = properties.user.user_id
        newly_issued = False
        try:
            self._ensure_usable(properties)
            for _ in range(_MAX_WRITE_CONFLICTS):
                if is_auth_code(properties.get_property("authCode", "")):
                    break
                try:
                    newly_issued = await properties.update_properties(
                        {"authCode": generate_auth_code()}, conditional=True
                    )
                except ConcurrentUpdateError:
                    # Adopt a code issued by a parallel request, else try again
                    await properties.refresh()
                    self._ensure_usable(properties)
                    continue
                if not newly_issued:
                    logger.error(f"Could not store auth code for user {user_id}")
                    return None
                break
        except MfaPolicyError as e:
            logger.debug(f"No auth code issued: {e}")
            return None
        except PropertyStoreError as e:
            logger.error(f"Could not issue auth code for user {user_id}: {e}")
            return None

        auth_code = properties.get_property("authCode", "")
        if not is_auth_code(auth_code):
            logger.error(
                f"Could not issue auth code for user {user_id} "
                f"after {_MAX_WRITE_CONFLICTS} concurrent updates"
            )
            return None

        if not (newly_issued or force_resend):
            return None

        email = properties.get_property("email", "")
        if not email:
            logger.error(f"No email address configured for user {user_id}")
            return None

        try:
            record = await self.notifier.notify(
                email,
                self.config.mail_template_name,
                {
                    "authCode": auth_code,
                    "email": email,
                    "layoutName": self.config.mail_layout_name,
                },
                layout_name=self.config.mail_layout_name,
                sender=self._mail_sender(),
            )
        except NotificationError as e:
            record = DeliveryRecord.failed(email, error=str(e))
        except Exception as e:
            logger.exception(f"Auth code notifier failed for user {user_id}")
            record = DeliveryRecord.failed(email, error=str(e) or type(e).__name__)

        metadata = {"resend": force_resend and not newly_issued}
        if record.succeeded:
            logger.info(f"Auth code sent to user {user_id}")
            await self._audit(MfaEventType.CODE_SENT, properties, **metadata)
        else:
            logger.error(f"Auth code delivery failed for user {user_id}: {record.error}")
            await self._audit(
                MfaEventType.CODE_DELIVERY_FAILED,
                properties,
                success=False,
                error_code="DELIVERY_FAILED",
                **metadata,
            )
        return record

    def _mail_sender(self) -> MailSender | None:
        if not self.config.mail_sender_email:
            return None
        return MailSender(self.config.mail_sender_email, self.config.mail_sender_name)

    # ── Verification ─────────────────────────────────────────────────

    async def verify(
        self, request: MfaRequest, properties: MfaProviderPropertyManager
    ) -> bool:
        """Verify the submitted auth code.

        The code is read from the query (preferred) or the body. A match
        clears the code, resets the attempts and stamps ``lastUsed``; a
        mismatch increments the attempts.
        """
        candidate = str(request.get_param("authCode", "")).strip()

        try:
            self._ensure_usable(properties)
            for _ in range(_MAX_WRITE_CONFLICTS):
                try:
                    if codes_match(properties.get_property("authCode", ""), candidate):
                        return await self._complete_verification(properties)
                    return await self._record_failed_attempt(properties)
                except ConcurrentUpdateError:
                    await properties.refresh()
                    self._ensure_usable(properties)
        except MfaPolicyError as e:
            logger.info(f"Verification rejected: {e}")
            return False
        except PropertyStoreError as e:
            logger.error(
                f"Verification for user {properties.user.user_id} aborted: {e}"
            )
            return False

        logger.error(
            f"Verification for user {properties.user.user_id} gave up "
            f"after {_MAX_WRITE_CONFLICTS} concurrent updates"
        )
        return False

    async def _complete_verification(self, properties: MfaProviderPropertyManager) -> bool:
        result = await properties.update_properties(
            {"authCode": "", "attempts": 0, "lastUsed": int(self._clock())},
            conditional=True,
        )
        if result:
            logger.info(f"Email MFA verified for user {properties.user.user_id}")
            await self._audit(MfaEventType.VERIFIED, properties)
        return result

    async def _record_failed_attempt(self, properties: MfaProviderPropertyManager) -> bool:
        attempts = coerce_attempts(properties.get_property("attempts")) + 1
        stored = await properties.update_properties(
            {"attempts": attempts}, conditional=True
        )
        await self._audit(
            MfaEventType.FAILED,
            properties,
            success=False,
            error_code="INVALID_CODE",
            attempts=attempts,
        )
        if (
            stored
            and self.config.has_attempt_limit
            and attempts == self.config.max_attempts
        ):
            logger.warning(
                f"Email MFA locked for user {properties.user.user_id} "
                f"after {attempts} failed attempts"
            )
            await self._audit(MfaEventType.LOCKED, properties, attempts=attempts)
        return False

    # ── Views ────────────────────────────────────────────────────────

    async def handle_request(
        self,
        request: MfaRequest,
        properties: MfaProviderPropertyManager,
        view_type: MfaViewType,
    ) -> MfaResponse:
        """Render the view of the given type.

        Rendering the auth view issues a code (and mails it) if none is
        outstanding, or re-sends it when the query carries ``resend=1``.
        """
        if view_type in (MfaViewType.SETUP, MfaViewType.EDIT):
            template_name = EDIT_TEMPLATE
            variables = self._prepare_edit_view(properties)
        elif view_type is MfaViewType.AUTH:
            template_name = AUTH_TEMPLATE
            variables = await self._prepare_auth_view(request, properties)
        else:
            raise ValueError(f"Unsupported view type: {view_type!r}")

        variables["providerIdentifier"] = properties.identifier
        return MfaResponse(body=self.view_renderer.render(template_name, variables))

    def _prepare_edit_view(self, properties: MfaProviderPropertyManager) -> dict[str, Any]:
        date_format = self.config.date_format
        return {
            "email": properties.get_property("email") or properties.user.email or "",
            "lastUsed": format_timestamp(properties.get_property("lastUsed", 0), date_format),
            "updated": format_timestamp(properties.get_property("updated", 0), date_format),
        }

    async def _prepare_auth_view(
        self, request: MfaRequest, properties: MfaProviderPropertyManager
    ) -> dict[str, Any]:
        query_params = dict(request.query_params)
        resend = query_params.get("resend") == "1"

        record = await self.issue_or_resend_code(properties, resend)
        return {
            "isLocked": self.is_locked(properties),
            "deliveryFailed": record is not None and not record.succeeded,
            "resendLink": build_resend_link(query_params),
        }

    # ── Audit ────────────────────────────────────────────────────────

    async def _audit(
        self,
        event_type: MfaEventType,
        properties: MfaProviderPropertyManager,
        *,
        success: bool = True,
        error_code: str | None = None,
        **metadata: Any,
    ) -> None:
        if self.audit_store is None:
            return
        event = MfaAuditEvent(
            event_type=event_type,
            principal_id=properties.user.user_id,
            provider=properties.identifier,
            success=success,
            error_code=error_code,
            metadata=metadata,
        )
        try:
            await self.audit_store.record(event)
        except Exception:
            logger.exception(f"Failed to record audit event {event_type.value}")


__all__: list[str] = ["EmailMfaProvider", "PROVIDER_IDENTIFIER"]
