"""Tests for view handling and auth code issuance."""

from __future__ import annotations

from typing import Any

import pytest

from mfa_email import (
    EmailMfaProvider,
    InMemoryFlashMessageQueue,
    InMemoryMfaAuditStore,
    InMemoryPropertyStore,
    MailProviderConfig,
    MfaEventType,
    MfaProviderPropertyManager,
    MfaRequest,
    MfaUser,
    MfaViewType,
)
from mfa_email.codes import is_auth_code
from mfa_email.exceptions import ConcurrentUpdateError
from mfa_email.notifications import (
    FailingSender,
    InMemorySender,
    InMemoryTemplateProvider,
    JinjaTemplateRenderer,
    MailSender,
    SmtpEmailSender,
    TemplatedEmailNotifier,
)


async def set_up_active(
    provider: EmailMfaProvider, manager: MfaProviderPropertyManager
) -> None:
    assert await provider.activate(
        MfaRequest(parsed_body={"email": "user@example.com"}), manager
    )


def auth_request(**query: str) -> MfaRequest:
    return MfaRequest(query_params=query)


class RacingStore(InMemoryPropertyStore):
    """Store where another request issues a code right before ours."""

    def __init__(self, competing_code: str) -> None:
        super().__init__()
        self.competing_code = competing_code

    async def update(
        self,
        user_id: str,
        identifier: str,
        properties: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        if expected_version is not None and "authCode" in properties:
            await super().update(user_id, identifier, {"authCode": self.competing_code})
        return await super().update(
            user_id, identifier, properties, expected_version=expected_version
        )


class TestEditView:
    @pytest.mark.asyncio
    async def test_setup_suggests_account_email(
        self, provider: EmailMfaProvider, manager: MfaProviderPropertyManager
    ) -> None:
        response = await provider.handle_request(MfaRequest(), manager, MfaViewType.SETUP)

        assert response.status == 200
        assert 'value="account@example.com"' in response.body
        assert 'data-provider="email"' in response.body

    @pytest.mark.asyncio
    async def test_edit_shows_configured_email_and_dates(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
    ) -> None:
        await set_up_active(provider, manager)

        response = await provider.handle_request(MfaRequest(), manager, MfaViewType.EDIT)

        assert 'value="user@example.com"' in response.body
        assert "Last updated:" in response.body
        assert "Last used:" not in response.body

    @pytest.mark.asyncio
    async def test_edit_view_does_not_send(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)

        await provider.handle_request(MfaRequest(), manager, MfaViewType.EDIT)

        assert sender.sent_messages == []

    @pytest.mark.asyncio
    async def test_user_without_email(
        self, provider: EmailMfaProvider, store: InMemoryPropertyStore
    ) -> None:
        manager = MfaProviderPropertyManager(store, MfaUser(user_id="u-1"), "email")

        response = await provider.handle_request(MfaRequest(), manager, MfaViewType.SETUP)

        assert 'value=""' in response.body


class TestAuthView:
    @pytest.mark.asyncio
    async def test_first_render_issues_and_sends_code(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        store: InMemoryPropertyStore,
        sender: InMemorySender,
        audit_store: InMemoryMfaAuditStore,
    ) -> None:
        await set_up_active(provider, manager)

        response = await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)

        auth_code = store.get_raw("test-user-123", "email")["authCode"]
        assert is_auth_code(auth_code)
        sender.assert_sent("user@example.com")
        assert auth_code in sender.sent_messages[0].content.body_text
        assert 'name="authCode"' in response.body
        assert "could not be sent" not in response.body
        events = await audit_store.get_events(
            "test-user-123", event_types=[MfaEventType.CODE_SENT]
        )
        assert events[0].metadata == {"resend": False}

    @pytest.mark.asyncio
    async def test_second_render_does_not_resend(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        store: InMemoryPropertyStore,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)
        await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)
        auth_code = store.get_raw("test-user-123", "email")["authCode"]

        await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)

        sender.assert_sent("user@example.com", count=1)
        assert store.get_raw("test-user-123", "email")["authCode"] == auth_code

    @pytest.mark.asyncio
    async def test_resend_sends_the_outstanding_code(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        store: InMemoryPropertyStore,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)
        await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)
        auth_code = store.get_raw("test-user-123", "email")["authCode"]

        await provider.handle_request(auth_request(resend="1"), manager, MfaViewType.AUTH)

        sender.assert_sent("user@example.com", count=2)
        assert auth_code in sender.sent_messages[1].content.body_text
        assert store.get_raw("test-user-123", "email")["authCode"] == auth_code

    @pytest.mark.asyncio
    async def test_resend_link_keeps_query(
        self, provider: EmailMfaProvider, manager: MfaProviderPropertyManager
    ) -> None:
        await set_up_active(provider, manager)

        response = await provider.handle_request(
            auth_request(route="login"), manager, MfaViewType.AUTH
        )

        assert 'href="?route=login&amp;resend=1"' in response.body

    @pytest.mark.asyncio
    async def test_new_code_after_verification(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)
        await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)
        first_code = manager.get_property("authCode")
        assert await provider.verify(MfaRequest(parsed_body={"authCode": first_code}), manager)

        await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)

        sender.assert_sent("user@example.com", count=2)
        assert is_auth_code(manager.get_property("authCode"))

    @pytest.mark.asyncio
    async def test_locked_provider_shows_lock_and_sends_nothing(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)
        await manager.update_properties({"attempts": 3})

        response = await provider.handle_request(
            auth_request(resend="1"), manager, MfaViewType.AUTH
        )

        assert "locked" in response.body
        assert 'name="authCode"' not in response.body
        assert sender.sent_messages == []
        assert manager.get_property("authCode") == ""

    @pytest.mark.asyncio
    async def test_malformed_stored_code_is_replaced(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)
        await manager.update_properties({"authCode": "12ab"})

        await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)

        assert is_auth_code(manager.get_property("authCode"))
        sender.assert_sent("user@example.com")


class TestDelivery:
    @pytest.mark.asyncio
    async def test_transport_failure_keeps_code(
        self,
        manager: MfaProviderPropertyManager,
        store: InMemoryPropertyStore,
        flash_queue: InMemoryFlashMessageQueue,
        audit_store: InMemoryMfaAuditStore,
        config: MailProviderConfig,
    ) -> None:
        failing = FailingSender("smtp down")
        provider = EmailMfaProvider(
            config=config,
            notifier=TemplatedEmailNotifier(
                template_provider=InMemoryTemplateProvider(),
                renderer=JinjaTemplateRenderer(),
                sender=failing,
            ),
            flash_messages=flash_queue,
            audit_store=audit_store,
        )
        await set_up_active(provider, manager)

        response = await provider.handle_request(auth_request(), manager, MfaViewType.AUTH)

        assert failing.attempts == 1
        assert is_auth_code(store.get_raw("test-user-123", "email")["authCode"])
        assert "could not be sent" in response.body
        events = await audit_store.get_events(
            "test-user-123", event_types=[MfaEventType.CODE_DELIVERY_FAILED]
        )
        assert events[0].error_code == "DELIVERY_FAILED"

    @pytest.mark.asyncio
    async def test_missing_template_is_reported_as_failure(
        self,
        manager: MfaProviderPropertyManager,
        notifier: TemplatedEmailNotifier,
        flash_queue: InMemoryFlashMessageQueue,
    ) -> None:
        provider = EmailMfaProvider(
            config=MailProviderConfig(mail_template_name="DoesNotExist"),
            notifier=notifier,
            flash_messages=flash_queue,
        )
        await set_up_active(provider, manager)

        record = await provider.issue_or_resend_code(manager)

        assert record is not None
        assert not record.succeeded
        assert "DoesNotExist" in (record.error or "")

    @pytest.mark.asyncio
    async def test_configured_sender_is_used(
        self,
        manager: MfaProviderPropertyManager,
        notifier: TemplatedEmailNotifier,
        sender: InMemorySender,
        flash_queue: InMemoryFlashMessageQueue,
    ) -> None:
        provider = EmailMfaProvider(
            config=MailProviderConfig(
                mail_sender_email="noreply@example.com", mail_sender_name="Backend"
            ),
            notifier=notifier,
            flash_messages=flash_queue,
        )
        await set_up_active(provider, manager)

        await provider.issue_or_resend_code(manager)

        assert sender.sent_messages[0].sender == MailSender("noreply@example.com", "Backend")

    @pytest.mark.asyncio
    async def test_no_sender_configured(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        sender: InMemorySender,
    ) -> None:
        await set_up_active(provider, manager)

        await provider.issue_or_resend_code(manager)

        assert sender.sent_messages[0].sender is None

    @pytest.mark.asyncio
    async def test_inactive_provider_issues_nothing(
        self,
        provider: EmailMfaProvider,
        manager: MfaProviderPropertyManager,
        sender: InMemorySender,
    ) -> None:
        assert await provider.issue_or_resend_code(manager, force_resend=True) is None
        assert sender.sent_messages == []


class TestConcurrentIssuance:
    @pytest.mark.asyncio
    async def test_competing_code_is_adopted(
        self,
        provider: EmailMfaProvider,
        user: MfaUser,
        sender: InMemorySender,
        clock: Any,
    ) -> None:
        store = RacingStore(competing_code="555123")
        manager = MfaProviderPropertyManager(store, user, "email", clock=clock)
        await set_up_active(provider, manager)

        record = await provider.issue_or_resend_code(manager)

        # The other request mails its own code
        assert record is None
        assert manager.get_property("authCode") == "555123"
        assert sender.sent_messages == []

    @pytest.mark.asyncio
    async def test_competing_code_is_resent_on_request(
        self,
        provider: EmailMfaProvider,
        user: MfaUser,
        sender: InMemorySender,
        clock: Any,
    ) -> None:
        store = RacingStore(competing_code="555123")
        manager = MfaProviderPropertyManager(store, user, "email", clock=clock)
        await set_up_active(provider, manager)

        record = await provider.issue_or_resend_code(manager, force_resend=True)

        assert record is not None and record.succeeded
        assert "555123" in sender.sent_messages[0].content.body_text

    def test_conflict_error_message(self) -> None:
        assert str(ConcurrentUpdateError(1, 2)) == "Expected version 1, found 2"


@pytest.mark.asyncio
async def test_unsupported_view_type(
    provider: EmailMfaProvider, manager: MfaProviderPropertyManager
) -> None:
    with pytest.raises(ValueError, match="Unsupported view type"):
        await provider.handle_request(MfaRequest(), manager, "bogus")  # type: ignore[arg-type]


class RaisingNotifier:
    """Notifier whose transport raises instead of reporting a failed record."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def notify(
        self,
        recipient: str,
        template_name: str,
        variables: dict[str, Any],
        *,
        layout_name: str | None = None,
        sender: MailSender | None = None,
    ) -> Any:
        self.calls += 1
        raise self.error


class AttemptBumpingStore(InMemoryPropertyStore):
    """Store where a failed attempt lands right before the first code write."""

    def __init__(self, attempts: int = 1) -> None:
        super().__init__()
        self.attempts = attempts
        self.bumped = False

    async def update(
        self,
        user_id: str,
        identifier: str,
        properties: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        if expected_version is not None and "authCode" in properties and not self.bumped:
            self.bumped = True
            await super().update(user_id, identifier, {"attempts": self.attempts})
        return await super().update(
            user_id, identifier, properties, expected_version=expected_version
        )


class TestNotifierFailures:
    @pytest.mark.asyncio
    async def test_smtp_without_sender_shows_delivery_failure(
        self,
        manager: MfaProviderPropertyManager,
        store: InMemoryPropertyStore,
        flash_queue: InMemoryFlashMessageQueue,
        audit_store: InMemoryMfaAuditStore,
    ) -> None:
        provider = EmailMfaProvider(
            notifier=TemplatedEmailNotifier(
                template_provider=InMemoryTemplateProvider(),
                renderer=JinjaTemplateRenderer(),
                sender=SmtpEmailSender("localhost"),
            ),
            flash_messages=flash_queue,
            audit_store=audit_store,
        )
        await set_up_active(provider, manager)

        response = await provider.handle_request(MfaRequest(), manager, MfaViewType.AUTH)

        assert "could not be sent" in response.body
        assert is_auth_code(store.get_raw("test-user-123", "email")["authCode"])
        assert MfaEventType.CODE_DELIVERY_FAILED in audit_store.event_types()

    @pytest.mark.asyncio
    async def test_raising_notifier_is_absorbed(
        self,
        manager: MfaProviderPropertyManager,
        store: InMemoryPropertyStore,
        flash_queue: InMemoryFlashMessageQueue,
        audit_store: InMemoryMfaAuditStore,
    ) -> None:
        notifier = RaisingNotifier(ConnectionError("smtp down"))
        provider = EmailMfaProvider(
            notifier=notifier,
            flash_messages=flash_queue,
            audit_store=audit_store,
        )
        await set_up_active(provider, manager)

        response = await provider.handle_request(MfaRequest(), manager, MfaViewType.AUTH)

        assert notifier.calls == 1
        assert "could not be sent" in response.body
        assert is_auth_code(store.get_raw("test-user-123", "email")["authCode"])
        events = await audit_store.get_events(
            "test-user-123", event_types=[MfaEventType.CODE_DELIVERY_FAILED]
        )
        assert events[0].error_code == "DELIVERY_FAILED"

    @pytest.mark.asyncio
    async def test_raising_notifier_on_resend(
        self,
        manager: MfaProviderPropertyManager,
        flash_queue: InMemoryFlashMessageQueue,
    ) -> None:
        provider = EmailMfaProvider(
            notifier=RaisingNotifier(RuntimeError()),
            flash_messages=flash_queue,
        )
        await set_up_active(provider, manager)
        await manager.update_properties({"authCode": "123456"})

        record = await provider.issue_or_resend_code(manager, force_resend=True)

        assert record is not None
        assert not record.succeeded
        assert record.error == "RuntimeError"
        assert manager.get_property("authCode") == "123456"


class TestIssuanceAfterUnrelatedWrite:
    @pytest.mark.asyncio
    async def test_code_is_issued_after_attempts_changed(
        self,
        provider: EmailMfaProvider,
        user: MfaUser,
        sender: InMemorySender,
        clock: Any,
    ) -> None:
        store = AttemptBumpingStore()
        manager = MfaProviderPropertyManager(store, user, "email", clock=clock)
        await set_up_active(provider, manager)

        response = await provider.handle_request(MfaRequest(), manager, MfaViewType.AUTH)

        raw = store.get_raw(user.user_id, "email")
        assert store.bumped
        assert raw["attempts"] == 1
        assert is_auth_code(raw["authCode"])
        sender.assert_sent("user@example.com")
        assert raw["authCode"] in sender.sent_messages[0].content.body_text
        assert "could not be sent" not in response.body

    @pytest.mark.asyncio
    async def test_lock_during_issuance_stops_it(
        self,
        provider: EmailMfaProvider,
        user: MfaUser,
        sender: InMemorySender,
        clock: Any,
    ) -> None:
        store = AttemptBumpingStore(attempts=3)
        manager = MfaProviderPropertyManager(store, user, "email", clock=clock)
        await set_up_active(provider, manager)

        assert await provider.issue_or_resend_code(manager) is None

        assert store.get_raw(user.user_id, "email")["authCode"] == ""
        assert sender.sent_messages == []
