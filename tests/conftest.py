"""Test configuration and fixtures."""

from __future__ import annotations

import pytest

from mfa_email import (
    EmailMfaProvider,
    InMemoryFlashMessageQueue,
    InMemoryMfaAuditStore,
    InMemoryPropertyStore,
    MailProviderConfig,
    MfaProviderPropertyManager,
    MfaUser,
)
from mfa_email.notifications import (
    InMemorySender,
    InMemoryTemplateProvider,
    JinjaTemplateRenderer,
    TemplatedEmailNotifier,
)

pytest_plugins = ["pytest_asyncio"]

NOW = 1_700_000_000


class FakeClock:
    """Controllable unix time source."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user() -> MfaUser:
    """Create a test backend user."""
    return MfaUser(
        user_id="test-user-123",
        email="account@example.com",
        username="testuser",
    )


@pytest.fixture
def store() -> InMemoryPropertyStore:
    return InMemoryPropertyStore()


@pytest.fixture
def manager(
    store: InMemoryPropertyStore, user: MfaUser, clock: FakeClock
) -> MfaProviderPropertyManager:
    """Property manager of a user that never set up the provider."""
    return MfaProviderPropertyManager(store, user, "email", clock=clock)


@pytest.fixture
def flash_queue() -> InMemoryFlashMessageQueue:
    return InMemoryFlashMessageQueue()


@pytest.fixture
def sender() -> InMemorySender:
    return InMemorySender()


@pytest.fixture
def notifier(sender: InMemorySender) -> TemplatedEmailNotifier:
    return TemplatedEmailNotifier(
        template_provider=InMemoryTemplateProvider(),
        renderer=JinjaTemplateRenderer(),
        sender=sender,
    )


@pytest.fixture
def audit_store() -> InMemoryMfaAuditStore:
    return InMemoryMfaAuditStore()


@pytest.fixture
def config() -> MailProviderConfig:
    return MailProviderConfig(max_attempts=3)


@pytest.fixture
def provider(
    config: MailProviderConfig,
    notifier: TemplatedEmailNotifier,
    flash_queue: InMemoryFlashMessageQueue,
    audit_store: InMemoryMfaAuditStore,
    clock: FakeClock,
) -> EmailMfaProvider:
    return EmailMfaProvider(
        config=config,
        notifier=notifier,
        flash_messages=flash_queue,
        audit_store=audit_store,
        clock=clock,
    )
