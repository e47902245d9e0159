"""Audit events for the email MFA provider.

Every state transition of a provider (activation, verification, lockout,
code delivery) can be recorded to an ``IMfaAuditStore`` for compliance and
security monitoring. Recording is optional.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class MfaEventType(Enum):
    """Types of MFA audit events.

    Event naming follows the pattern: `auth.mfa.<action>`
    """

    ENABLED = "auth.mfa.enabled"
    UPDATED = "auth.mfa.updated"
    DISABLED = "auth.mfa.disabled"
    VERIFIED = "auth.mfa.verified"
    FAILED = "auth.mfa.failed"
    LOCKED = "auth.mfa.locked"
    UNLOCKED = "auth.mfa.unlocked"
    CODE_SENT = "auth.mfa.code_sent"
    CODE_DELIVERY_FAILED = "auth.mfa.code_delivery_failed"


@dataclass(frozen=True)
class MfaAuditEvent:
    """MFA audit event.

    Attributes:
        event_type: The type of MFA event.
        principal_id: The user the provider belongs to.
        provider: Provider identifier.
        timestamp: When the event occurred (UTC).
        success: Whether the operation was successful.
        error_code: Error code if the operation failed.
        metadata: Additional event-specific data (never the auth code).
    """

    event_type: MfaEventType
    principal_id: str
    provider: str = "email"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    success: bool = True
    error_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.success and not self.error_code:
            object.__setattr__(self, "error_code", "UNKNOWN_ERROR")

    def to_dict(self) -> dict[str, Any]:
        """Convert event to a JSON-serializable dictionary."""
        return {
            "event_type": self.event_type.value,
            "principal_id": self.principal_id,
            "provider": self.provider,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "error_code": self.error_code,
            "metadata": self.metadata,
        }


@runtime_checkable
class IMfaAuditStore(Protocol):
    """Protocol for MFA audit event storage."""

    async def record(self, event: MfaAuditEvent) -> None:
        """Record an audit event."""
        ...

    async def get_events(
        self,
        principal_id: str,
        *,
        event_types: list[MfaEventType] | None = None,
        limit: int = 100,
    ) -> list[MfaAuditEvent]:
        """Get audit events for a principal, most recent first."""
        ...


class InMemoryMfaAuditStore(IMfaAuditStore):
    """In-memory implementation of IMfaAuditStore.

    Note:
        Events are stored in memory and will be lost on restart.
        Not suitable for production use.
    """

    def __init__(self) -> None:
        self._events: list[MfaAuditEvent] = []
        self._by_principal: dict[str, list[int]] = defaultdict(list)

    async def record(self, event: MfaAuditEvent) -> None:
        self._by_principal[event.principal_id].append(len(self._events))
        self._events.append(event)

    async def get_events(
        self,
        principal_id: str,
        *,
        event_types: list[MfaEventType] | None = None,
        limit: int = 100,
    ) -> list[MfaAuditEvent]:
        results: list[MfaAuditEvent] = []
        for idx in reversed(self._by_principal.get(principal_id, [])):
            event = self._events[idx]
            if event_types and event.event_type not in event_types:
                continue
            results.append(event)
            if len(results) >= limit:
                break
        return results

    def event_types(self) -> list[MfaEventType]:
        """All recorded event types in recording order."""
        return [e.event_type for e in self._events]

    def clear(self) -> None:
        self._events.clear()
        self._by_principal.clear()

    def count(self) -> int:
        return len(self._events)


__all__: list[str] = [
    "MfaEventType",
    "MfaAuditEvent",
    "IMfaAuditStore",
    "InMemoryMfaAuditStore",
]
