"""Scoped access to one user's provider properties."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..exceptions import ConcurrentUpdateError, PropertyStoreError

if TYPE_CHECKING:
    from ..request import MfaUser
    from .ports import IPropertyStore, StoredEntry

logger = logging.getLogger(__name__)


class MfaProviderPropertyManager:
    """Read/write view of the properties of one ``(user, provider)`` pair.

    The manager keeps a snapshot of the entry loaded from the store, so reads
    are synchronous. Writes go straight to the store and update the snapshot
    on success. Every write stamps ``updated``; creation also stamps
    ``created``.

    Store failures are logged and reported as ``False``. Conditional writes
    (``conditional=True``) additionally raise ``ConcurrentUpdateError`` when
    another writer got there first; call ``refresh()`` and retry.

    Example:
        ```python
        manager = await MfaProviderPropertyManager.load(store, user, "email")
        if manager.has_provider_entry():
            await manager.update_properties({"active": False})
        ```
    """

    def __init__(
        self,
        store: IPropertyStore,
        user: MfaUser,
        identifier: str,
        *,
        entry: StoredEntry | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._store = store
        self._user = user
        self._identifier = identifier
        self._clock = clock or time.time
        self._set_snapshot(entry)

    @classmethod
    async def load(
        cls,
        store: IPropertyStore,
        user: MfaUser,
        identifier: str,
        *,
        clock: Callable[[], float] | None = None,
    ) -> MfaProviderPropertyManager:
        """Create a manager with the current stored entry.

        Raises:
            PropertyStoreError: If the store cannot be read.
        """
        entry = await store.fetch(user.user_id, identifier)
        return cls(store, user, identifier, entry=entry, clock=clock)

    def _set_snapshot(self, entry: StoredEntry | None) -> None:
        self._exists = entry is not None
        self._properties: dict[str, Any] = dict(entry.properties) if entry else {}
        self._version: int | None = entry.version if entry else None

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def user(self) -> MfaUser:
        return self._user

    @property
    def version(self) -> int | None:
        return self._version

    def has_provider_entry(self) -> bool:
        return self._exists

    def get_property(self, key: str, default: Any = None) -> Any:
        return self._properties.get(key, default)

    def get_properties(self) -> dict[str, Any]:
        return dict(self._properties)

    async def refresh(self) -> None:
        """Reload the snapshot from the store."""
        entry = await self._store.fetch(self._user.user_id, self._identifier)
        self._set_snapshot(entry)

    def _now(self) -> int:
        return int(self._clock())

    async def create_provider_entry(self, properties: dict[str, Any]) -> bool:
        """Create the entry with the given properties."""
        now = self._now()
        values = {**properties, "created": now, "updated": now}
        try:
            created = await self._store.create(
                self._user.user_id, self._identifier, values
            )
        except PropertyStoreError as e:
            logger.error(
                f"Failed to create {self._identifier} provider entry "
                f"for user {self._user.user_id}: {e}"
            )
            return False

        if not created:
            logger.warning(
                f"{self._identifier} provider entry already exists "
                f"for user {self._user.user_id}"
            )
            return False

        self._exists = True
        self._properties = values
        self._version = 1
        return True

    async def update_properties(
        self,
        properties: dict[str, Any],
        *,
        conditional: bool = False,
    ) -> bool:
        """Merge properties into the stored entry.

        Args:
            properties: Keys to set.
            conditional: Only write if nobody changed the entry since this
                manager last read or wrote it.

        Returns:
            True if the store accepted the write.

        Raises:
            ConcurrentUpdateError: On a conditional write against a newer
                stored version.
        """
        if not self._exists:
            return False

        values = {**properties, "updated": self._now()}
        expected_version = self._version if conditional else None
        try:
            updated = await self._store.update(
                self._user.user_id,
                self._identifier,
                values,
                expected_version=expected_version,
            )
        except ConcurrentUpdateError:
            logger.info(
                f"Concurrent update of {self._identifier} provider "
                f"for user {self._user.user_id}"
            )
            raise
        except PropertyStoreError as e:
            logger.error(
                f"Failed to update {self._identifier} provider "
                f"for user {self._user.user_id}: {e}"
            )
            return False

        if updated:
            self._properties.update(values)
            if self._version is not None:
                self._version += 1
        return updated


__all__: list[str] = ["MfaProviderPropertyManager"]
