"""In-memory property store for testing and development."""

from __future__ import annotations

import copy
from typing import Any

from ..exceptions import ConcurrentUpdateError
from .ports import IPropertyStore, StoredEntry


class InMemoryPropertyStore(IPropertyStore):
    """In-memory implementation of IPropertyStore.

    ⚠️ WARNING: Entries (including pending auth codes) are kept in plain
    text in process memory. Do NOT use in production!
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], StoredEntry] = {}

    async def fetch(self, user_id: str, identifier: str) -> StoredEntry | None:
        entry = self._entries.get((user_id, identifier))
        if entry is None:
            return None
        return StoredEntry(copy.deepcopy(entry.properties), entry.version)

    async def create(
        self,
        user_id: str,
        identifier: str,
        properties: dict[str, Any],
    ) -> bool:
        key = (user_id, identifier)
        if key in self._entries:
            return False
        self._entries[key] = StoredEntry(dict(properties), 1)
        return True

    async def update(
        self,
        user_id: str,
        identifier: str,
        properties: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        key = (user_id, identifier)
        entry = self._entries.get(key)
        if entry is None:
            return False
        if expected_version is not None and entry.version != expected_version:
            raise ConcurrentUpdateError(expected_version, entry.version)
        self._entries[key] = StoredEntry(
            {**entry.properties, **properties}, entry.version + 1
        )
        return True

    def get_raw(self, user_id: str, identifier: str) -> dict[str, Any] | None:
        """Return a copy of the stored properties (test helper)."""
        entry = self._entries.get((user_id, identifier))
        return None if entry is None else dict(entry.properties)

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()


__all__: list[str] = ["InMemoryPropertyStore"]
