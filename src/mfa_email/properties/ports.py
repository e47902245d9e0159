"""Property store port.

Provider properties are a small key-value record per
``(user_id, provider_identifier)``. The host owns the persistence; this
package only talks to it through ``IPropertyStore``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class StoredEntry:
    """A provider entry as read from the store.

    Attributes:
        properties: Stored key-value properties.
        version: Write counter, incremented by every successful write.
    """

    properties: dict[str, Any] = field(default_factory=dict)
    version: int = 1


@runtime_checkable
class IPropertyStore(Protocol):
    """Protocol for provider property persistence.

    Implementations map to whatever the host uses (a database table column,
    a document, a cache hash). Values are scalars, booleans and integers.
    """

    async def fetch(self, user_id: str, identifier: str) -> StoredEntry | None:
        """Load the entry for a user's provider.

        Args:
            user_id: User identifier.
            identifier: Provider identifier (e.g. ``"email"``).

        Returns:
            The entry, or None if the provider was never set up.

        Raises:
            PropertyStoreError: If the backend cannot be read.
        """
        ...

    async def create(
        self,
        user_id: str,
        identifier: str,
        properties: dict[str, Any],
    ) -> bool:
        """Create the entry for a user's provider.

        Returns:
            True if created, False if an entry already exists.

        Raises:
            PropertyStoreError: If the backend cannot be written.
        """
        ...

    async def update(
        self,
        user_id: str,
        identifier: str,
        properties: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        """Merge properties into an existing entry.

        Args:
            user_id: User identifier.
            identifier: Provider identifier.
            properties: Keys to set; other stored keys are kept.
            expected_version: When given, the write only succeeds if the
                stored version still matches.

        Returns:
            True if written, False if no entry exists.

        Raises:
            ConcurrentUpdateError: If ``expected_version`` does not match.
            PropertyStoreError: If the backend cannot be written.
        """
        ...


__all__: list[str] = ["StoredEntry", "IPropertyStore"]
