"""Provider property persistence: port, scoped manager, in-memory adapter."""

from __future__ import annotations

from .manager import MfaProviderPropertyManager
from .memory import InMemoryPropertyStore
from .ports import IPropertyStore, StoredEntry

__all__: list[str] = [
    "IPropertyStore",
    "StoredEntry",
    "MfaProviderPropertyManager",
    "InMemoryPropertyStore",
]
