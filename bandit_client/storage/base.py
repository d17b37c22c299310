"""Abstract interface for the key-value substrate assignments persist to."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Durable byte store with ``localStorage``-like semantics.

    Implementations are expected to be synchronous, fast and non-failing;
    the client performs no retry around them.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or ``None`` when the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: bytes) -> None:
        """Overwrite the value for ``key``."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete ``key``.  Must not raise when the key is absent."""
