"""Dict-backed key-value store for tests and throwaway clients."""

from __future__ import annotations

from bandit_client.storage.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Keeps blobs in a plain dict, so they vanish with the process.

    The default substrate of :class:`~bandit_client.client.BanditClient`;
    pass a Redis store instead when assignments must outlive a restart.
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get_item(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set_item(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data
