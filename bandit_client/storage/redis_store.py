"""Redis-backed key-value store."""
from __future__ import annotations

from typing import Optional

import redis

from bandit_client.storage.base import KeyValueStore


class RedisKeyValueStore(KeyValueStore):
    """KeyValueStore implementation using plain Redis strings."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisKeyValueStore":
        return cls(redis.from_url(redis_url))

    def get_item(self, key: str) -> Optional[bytes]:
        raw = self.redis.get(key)
        if raw is None:
            return None
        if isinstance(raw, str):
            return raw.encode("utf-8")
        return bytes(raw)

    def set_item(self, key: str, value: bytes) -> None:
        self.redis.set(key, value)

    def remove_item(self, key: str) -> None:
        self.redis.delete(key)
