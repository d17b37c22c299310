"""Persistence backends."""
from bandit_client.storage.base import KeyValueStore
from bandit_client.storage.memory import InMemoryKeyValueStore

__all__ = ["KeyValueStore", "InMemoryKeyValueStore"]
