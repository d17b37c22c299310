"""bandit_client – caching participant client for a remote bandit service."""
from bandit_client.assignments import AssignmentStore
from bandit_client.client import BanditClient, create_client
from bandit_client.errors import AlreadyInitializedError, BanditClientError, NotInitializedError
from bandit_client.models import Assignment
from bandit_client.storage.base import KeyValueStore
from bandit_client.storage.memory import InMemoryKeyValueStore
from bandit_client.transport import HttpxTransport, Transport, TransportResponse

VERSION = "0.1.0"
__version__ = VERSION

__all__ = [
    "VERSION",
    "AlreadyInitializedError",
    "Assignment",
    "AssignmentStore",
    "BanditClient",
    "BanditClientError",
    "HttpxTransport",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "NotInitializedError",
    "Transport",
    "TransportResponse",
    "create_client",
]
