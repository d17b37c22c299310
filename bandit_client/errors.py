"""Usage errors raised by :class:`~bandit_client.client.BanditClient`."""

from __future__ import annotations


class BanditClientError(RuntimeError):
    """Base class for calling the client out of sequence."""


class AlreadyInitializedError(BanditClientError):
    def __init__(self) -> None:
        super().__init__("Client is already initialized.")


class NotInitializedError(BanditClientError):
    def __init__(self) -> None:
        super().__init__("Client is not initialized (call #init first).")
