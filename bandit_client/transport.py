"""HTTP transport used to reach the remote bandit service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


@dataclass(frozen=True)
class TransportResponse:
    status: int
    data: Any = None  # decoded JSON body, None when empty or malformed

    @property
    def ok(self) -> bool:
        return self.status == 200


class Transport(Protocol):
    """Minimal contract needed by BanditClient.

    Implementations may raise on connection-level failures; the client
    treats any exception the same as a non-200 response.
    """

    async def request(self, method: str, url: str, payload: Any) -> TransportResponse: ...


class HttpxTransport:
    """Transport backed by :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def request(self, method: str, url: str, payload: Any) -> TransportResponse:
        response = await self._client.request(
            method,
            url,
            json=payload,
            headers={"Content-Type": JSON_CONTENT_TYPE},
        )

        data: Any = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = None
        return TransportResponse(status=response.status_code, data=data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
