"""Participant-side client for a remote Bayesian bandit service."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

import numpy as np
from pydantic import ValidationError

from bandit_client.assignments import AssignmentStore
from bandit_client.errors import AlreadyInitializedError, NotInitializedError
from bandit_client.models import Assignment, DesignateRequest, DesignateResponse, WinRequest
from bandit_client.settings import ClientSettings
from bandit_client.storage.base import KeyValueStore
from bandit_client.storage.keys import assignments_key
from bandit_client.storage.memory import InMemoryKeyValueStore
from bandit_client.transport import HttpxTransport, Transport, TransportResponse

logger = logging.getLogger(__name__)

VariantCallback = Callable[[str], Any]


@dataclass
class _KeyedLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class BanditClient:
    """Caches variant assignments and deduplicates win reports.

    The client starts *uninitialized*; :meth:`init` binds it to a server URL
    and loads the persisted assignments, :meth:`reset` drops both.  The
    decision of which variant wins is always left to the server: locally the
    client only caches that decision, invalidates it when the candidate set
    changes and falls back to a uniform random pick when the server cannot
    be reached.
    """

    def __init__(
        self,
        *,
        storage: Optional[KeyValueStore] = None,
        transport: Optional[Transport] = None,
        storage_key: str = assignments_key(),
        seed: Optional[int] = None,
        http_timeout: float = 5.0,
    ) -> None:
        self.storage = storage if storage is not None else InMemoryKeyValueStore()
        self._owns_transport = transport is None
        self.transport: Transport = (
            transport if transport is not None else HttpxTransport(timeout=http_timeout)
        )
        self.storage_key = storage_key
        self._rng = np.random.default_rng(seed)
        self._server_url: Optional[str] = None
        self._assignments: Optional[AssignmentStore] = None
        # Per experiment id; entries are dropped once nobody holds or waits.
        self._locks: Dict[str, _KeyedLock] = {}
        self._win_locks: Dict[str, _KeyedLock] = {}

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        transport: Optional[Transport] = None,
        seed: Optional[int] = None,
    ) -> "BanditClient":
        """Build and initialize a client from :class:`ClientSettings`.

        Assignments go to Redis when ``settings.redis_url`` is set and to an
        in-memory store otherwise.
        """
        # Checked up front so a bad URL never leaves an owned transport open.
        _validate_server_url(settings.server_url)

        storage: KeyValueStore
        if settings.redis_url:
            from bandit_client.storage.redis_store import RedisKeyValueStore

            storage = RedisKeyValueStore.from_url(settings.redis_url)
        else:
            storage = InMemoryKeyValueStore()

        client = cls(
            storage=storage,
            transport=transport,
            storage_key=settings.storage_key,
            seed=seed,
            http_timeout=settings.http_timeout,
        )
        client.init(settings.server_url)
        return client

    # ---- lifecycle ----------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._server_url is not None

    @property
    def server_url(self) -> Optional[str]:
        return self._server_url

    @property
    def assignments(self) -> AssignmentStore:
        return self._require_store()

    def init(self, server_url: str) -> None:
        """Bind the client to ``server_url``.  Must be called before anything else."""
        if self._server_url is not None:
            raise AlreadyInitializedError()
        _validate_server_url(server_url)

        self._server_url = server_url
        self._assignments = AssignmentStore(self.storage, self.storage_key)
        logger.debug(
            "Initialized bandit client for %s with %d cached assignment(s).",
            server_url,
            len(self._assignments),
        )

    def reset(self) -> None:
        """Unset the server URL and remove every persisted assignment."""
        self._server_url = None
        if self._assignments is not None:
            self._assignments.clear()
            self._assignments = None
        self._locks.clear()
        self._win_locks.clear()

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if self._owns_transport and close is not None:
            await close()

    async def __aenter__(self) -> "BanditClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---- core API -----------------------------------------------------------

    async def assign(
        self,
        experiment_id: str,
        variant_ids: Sequence[str],
        callback: Optional[VariantCallback] = None,
    ) -> str:
        """Return the variant this participant sees in ``experiment_id``.

        Parameters
        ----------
        experiment_id:
            Name of the experiment on the server.
        variant_ids:
            Current candidate variants, non-empty and without duplicates.
        callback:
            Optional; called exactly once with the chosen variant id.

        Returns
        -------
        str
            A member of ``variant_ids``.  Network failures never raise; they
            degrade to a uniformly random candidate.
        """
        store = self._require_store()
        _validate_experiment_id(experiment_id)
        candidates = _validate_candidates(variant_ids)

        async with _hold(self._locks, experiment_id):
            variant_id = await self._resolve(store, experiment_id, candidates)

        if callback is not None:
            callback(variant_id)
        return variant_id

    async def report_win(self, experiment_id: str) -> None:
        """Report a conversion for the cached assignment, at most once."""
        store = self._require_store()
        _validate_experiment_id(experiment_id)

        # Wins use their own lock so a stalled report never holds up assign.
        async with _hold(self._win_locks, experiment_id):
            assignment = store.get(experiment_id)
            if assignment is None:
                logger.debug("No assignment for '%s'; nothing to report.", experiment_id)
                return
            if assignment.reported:
                logger.debug("Win for '%s' already reported.", experiment_id)
                return

            payload = WinRequest(version=assignment.variant_id).model_dump()
            try:
                response = await self.transport.request(
                    "POST", self._url(experiment_id, "wins"), payload
                )
            except Exception:
                logger.warning("Win report for '%s' failed.", experiment_id, exc_info=True)
                return

            if not response.ok:
                logger.warning(
                    "Win report for '%s' rejected with status %d.",
                    experiment_id,
                    response.status,
                )
                return

            # The assignment may have been reset or re-designated meanwhile.
            current = store.get(experiment_id) if self._assignments is store else None
            if current is not None and current.variant_id == assignment.variant_id:
                store.set(experiment_id, current.model_copy(update={"reported": True}))

    # ---- internals ----------------------------------------------------------

    async def _resolve(
        self, store: AssignmentStore, experiment_id: str, candidates: List[str]
    ) -> str:
        assignment = store.get(experiment_id)

        # A variant missing from the candidates means the experiment changed.
        if assignment is not None and assignment.variant_id not in candidates:
            logger.debug(
                "Cached variant '%s' for '%s' is stale; re-designating.",
                assignment.variant_id,
                experiment_id,
            )
            store.delete(experiment_id)
            assignment = None

        if assignment is not None:
            logger.debug("Using cached variant '%s' for '%s'.", assignment.variant_id, experiment_id)
            return assignment.variant_id

        variant_id = await self._designate(experiment_id, candidates)
        if self._assignments is store:
            store.set(experiment_id, Assignment(variant_id=variant_id))
        return variant_id

    async def _designate(self, experiment_id: str, candidates: List[str]) -> str:
        payload = DesignateRequest(versions=candidates).model_dump()
        try:
            response = await self.transport.request("PUT", self._url(experiment_id), payload)
        except Exception:
            logger.warning(
                "Designation request for '%s' failed; picking at random.",
                experiment_id,
                exc_info=True,
            )
            return self._random_choice(candidates)

        winning = _winning_variant(response, candidates)
        if winning is None:
            logger.warning(
                "Server gave no usable variant for '%s' (status %d); picking at random.",
                experiment_id,
                response.status,
            )
            return self._random_choice(candidates)
        return winning

    def _random_choice(self, candidates: List[str]) -> str:
        return candidates[int(self._rng.integers(len(candidates)))]

    def _url(self, experiment_id: str, *suffix: str) -> str:
        if self._server_url is None:
            raise NotInitializedError()
        parts = [self._server_url.rstrip("/"), quote(experiment_id, safe=""), *suffix]
        return "/".join(parts)

    def _require_store(self) -> AssignmentStore:
        if self._server_url is None or self._assignments is None:
            raise NotInitializedError()
        return self._assignments


def create_client(
    server_url: str,
    *,
    storage: Optional[KeyValueStore] = None,
    transport: Optional[Transport] = None,
    storage_key: str = assignments_key(),
    seed: Optional[int] = None,
) -> BanditClient:
    """Construct a client and initialize it against ``server_url``."""
    client = BanditClient(
        storage=storage,
        transport=transport,
        storage_key=storage_key,
        seed=seed,
    )
    client.init(server_url)
    return client


@asynccontextmanager
async def _hold(locks: Dict[str, _KeyedLock], experiment_id: str) -> AsyncIterator[None]:
    """Serialize callers on ``experiment_id``; forget the lock when idle."""
    entry = locks.get(experiment_id)
    if entry is None:
        entry = locks[experiment_id] = _KeyedLock()
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0 and locks.get(experiment_id) is entry:
            del locks[experiment_id]


def _validate_server_url(server_url: str) -> None:
    if not isinstance(server_url, str) or not server_url.strip():
        raise ValueError("server_url must be a non-empty string")


def _winning_variant(response: TransportResponse, candidates: List[str]) -> Optional[str]:
    if not response.ok:
        return None
    try:
        winning = DesignateResponse.model_validate(response.data).winning
    except ValidationError:
        return None
    return winning if winning in candidates else None


def _validate_experiment_id(experiment_id: str) -> None:
    if not isinstance(experiment_id, str) or not experiment_id:
        raise ValueError("experiment_id must be a non-empty string")


def _validate_candidates(variant_ids: Sequence[str]) -> List[str]:
    if isinstance(variant_ids, str):
        raise ValueError("variant_ids must be a sequence of ids, not a single string")
    candidates = list(variant_ids)
    if not candidates:
        raise ValueError("variant_ids cannot be empty")
    if not all(isinstance(v, str) and v for v in candidates):
        raise ValueError("variant ids must be non-empty strings")
    if len(set(candidates)) != len(candidates):
        raise ValueError("variant ids must be unique")
    return candidates
