"""Write-through cache of per-experiment assignments."""
from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from bandit_client.models import Assignment
from bandit_client.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class AssignmentStore:
    """Maps experiment ids to :class:`Assignment` records.

    The whole mapping lives in a single JSON blob under ``storage_key``.
    Every mutation re-serializes the full mapping and writes it back before
    returning, so memory and the substrate never disagree between calls.
    """

    def __init__(self, storage: KeyValueStore, storage_key: str) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self._assignments: Dict[str, Assignment] = self._read()

    # ---- read ---------------------------------------------------------------

    def get(self, experiment_id: str) -> Optional[Assignment]:
        assignment = self._assignments.get(experiment_id)
        return assignment.model_copy() if assignment is not None else None

    def items(self) -> List[Tuple[str, Assignment]]:
        return [(key, value.model_copy()) for key, value in self._assignments.items()]

    def __contains__(self, experiment_id: object) -> bool:
        return experiment_id in self._assignments

    def __len__(self) -> int:
        return len(self._assignments)

    # ---- write --------------------------------------------------------------

    def set(self, experiment_id: str, assignment: Assignment) -> None:
        self._assignments[experiment_id] = assignment.model_copy()
        self._write()

    def delete(self, experiment_id: str) -> None:
        self._assignments.pop(experiment_id, None)
        self._write()

    def clear(self) -> None:
        """Forget every assignment and remove the blob from the substrate."""
        self._assignments = {}
        self.storage.remove_item(self.storage_key)

    # ---- persistence --------------------------------------------------------

    def _read(self) -> Dict[str, Assignment]:
        raw = self.storage.get_item(self.storage_key)
        if raw is None:
            return {}

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logger.warning("Ignoring unreadable assignment blob under '%s'.", self.storage_key)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring non-object assignment blob under '%s'.", self.storage_key)
            return {}

        assignments: Dict[str, Assignment] = {}
        for experiment_id, record in data.items():
            try:
                assignments[experiment_id] = Assignment.model_validate(record)
            except ValidationError:
                logger.warning(
                    "Dropping malformed assignment for experiment '%s'.", experiment_id
                )
        return assignments

    def _write(self) -> None:
        payload = {
            experiment_id: assignment.model_dump(by_alias=True)
            for experiment_id, assignment in self._assignments.items()
        }
        self.storage.set_item(self.storage_key, json.dumps(payload).encode("utf-8"))
