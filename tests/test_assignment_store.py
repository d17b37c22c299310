"""Tests for AssignmentStore – write-through persistence of assignments."""
from __future__ import annotations

import json
import unittest

from bandit_client.assignments import AssignmentStore
from bandit_client.models import Assignment
from bandit_client.storage.memory import InMemoryKeyValueStore

KEY = "test:storage"


class TestAssignmentStore(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = InMemoryKeyValueStore()
        self.store = AssignmentStore(self.backend, KEY)

    def _blob(self) -> object:
        raw = self.backend.get_item(KEY)
        assert raw is not None
        return json.loads(raw.decode("utf-8"))

    # ---- get -----------------------------------------------------------------

    def test_get_unknown_experiment_returns_none(self) -> None:
        self.assertIsNone(self.store.get("missing"))

    def test_get_does_not_touch_backend(self) -> None:
        self.store.get("missing")
        self.assertIsNone(self.backend.get_item(KEY))

    def test_get_returns_copy(self) -> None:
        self.store.set("exp", Assignment(variant_id="a"))
        fetched = self.store.get("exp")
        assert fetched is not None
        fetched.reported = True
        self.assertFalse(self.store.get("exp").reported)  # type: ignore[union-attr]

    # ---- set -----------------------------------------------------------------

    def test_set_persists_full_mapping(self) -> None:
        self.store.set("t", Assignment(variant_id="b"))
        self.store.set("t2", Assignment(variant_id="c", reported=True))
        self.assertEqual(
            self._blob(),
            {
                "t": {"variantId": "b", "reported": False},
                "t2": {"variantId": "c", "reported": True},
            },
        )

    def test_set_overwrites_existing(self) -> None:
        self.store.set("t", Assignment(variant_id="a"))
        self.store.set("t", Assignment(variant_id="b", reported=True))
        self.assertEqual(self._blob(), {"t": {"variantId": "b", "reported": True}})

    # ---- delete --------------------------------------------------------------

    def test_delete_removes_entry_and_persists(self) -> None:
        self.store.set("t", Assignment(variant_id="a"))
        self.store.set("u", Assignment(variant_id="b"))
        self.store.delete("t")
        self.assertNotIn("t", self.store)
        self.assertEqual(self._blob(), {"u": {"variantId": "b", "reported": False}})

    def test_delete_missing_entry_is_not_an_error(self) -> None:
        self.store.delete("nope")
        self.assertEqual(self._blob(), {})

    # ---- clear ---------------------------------------------------------------

    def test_clear_removes_blob_entirely(self) -> None:
        self.store.set("t", Assignment(variant_id="a"))
        self.store.clear()
        self.assertIsNone(self.backend.get_item(KEY))
        self.assertEqual(len(self.store), 0)

    # ---- construction --------------------------------------------------------

    def test_loads_existing_blob(self) -> None:
        self.backend.set_item(
            KEY, json.dumps({"t": {"variantId": "b", "reported": True}}).encode("utf-8")
        )
        store = AssignmentStore(self.backend, KEY)
        self.assertEqual(store.get("t"), Assignment(variant_id="b", reported=True))

    def test_missing_reported_flag_defaults_to_false(self) -> None:
        self.backend.set_item(KEY, b'{"t": {"variantId": "b"}}')
        store = AssignmentStore(self.backend, KEY)
        self.assertFalse(store.get("t").reported)  # type: ignore[union-attr]

    def test_unparseable_blob_is_treated_as_empty(self) -> None:
        for raw in (b"{not json", b"\xff\xfe", b"[1, 2]", b"null", b'"text"'):
            with self.subTest(raw=raw):
                self.backend.set_item(KEY, raw)
                with self.assertLogs("bandit_client.assignments", level="WARNING"):
                    store = AssignmentStore(self.backend, KEY)
                self.assertEqual(len(store), 0)

    def test_malformed_entries_are_dropped_individually(self) -> None:
        self.backend.set_item(
            KEY,
            json.dumps(
                {
                    "good": {"variantId": "a", "reported": False},
                    "bad": {"reported": True},
                    "worse": 42,
                }
            ).encode("utf-8"),
        )
        with self.assertLogs("bandit_client.assignments", level="WARNING"):
            store = AssignmentStore(self.backend, KEY)
        self.assertEqual([key for key, _ in store.items()], ["good"])

    def test_stores_with_different_keys_are_independent(self) -> None:
        other = AssignmentStore(self.backend, "other:storage")
        self.store.set("t", Assignment(variant_id="a"))
        other.set("t", Assignment(variant_id="z"))
        other.clear()
        self.assertEqual(AssignmentStore(self.backend, KEY).get("t").variant_id, "a")  # type: ignore[union-attr]


if __name__ == "__main__":
    unittest.main()
