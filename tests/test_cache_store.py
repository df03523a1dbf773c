from __future__ import annotations

import json
import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from matchoracle.cache import CacheStore, MemoryBackend, SqlBackend
from matchoracle.db import Base


class _Clock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _sqlite_session_factory(create_tables: bool = True):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class CacheStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.backend = MemoryBackend()
        self.cache = CacheStore(self.backend, clock=self.clock)

    def test_get_within_max_age_returns_value_unchanged(self) -> None:
        value = [{"home": "Arsenal", "away": "Chelsea", "score": None}]
        self.cache.set("matches_SOCCER_2026-10-15", value)
        self.clock.now += 60

        self.assertEqual(value, self.cache.get("matches_SOCCER_2026-10-15", 1800))

    def test_get_past_max_age_returns_none_and_evicts(self) -> None:
        self.cache.set("odds_A_B", {"homeWin": 1.9})
        self.clock.now += 91

        self.assertIsNone(self.cache.get("odds_A_B", 90))
        self.assertEqual(0, len(self.backend))

    def test_each_read_supplies_its_own_max_age(self) -> None:
        self.cache.set("details_A_B_SOCCER", {"homeRating": 80})
        self.clock.now += 120

        self.assertEqual({"homeRating": 80}, self.cache.get("details_A_B_SOCCER", 24 * 60 * 60))
        self.assertIsNone(self.cache.get("details_A_B_SOCCER", 90))

    def test_missing_key_is_a_miss(self) -> None:
        self.assertIsNone(self.cache.get("nothing", 60))

    def test_set_overwrites_with_fresh_timestamp(self) -> None:
        self.cache.set("k", 1)
        self.clock.now += 50
        self.cache.set("k", 2)
        self.clock.now += 50

        self.assertEqual(2, self.cache.get("k", 60))

    def test_entries_use_the_json_envelope_and_prefix(self) -> None:
        self.cache.set("k", {"a": 1})

        raw = self.backend.get_item("mo_cache_k")
        self.assertEqual({"data": {"a": 1}, "timestamp": 1_000.0}, json.loads(raw))

    def test_corrupted_entries_degrade_to_a_miss(self) -> None:
        for raw in ("not json", json.dumps({"data": 1}), json.dumps({"data": 1, "timestamp": "soon"}), "[]"):
            with self.subTest(raw=raw):
                self.backend.set_item("mo_cache_bad", raw)
                self.assertIsNone(self.cache.get("bad", 60))
                self.assertIsNone(self.backend.get_item("mo_cache_bad"))

    def test_quota_exceeded_write_is_swallowed(self) -> None:
        cache = CacheStore(MemoryBackend(max_entries=1), clock=self.clock)
        cache.set("first", 1)
        cache.set("second", 2)

        self.assertEqual(1, cache.get("first", 60))
        self.assertIsNone(cache.get("second", 60))

    def test_unserializable_value_is_swallowed(self) -> None:
        self.cache.set("k", object())

        self.assertIsNone(self.cache.get("k", 60))

    def test_namespaces_are_isolated(self) -> None:
        other = CacheStore(self.backend, namespace="mo_cache_other_", clock=self.clock)
        self.cache.set("k", "mine")

        self.assertIsNone(other.get("k", 60))
        self.assertEqual("mine", self.cache.get("k", 60))

    def test_delete(self) -> None:
        self.cache.set("k", 1)
        self.cache.delete("k")

        self.assertIsNone(self.cache.get("k", 60))


class SqlBackendTests(unittest.TestCase):
    def test_round_trip_through_cache_entries(self) -> None:
        clock = _Clock()
        cache = CacheStore(SqlBackend(_sqlite_session_factory()), clock=clock)

        cache.set("odds_A_B", {"homeWin": 2.1, "awayWin": 3.4})
        cache.set("odds_A_B", {"homeWin": 2.0, "awayWin": 3.6})

        self.assertEqual({"homeWin": 2.0, "awayWin": 3.6}, cache.get("odds_A_B", 90))
        clock.now += 90
        self.assertIsNone(cache.get("odds_A_B", 90))

    def test_database_errors_degrade_to_a_miss(self) -> None:
        cache = CacheStore(SqlBackend(_sqlite_session_factory(create_tables=False)))

        cache.set("k", 1)

        self.assertIsNone(cache.get("k", 60))


if __name__ == "__main__":
    unittest.main()
