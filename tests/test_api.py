from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from matchoracle.ai.gemini_client import CompletionFailure, CompletionSuccess
from matchoracle.cache import CacheStore, MemoryBackend
from matchoracle.db import Base, get_db
from matchoracle.log_buffer import get_buffer_handler
from matchoracle.main import app, get_oracle
from matchoracle.orchestrator import MatchOracle
from matchoracle.settings import default_snapshot

ANALYSIS_TEXT = "## Score Prediction\n3-0\n## Summary\nOne-sided.\n```json\n{\"possession\": {\"home\": 58, \"away\": 42}}\n```"


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

        def override_db():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()

        self.results: list = []
        self.online = True

        def complete(prompt, settings, **kwargs):
            return self.results.pop(0)

        self.cache = CacheStore(MemoryBackend())

        def override_oracle():
            return MatchOracle(
                default_snapshot(),
                self.cache,
                is_online=lambda: self.online,
                complete=complete,
                today=lambda: date(2026, 10, 15),
            )

        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_oracle] = override_oracle
        self.addCleanup(app.dependency_overrides.clear)

        engine_patch = patch("matchoracle.main.engine", self.engine)
        engine_patch.start()
        self.addCleanup(engine_patch.stop)

        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def test_analyze_returns_camel_case_payload(self) -> None:
        self.results.append(CompletionSuccess(text=ANALYSIS_TEXT))

        response = self.client.post("/api/analyze", json={"home": "Arsenal", "away": "Chelsea"})

        self.assertEqual(200, response.status_code)
        body = response.json()
        self.assertEqual("3-0", body["sections"]["score_prediction"])
        self.assertEqual(58, body["stats"]["possession"]["home"])
        self.assertFalse(body["isFallback"])
        self.assertIn("groundingCitations", body)

    def test_analyze_offline_serves_estimate(self) -> None:
        self.online = False

        response = self.client.post(
            "/api/analyze",
            json={"home": "Arsenal", "away": "Chelsea", "live": {"score": "1-0", "time": "30'"}},
        )

        self.assertEqual(200, response.status_code)
        body = response.json()
        self.assertTrue(body["isFallback"])
        self.assertEqual("1-0", body["liveState"]["currentScore"])

    def test_analyze_rejects_empty_teams(self) -> None:
        response = self.client.post("/api/analyze", json={"home": " ", "away": "Chelsea"})

        self.assertEqual(400, response.status_code)

    def test_analyze_remote_failure_is_bad_gateway(self) -> None:
        self.results.append(CompletionFailure("boom", status_code=500))

        response = self.client.post("/api/analyze", json={"home": "Arsenal", "away": "Chelsea"})

        self.assertEqual(502, response.status_code)
        self.assertIn("Failed to analyze match", response.json()["detail"])

    def test_fixtures_and_odds(self) -> None:
        self.results.append(CompletionFailure("quota", rate_limited=True))
        self.results.append(CompletionFailure("quota", rate_limited=True))

        fixtures = self.client.get("/api/fixtures", params={"sport": "HANDBALL"})
        odds = self.client.get("/api/odds", params={"home": "Arsenal", "away": "Chelsea"})

        self.assertEqual(200, fixtures.status_code)
        self.assertTrue(all(item["sport"] == "HANDBALL" for item in fixtures.json()))
        self.assertEqual(200, odds.status_code)
        self.assertIsNone(odds.json())

    def test_chat(self) -> None:
        self.results.append(CompletionSuccess(text="Arsenal by a goal."))

        response = self.client.post(
            "/api/chat",
            json={"message": "Who wins?", "history": [{"role": "user", "text": "hi"}]},
        )

        self.assertEqual(200, response.status_code)
        self.assertEqual({"reply": "Arsenal by a goal."}, response.json())

    def test_odds_watch_lifecycle(self) -> None:
        started = self.client.post(
            "/api/odds/watch",
            json={"home": "Arsenal", "away": "Chelsea", "intervalSeconds": 3600},
        )
        self.assertEqual(200, started.status_code)
        watch_id = started.json()["watchId"]
        self.assertTrue(started.json()["active"])

        current = self.client.get(f"/api/odds/watch/{watch_id}")
        self.assertEqual(200, current.status_code)
        self.assertEqual(0, current.json()["updates"])

        cancelled = self.client.delete(f"/api/odds/watch/{watch_id}")
        self.assertEqual(200, cancelled.status_code)
        self.assertFalse(cancelled.json()["active"])
        self.assertEqual(404, self.client.get(f"/api/odds/watch/{watch_id}").status_code)

    def test_odds_watch_rejects_too_short_interval(self) -> None:
        for interval in (-1, 0, 4):
            with self.subTest(interval=interval):
                response = self.client.post(
                    "/api/odds/watch",
                    json={"home": "Arsenal", "away": "Chelsea", "intervalSeconds": interval},
                )
                self.assertEqual(422, response.status_code)

    def test_settings_round_trip_hides_the_key(self) -> None:
        initial = self.client.get("/api/settings")
        self.assertEqual(200, initial.status_code)
        self.assertFalse(initial.json()["has_key"])

        saved = self.client.post(
            "/api/settings",
            json={"gemini_api_key": "secret", "odds_ttl_seconds": 120, "search_grounding_enabled": False},
        )

        self.assertEqual(200, saved.status_code)
        body = saved.json()
        self.assertTrue(body["has_key"])
        self.assertEqual(120, body["odds_ttl_seconds"])
        self.assertFalse(body["search_grounding_enabled"])
        self.assertNotIn("secret", saved.text)

    def test_settings_reject_too_fast_polling(self) -> None:
        response = self.client.post("/api/settings", json={"odds_poll_seconds": 1})

        self.assertEqual(422, response.status_code)

    def test_logs_endpoint_returns_recent_entries(self) -> None:
        get_buffer_handler().clear()
        self.online = False
        self.client.get("/api/fixtures", params={"sport": "SOCCER"})

        response = self.client.get("/api/logs", params={"limit": 5, "level": "INFO"})

        self.assertEqual(200, response.status_code)
        messages = [entry["message"] for entry in response.json()["entries"]]
        self.assertIn("Offline: serving backup fixtures for SOCCER", messages)


if __name__ == "__main__":
    unittest.main()
