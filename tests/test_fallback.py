from __future__ import annotations

import unittest

from matchoracle.analysis.backup_fixtures import backup_fixtures
from matchoracle.analysis.fallback import (
    OFFLINE_SENTINEL,
    SPORT_PROFILES,
    offline_analysis,
    stable_hash,
    team_strength,
    win_probabilities,
)
from matchoracle.analysis.sections import SECTION_KEYS
from matchoracle.schemas import LiveContext

MATCHUPS = (
    ("Arsenal", "Chelsea"),
    ("Boston Celtics", "Los Angeles Lakers"),
    ("Edmonton Oilers", "Florida Panthers"),
    ("THW Kiel", "SC Magdeburg"),
    ("Enyimba", "Kano Pillars"),
    ("Tiny FC", "Real Madrid"),
)


def _score(analysis) -> tuple[int, int]:
    home, away = analysis.sections["score_prediction"].split("-")
    return int(home), int(away)


class StableHashTests(unittest.TestCase):
    def test_matches_the_31_polynomial(self) -> None:
        self.assertEqual(0, stable_hash(""))
        self.assertEqual(97, stable_hash("a"))
        self.assertEqual(3105, stable_hash("ab"))
        self.assertEqual(99162322, stable_hash("hello"))

    def test_wraps_to_signed_32_bit(self) -> None:
        value = stable_hash("Borussia Monchengladbach vs Eintracht Frankfurt")

        self.assertGreaterEqual(value, -(2 ** 31))
        self.assertLess(value, 2 ** 31)

    def test_strength_is_bounded(self) -> None:
        for home, away in MATCHUPS:
            for name in (home, away):
                with self.subTest(name=name):
                    self.assertGreaterEqual(team_strength(name, is_home=False), 40)
                    self.assertLessEqual(team_strength(name, is_home=True), 99)

    def test_probabilities_are_clamped(self) -> None:
        home, draw, away = win_probabilities(99, 40, draws=True)

        self.assertLessEqual(home, 88)
        self.assertGreaterEqual(away, 15)
        self.assertGreaterEqual(draw, 0)
        self.assertEqual(0, win_probabilities(99, 40, draws=False)[1])


class OfflineAnalysisTests(unittest.TestCase):
    def test_is_deterministic(self) -> None:
        first = offline_analysis("Arsenal", "Chelsea", "SOCCER")
        second = offline_analysis("Arsenal", "Chelsea", "SOCCER")

        self.assertEqual(first.model_dump_json(), second.model_dump_json())

    def test_is_marked_as_fallback(self) -> None:
        analysis = offline_analysis("Arsenal", "Chelsea")

        self.assertTrue(analysis.is_fallback)
        self.assertEqual(OFFLINE_SENTINEL, analysis.sections["red_flags"])
        self.assertEqual([], analysis.grounding_citations)
        self.assertIsNone(analysis.live_state)

    def test_populates_every_section(self) -> None:
        for sport in SPORT_PROFILES:
            with self.subTest(sport=sport):
                analysis = offline_analysis("Home Town", "Away City", sport)
                self.assertEqual(set(SECTION_KEYS), set(analysis.sections))
                for key in SECTION_KEYS:
                    self.assertTrue(analysis.sections[key], key)

    def test_live_score_is_a_floor(self) -> None:
        live = LiveContext(score="2-1", time="67'")
        for home, away in MATCHUPS:
            with self.subTest(home=home, away=away):
                analysis = offline_analysis(home, away, "SOCCER", live)
                home_goals, away_goals = _score(analysis)
                self.assertGreaterEqual(home_goals, 2)
                self.assertGreaterEqual(away_goals, 1)
                self.assertEqual("2-1", analysis.live_state.current_score)
                self.assertEqual("67'", analysis.live_state.match_time)

    def test_live_floor_for_high_scoring_sports(self) -> None:
        analysis = offline_analysis("Lakers", "Celtics", "BASKETBALL", LiveContext(score="131-20", time="Q4"))

        home_points, away_points = _score(analysis)
        self.assertGreaterEqual(home_points, 131)
        self.assertGreaterEqual(away_points, 20)

    def test_scoreline_agrees_with_win_probability(self) -> None:
        for sport in SPORT_PROFILES:
            for home, away in MATCHUPS:
                with self.subTest(sport=sport, home=home, away=away):
                    analysis = offline_analysis(home, away, sport)
                    probability = analysis.stats["winProbability"]
                    home_goals, away_goals = _score(analysis)
                    if probability["home"] > probability["away"]:
                        self.assertGreaterEqual(home_goals, away_goals)
                    elif probability["away"] > probability["home"]:
                        self.assertGreaterEqual(away_goals, home_goals)

    def test_sport_specific_scaling(self) -> None:
        for home, away in MATCHUPS:
            with self.subTest(home=home, away=away):
                soccer = _score(offline_analysis(home, away, "SOCCER"))
                basketball = _score(offline_analysis(home, away, "BASKETBALL"))
                handball = _score(offline_analysis(home, away, "HANDBALL"))
                hockey = _score(offline_analysis(home, away, "HOCKEY"))

                self.assertTrue(all(0 <= goals <= 4 for goals in soccer))
                self.assertTrue(all(90 <= points <= 131 for points in basketball))
                self.assertTrue(all(20 <= goals <= 35 for goals in handball))
                self.assertNotEqual(basketball[0], basketball[1])
                self.assertNotEqual(hockey[0], hockey[1])

    def test_sports_without_draws_have_no_draw_odds(self) -> None:
        analysis = offline_analysis("Boston Celtics", "Los Angeles Lakers", "BASKETBALL")

        self.assertEqual(0, analysis.stats["winProbability"]["draw"])
        self.assertNotIn("draw", analysis.stats["odds"])

    def test_stats_are_internally_consistent(self) -> None:
        analysis = offline_analysis("Arsenal", "Chelsea", "SOCCER")
        stats = analysis.stats

        self.assertEqual(100, stats["possession"]["home"] + stats["possession"]["away"])
        self.assertEqual(5, len(stats["homeLast5Goals"]))
        self.assertEqual(5, len(stats["awayLast5Goals"]))
        self.assertAlmostEqual(round(100 / stats["winProbability"]["home"], 2), stats["odds"]["homeWin"])
        self.assertAlmostEqual(round(100 / stats["winProbability"]["away"], 2), stats["odds"]["awayWin"])
        self.assertTrue(stats["homeLogo"].endswith("/359.png"))

    def test_raw_text_round_trips_through_the_parser_layout(self) -> None:
        analysis = offline_analysis("Arsenal", "Chelsea")

        self.assertIn("## Score Prediction", analysis.raw_text)
        self.assertIn("```json", analysis.raw_text)


class BackupFixturesTests(unittest.TestCase):
    def test_every_sport_has_backup_fixtures(self) -> None:
        for sport in SPORT_PROFILES:
            with self.subTest(sport=sport):
                fixtures = backup_fixtures(sport)
                self.assertTrue(fixtures)
                self.assertTrue(all(fixture.sport == sport for fixture in fixtures))
                self.assertTrue(all(fixture.status == "SCHEDULED" for fixture in fixtures))


if __name__ == "__main__":
    unittest.main()
