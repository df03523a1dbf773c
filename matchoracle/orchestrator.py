"""Cache -> model -> parse -> fallback sequencing for each dashboard operation.

Fixtures and match analysis are primary content: a rate limit routes them to
the offline substitutes, any other remote failure is raised. Odds and team
comparison are supplementary: every failure collapses to ``None``. Fallback
results are never written to the cache so a transient outage heals on the next
call.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from matchoracle.ai.gemini_client import CompletionFailure, CompletionResult, request_completion
from matchoracle.ai.prompt import (
    CHAT_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_comparison_prompt,
    build_fixtures_prompt,
    build_odds_prompt,
)
from matchoracle.analysis.backup_fixtures import backup_fixtures
from matchoracle.analysis.fallback import offline_analysis
from matchoracle.analysis.parser import extract_json_array, extract_json_object, parse_response
from matchoracle.cache.store import CacheStore
from matchoracle.schemas import (
    SPORTS,
    AnalysisResponse,
    ChatTurn,
    FixtureSummary,
    LiveContext,
    LiveState,
    OddsQuote,
    TeamComparison,
)
from matchoracle.settings import SettingsSnapshot

logger = logging.getLogger(__name__)

CHAT_FAILURE_REPLY = "Sorry, I couldn't process that."
CHAT_OFFLINE_REPLY = "You're offline right now. Reconnect and ask again."

_STATUS_ALIASES = {
    "SCHEDULED": "SCHEDULED",
    "NOT_STARTED": "SCHEDULED",
    "NS": "SCHEDULED",
    "LIVE": "LIVE",
    "IN_PROGRESS": "LIVE",
    "IN PROGRESS": "LIVE",
    "HT": "LIVE",
    "FINISHED": "FINISHED",
    "FINAL": "FINISHED",
    "FT": "FINISHED",
}


class OracleError(Exception):
    pass


class InvalidInputError(OracleError, ValueError):
    pass


class RemoteCompletionError(OracleError):
    def __init__(self, failure: CompletionFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure


def _require_teams(home: str | None, away: str | None) -> tuple[str, str]:
    home = (home or "").strip()
    away = (away or "").strip()
    if not home or not away:
        raise InvalidInputError("Teams required")
    return home, away


def _require_sport(sport: str | None) -> str:
    sport = (sport or "").strip().upper()
    if sport not in SPORTS:
        raise InvalidInputError(f"Unsupported sport: {sport or '(empty)'}")
    return sport


def _normalize_fixture(item: Any, sport: str) -> FixtureSummary | None:
    if not isinstance(item, dict):
        return None
    status = str(item.get("status") or "SCHEDULED").strip().upper()
    candidate = {
        "home": item.get("home"),
        "away": item.get("away"),
        "time": str(item.get("time") or ""),
        "league": str(item.get("league") or ""),
        "sport": sport,
        "score": str(item["score"]) if item.get("score") not in (None, "") else None,
        "status": _STATUS_ALIASES.get(status, "SCHEDULED"),
    }
    try:
        fixture = FixtureSummary.model_validate(candidate)
    except ValidationError:
        return None
    if not fixture.home.strip() or not fixture.away.strip():
        return None
    return fixture


class MatchOracle:
    def __init__(
        self,
        settings: SettingsSnapshot,
        cache: CacheStore,
        *,
        is_online: Callable[[], bool] = lambda: True,
        complete: Callable[..., CompletionResult] = request_completion,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self._is_online = is_online
        self._complete = complete
        self._today = today

    def _resolve_date(self, target_date: date | str | None) -> date:
        if target_date is None or target_date == "":
            return self._today()
        if isinstance(target_date, date):
            return target_date
        try:
            return date.fromisoformat(target_date)
        except ValueError as exc:
            raise InvalidInputError("date must be YYYY-MM-DD") from exc

    def _cached_model(self, key: str, ttl: float, model):
        cached = self.cache.get(key, ttl)
        if cached is None:
            return None
        try:
            if isinstance(cached, list):
                return [model.model_validate(item) for item in cached]
            return model.model_validate(cached)
        except ValidationError:
            logger.warning("Dropping cache entry %s with an outdated shape", key)
            self.cache.delete(key)
            return None

    def fetch_fixtures(self, sport: str = "SOCCER", target_date: date | str | None = None) -> list[FixtureSummary]:
        sport = _require_sport(sport)
        day = self._resolve_date(target_date)
        if not self._is_online():
            logger.info("Offline: serving backup fixtures for %s", sport)
            return backup_fixtures(sport)

        cache_key = f"matches_{sport}_{day.isoformat()}"
        cached = self._cached_model(cache_key, self.settings.fixtures_ttl_seconds, FixtureSummary)
        if cached:
            return cached

        result = self._complete(build_fixtures_prompt(sport, day), self.settings, use_search=True)
        if isinstance(result, CompletionFailure):
            if result.rate_limited:
                logger.warning("Rate limited fetching fixtures; serving backup list for %s", sport)
                return backup_fixtures(sport)
            logger.error("Fixture fetch failed for %s %s: %s", sport, day, result.message)
            raise RemoteCompletionError(result)

        fixtures = [
            fixture
            for fixture in (_normalize_fixture(item, sport) for item in extract_json_array(result.text) or [])
            if fixture is not None
        ]
        if fixtures:
            self.cache.set(cache_key, [fixture.model_dump(mode="json") for fixture in fixtures])
        else:
            logger.warning("Model returned no usable fixtures for %s %s", sport, day)
        return fixtures

    def fetch_odds(self, home: str, away: str) -> Optional[OddsQuote]:
        home, away = _require_teams(home, away)
        if not self._is_online():
            return None

        cache_key = f"odds_{home}_{away}"
        cached = self._cached_model(cache_key, self.settings.odds_ttl_seconds, OddsQuote)
        if cached is not None:
            return cached

        result = self._complete(build_odds_prompt(home, away), self.settings, use_search=True)
        if isinstance(result, CompletionFailure):
            logger.warning("Odds unavailable for %s vs %s: %s", home, away, result.message)
            return None
        data = extract_json_object(result.text)
        if data is None:
            return None
        try:
            odds = OddsQuote.model_validate(data)
        except ValidationError:
            logger.warning("Odds payload for %s vs %s did not validate", home, away)
            return None
        self.cache.set(cache_key, odds.model_dump(mode="json"))
        return odds

    def fetch_comparison(self, home: str, away: str, sport: str = "SOCCER") -> Optional[TeamComparison]:
        home, away = _require_teams(home, away)
        sport = _require_sport(sport)
        if not self._is_online():
            return None

        cache_key = f"details_{home}_{away}_{sport}"
        cached = self._cached_model(cache_key, self.settings.comparison_ttl_seconds, TeamComparison)
        if cached is not None:
            return cached

        result = self._complete(build_comparison_prompt(home, away, sport), self.settings, use_search=True)
        if isinstance(result, CompletionFailure):
            logger.warning("Team details unavailable for %s vs %s: %s", home, away, result.message)
            return None
        data = extract_json_object(result.text)
        if data is None:
            return None
        try:
            comparison = TeamComparison.model_validate(data)
        except ValidationError:
            logger.warning("Team details for %s vs %s did not validate", home, away)
            return None
        self.cache.set(cache_key, comparison.model_dump(mode="json"))
        return comparison

    def analyze_match(
        self,
        home: str,
        away: str,
        league: str | None = None,
        live: LiveContext | None = None,
        sport: str = "SOCCER",
    ) -> AnalysisResponse:
        home, away = _require_teams(home, away)
        sport = _require_sport(sport)
        if not self._is_online():
            logger.info("Offline: generating estimate for %s vs %s", home, away)
            return offline_analysis(home, away, sport, live)

        cache_key = f"analysis_{sport}_{home}_{away}_{league or ''}_{self._today().isoformat()}"
        if live is not None:
            cache_key += f"_{live.score}_{live.time}"
        cached = self._cached_model(cache_key, self.settings.analysis_ttl_seconds, AnalysisResponse)
        if cached is not None:
            return cached

        prompt = build_analysis_prompt(home, away, sport, league, live)
        result = self._complete(prompt, self.settings, use_search=True)
        if isinstance(result, CompletionFailure):
            if result.rate_limited:
                logger.warning("Rate limited analyzing %s vs %s; serving offline estimate", home, away)
                return offline_analysis(home, away, sport, live)
            logger.error("Analysis failed for %s vs %s: %s", home, away, result.message)
            raise RemoteCompletionError(result)

        analysis = parse_response(result.text, result.citations)
        if live is not None:
            analysis = analysis.model_copy(
                update={"live_state": LiveState(is_live=True, current_score=live.score, match_time=live.time)}
            )
        self.cache.set(cache_key, analysis.model_dump(mode="json"))
        return analysis

    def send_chat_message(self, message: str, history: Iterable[ChatTurn] = ()) -> str:
        message = (message or "").strip()
        if not message:
            raise InvalidInputError("Message required")
        if not self._is_online():
            return CHAT_OFFLINE_REPLY

        result = self._complete(
            message,
            self.settings,
            use_search=True,
            history=[{"role": turn.role, "text": turn.text} for turn in history],
            system_instruction=CHAT_SYSTEM_PROMPT,
        )
        if isinstance(result, CompletionFailure):
            logger.warning("Chat reply failed: %s", result.message)
            return CHAT_FAILURE_REPLY
        return result.text.strip() or CHAT_FAILURE_REPLY
