from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from sqlalchemy.orm import Session

from matchoracle.cache.backends import SqlBackend
from matchoracle.cache.store import CACHE_PREFIX, CacheStore
from matchoracle.connectivity import ConnectivityProbe
from matchoracle.db import Base, SessionLocal, engine, get_db
from matchoracle.log_buffer import get_buffer_handler, install_buffer_handler
from matchoracle.orchestrator import InvalidInputError, MatchOracle, RemoteCompletionError
from matchoracle.polling import OddsPoller, PollHandle
from matchoracle.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    ChatReply,
    ChatRequest,
    FixtureSummary,
    OddsQuote,
    OddsWatchOut,
    OddsWatchRequest,
    SettingsIn,
    SettingsOut,
    TeamComparison,
)
from matchoracle.settings import encrypt_api_key, get_or_create_settings, snapshot_settings

app = FastAPI(title="MatchOracle")
logger = logging.getLogger(__name__)

_cache_backend = SqlBackend(SessionLocal)
_probe = ConnectivityProbe()
_odds_watches: dict[str, tuple[OddsWatchRequest, PollHandle]] = {}


def _session_namespace(request: Request) -> str:
    session_id = (request.headers.get("X-Session-Id") or "").strip()[:64] or "default"
    return f"{CACHE_PREFIX}{session_id}_"


def get_oracle(request: Request, db: Session = Depends(get_db)) -> MatchOracle:
    settings = snapshot_settings(get_or_create_settings(db))
    cache = CacheStore(_cache_backend, namespace=_session_namespace(request))
    return MatchOracle(settings, cache, is_online=_probe)


def _settings_out(settings) -> SettingsOut:
    return SettingsOut(
        has_key=bool(settings.gemini_api_key_enc),
        gemini_model=settings.gemini_model,
        search_grounding_enabled=settings.search_grounding_enabled,
        fixtures_ttl_seconds=settings.fixtures_ttl_seconds,
        odds_ttl_seconds=settings.odds_ttl_seconds,
        comparison_ttl_seconds=settings.comparison_ttl_seconds,
        analysis_ttl_seconds=settings.analysis_ttl_seconds,
        odds_poll_seconds=settings.odds_poll_seconds,
        updated_at_utc=settings.updated_at_utc,
    )


def _watch_out(watch_id: str, watch: OddsWatchRequest, handle: PollHandle) -> OddsWatchOut:
    return OddsWatchOut(
        watch_id=watch_id,
        home=watch.home,
        away=watch.away,
        active=not handle.cancelled,
        updates=handle.updates,
        odds=handle.latest,
    )


@app.on_event("startup")
async def startup() -> None:
    install_buffer_handler()
    Base.metadata.create_all(bind=engine)
    logger.info("MatchOracle starting up")


@app.on_event("shutdown")
async def shutdown() -> None:
    handles = [handle for _watch, handle in _odds_watches.values()]
    for handle in handles:
        handle.cancel()
    for handle in handles:
        await handle.wait_closed()
    _odds_watches.clear()
    logger.info("MatchOracle stopped (%d odds watch(es) cancelled)", len(handles))


@app.get("/api/fixtures", response_model=list[FixtureSummary])
def api_fixtures(
    sport: str = "SOCCER",
    date: str | None = None,
    oracle: MatchOracle = Depends(get_oracle),
):
    try:
        return oracle.fetch_fixtures(sport, date)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RemoteCompletionError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get("/api/odds", response_model=OddsQuote | None)
def api_odds(home: str, away: str, oracle: MatchOracle = Depends(get_oracle)):
    try:
        return oracle.fetch_odds(home, away)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/comparison", response_model=TeamComparison | None)
def api_comparison(
    home: str,
    away: str,
    sport: str = "SOCCER",
    oracle: MatchOracle = Depends(get_oracle),
):
    try:
        return oracle.fetch_comparison(home, away, sport)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/analyze", response_model=AnalysisResponse)
def api_analyze(payload: AnalyzeRequest, oracle: MatchOracle = Depends(get_oracle)):
    try:
        return oracle.analyze_match(
            payload.home,
            payload.away,
            league=payload.league,
            live=payload.live,
            sport=payload.sport,
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RemoteCompletionError as exc:
        raise HTTPException(
            status_code=502,
            detail="Failed to analyze match. This may be due to high demand or data connectivity. "
            f"({exc})",
        ) from exc


@app.post("/api/chat", response_model=ChatReply)
def api_chat(payload: ChatRequest, oracle: MatchOracle = Depends(get_oracle)):
    try:
        return ChatReply(reply=oracle.send_chat_message(payload.message, payload.history))
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/odds/watch", response_model=OddsWatchOut)
async def api_odds_watch_start(payload: OddsWatchRequest, oracle: MatchOracle = Depends(get_oracle)):
    home = payload.home.strip()
    away = payload.away.strip()
    if not home or not away:
        raise HTTPException(status_code=400, detail="Teams required")

    interval = payload.interval_seconds
    if interval is None:
        interval = oracle.settings.odds_poll_seconds
    watch_id = uuid.uuid4().hex

    async def fetch():
        return await asyncio.to_thread(oracle.fetch_odds, home, away)

    poller = OddsPoller(fetch, interval, label=f"{home} vs {away}")
    handle = poller.start()
    _odds_watches[watch_id] = (payload, handle)
    logger.info("Odds watch %s started for %s vs %s every %ss", watch_id, home, away, interval)
    return _watch_out(watch_id, payload, handle)


@app.get("/api/odds/watch/{watch_id}", response_model=OddsWatchOut)
async def api_odds_watch_get(watch_id: str):
    entry = _odds_watches.get(watch_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Odds watch not found")
    watch, handle = entry
    return _watch_out(watch_id, watch, handle)


@app.delete("/api/odds/watch/{watch_id}", response_model=OddsWatchOut)
async def api_odds_watch_cancel(watch_id: str):
    entry = _odds_watches.pop(watch_id, None)
    if not entry:
        raise HTTPException(status_code=404, detail="Odds watch not found")
    watch, handle = entry
    handle.cancel()
    logger.info("Odds watch %s cancelled after %d update(s)", watch_id, handle.updates)
    return _watch_out(watch_id, watch, handle)


@app.get("/api/settings", response_model=SettingsOut)
def api_settings(db: Session = Depends(get_db)):
    return _settings_out(get_or_create_settings(db))


@app.post("/api/settings", response_model=SettingsOut)
def api_settings_save(payload: SettingsIn, db: Session = Depends(get_db)):
    settings = get_or_create_settings(db)
    api_key = (payload.gemini_api_key or "").strip()
    if api_key:
        settings.gemini_api_key_enc = encrypt_api_key(api_key)

    if payload.gemini_model is not None:
        settings.gemini_model = payload.gemini_model.strip() or settings.gemini_model
    for field in (
        "search_grounding_enabled",
        "fixtures_ttl_seconds",
        "odds_ttl_seconds",
        "comparison_ttl_seconds",
        "analysis_ttl_seconds",
        "odds_poll_seconds",
    ):
        value = getattr(payload, field)
        if value is not None:
            setattr(settings, field, value)
    settings.updated_at_utc = datetime.now(timezone.utc)
    db.commit()
    return _settings_out(settings)


@app.get("/api/logs")
def api_logs(limit: int = 100, level: str | None = None):
    handler = get_buffer_handler()
    return {"entries": handler.entries(limit=limit, min_level=level)}
