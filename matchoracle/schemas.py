from datetime import datetime
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SportType = Literal["SOCCER", "BASKETBALL", "HOCKEY", "HANDBALL"]
SPORTS: tuple[str, ...] = get_args(SportType)
FixtureStatus = Literal["SCHEDULED", "LIVE", "FINISHED"]


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GroundingCitation(WireModel):
    uri: str
    title: str = ""


class LiveContext(WireModel):
    score: str
    time: str


class LiveState(WireModel):
    is_live: bool = True
    current_score: str
    match_time: str


class WinProbability(WireModel):
    home: float
    draw: float
    away: float


class Possession(WireModel):
    home: float
    away: float


class OddsQuote(WireModel):
    home_win: float
    draw: Optional[float] = None
    away_win: float


class TeamComparison(WireModel):
    home_value: str
    away_value: str
    home_position: str
    away_position: str
    home_rating: float
    away_rating: float


class KeyPlayer(WireModel):
    name: str
    stat: str


class KeyPlayers(WireModel):
    home: list[KeyPlayer] = Field(default_factory=list)
    away: list[KeyPlayer] = Field(default_factory=list)


class MatchStats(WireModel):
    home_last5_goals: list[int]
    away_last5_goals: list[int]
    possession: Possession
    win_probability: WinProbability
    odds: Optional[OddsQuote] = None
    comparison: Optional[TeamComparison] = None
    key_players: Optional[KeyPlayers] = None
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None


class AnalysisResponse(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    raw_text: str
    grounding_citations: list[GroundingCitation] = Field(default_factory=list)
    # keyed by canonical section name; every key is always present
    sections: dict[str, str]
    # the JSON object exactly as the model emitted it
    stats: Optional[dict[str, Any]] = None
    live_state: Optional[LiveState] = None
    is_fallback: bool = False


class FixtureSummary(WireModel):
    home: str
    away: str
    time: str = ""
    league: str = ""
    sport: SportType = "SOCCER"
    score: Optional[str] = None
    status: FixtureStatus = "SCHEDULED"


class AnalyzeRequest(WireModel):
    home: str
    away: str
    league: Optional[str] = None
    sport: SportType = "SOCCER"
    live: Optional[LiveContext] = None


class ChatTurn(WireModel):
    role: Literal["user", "model"]
    text: str


class ChatRequest(WireModel):
    message: str
    history: list[ChatTurn] = Field(default_factory=list)


class ChatReply(WireModel):
    reply: str


class OddsWatchRequest(WireModel):
    home: str
    away: str
    interval_seconds: Optional[int] = Field(default=None, ge=5)


class OddsWatchOut(WireModel):
    watch_id: str
    home: str
    away: str
    active: bool
    updates: int
    odds: Optional[OddsQuote] = None


class SettingsIn(BaseModel):
    gemini_api_key: Optional[str] = None
    gemini_model: Optional[str] = None
    search_grounding_enabled: Optional[bool] = None
    fixtures_ttl_seconds: Optional[int] = Field(default=None, ge=0)
    odds_ttl_seconds: Optional[int] = Field(default=None, ge=0)
    comparison_ttl_seconds: Optional[int] = Field(default=None, ge=0)
    analysis_ttl_seconds: Optional[int] = Field(default=None, ge=0)
    odds_poll_seconds: Optional[int] = Field(default=None, ge=5)


class SettingsOut(BaseModel):
    has_key: bool
    gemini_model: str
    search_grounding_enabled: bool
    fixtures_ttl_seconds: int
    odds_ttl_seconds: int
    comparison_ttl_seconds: int
    analysis_ttl_seconds: int
    odds_poll_seconds: int
    updated_at_utc: Optional[datetime]
