from __future__ import annotations

from datetime import date

from matchoracle.schemas import LiveContext

# sport -> (context line, sport-specific output headers)
SPORT_PROMPTS: dict[str, tuple[str, str]] = {
    "BASKETBALL": (
        "Stats: Points, Rebounds. Factors: Load Management, back-to-backs.",
        "## Total Points\n[Over/Under]\n## Key Stat\n[Rebounds]\n## Key Stat 2\n[Turnovers]",
    ),
    "HOCKEY": (
        "Stats: Goals, Shots on Goal. Factors: Starting goalies.",
        "## Total Goals\n[Over/Under]\n## Key Stat\n[SOG]\n## Key Stat 2\n[Penalty minutes]",
    ),
    "HANDBALL": (
        "Stats: Goals. Factors: Pace, goalkeeper save rate.",
        "## Total Goals\n[Over/Under]\n## Key Stat\n[7m throws]\n## Key Stat 2\n[2-minute suspensions]",
    ),
    "SOCCER": (
        "Stats: Goals, Corners, Cards. Context: Weather, Referees, Global Leagues "
        "(Europe, Asia, Africa, South America).",
        "## Total Goals\n[O/U]\n## Corners\n[Count]\n## Cards\n[Count]",
    ),
}

STATS_JSON_TEMPLATE = """
```json
{
  "homeLast5Goals": [n,n,n,n,n], "awayLast5Goals": [n,n,n,n,n],
  "possession": {"home":n,"away":n},
  "winProbability": {"home":n,"draw":n,"away":n},
  "odds": {"homeWin":n.n,"draw":n.n,"awayWin":n.n},
  "comparison": {"homeValue":"s","awayValue":"s","homePosition":"s","awayPosition":"s","homeRating":n,"awayRating":n},
  "keyPlayers": {"home":[{"name":"n","stat":"s"}],"away":[{"name":"n","stat":"s"}]},
  "homeLogo":"url","awayLogo":"url"
}
```
""".strip()

FIXTURE_LEAGUE_MIX = """
MANDATORY GLOBAL MIX (big and small leagues):
- EUROPE: EPL, La Liga, Serie A, Bundesliga AND Championship, League 1/2, Serie B, Segunda, 2. Bundesliga, Eredivisie, Primeira Liga, Belgian Pro League, Super Lig.
- ASIA: J1, K1, Saudi Pro League AND J2, K2, Thai League, V-League, ISL, Indonesian Liga 1.
- AFRICA: CAF Champions League, NPFL, PSL, Egyptian Premier League AND Ghana Premier League, Botola Pro.
- SOUTH AMERICA: Brasileirao A, Argentine Primera AND Brasileirao B, Primera Nacional, Colombia A, Chile A.
""".strip()

CHAT_SYSTEM_PROMPT = (
    "You are the MatchOracle assistant. Answer questions about upcoming matches, team "
    "stats and predictions concisely. Use web search for anything time-sensitive. "
    "Never present a prediction as certain."
)


def _sport_prompt(sport: str) -> tuple[str, str]:
    return SPORT_PROMPTS.get(sport.upper(), SPORT_PROMPTS["SOCCER"])


def build_fixtures_prompt(sport: str, target_date: date) -> str:
    sport = sport.upper()
    mix = FIXTURE_LEAGUE_MIX if sport == "SOCCER" else f"Cover the major and second-tier {sport.lower()} leagues worldwide."
    return f"""
List 20-25 diverse {sport} matches scheduled for {target_date.isoformat()} from around the world.
{mix}

EXCLUDE: Cyber, Esports, Simulated.
FORMAT: JSON Array [{{ "home": "A", "away": "B", "time": "HH:MM", "league": "L", "status": "SCHEDULED", "score": "1-0" }}]
status is one of SCHEDULED, LIVE, FINISHED. Include score only for LIVE or FINISHED matches.
""".strip()


def build_odds_prompt(home: str, away: str) -> str:
    return (
        f"Find current decimal betting odds for {home} vs {away}. "
        'Return ONLY strict JSON with decimal format: { "homeWin": 1.X, "draw": 3.X, "awayWin": 4.X }'
    )


def build_comparison_prompt(home: str, away: str, sport: str) -> str:
    return (
        f"Stats for {home} vs {away} ({sport.upper()}). JSON: "
        '{ "homeValue": "val", "awayValue": "val", "homePosition": "1st", "awayPosition": "2nd", '
        '"homeRating": 85, "awayRating": 80 }'
    )


def build_analysis_prompt(
    home: str,
    away: str,
    sport: str = "SOCCER",
    league: str | None = None,
    live: LiveContext | None = None,
) -> str:
    sport = sport.upper()
    sport_context, sport_headers = _sport_prompt(sport)
    league_part = f" ({league})" if league else ""
    if live is not None:
        focus = f"LIVE MATCH: Score {live.score} Time {live.time}. Focus: Momentum, Next Goal."
        live_headers = "\n## Live Analysis\n[Txt]\n## Next Goal\n[Team]\n## Live Tip\n[Tip]"
    else:
        focus = "PRE-MATCH: Focus Form, H2H."
        live_headers = ""

    return f"""
Analyze {sport}: {home} vs {away}{league_part}.
{focus}
{sport_context}

CONTEXT:
- Supports ALL GLOBAL LEAGUES (EPL, La Liga, Serie B, J2 League, NPFL, Brasileirao B, Indonesian Liga 1, etc.).
- If advanced stats (xG) are missing for lower leagues, rely on League Standings, Home/Away Records, and Recent Form.
- Factor in: Travel fatigue, Pitch conditions (lower leagues), Home crowd hostility.

STRICTLY EXCLUDE CYBER/ESPORTS/SIMULATION. REAL MATCHES ONLY.

OUTPUT FORMAT:
## Score Prediction
[X-Y]
## Score Probability
[%]
{sport_headers}
## Weather
[Cond]
## Referee
[Name]
## Red Flags
[Warnings]
## Confidence
[Lvl]
## Summary
[Verdict]
## Prediction Logic
[Steps]{live_headers}
## Recent Form
[Txt]
## Head-to-Head
[Txt]
## Key Factors
[Txt]

JSON DATA (At End):
{STATS_JSON_TEMPLATE}
""".strip()
