"""Team name to ESPN CDN logo URL lookup, per sport."""

from __future__ import annotations

_ESPN_LOGO_BASE = "https://a.espncdn.com/i/teamlogos"

# sport -> (ESPN path segment, display name -> logo slug)
_LOGOS_BY_SPORT: dict[str, tuple[str, dict[str, str]]] = {
    "SOCCER": ("soccer", {
        "Arsenal": "359",
        "Chelsea": "363",
        "Liverpool": "364",
        "Manchester United": "360",
        "Manchester City": "382",
        "Tottenham Hotspur": "367",
        "Real Madrid": "86",
        "Barcelona": "83",
        "Atletico Madrid": "1068",
        "Bayern Munich": "132",
        "Borussia Dortmund": "124",
        "Juventus": "111",
        "AC Milan": "103",
        "Inter Milan": "110",
        "Paris Saint-Germain": "160",
    }),
    "BASKETBALL": ("nba", {
        "Atlanta Hawks": "atl",
        "Boston Celtics": "bos",
        "Brooklyn Nets": "bkn",
        "Charlotte Hornets": "cha",
        "Chicago Bulls": "chi",
        "Cleveland Cavaliers": "cle",
        "Dallas Mavericks": "dal",
        "Denver Nuggets": "den",
        "Detroit Pistons": "det",
        "Golden State Warriors": "gs",
        "Houston Rockets": "hou",
        "Indiana Pacers": "ind",
        "LA Clippers": "lac",
        "Los Angeles Clippers": "lac",
        "Los Angeles Lakers": "lal",
        "Memphis Grizzlies": "mem",
        "Miami Heat": "mia",
        "Milwaukee Bucks": "mil",
        "Minnesota Timberwolves": "min",
        "New Orleans Pelicans": "no",
        "New York Knicks": "ny",
        "Oklahoma City Thunder": "okc",
        "Orlando Magic": "orl",
        "Philadelphia 76ers": "phi",
        "Phoenix Suns": "phx",
        "Portland Trail Blazers": "por",
        "Sacramento Kings": "sac",
        "San Antonio Spurs": "sa",
        "Toronto Raptors": "tor",
        "Utah Jazz": "utah",
        "Washington Wizards": "wsh",
    }),
    "HOCKEY": ("nhl", {
        "Anaheim Ducks": "ana",
        "Boston Bruins": "bos",
        "Buffalo Sabres": "buf",
        "Calgary Flames": "cgy",
        "Carolina Hurricanes": "car",
        "Chicago Blackhawks": "chi",
        "Colorado Avalanche": "col",
        "Columbus Blue Jackets": "cbj",
        "Dallas Stars": "dal",
        "Detroit Red Wings": "det",
        "Edmonton Oilers": "edm",
        "Florida Panthers": "fla",
        "Los Angeles Kings": "la",
        "Minnesota Wild": "min",
        "Montreal Canadiens": "mtl",
        "Nashville Predators": "nsh",
        "New Jersey Devils": "nj",
        "New York Islanders": "nyi",
        "New York Rangers": "nyr",
        "Ottawa Senators": "ott",
        "Philadelphia Flyers": "phi",
        "Pittsburgh Penguins": "pit",
        "San Jose Sharks": "sj",
        "Seattle Kraken": "sea",
        "St. Louis Blues": "stl",
        "Tampa Bay Lightning": "tb",
        "Toronto Maple Leafs": "tor",
        "Utah Hockey Club": "utah",
        "Vancouver Canucks": "van",
        "Vegas Golden Knights": "vgs",
        "Washington Capitals": "wsh",
        "Winnipeg Jets": "wpg",
    }),
}

_NORMALIZED: dict[str, dict[str, str]] = {
    sport: {name.casefold(): slug for name, slug in names.items()}
    for sport, (_path, names) in _LOGOS_BY_SPORT.items()
}


def team_logo_url(team_name: str, sport: str = "SOCCER", size: int = 500) -> str:
    """Return the ESPN CDN logo URL for a team, or "" when the team isn't known."""
    entry = _LOGOS_BY_SPORT.get(sport.upper())
    if entry is None or not team_name:
        return ""
    path, _names = entry
    slug = _NORMALIZED[sport.upper()].get(team_name.strip().casefold())
    if not slug:
        return ""
    return f"{_ESPN_LOGO_BASE}/{path}/{size}/{slug}.png"
