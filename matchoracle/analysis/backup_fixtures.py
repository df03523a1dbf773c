"""Static fixture list shown when the model is unreachable or rate limited."""

from __future__ import annotations

from matchoracle.schemas import FixtureSummary

# sport -> (home, away, kickoff, league)
_BACKUP: dict[str, tuple[tuple[str, str, str, str], ...]] = {
    "SOCCER": (
        ("Arsenal", "Chelsea", "15:00", "Premier League"),
        ("Liverpool", "Manchester City", "17:30", "Premier League"),
        ("Real Madrid", "Barcelona", "20:00", "La Liga"),
        ("Bayern Munich", "Borussia Dortmund", "17:30", "Bundesliga"),
        ("Inter Milan", "Juventus", "19:45", "Serie A"),
        ("Flamengo", "Palmeiras", "21:30", "Brasileirao Serie A"),
        ("Al Ahly", "Zamalek", "18:00", "Egyptian Premier League"),
        ("Kawasaki Frontale", "Yokohama F. Marinos", "11:00", "J1 League"),
    ),
    "BASKETBALL": (
        ("Boston Celtics", "Milwaukee Bucks", "00:30", "NBA"),
        ("Los Angeles Lakers", "Golden State Warriors", "03:00", "NBA"),
        ("Denver Nuggets", "Oklahoma City Thunder", "02:00", "NBA"),
        ("Real Madrid", "Panathinaikos", "20:45", "EuroLeague"),
    ),
    "HOCKEY": (
        ("Edmonton Oilers", "Florida Panthers", "01:00", "NHL"),
        ("Boston Bruins", "Toronto Maple Leafs", "00:00", "NHL"),
        ("Colorado Avalanche", "Dallas Stars", "02:00", "NHL"),
    ),
    "HANDBALL": (
        ("THW Kiel", "SC Magdeburg", "19:00", "Handball-Bundesliga"),
        ("Veszprem", "Aalborg", "18:45", "EHF Champions League"),
        ("Barcelona", "Paris Saint-Germain", "20:45", "EHF Champions League"),
    ),
}


def backup_fixtures(sport: str = "SOCCER") -> list[FixtureSummary]:
    sport = sport.upper()
    rows = _BACKUP.get(sport, ())
    return [
        FixtureSummary(home=home, away=away, time=kickoff, league=league, sport=sport)
        for home, away, kickoff, league in rows
    ]
