"""CLI entrypoint for one-off fixture lists and match analyses."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from matchoracle.analysis.fallback import SPORT_PROFILES
from matchoracle.cache.backends import MemoryBackend
from matchoracle.cache.store import CacheStore
from matchoracle.connectivity import ConnectivityProbe
from matchoracle.orchestrator import MatchOracle, OracleError
from matchoracle.schemas import LiveContext
from matchoracle.settings import default_snapshot


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Query MatchOracle for fixtures or a single match analysis.",
    )
    parser.add_argument(
        "--sport",
        type=str.upper,
        default="SOCCER",
        choices=sorted(SPORT_PROFILES),
        help="Sport type (default: SOCCER).",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the model and use the offline substitutes.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    fixtures = commands.add_parser("fixtures", help="List fixtures for a date.")
    fixtures.add_argument("--date", type=str, default=None, help="Date in YYYY-MM-DD format (default: today).")

    analyze = commands.add_parser("analyze", help="Analyze one match.")
    analyze.add_argument("--home", type=str, required=True)
    analyze.add_argument("--away", type=str, required=True)
    analyze.add_argument("--league", type=str, default=None)
    analyze.add_argument("--score", type=str, default=None, help="Live score, e.g. 2-1.")
    analyze.add_argument("--time", type=str, default=None, help="Live match clock, e.g. 67'.")

    return parser.parse_args(argv)


def build_oracle(offline: bool = False) -> MatchOracle:
    probe = ConnectivityProbe(force_offline=True if offline else None)
    return MatchOracle(default_snapshot(), CacheStore(MemoryBackend()), is_online=probe)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    args = _parse_args(argv)
    oracle = build_oracle(args.offline)

    try:
        if args.command == "fixtures":
            fixtures = oracle.fetch_fixtures(args.sport, args.date)
            payload = [fixture.model_dump(mode="json", by_alias=True) for fixture in fixtures]
        else:
            live = None
            if args.score:
                live = LiveContext(score=args.score, time=args.time or "")
            analysis = oracle.analyze_match(
                args.home,
                args.away,
                league=args.league,
                live=live,
                sport=args.sport,
            )
            payload = analysis.model_dump(mode="json", by_alias=True)
    except OracleError as exc:
        logging.error("%s", exc)
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
