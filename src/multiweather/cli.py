# entry point: wires settings -> providers -> aggregator, then either serves http
# or answers a few cities once and prints the result

from __future__ import annotations
import argparse
import sys
from typing import List, Optional

import uvicorn

from .api import create_app
from .config import Settings, build_aggregator, configure_logging
from .errors import ConfigurationError, WeatherError


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multi-weather",
        description="Average city temperatures (kelvin) across several weather providers.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the http service")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)

    temp = sub.add_parser("temp", help="query the providers once and print the average")
    temp.add_argument("cities", nargs="+", metavar="CITY")
    return parser


def run_temp(settings: Settings, cities: List[str]) -> int:
    aggregator = build_aggregator(settings)
    for city in cities:
        try:
            report = aggregator.measure(city)
        except WeatherError as exc:
            print(f"{city}: {exc}", file=sys.stderr)
            return 1
        print(f"{report.city}: {report.temp:.2f} K (took {report.took})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    args = build_parser(settings).parse_args(argv)

    if args.command == "temp":
        try:
            return run_temp(settings, args.cities)
        except ConfigurationError as exc:
            print(f"configuration error: {exc}", file=sys.stderr)
            return 2

    try:
        app = create_app(build_aggregator(settings))
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
