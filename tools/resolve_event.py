"""Resolve one event locally, exactly as a settlement request would.

Usage:
    python -m tools.resolve_event mlb 2024-04-01 2024-04-02 NYY BOS "New York Yankees" "Boston Red Sox" 1711990800
    python -m tools.resolve_event epl 2024-03-10 2024-03-11 ARS BRE Arsenal Brentford 1710086400 1234567

Reads THESPORTSDB_API_KEY (and the optional <TAG>_API_KEY / <TAG>_ENDPOINT
overrides) from the environment. Prints the JSON verdict on stdout.
Exit code 1 when resolution aborts without a verdict.
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, "backend")

from poolsettle.config import resolver_secrets, settings
from poolsettle.providers.fetcher import HttpFetcher, ProviderError
from poolsettle.resolver import ResolutionFatalError, run_source
from poolsettle.utils.logging_setup import setup_logging


def collect_secrets() -> dict[str, str]:
    secrets = resolver_secrets(settings)
    for name, value in os.environ.items():
        if name.endswith(("_API_KEY", "_ENDPOINT")) and value.strip():
            secrets.setdefault(name, value.strip())
    return {k: v for k, v in secrets.items() if v}


async def run(request_args: list[str]) -> int:
    fetcher = HttpFetcher(
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        rate_limit_rpm=settings.THESPORTSDB_RATE_LIMIT_RPM,
    )
    try:
        print(await run_source(request_args, collect_secrets(), fetcher))
    except (ResolutionFatalError, ProviderError) as exc:
        print(f"resolution aborted: {exc}", file=sys.stderr)
        return 1
    finally:
        await fetcher.aclose()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Resolve a sports event result from request args.")
    parser.add_argument("league")
    parser.add_argument("date_from", help="YYYY-MM-DD (Eastern)")
    parser.add_argument("date_to", help="YYYY-MM-DD (Eastern)")
    parser.add_argument("code_a")
    parser.add_argument("code_b")
    parser.add_argument("name_a")
    parser.add_argument("name_b")
    parser.add_argument("lock_time", help="Unix seconds")
    parser.add_argument("id_event", nargs="?", default=None, help="Optional provider event id")
    args = parser.parse_args()

    request_args = [
        args.league, args.date_from, args.date_to, args.code_a, args.code_b,
        args.name_a, args.name_b, args.lock_time,
    ]
    if args.id_event:
        request_args.append(args.id_event)

    setup_logging(settings.LOG_LEVEL)
    sys.exit(asyncio.run(run(request_args)))


if __name__ == "__main__":
    main()
