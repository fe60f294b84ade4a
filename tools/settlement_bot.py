"""Run one settlement dispatch pass over the configured pools.

Usage:
    python -m tools.settlement_bot
    python -m tools.settlement_bot --dry-run --max 3
    python -m tools.settlement_bot --addresses 0xabc...,0xdef... --precheck

Exit code 0 when the pass completed (individual pool failures are logged),
2 when the run could not start (missing RPC_URL/PRIVATE_KEY, no secrets pointer).
"""

import argparse
import asyncio
import logging
import sys

sys.path.insert(0, "backend")

from poolsettle.config import FatalConfigError, settings, validate_run_settings
from poolsettle.utils.logging_setup import setup_logging
from poolsettle.workers.settlement_dispatcher import run_dispatch_pass

logger = logging.getLogger("poolsettle.settlement_bot")

EXIT_FATAL_CONFIG = 2


def build_settings(args: argparse.Namespace):
    overrides: dict = {}
    if args.dry_run:
        overrides["DRY_RUN"] = True
    if args.max is not None:
        overrides["MAX_TX_PER_RUN"] = args.max
    if args.compat:
        overrides["ARGS_COMPAT_MODE"] = True
    if args.precheck:
        overrides["PRECHECK_RESULTS"] = True
    if args.addresses:
        overrides["POOL_ADDRESSES"] = args.addresses
    if args.games_path:
        overrides["GAMES_PATH"] = args.games_path
    return settings.model_copy(update=overrides)


async def run(args: argparse.Namespace) -> int:
    cfg = build_settings(args)
    try:
        validate_run_settings(cfg)
        report = await run_dispatch_pass(cfg)
    except FatalConfigError as exc:
        logger.error("[FATAL] %s", exc)
        return EXIT_FATAL_CONFIG

    print(
        f"{'planned' if cfg.DRY_RUN else 'sent'} requests: {report.submitted} "
        f"(skipped={report.count('skipped')}, errors={report.count('error')})"
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Dispatch settlement requests for locked pools.")
    parser.add_argument("--dry-run", action="store_true", help="Simulate only, never broadcast.")
    parser.add_argument("--max", type=int, default=None, help="Max requests per run (default MAX_TX_PER_RUN).")
    parser.add_argument("--compat", action="store_true", help="Send the 6-arg legacy argument tuple.")
    parser.add_argument("--addresses", type=str, default=None, help="Comma-separated pool addresses.")
    parser.add_argument("--games-path", type=str, default=None, help="Games JSON to discover pools from.")
    parser.add_argument("--precheck", action="store_true", help="Resolve results locally before sending.")
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
