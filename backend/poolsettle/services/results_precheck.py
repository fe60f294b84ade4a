"""
backend/poolsettle/services/results_precheck.py

Purpose:
    Optional off-chain check before dispatch: run the event resolver locally
    on the full argument tuple and only let pools through whose result is
    already final, so no request is spent on a game that is still running.

Dependencies:
    - poolsettle.resolver
    - poolsettle.services.request_args
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from poolsettle.models.pool import PoolSnapshot
from poolsettle.providers.fetcher import Fetcher, ProviderError
from poolsettle.resolver import NotFinal, NotFound, ResolutionFatalError, resolve_from_args
from poolsettle.services.request_args import build_request_args

logger = logging.getLogger("poolsettle.precheck")


@dataclass(frozen=True)
class PrecheckResult:
    ready: bool
    reason: str


class ResultsPrecheck:
    def __init__(self, fetcher: Fetcher, secret_values: Mapping[str, str]) -> None:
        self._fetcher = fetcher
        self._secret_values = dict(secret_values)

    async def check(self, snapshot: PoolSnapshot) -> PrecheckResult:
        # The resolver needs the full tuple even when requests go out in compat mode
        args = build_request_args(snapshot, compat_mode=False)
        try:
            outcome = await resolve_from_args(args, self._secret_values, self._fetcher)
        except (ProviderError, ResolutionFatalError) as exc:
            logger.warning("%s: precheck failed: %s", snapshot.address, exc)
            return PrecheckResult(False, "precheck_error")

        if isinstance(outcome, NotFinal):
            return PrecheckResult(False, "not_final")
        if isinstance(outcome, NotFound):
            return PrecheckResult(False, f"not_found:{outcome.reason}")
        logger.info(
            "%s: precheck resolved via %s (winner=%s)",
            snapshot.address, outcome.tier, outcome.winner,
        )
        return PrecheckResult(True, outcome.tier)
