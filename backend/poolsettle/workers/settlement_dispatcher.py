"""
backend/poolsettle/workers/settlement_dispatcher.py

Purpose:
    One dispatch pass over candidate pools: read state, gate, build args,
    optional results precheck, simulate, submit. Pools are handled one at a
    time and the pass stops at the per-run cap. The pool's own requestSent
    flag is the only idempotency guard, so passes must not overlap.

Dependencies:
    - poolsettle.chain.pool_contract
    - poolsettle.services.*
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal, Optional, Protocol, Sequence

from poolsettle.chain.pool_contract import PoolContractGateway, encode_don_id
from poolsettle.chain.revert_decoder import decode_exception
from poolsettle.config import FatalConfigError, Settings, resolver_secrets
from poolsettle.models.pool import PoolSnapshot, RequestParams, SecretsPointer
from poolsettle.providers.fetcher import HttpFetcher
from poolsettle.services.dispatch_simulator import DispatchSimulator, SimulationResult
from poolsettle.services.pool_discovery import discover_pools
from poolsettle.services.pool_state_reader import PoolStateReader
from poolsettle.services.rate_limiter import RateLimiter, rate_limiter
from poolsettle.services.request_args import InvalidArgsError, build_request_args
from poolsettle.services.results_precheck import PrecheckResult, ResultsPrecheck
from poolsettle.services.secrets_pointer import resolve_secrets_pointer
from poolsettle.services.settlement_gate import evaluate_gate
from poolsettle.utils import now_epoch
from poolsettle.utils.logging_setup import log_json

logger = logging.getLogger("poolsettle.dispatcher")

PoolState = Literal["dispatched", "skipped", "error"]


@dataclass
class PoolOutcome:
    address: str
    state: PoolState
    reason: str
    tx_hash: Optional[str] = None


@dataclass
class DispatchReport:
    submitted: int = 0
    outcomes: list[PoolOutcome] = field(default_factory=list)

    def count(self, state: PoolState) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == state)


class SnapshotReader(Protocol):
    async def read(self, address: str) -> PoolSnapshot: ...


class Simulator(Protocol):
    async def simulate(self, address: str, args: Sequence[str], params: RequestParams) -> SimulationResult: ...


class Submitter(Protocol):
    async def submit(self, address: str, args: Sequence[str], params: RequestParams) -> str: ...


class Precheck(Protocol):
    async def check(self, snapshot: PoolSnapshot) -> PrecheckResult: ...


class SettlementDispatcher:
    def __init__(
        self,
        reader: SnapshotReader,
        simulator: Simulator,
        submitter: Submitter,
        params: RequestParams,
        *,
        gap_seconds: int,
        compat_mode: bool = False,
        dry_run: bool = False,
        precheck: Optional[Precheck] = None,
        clock: Callable[[], int] = now_epoch,
        limiter: Optional[RateLimiter] = None,
        submit_rate_limit_rpm: int = 0,
    ) -> None:
        self._reader = reader
        self._simulator = simulator
        self._submitter = submitter
        self._params = params
        self._gap_seconds = gap_seconds
        self._compat_mode = compat_mode
        self._dry_run = dry_run
        self._precheck = precheck
        self._clock = clock
        self._limiter = limiter or rate_limiter
        self._submit_rpm = submit_rate_limit_rpm

    async def run(self, addresses: Iterable[str], max_per_run: int) -> DispatchReport:
        report = DispatchReport()
        for address in addresses:
            if report.submitted >= max_per_run:
                logger.info("Per-run cap reached (%d), stopping", max_per_run)
                break
            outcome = await self._dispatch_one(address)
            report.outcomes.append(outcome)
            if outcome.state == "dispatched":
                report.submitted += 1

        log_json(logger, logging.INFO, {
            "event": "dispatch_pass",
            "dry_run": self._dry_run,
            "submitted": report.submitted,
            "skipped": report.count("skipped"),
            "errors": report.count("error"),
            "pools": [
                {"address": o.address, "state": o.state, "reason": o.reason, "tx": o.tx_hash}
                for o in report.outcomes
            ],
        })
        return report

    async def _dispatch_one(self, address: str) -> PoolOutcome:
        try:
            snapshot = await self._reader.read(address)
        except Exception as e:
            logger.error("[ERR] read state %s: %s", address, e)
            return PoolOutcome(address, "error", "read_failed")

        decision = evaluate_gate(snapshot, self._clock(), self._gap_seconds)
        if not decision.allowed:
            logger.debug("%s: gate rejected (%s)", address, decision.reason_code)
            return PoolOutcome(address, "skipped", decision.reason_code)

        try:
            args = build_request_args(snapshot, self._compat_mode)
        except InvalidArgsError as e:
            logger.warning("%s: invalid request args: %s", address, e)
            return PoolOutcome(address, "skipped", "invalid_args")

        if self._precheck is not None:
            check = await self._precheck.check(snapshot)
            if not check.ready:
                logger.info("%s: precheck not ready (%s)", address, check.reason)
                return PoolOutcome(address, "skipped", f"precheck:{check.reason}")

        sim = await self._simulator.simulate(address, args, self._params)
        if not sim.ok:
            logger.warning(
                "%s: simulation reverted: %s (selector=%s) %s",
                address, sim.decoded_name, sim.selector, sim.detail,
            )
            return PoolOutcome(address, "skipped", f"simulation:{sim.decoded_name}")

        label = f"{snapshot.league.upper()} {snapshot.team_a_name} vs {snapshot.team_b_name}"
        if self._dry_run:
            logger.info("[DRY_RUN] Would send request on %s (%s) args=%s", address, label, args)
            return PoolOutcome(address, "dispatched", "dry_run")

        await self._limiter.acquire("chain_submit", self._submit_rpm)
        try:
            tx_hash = await self._submitter.submit(address, args, self._params)
        except Exception as e:
            decoded = decode_exception(e)
            logger.error(
                "[ERR] request %s (%s): %s | %s: %s",
                address, label, decoded.describe(), type(e).__name__, e,
            )
            return PoolOutcome(address, "error", f"submission:{decoded.name}")

        logger.info("[OK] request sent for %s (%s): %s", address, label, tx_hash)
        return PoolOutcome(address, "dispatched", "submitted", tx_hash=tx_hash)


def build_request_params(cfg: Settings, pointer: SecretsPointer) -> RequestParams:
    try:
        don_id = encode_don_id(pointer.don_id)
    except ValueError as exc:
        raise FatalConfigError(str(exc)) from exc
    return RequestParams(
        subscription_id=cfg.FUNCTIONS_SUBSCRIPTION_ID,
        gas_limit=cfg.FUNCTIONS_GAS_LIMIT,
        secrets_slot_id=cfg.DON_SECRETS_SLOT_ID,
        secrets_version=pointer.secrets_version,
        don_id=don_id,
    )


async def run_dispatch_pass(cfg: Settings, addresses: Optional[list[str]] = None) -> DispatchReport:
    """Wire the real collaborators from settings and run one pass.

    Raises FatalConfigError before touching any pool when the run cannot start.
    """
    pointer = await resolve_secrets_pointer(cfg)
    params = build_request_params(cfg, pointer)
    gateway = PoolContractGateway.from_settings(cfg)

    if addresses is None:
        addresses = discover_pools(cfg.POOL_ADDRESSES, cfg.GAMES_PATH)
    logger.info(
        "Dispatch pass: %d candidate pool(s), cap=%d, dry_run=%s, compat=%s",
        len(addresses), cfg.MAX_TX_PER_RUN, cfg.DRY_RUN, cfg.ARGS_COMPAT_MODE,
    )

    fetcher: Optional[HttpFetcher] = None
    precheck: Optional[ResultsPrecheck] = None
    if cfg.PRECHECK_RESULTS:
        fetcher = HttpFetcher(
            timeout=cfg.PROVIDER_TIMEOUT_SECONDS,
            rate_limit_rpm=cfg.THESPORTSDB_RATE_LIMIT_RPM,
        )
        precheck = ResultsPrecheck(fetcher, resolver_secrets(cfg))

    dispatcher = SettlementDispatcher(
        PoolStateReader(gateway),
        DispatchSimulator(gateway),
        gateway,
        params,
        gap_seconds=cfg.REQUEST_GAP_SECONDS,
        compat_mode=cfg.ARGS_COMPAT_MODE,
        dry_run=cfg.DRY_RUN,
        precheck=precheck,
        submit_rate_limit_rpm=cfg.SUBMIT_RATE_LIMIT_RPM,
    )
    try:
        return await dispatcher.run(addresses, cfg.MAX_TX_PER_RUN)
    finally:
        if fetcher is not None:
            await fetcher.aclose()
        await gateway.aclose()
