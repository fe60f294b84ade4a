"""
backend/tests/test_settlement_dispatcher.py

Purpose:
    Per-pool dispatch flow: gate, args, precheck, simulation, submission,
    the per-run cap and dry-run counting. All collaborators are fakes.

Dependencies:
    - poolsettle.workers.settlement_dispatcher
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from eth_abi import encode as abi_encode
from eth_utils import function_signature_to_4byte_selector
from web3.exceptions import ContractLogicError

from poolsettle.config import FatalConfigError, Settings
from poolsettle.models.pool import PoolSnapshot, RequestParams, SecretsPointer
from poolsettle.services.dispatch_simulator import SimulationResult
from poolsettle.services.rate_limiter import RateLimiter
from poolsettle.services.results_precheck import PrecheckResult
from poolsettle.workers import settlement_dispatcher as dispatcher_module
from poolsettle.workers.settlement_dispatcher import SettlementDispatcher, build_request_params

LOCK = 1_700_000_000
NOW = LOCK + 121
PARAMS = RequestParams(
    subscription_id=42,
    gas_limit=300_000,
    secrets_slot_id=0,
    secrets_version=7,
    don_id=b"fun-ethereum-sepolia-1".ljust(32, b"\x00"),
)


def _snapshot(address: str, **overrides) -> PoolSnapshot:
    base = dict(
        address=address,
        league="mlb",
        team_a_name="New York Yankees",
        team_b_name="Boston Red Sox",
        team_a_code="NYY",
        team_b_code="BOS",
        is_locked=True,
        request_sent=False,
        winning_team=0,
        lock_time=LOCK,
    )
    base.update(overrides)
    return PoolSnapshot(**base)


class _FakeReader:
    def __init__(self, snapshots: dict):
        self.snapshots = snapshots
        self.reads: list[str] = []

    async def read(self, address):
        self.reads.append(address)
        value = self.snapshots[address]
        if isinstance(value, Exception):
            raise value
        return value


class _FakeSimulator:
    def __init__(self, failures: dict | None = None):
        self.failures = failures or {}
        self.calls: list[tuple[str, list[str]]] = []

    async def simulate(self, address, args, params):
        self.calls.append((address, list(args)))
        return self.failures.get(address, SimulationResult(ok=True))


class _FakeSubmitter:
    def __init__(self, failures: dict | None = None):
        self.failures = failures or {}
        self.sent: list[tuple[str, list[str], RequestParams]] = []

    async def submit(self, address, args, params):
        if address in self.failures:
            raise self.failures[address]
        self.sent.append((address, list(args), params))
        return "0x" + f"{len(self.sent):064x}"


class _FakePrecheck:
    def __init__(self, results: dict):
        self.results = results

    async def check(self, snapshot):
        return self.results.get(snapshot.address, PrecheckResult(True, "prev_league_match"))


def _dispatcher(reader, simulator=None, submitter=None, **kwargs) -> SettlementDispatcher:
    kwargs.setdefault("gap_seconds", 120)
    kwargs.setdefault("clock", lambda: NOW)
    kwargs.setdefault("limiter", RateLimiter())
    return SettlementDispatcher(
        reader,
        simulator or _FakeSimulator(),
        submitter or _FakeSubmitter(),
        PARAMS,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_eligible_pool_is_submitted_with_full_args():
    reader = _FakeReader({"0xa": _snapshot("0xa")})
    submitter = _FakeSubmitter()

    report = await _dispatcher(reader, submitter=submitter).run(["0xa"], max_per_run=8)

    assert report.submitted == 1
    assert report.outcomes[0].state == "dispatched"
    assert report.outcomes[0].tx_hash.startswith("0x")
    assert submitter.sent == [(
        "0xa",
        ["mlb", "2023-11-14", "2023-11-15", "NYY", "BOS", "New York Yankees", "Boston Red Sox", "1700000000"],
        PARAMS,
    )]


@pytest.mark.asyncio
async def test_compat_mode_sends_six_args():
    submitter = _FakeSubmitter()
    await _dispatcher(
        _FakeReader({"0xa": _snapshot("0xa")}), submitter=submitter, compat_mode=True,
    ).run(["0xa"], max_per_run=8)
    assert len(submitter.sent[0][1]) == 6


@pytest.mark.asyncio
async def test_gate_rejections_are_skipped():
    reader = _FakeReader({
        "0xa": _snapshot("0xa", is_locked=False),
        "0xb": _snapshot("0xb", request_sent=True),
        "0xc": _snapshot("0xc", lock_time=NOW),
    })
    simulator = _FakeSimulator()

    report = await _dispatcher(reader, simulator=simulator).run(["0xa", "0xb", "0xc"], max_per_run=8)

    assert [(o.state, o.reason) for o in report.outcomes] == [
        ("skipped", "not_locked"),
        ("skipped", "request_sent"),
        ("skipped", "too_early"),
    ]
    assert simulator.calls == []
    assert report.submitted == 0


@pytest.mark.asyncio
async def test_read_failure_is_error_and_pass_continues():
    reader = _FakeReader({"0xa": RuntimeError("rpc down"), "0xb": _snapshot("0xb")})

    report = await _dispatcher(reader).run(["0xa", "0xb"], max_per_run=8)

    assert [(o.address, o.state) for o in report.outcomes] == [("0xa", "error"), ("0xb", "dispatched")]


@pytest.mark.asyncio
async def test_blank_team_name_is_skipped_before_simulation():
    simulator = _FakeSimulator()
    report = await _dispatcher(
        _FakeReader({"0xa": _snapshot("0xa", team_b_name="  ")}), simulator=simulator,
    ).run(["0xa"], max_per_run=8)
    assert report.outcomes[0].reason == "invalid_args"
    assert simulator.calls == []


@pytest.mark.asyncio
async def test_simulation_revert_skips_without_submitting():
    simulator = _FakeSimulator({"0xa": SimulationResult(False, "0xabcdef01", "InvalidSubscription", "")})
    submitter = _FakeSubmitter()

    report = await _dispatcher(
        _FakeReader({"0xa": _snapshot("0xa")}), simulator=simulator, submitter=submitter,
    ).run(["0xa"], max_per_run=8)

    assert report.outcomes[0].state == "skipped"
    assert report.outcomes[0].reason == "simulation:InvalidSubscription"
    assert submitter.sent == []


@pytest.mark.asyncio
async def test_submission_failure_is_error_and_not_retried():
    data = "0x" + (
        function_signature_to_4byte_selector("Error(string)") + abi_encode(["string"], ["Request already sent"])
    ).hex()
    submitter = _FakeSubmitter({"0xa": ContractLogicError("execution reverted", data=data)})
    reader = _FakeReader({"0xa": _snapshot("0xa"), "0xb": _snapshot("0xb")})

    report = await _dispatcher(reader, submitter=submitter).run(["0xa", "0xb"], max_per_run=8)

    assert report.outcomes[0].state == "error"
    assert report.outcomes[0].reason == "submission:Error"
    assert report.outcomes[1].state == "dispatched"
    assert report.submitted == 1
    assert [sent[0] for sent in submitter.sent] == ["0xb"]


@pytest.mark.asyncio
async def test_cap_stops_the_pass():
    addresses = [f"0x{i}" for i in range(5)]
    reader = _FakeReader({a: _snapshot(a) for a in addresses})

    report = await _dispatcher(reader).run(addresses, max_per_run=2)

    assert report.submitted == 2
    assert reader.reads == ["0x0", "0x1"]


@pytest.mark.asyncio
async def test_skips_do_not_count_toward_cap():
    reader = _FakeReader({
        "0xa": _snapshot("0xa", request_sent=True),
        "0xb": _snapshot("0xb"),
        "0xc": _snapshot("0xc"),
    })
    report = await _dispatcher(reader).run(["0xa", "0xb", "0xc"], max_per_run=1)
    assert report.submitted == 1
    assert [o.address for o in report.outcomes] == ["0xa", "0xb"]


@pytest.mark.asyncio
async def test_dry_run_counts_toward_cap_without_submitting():
    addresses = ["0xa", "0xb", "0xc"]
    submitter = _FakeSubmitter()
    simulator = _FakeSimulator()

    report = await _dispatcher(
        _FakeReader({a: _snapshot(a) for a in addresses}),
        simulator=simulator,
        submitter=submitter,
        dry_run=True,
    ).run(addresses, max_per_run=2)

    assert report.submitted == 2
    assert [o.reason for o in report.outcomes] == ["dry_run", "dry_run"]
    assert len(simulator.calls) == 2
    assert submitter.sent == []


@pytest.mark.asyncio
async def test_zero_cap_reads_nothing():
    reader = _FakeReader({"0xa": _snapshot("0xa")})
    report = await _dispatcher(reader).run(["0xa"], max_per_run=0)
    assert report.outcomes == []
    assert reader.reads == []


@pytest.mark.asyncio
async def test_precheck_blocks_unfinished_games():
    precheck = _FakePrecheck({"0xa": PrecheckResult(False, "not_final")})
    simulator = _FakeSimulator()
    reader = _FakeReader({"0xa": _snapshot("0xa"), "0xb": _snapshot("0xb")})

    report = await _dispatcher(reader, simulator=simulator, precheck=precheck).run(["0xa", "0xb"], max_per_run=8)

    assert (report.outcomes[0].state, report.outcomes[0].reason) == ("skipped", "precheck:not_final")
    assert [call[0] for call in simulator.calls] == ["0xb"]


def test_build_request_params_encodes_don_id():
    cfg = Settings(_env_file=None, FUNCTIONS_SUBSCRIPTION_ID=42, DON_SECRETS_SLOT_ID=1)
    pointer = SecretsPointer(secrets_version=99, don_id="fun-ethereum-sepolia-1", source="explicit-config")
    params = build_request_params(cfg, pointer)
    assert params.as_call_args() == (42, 300_000, 1, 99, b"fun-ethereum-sepolia-1".ljust(32, b"\x00"))


def test_build_request_params_rejects_oversized_don_id():
    cfg = Settings(_env_file=None)
    pointer = SecretsPointer(secrets_version=1, don_id="x" * 40, source="remote-config")
    with pytest.raises(FatalConfigError):
        build_request_params(cfg, pointer)


@pytest.mark.asyncio
async def test_run_dispatch_pass_wires_collaborators(monkeypatch):
    seen = SimpleNamespace(closed=False, addresses=None)

    async def _fake_pointer(cfg):
        return SecretsPointer(secrets_version=5, don_id=cfg.DON_ID, source="explicit-config")

    class _Gateway:
        timeout = 1.0

        @classmethod
        def from_settings(cls, cfg):
            return cls()

        async def aclose(self):
            seen.closed = True

    async def _fake_run(self, addresses, max_per_run):
        seen.addresses = list(addresses)
        return dispatcher_module.DispatchReport()

    monkeypatch.setattr(dispatcher_module, "resolve_secrets_pointer", _fake_pointer)
    monkeypatch.setattr(dispatcher_module, "PoolContractGateway", _Gateway)
    monkeypatch.setattr(SettlementDispatcher, "run", _fake_run)

    cfg = Settings(
        _env_file=None,
        POOL_ADDRESSES="0x52908400098527886E0F7030069857D2E4169EE7,0x52908400098527886e0f7030069857d2e4169ee7",
    )
    report = await dispatcher_module.run_dispatch_pass(cfg)

    assert report.submitted == 0
    assert seen.addresses == ["0x52908400098527886E0F7030069857D2E4169EE7"]
    assert seen.closed is True
