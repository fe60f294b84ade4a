"""
backend/tests/test_secrets_pointer.py

Purpose:
    Secrets pointer resolution order: explicit settings, remote JSON, local
    file; exhausting all sources is fatal.
"""

from __future__ import annotations

import json

import httpx
import pytest

from poolsettle.config import FatalConfigError, Settings
from poolsettle.services.secrets_pointer import parse_pointer, remote_pointer_url, resolve_secrets_pointer


class _FakeResponse:
    def __init__(self, status_code: int, payload):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("GET", "https://raw.githubusercontent.com/x")
            raise httpx.HTTPStatusError(
                "boom", request=request, response=httpx.Response(self.status_code, request=request),
            )

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _FakeClient:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls: list[tuple[str, dict]] = []

    async def get(self, url, headers=None):
        self.calls.append((url, dict(headers or {})))
        if self.exc is not None:
            raise self.exc
        return self.response


def _cfg(tmp_path, **overrides) -> Settings:
    values = dict(
        _env_file=None,
        SECRETS_LOCAL_PATH=str(tmp_path / "activeSecrets.json"),
        SECRETS_POINTER_URL="",
        SECRETS_REMOTE_REPO="",
        DON_SECRETS_VERSION=None,
    )
    values.update(overrides)
    return Settings(**values)


def test_parse_pointer_variants():
    pointer = parse_pointer({"secretsVersion": 1712345678, "slotId": 0, "donId": "fun-x"}, "fallback", "remote-config")
    assert (pointer.secrets_version, pointer.don_id) == (1712345678, "fun-x")
    assert parse_pointer({"version": "12"}, "fallback", "local-fallback").don_id == "fallback"
    for bad in ({}, [], {"version": "1.5"}, {"secretsVersion": True}, {"version": [3]}, {"version": {}}, {"version": "1e400"}):
        with pytest.raises(ValueError):
            parse_pointer(bad, "fallback", "remote-config")


def test_remote_url_from_repo():
    cfg = Settings(_env_file=None, SECRETS_REMOTE_REPO="acme/pools", SECRETS_REMOTE_REF="prod",
                   SECRETS_REMOTE_PATH="/config/activeSecrets.json", SECRETS_POINTER_URL="")
    assert remote_pointer_url(cfg) == "https://raw.githubusercontent.com/acme/pools/prod/config/activeSecrets.json"
    override = Settings(_env_file=None, SECRETS_POINTER_URL=" https://cfg.example/p.json ")
    assert remote_pointer_url(override) == "https://cfg.example/p.json"


@pytest.mark.asyncio
async def test_explicit_version_wins(tmp_path):
    client = _FakeClient()
    pointer = await resolve_secrets_pointer(
        _cfg(tmp_path, DON_SECRETS_VERSION=3, SECRETS_POINTER_URL="https://cfg.example/p.json"), client,
    )
    assert (pointer.secrets_version, pointer.source) == (3, "explicit-config")
    assert client.calls == []


@pytest.mark.asyncio
async def test_remote_pointer_with_token(tmp_path):
    client = _FakeClient(_FakeResponse(200, {"secretsVersion": 41, "donId": "fun-polygon-amoy-1"}))
    cfg = _cfg(tmp_path, SECRETS_REMOTE_REPO="acme/pools", SECRETS_REMOTE_TOKEN="ghp_x")

    pointer = await resolve_secrets_pointer(cfg, client)

    assert (pointer.secrets_version, pointer.don_id, pointer.source) == (41, "fun-polygon-amoy-1", "remote-config")
    assert client.calls[0][1]["Authorization"] == "Bearer ghp_x"


@pytest.mark.asyncio
async def test_remote_failure_falls_back_to_local(tmp_path):
    (tmp_path / "activeSecrets.json").write_text(json.dumps({"secretsVersion": 9}), encoding="utf-8")
    client = _FakeClient(_FakeResponse(404, None))
    cfg = _cfg(tmp_path, SECRETS_POINTER_URL="https://cfg.example/p.json")

    pointer = await resolve_secrets_pointer(cfg, client)

    assert (pointer.secrets_version, pointer.source) == (9, "local-fallback")
    assert pointer.don_id == cfg.DON_ID


@pytest.mark.asyncio
async def test_remote_network_error_falls_back_to_local(tmp_path):
    (tmp_path / "activeSecrets.json").write_text(json.dumps({"version": 2}), encoding="utf-8")
    client = _FakeClient(exc=httpx.ConnectError("down"))
    pointer = await resolve_secrets_pointer(_cfg(tmp_path, SECRETS_POINTER_URL="https://cfg.example/p.json"), client)
    assert pointer.secrets_version == 2


@pytest.mark.asyncio
async def test_nothing_resolves_is_fatal(tmp_path):
    (tmp_path / "activeSecrets.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(FatalConfigError):
        await resolve_secrets_pointer(_cfg(tmp_path), _FakeClient())


@pytest.mark.asyncio
async def test_malformed_remote_document_falls_back_to_local(tmp_path):
    (tmp_path / "activeSecrets.json").write_text(json.dumps({"secretsVersion": 11}), encoding="utf-8")
    client = _FakeClient(_FakeResponse(200, {"version": [3]}))

    pointer = await resolve_secrets_pointer(_cfg(tmp_path, SECRETS_POINTER_URL="https://cfg.example/p.json"), client)

    assert (pointer.secrets_version, pointer.source) == (11, "local-fallback")


@pytest.mark.asyncio
async def test_malformed_local_document_is_fatal(tmp_path):
    (tmp_path / "activeSecrets.json").write_text(json.dumps({"version": {}}), encoding="utf-8")
    with pytest.raises(FatalConfigError):
        await resolve_secrets_pointer(_cfg(tmp_path), _FakeClient())
