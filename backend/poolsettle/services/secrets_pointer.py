"""
backend/poolsettle/services/secrets_pointer.py

Purpose:
    Resolve which DON-hosted secret bundle version the run references.
    Priority: explicit settings > remote JSON pointer > local JSON file.
    Resolved once per run; exhausting all sources is fatal.

Dependencies:
    - httpx (via poolsettle.providers.http_client)
    - poolsettle.config
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from poolsettle.config import FatalConfigError, Settings
from poolsettle.models.pool import SecretsPointer, SecretsSource
from poolsettle.providers.http_client import ResilientClient
from poolsettle.utils.logging_setup import safe_url

logger = logging.getLogger("poolsettle.secrets")

RAW_GITHUB_BASE = "https://raw.githubusercontent.com"


def parse_pointer(doc: Any, default_don_id: str, source: SecretsSource) -> SecretsPointer:
    """Accept {secretsVersion|version: number, donId?: string}."""
    if not isinstance(doc, dict):
        raise ValueError("secrets pointer must be a JSON object")
    version = doc.get("secretsVersion", doc.get("version"))
    if version is None:
        raise ValueError("secrets pointer has no secretsVersion/version")
    if isinstance(version, bool) or not isinstance(version, (int, float, str)):
        raise ValueError(f"secrets version must be a number, got {type(version).__name__}")
    if isinstance(version, int):
        version_int = version
    else:
        try:
            number = float(version)
            version_int = int(number)
        except OverflowError as exc:
            raise ValueError(f"secrets version out of range: {version!r}") from exc
        if version_int != number:
            raise ValueError(f"secrets version is not an integer: {version!r}")
    don_id = str(doc.get("donId") or "").strip() or default_don_id
    return SecretsPointer(secrets_version=version_int, don_id=don_id, source=source)


def remote_pointer_url(cfg: Settings) -> Optional[str]:
    if cfg.SECRETS_POINTER_URL.strip():
        return cfg.SECRETS_POINTER_URL.strip()
    repo = cfg.SECRETS_REMOTE_REPO.strip().strip("/")
    if not repo:
        return None
    path = cfg.SECRETS_REMOTE_PATH.strip().lstrip("/")
    return f"{RAW_GITHUB_BASE}/{repo}/{cfg.SECRETS_REMOTE_REF.strip() or 'main'}/{path}"


async def _load_remote(cfg: Settings, client: ResilientClient) -> Optional[SecretsPointer]:
    url = remote_pointer_url(cfg)
    if url is None:
        return None
    headers = {"Accept": "application/json"}
    if cfg.SECRETS_REMOTE_TOKEN.strip():
        headers["Authorization"] = f"Bearer {cfg.SECRETS_REMOTE_TOKEN.strip()}"
    try:
        resp = await client.get(url, headers=headers)
        resp.raise_for_status()
        return parse_pointer(resp.json(), cfg.DON_ID, "remote-config")
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Remote secrets pointer unavailable (%s): %s", safe_url(url), exc)
        return None


def _load_local(cfg: Settings) -> Optional[SecretsPointer]:
    path = Path(cfg.SECRETS_LOCAL_PATH).expanduser()
    if not path.is_file():
        logger.warning("Local secrets pointer %s not found", path)
        return None
    try:
        return parse_pointer(json.loads(path.read_text(encoding="utf-8")), cfg.DON_ID, "local-fallback")
    except (OSError, ValueError) as exc:
        logger.warning("Local secrets pointer %s unreadable: %s", path, exc)
        return None


async def resolve_secrets_pointer(cfg: Settings, client: Optional[ResilientClient] = None) -> SecretsPointer:
    if cfg.DON_SECRETS_VERSION is not None:
        pointer = SecretsPointer(
            secrets_version=cfg.DON_SECRETS_VERSION,
            don_id=cfg.DON_ID,
            source="explicit-config",
        )
    else:
        owned = client is None
        http = client or ResilientClient("secrets_pointer", timeout=cfg.PROVIDER_TIMEOUT_SECONDS)
        try:
            pointer = await _load_remote(cfg, http) or _load_local(cfg)
        finally:
            if owned:
                await http.aclose()

    if pointer is None:
        raise FatalConfigError("could not resolve secrets pointer from config, remote or local file")
    logger.info(
        "Secrets pointer: version=%d donId=%s (source=%s)",
        pointer.secrets_version, pointer.don_id, pointer.source,
    )
    return pointer
