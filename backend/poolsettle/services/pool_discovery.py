"""
backend/poolsettle/services/pool_discovery.py

Purpose:
    Candidate pool addresses for a dispatch pass: an explicit comma-separated
    list, or the grouped games file written by the deploy scripts
    ({group: [{contractAddress, ...}]}). Order preserved, duplicates dropped.

Dependencies:
    - web3 (address validation)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from web3 import Web3

logger = logging.getLogger("poolsettle.discovery")


def _addresses_in(node: Any) -> Iterable[str]:
    if isinstance(node, str):
        yield node
    elif isinstance(node, dict):
        if "contractAddress" in node:
            value = node.get("contractAddress")
            if value:
                yield str(value)
        else:
            for child in node.values():
                yield from _addresses_in(child)
    elif isinstance(node, list):
        for child in node:
            yield from _addresses_in(child)


def dedupe_addresses(candidates: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for raw in candidates:
        value = str(raw).strip()
        if not value:
            continue
        if not Web3.is_address(value):
            logger.warning("Skipping invalid pool address %r", value)
            continue
        checksum = Web3.to_checksum_address(value)
        if checksum in seen:
            continue
        seen.add(checksum)
        out.append(checksum)
    return out


def load_games_file(path: str | Path) -> list[str]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return dedupe_addresses(_addresses_in(data))


def discover_pools(explicit: str | Iterable[str] | None, games_path: str | Path | None) -> list[str]:
    """Explicit addresses win over the games file."""
    if isinstance(explicit, str):
        explicit = [part for part in explicit.split(",")]
    explicit_list = [part for part in (explicit or []) if str(part).strip()]
    if explicit_list:
        return dedupe_addresses(explicit_list)
    if games_path and Path(games_path).is_file():
        return load_games_file(games_path)
    logger.warning("No pool addresses configured and games file %s missing", games_path)
    return []
