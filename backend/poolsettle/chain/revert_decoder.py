"""
backend/poolsettle/chain/revert_decoder.py

Purpose:
    Turn revert payloads from failed eth_call / send attempts into an
    actionable diagnostic: 4-byte selector plus the decoded error name and
    arguments, or "unknown" when the payload does not fit the schema.

Dependencies:
    - eth-abi
    - eth-utils
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, to_bytes

from poolsettle.chain.abi import KNOWN_ERROR_SIGNATURES

UNKNOWN = "unknown"

_SIGNATURE = re.compile(r"^(\w+)\((.*)\)$")


@dataclass(frozen=True)
class DecodedRevert:
    selector: Optional[str]     # "0x08c379a0", None when there was no payload
    name: str                   # "Error", "InvalidSubscription", ... or "unknown"
    args: tuple[Any, ...] = ()

    def describe(self) -> str:
        if self.name == UNKNOWN:
            return f"unknown (selector={self.selector or 'none'})"
        if not self.args:
            return self.name
        return f"{self.name}({', '.join(str(arg) for arg in self.args)})"


def build_schema(signatures: Iterable[str]) -> dict[bytes, tuple[str, list[str]]]:
    schema: dict[bytes, tuple[str, list[str]]] = {}
    for signature in signatures:
        match = _SIGNATURE.match(signature)
        if not match:
            raise ValueError(f"bad error signature: {signature}")
        name, params = match.group(1), match.group(2)
        types = [t.strip() for t in params.split(",") if t.strip()]
        schema[function_signature_to_4byte_selector(signature)] = (name, types)
    return schema


ERROR_SCHEMA = build_schema(KNOWN_ERROR_SIGNATURES)


def decode_revert(data: Any, schema: Optional[dict] = None) -> DecodedRevert:
    """Decode revert bytes/hex against the error schema; never raises."""
    schema = ERROR_SCHEMA if schema is None else schema
    try:
        if isinstance(data, (bytes, bytearray)):
            raw = bytes(data)
        elif isinstance(data, str) and data.strip():
            raw = to_bytes(hexstr=data.strip())
        else:
            return DecodedRevert(None, UNKNOWN)
    except ValueError:
        return DecodedRevert(None, UNKNOWN)

    if len(raw) < 4:
        return DecodedRevert(None, UNKNOWN)

    selector = "0x" + raw[:4].hex()
    entry = schema.get(raw[:4])
    if entry is None:
        return DecodedRevert(selector, UNKNOWN)

    name, types = entry
    try:
        args = tuple(abi_decode(types, raw[4:])) if types else ()
    except (DecodingError, ValueError, OverflowError):
        return DecodedRevert(selector, UNKNOWN)
    args = tuple("0x" + arg.hex() if isinstance(arg, bytes) else arg for arg in args)
    return DecodedRevert(selector, name, args)


def revert_data_from_exception(exc: BaseException) -> Optional[str]:
    """Find the revert payload web3/the RPC node attached to an exception."""
    candidates: list[Any] = [getattr(exc, "data", None)]
    candidates.extend(getattr(exc, "args", ()))
    for candidate in candidates:
        if isinstance(candidate, dict):
            candidate = candidate.get("data")
        if isinstance(candidate, (bytes, bytearray)) and candidate:
            return "0x" + bytes(candidate).hex()
        if isinstance(candidate, str) and candidate.startswith("0x") and len(candidate) >= 10:
            return candidate
    return None


def decode_exception(exc: BaseException) -> DecodedRevert:
    return decode_revert(revert_data_from_exception(exc))
