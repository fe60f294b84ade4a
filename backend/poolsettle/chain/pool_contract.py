"""
backend/poolsettle/chain/pool_contract.py

Purpose:
    web3 access to GamePool contracts: view calls, the settlement request
    call (simulated via eth_call or signed and broadcast), all bounded by an
    explicit RPC timeout.

Dependencies:
    - web3 (AsyncWeb3)
    - eth-account
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from eth_account import Account
from web3 import AsyncWeb3, Web3

from poolsettle.chain.abi import POOL_ABI
from poolsettle.config import FatalConfigError, Settings
from poolsettle.models.pool import RequestParams

logger = logging.getLogger("poolsettle.chain")


def encode_don_id(don_id: str) -> bytes:
    """bytes32 DON id: 0x-hex as-is, otherwise UTF-8 right-padded with zeros."""
    text = (don_id or "").strip()
    if text.startswith("0x") and len(text) == 66:
        return bytes.fromhex(text[2:])
    raw = text.encode("utf-8")
    if not raw or len(raw) > 32:
        raise ValueError(f"DON id must be 1..32 bytes, got {len(raw)}")
    return raw.ljust(32, b"\x00")


class PoolContractGateway:
    """Wraps one AsyncWeb3 connection and the signing account."""

    def __init__(
        self,
        w3: AsyncWeb3,
        account: Any,
        rpc_timeout: float = 20.0,
        request_method: str = "sendRequest",
    ) -> None:
        self._w3 = w3
        self._account = account
        self._timeout = rpc_timeout
        self._method = request_method

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PoolContractGateway":
        if not cfg.RPC_URL.strip():
            raise FatalConfigError("RPC_URL is not configured")
        if not cfg.PRIVATE_KEY.strip():
            raise FatalConfigError("PRIVATE_KEY is not configured")
        try:
            account = Account.from_key(cfg.PRIVATE_KEY.strip())
        except Exception as exc:
            raise FatalConfigError("PRIVATE_KEY is malformed") from exc
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(cfg.RPC_URL.strip()))
        return cls(w3, account, cfg.RPC_TIMEOUT_SECONDS, cfg.REQUEST_METHOD)

    @property
    def sender(self) -> str:
        return self._account.address

    @property
    def timeout(self) -> float:
        return self._timeout

    def contract(self, address: str):
        return self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=POOL_ABI)

    async def call_view(self, address: str, name: str) -> Any:
        fn = getattr(self.contract(address).functions, name)()
        return await fn.call()

    def request_call(self, address: str, args: Sequence[str], params: RequestParams):
        fn = getattr(self.contract(address).functions, self._method)
        return fn(list(args), *params.as_call_args())

    async def simulate(self, address: str, args: Sequence[str], params: RequestParams) -> None:
        """eth_call of the exact request from the signer; raises on revert or timeout."""
        call = self.request_call(address, args, params)
        await asyncio.wait_for(call.call({"from": self.sender}), timeout=self._timeout)

    async def submit(self, address: str, args: Sequence[str], params: RequestParams) -> str:
        """Sign and broadcast the request; returns the tx hash without waiting for a receipt."""
        call = self.request_call(address, args, params)

        async def _send() -> str:
            nonce = await self._w3.eth.get_transaction_count(self.sender, "pending")
            tx = await call.build_transaction({"from": self.sender, "nonce": nonce})
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            return Web3.to_hex(tx_hash)

        return await asyncio.wait_for(_send(), timeout=self._timeout)

    async def aclose(self) -> None:
        provider = self._w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
