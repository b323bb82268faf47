"""
Async Solana JSON-RPC client for snapshot reads.

Only reads are issued here; submission belongs to the caller. Transport
errors propagate unchanged and no retries are attempted.
"""

import base64
import logging
from typing import List, Optional, Protocol, Sequence

import aiohttp
from solders.pubkey import Pubkey

from ..errors import RpcError

logger = logging.getLogger(__name__)

# getMultipleAccounts accepts at most this many keys per request
MAX_MULTIPLE_ACCOUNTS = 100


class AccountExistenceReader(Protocol):
    """Anything that can say which of a batch of addresses exist on chain."""

    async def accounts_exist(self, addresses: Sequence[Pubkey]) -> List[bool]:
        ...


class SolanaRpcClient:
    """
    Simple async Solana RPC client.

    Args:
        rpc_url: RPC endpoint URL
        commitment: Commitment level attached to every read
        session: Optional shared aiohttp session; one is opened per call otherwise
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
    ):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._request_id = 0

    async def _call(self, method: str, params: list = None):
        """Make an RPC call."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC %s -> %s", method, self.rpc_url)

        if self._session is not None:
            return await self._post(self._session, method, payload)
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            return await self._post(session, method, payload)

    async def _post(self, session: aiohttp.ClientSession, method: str, payload: dict):
        async with session.post(self.rpc_url, json=payload) as response:
            response.raise_for_status()
            result = await response.json()
            if "error" in result:
                raise RpcError(method, result["error"])
            return result.get("result")

    async def get_account_info(self, pubkey: Pubkey) -> Optional[dict]:
        """Raw account info (`data` decoded to bytes) or None if absent."""
        result = await self._call(
            "getAccountInfo",
            [str(pubkey), {"encoding": "base64", "commitment": self.commitment}],
        )
        return _decode_account(result.get("value") if result else None)

    async def get_multiple_accounts(self, pubkeys: Sequence[Pubkey]) -> List[Optional[dict]]:
        accounts: List[Optional[dict]] = []
        keys = [str(key) for key in pubkeys]
        for start in range(0, len(keys), MAX_MULTIPLE_ACCOUNTS):
            chunk = keys[start:start + MAX_MULTIPLE_ACCOUNTS]
            result = await self._call(
                "getMultipleAccounts",
                [chunk, {"encoding": "base64", "commitment": self.commitment}],
            )
            values = result.get("value", []) if result else []
            if len(values) != len(chunk):
                raise RpcError("getMultipleAccounts", {"message": f"expected {len(chunk)} values, got {len(values)}"})
            accounts.extend(_decode_account(value) for value in values)
        return accounts

    async def accounts_exist(self, addresses: Sequence[Pubkey]) -> List[bool]:
        """An account exists when it is present and holds lamports."""
        if not addresses:
            return []
        infos = await self.get_multiple_accounts(addresses)
        return [info is not None and info["lamports"] > 0 for info in infos]

    async def get_balance(self, pubkey: Pubkey) -> int:
        """Get account balance in lamports."""
        result = await self._call("getBalance", [str(pubkey), {"commitment": self.commitment}])
        return result.get("value", 0)


def _decode_account(value: Optional[dict]) -> Optional[dict]:
    if value is None:
        return None
    data_field = value.get("data")
    if isinstance(data_field, list):
        data = base64.b64decode(data_field[0])
    else:
        data = base64.b64decode(data_field or "")
    return {
        "lamports": value.get("lamports", 0),
        "owner": value.get("owner"),
        "executable": value.get("executable", False),
        "data": data,
    }
