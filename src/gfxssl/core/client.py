"""
SSL client: wires resolution, snapshot reads and assembly over RPC.

Snapshot reads for one request are issued concurrently and combined only
after all of them complete; if any read fails or is cancelled, nothing is
assembled.
"""

import asyncio
import logging
from typing import Optional, Tuple

from solders.pubkey import Pubkey

from ..config import SSLConfig
from ..errors import AccountNotFound
from ..registry.token_registry import TokenRegistry
from ..state.layouts import (
    LiquidityAccountState,
    OraclePriceHistoryState,
    PairState,
    PoolRegistryState,
    SSLPoolState,
)
from ..state.rewards import RewardReport, reward_report
from . import pda
from .resolver import AccountResolver
from .rpc import SolanaRpcClient
from .tx_builder import AssembledInstructions, InstructionAssembler

logger = logging.getLogger(__name__)


async def _read_all(*reads):
    """Run snapshot reads concurrently; on the first failure cancel and drain the rest."""
    tasks = [asyncio.ensure_future(read) for read in reads]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class SSLClient:
    """
    High-level entry point for building SSL v2 user instructions.

    Args:
        config: Program, authority and RPC settings
        registry: Token and pair tables (mainnet defaults if omitted)
        rpc: RPC client (built from `config` if omitted)
    """

    def __init__(
        self,
        config: Optional[SSLConfig] = None,
        registry: Optional[TokenRegistry] = None,
        rpc: Optional[SolanaRpcClient] = None,
    ):
        self.config = config or SSLConfig()
        self.registry = registry or TokenRegistry.default()
        self.rpc = rpc or SolanaRpcClient(self.config.rpc_url, commitment=self.config.commitment)
        self.resolver = AccountResolver(self.registry, self.config.authority, self.config.program_id)
        self.assembler = InstructionAssembler(self.resolver, self.rpc)

    @property
    def pool_registry(self) -> Pubkey:
        return self.resolver.pool_registry

    async def _fetch(self, address: Pubkey, operation: Optional[str] = None, mint: Optional[Pubkey] = None) -> bytes:
        info = await self.rpc.get_account_info(address)
        if info is None:
            raise AccountNotFound(str(address), operation=operation, mint=str(mint) if mint else None)
        return info["data"]

    async def fetch_pool_registry(self) -> PoolRegistryState:
        return PoolRegistryState.decode(await self._fetch(self.pool_registry, operation="fetch_pool_registry"))

    async def fetch_pool(self, mint: Pubkey) -> SSLPoolState:
        registry = await self.fetch_pool_registry()
        return registry.pool_for(mint, operation="fetch_pool")

    async def fetch_pair(self, mint_a: Pubkey, mint_b: Pubkey) -> PairState:
        canonical = self.registry.pair_exists(mint_a, mint_b, operation="fetch_pair")
        address = pda.pair_address(self.pool_registry, canonical.mint_one, canonical.mint_two, self.config.program_id)
        return PairState.decode(await self._fetch(address, operation="fetch_pair"))

    async def fetch_liquidity_account(self, owner: Pubkey, mint: Pubkey) -> LiquidityAccountState:
        address = self.resolver.liquidity_account(owner, mint)
        data = await self._fetch(address, operation="fetch_liquidity_account", mint=mint)
        return LiquidityAccountState.decode(data)

    async def fetch_price_history(self, mint: Pubkey) -> OraclePriceHistoryState:
        address = self.resolver.price_history(mint)
        data = await self._fetch(address, operation="fetch_price_history", mint=mint)
        return OraclePriceHistoryState.decode(data)

    async def _pool_and_account(self, owner: Pubkey, mint: Pubkey) -> Tuple[SSLPoolState, LiquidityAccountState]:
        registry, account = await _read_all(
            self.fetch_pool_registry(),
            self.fetch_liquidity_account(owner, mint),
        )
        return registry.pool_for(mint, operation="claimable"), account

    async def claimable(self, owner: Pubkey, mint: Pubkey) -> int:
        pool, account = await self._pool_and_account(owner, mint)
        return reward_report(pool, account).claimable_amount

    async def rewards(self, owner: Pubkey, mint: Pubkey) -> RewardReport:
        pool, account = await self._pool_and_account(owner, mint)
        return reward_report(pool, account)

    async def swap(
        self,
        owner: Pubkey,
        mint_in: Pubkey,
        mint_out: Pubkey,
        amount_in: int,
        min_amount_out: int = 0,
    ) -> AssembledInstructions:
        """Swap using the fee destination recorded on the live pair account."""
        # Validates the pair against the static table before any read.
        self.resolver.resolve_swap(owner, mint_in, mint_out, amount_in, min_amount_out)
        pair = await self.fetch_pair(mint_in, mint_out)
        return await self.assembler.assemble_swap(owner, mint_in, mint_out, amount_in, min_amount_out, pair=pair)

    async def create_liquidity_account(self, owner: Pubkey, mint: Pubkey) -> AssembledInstructions:
        return await self.assembler.assemble_create_liquidity_account(owner, mint)

    async def deposit(
        self,
        owner: Pubkey,
        mint: Pubkey,
        amount: int,
        use_native_wrapping: bool = False,
    ) -> AssembledInstructions:
        return await self.assembler.assemble_deposit(owner, mint, amount, use_native_wrapping)

    async def withdraw(
        self,
        owner: Pubkey,
        mint: Pubkey,
        amount: int,
        unwrap_to_native: bool = False,
    ) -> AssembledInstructions:
        return await self.assembler.assemble_withdraw(owner, mint, amount, unwrap_to_native)

    async def claim_reward(self, owner: Pubkey, mint: Pubkey) -> AssembledInstructions:
        return await self.assembler.assemble_claim_reward(owner, mint)

    async def close_liquidity_account(
        self,
        owner: Pubkey,
        mint: Pubkey,
        rent_recipient: Optional[Pubkey] = None,
    ) -> AssembledInstructions:
        account = await self.fetch_liquidity_account(owner, mint)
        return await self.assembler.assemble_close_liquidity_account(owner, mint, account, rent_recipient)
