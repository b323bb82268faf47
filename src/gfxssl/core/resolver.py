"""
Account Resolver: builds the complete account set for each user operation.

Every precondition is checked before the first address is derived, and a
record is only returned once every field is resolved.
"""

import logging
from typing import Optional

from solders.pubkey import Pubkey

from ..errors import FeeDestinationNotFound, InvalidNativeWrapRequest, UnsupportedPair
from ..registry.token_registry import TokenRegistry
from . import pda
from .accounts import (
    ClaimFeesAccounts,
    CloseLiquidityAccountAccounts,
    CreateLiquidityAccountAccounts,
    DepositAccounts,
    SwapAccounts,
    WithdrawAccounts,
)

logger = logging.getLogger(__name__)

U64_MAX = 2**64 - 1


def check_u64(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"{name} out of u64 range: {value}")
    return value


class AccountResolver:
    """
    Resolves the accounts of swap, deposit, withdraw, claim and
    liquidity-account instructions.

    Args:
        registry: Token and pair tables
        authority: Protocol authority seeding the pool registry
        program_id: SSL program id
    """

    def __init__(
        self,
        registry: TokenRegistry,
        authority: Pubkey,
        program_id: Pubkey = pda.SSL_PROGRAM_ID,
    ):
        self.registry = registry
        self.authority = authority
        self.program_id = program_id
        self.pool_registry = pda.pool_registry_address(authority, program_id)
        self.event_emitter = pda.event_emitter_address(program_id)

    def _check_native_flag(self, operation: str, mint: Pubkey, requested: bool):
        if requested and mint != pda.NATIVE_MINT:
            raise InvalidNativeWrapRequest(
                "Native wrapping requires the wrapped-native mint",
                operation=operation,
                mint=str(mint),
            )

    def resolve_swap(
        self,
        owner: Pubkey,
        mint_in: Pubkey,
        mint_out: Pubkey,
        amount_in: int,
        min_amount_out: int = 0,
        pair=None,
    ) -> SwapAccounts:
        """
        Resolve a swap from `mint_in` to `mint_out`.

        `pair` may be a live pair snapshot (anything with `mints` and
        `fee_collector` tuples); its fee collectors take precedence over
        the static table.
        """
        check_u64("amount_in", amount_in)
        check_u64("min_amount_out", min_amount_out)
        if mint_in == mint_out:
            raise UnsupportedPair(
                "Cannot swap a mint for itself",
                operation="swap",
                pair=(str(mint_in), str(mint_out)),
            )

        canonical = self.registry.pair_exists(mint_in, mint_out, operation="swap")
        oracle_in = self.registry.lookup_oracle(mint_in, operation="swap")
        oracle_out = self.registry.lookup_oracle(mint_out, operation="swap")

        if pair is not None:
            fee_destination = _fee_destination_from_snapshot(pair, mint_out, canonical)
        else:
            fee_destination = canonical.fee_destination_for(mint_out)

        registry = self.pool_registry
        program_id = self.program_id
        signer_in = pda.ssl_pool_signer_address(registry, mint_in, program_id)
        signer_out = pda.ssl_pool_signer_address(registry, mint_out, program_id)

        accounts = SwapAccounts(
            pair=pda.pair_address(registry, canonical.mint_one, canonical.mint_two, program_id),
            pool_registry=registry,
            user_wallet=owner,
            ssl_pool_in_signer=signer_in,
            ssl_pool_out_signer=signer_out,
            user_ata_in=pda.associated_token_address(owner, mint_in),
            user_ata_out=pda.associated_token_address(owner, mint_out),
            ssl_out_main_vault=pda.associated_token_address(signer_out, mint_out),
            ssl_out_secondary_vault=pda.associated_token_address(signer_out, mint_in),
            ssl_in_main_vault=pda.associated_token_address(signer_in, mint_in),
            ssl_in_secondary_vault=pda.associated_token_address(signer_in, mint_out),
            ssl_out_fee_vault=pda.fee_vault_address(registry, mint_out),
            fee_destination=fee_destination,
            output_token_price_history=pda.oracle_price_history_address(registry, oracle_out, program_id),
            output_token_oracle=oracle_out,
            input_token_price_history=pda.oracle_price_history_address(registry, oracle_in, program_id),
            input_token_oracle=oracle_in,
            event_emitter=self.event_emitter,
            token_program=pda.TOKEN_PROGRAM_ID,
        )
        logger.debug("Resolved swap %s -> %s via pair %s", mint_in, mint_out, accounts.pair)
        return accounts

    def resolve_create_liquidity_account(self, owner: Pubkey, mint: Pubkey) -> CreateLiquidityAccountAccounts:
        self.registry.lookup_decimals(mint, operation="create_liquidity_account")
        return CreateLiquidityAccountAccounts(
            pool_registry=self.pool_registry,
            mint=mint,
            liquidity_account=self.liquidity_account(owner, mint),
            owner=owner,
            event_emitter=self.event_emitter,
            system_program=pda.SYSTEM_PROGRAM_ID,
        )

    def _resolve_vault_transfer(self, cls, operation: str, owner: Pubkey, mint: Pubkey):
        self.registry.lookup_decimals(mint, operation=operation)
        signer = pda.ssl_pool_signer_address(self.pool_registry, mint, self.program_id)
        return cls(
            liquidity_account=self.liquidity_account(owner, mint),
            owner=owner,
            user_ata=pda.associated_token_address(owner, mint),
            ssl_pool_signer=signer,
            pool_vault=pda.associated_token_address(signer, mint),
            ssl_fee_vault=pda.fee_vault_address(self.pool_registry, mint),
            pool_registry=self.pool_registry,
            event_emitter=self.event_emitter,
            token_program=pda.TOKEN_PROGRAM_ID,
        )

    def resolve_deposit(
        self,
        owner: Pubkey,
        mint: Pubkey,
        amount: int,
        use_native_wrapping: bool = False,
    ) -> DepositAccounts:
        self._check_native_flag("deposit", mint, use_native_wrapping)
        check_u64("amount", amount)
        return self._resolve_vault_transfer(DepositAccounts, "deposit", owner, mint)

    def resolve_withdraw(
        self,
        owner: Pubkey,
        mint: Pubkey,
        amount: int,
        unwrap_to_native: bool = False,
    ) -> WithdrawAccounts:
        self._check_native_flag("withdraw", mint, unwrap_to_native)
        check_u64("amount", amount)
        return self._resolve_vault_transfer(WithdrawAccounts, "withdraw", owner, mint)

    def resolve_claim_reward(self, owner: Pubkey, mint: Pubkey) -> ClaimFeesAccounts:
        self.registry.lookup_decimals(mint, operation="claim_fees")
        return ClaimFeesAccounts(
            pool_registry=self.pool_registry,
            owner=owner,
            ssl_fee_vault=pda.fee_vault_address(self.pool_registry, mint),
            owner_ata=pda.associated_token_address(owner, mint),
            liquidity_account=self.liquidity_account(owner, mint),
            event_emitter=self.event_emitter,
            token_program=pda.TOKEN_PROGRAM_ID,
        )

    def resolve_close_liquidity_account(
        self,
        owner: Pubkey,
        mint: Pubkey,
        rent_recipient: Optional[Pubkey] = None,
    ) -> CloseLiquidityAccountAccounts:
        return CloseLiquidityAccountAccounts(
            owner=owner,
            rent_recipient=rent_recipient or owner,
            liquidity_account=self.liquidity_account(owner, mint),
            event_emitter=self.event_emitter,
            system_program=pda.SYSTEM_PROGRAM_ID,
        )

    def liquidity_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        return pda.liquidity_account_address(self.pool_registry, mint, owner, self.program_id)

    def price_history(self, mint: Pubkey) -> Pubkey:
        oracle = self.registry.lookup_oracle(mint)
        return pda.oracle_price_history_address(self.pool_registry, oracle, self.program_id)


def _fee_destination_from_snapshot(pair, mint_out: Pubkey, canonical) -> Pubkey:
    for stored, destination in zip(pair.mints, pair.fee_collector):
        if stored == mint_out:
            return destination
    raise FeeDestinationNotFound(
        "Output mint matches neither mint of the on-chain pair",
        operation="swap",
        mint=str(mint_out),
        pair=(str(canonical.mint_one), str(canonical.mint_two)),
    )
