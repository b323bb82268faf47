"""Tests for account resolution."""

from types import SimpleNamespace

import pytest
from solders.pubkey import Pubkey

from gfxssl.core import pda
from gfxssl.core.accounts import DepositAccounts, SwapAccounts, WithdrawAccounts
from gfxssl.core.resolver import U64_MAX, check_u64
from gfxssl.errors import (
    FeeDestinationNotFound,
    InvalidNativeWrapRequest,
    TokenNotFound,
    UnsupportedPair,
)

from conftest import AUTHORITY, SOL, USDC, USDT


class TestSwapResolution:

    def test_swap_accounts(self, resolver, owner, oracles, fee_destinations):
        accounts = resolver.resolve_swap(owner, USDC, USDT, 1_000_000)
        registry = pda.pool_registry_address(AUTHORITY)
        signer_in = pda.ssl_pool_signer_address(registry, USDC)
        signer_out = pda.ssl_pool_signer_address(registry, USDT)

        assert accounts.pair == pda.pair_address(registry, USDC, USDT)
        assert accounts.pool_registry == registry
        assert accounts.user_wallet == owner
        assert accounts.user_ata_in == pda.associated_token_address(owner, USDC)
        assert accounts.user_ata_out == pda.associated_token_address(owner, USDT)
        assert accounts.ssl_out_main_vault == pda.associated_token_address(signer_out, USDT)
        assert accounts.ssl_out_secondary_vault == pda.associated_token_address(signer_out, USDC)
        assert accounts.ssl_in_main_vault == pda.associated_token_address(signer_in, USDC)
        assert accounts.ssl_in_secondary_vault == pda.associated_token_address(signer_in, USDT)
        assert accounts.ssl_out_fee_vault == pda.associated_token_address(registry, USDT)
        assert accounts.fee_destination == fee_destinations[USDT]
        assert accounts.output_token_oracle == oracles[USDT]
        assert accounts.input_token_oracle == oracles[USDC]
        assert accounts.output_token_price_history == pda.oracle_price_history_address(registry, oracles[USDT])
        assert accounts.event_emitter == pda.event_emitter_address()
        assert accounts.token_program == pda.TOKEN_PROGRAM_ID

    def test_direction_swaps_vaults_not_pair(self, resolver, owner):
        forward = resolver.resolve_swap(owner, USDC, USDT, 1)
        backward = resolver.resolve_swap(owner, USDT, USDC, 1)
        assert forward.pair == backward.pair
        assert forward.ssl_in_main_vault == backward.ssl_out_main_vault
        assert forward.fee_destination != backward.fee_destination

    def test_account_metas_in_program_order(self, resolver, owner):
        accounts = resolver.resolve_swap(owner, USDC, USDT, 1)
        metas = accounts.to_account_metas()
        assert len(metas) == 19
        assert [m.pubkey for m in metas] == [getattr(accounts, name) for name, _, _ in SwapAccounts.LAYOUT]
        signers = [m.pubkey for m in metas if m.is_signer]
        assert signers == [owner]
        assert metas[0].is_writable
        assert not metas[-1].is_writable

    def test_unsupported_pair(self, resolver, owner):
        with pytest.raises(UnsupportedPair):
            resolver.resolve_swap(owner, SOL, USDT, 1_000)

    def test_same_mint(self, resolver, owner):
        with pytest.raises(UnsupportedPair):
            resolver.resolve_swap(owner, USDC, USDC, 1_000)

    def test_fee_destination_from_pair_snapshot(self, resolver, owner):
        collector_usdc, collector_usdt = Pubkey.new_unique(), Pubkey.new_unique()
        snapshot = SimpleNamespace(mints=(USDC, USDT), fee_collector=(collector_usdc, collector_usdt))
        accounts = resolver.resolve_swap(owner, USDC, USDT, 1, pair=snapshot)
        assert accounts.fee_destination == collector_usdt

    def test_snapshot_without_output_mint(self, resolver, owner):
        snapshot = SimpleNamespace(mints=(USDC, SOL), fee_collector=(Pubkey.new_unique(), Pubkey.new_unique()))
        with pytest.raises(FeeDestinationNotFound):
            resolver.resolve_swap(owner, USDC, USDT, 1, pair=snapshot)

    @pytest.mark.parametrize("amount", [-1, U64_MAX + 1, 1.5, True])
    def test_amount_must_be_u64(self, resolver, owner, amount):
        with pytest.raises(ValueError):
            resolver.resolve_swap(owner, USDC, USDT, amount)


class TestLiquidityResolution:

    def test_native_wrap_requires_native_mint(self, resolver, owner):
        with pytest.raises(InvalidNativeWrapRequest):
            resolver.resolve_deposit(owner, USDC, 1_000, use_native_wrapping=True)

    def test_native_flag_checked_before_amount(self, resolver, owner):
        with pytest.raises(InvalidNativeWrapRequest):
            resolver.resolve_deposit(owner, USDC, -5, use_native_wrapping=True)

    def test_unwrap_requires_native_mint(self, resolver, owner):
        with pytest.raises(InvalidNativeWrapRequest):
            resolver.resolve_withdraw(owner, USDT, 1_000, unwrap_to_native=True)

    def test_deposit_accounts(self, resolver, owner):
        accounts = resolver.resolve_deposit(owner, SOL, 1_000, use_native_wrapping=True)
        registry = resolver.pool_registry
        signer = pda.ssl_pool_signer_address(registry, SOL)
        assert isinstance(accounts, DepositAccounts)
        assert accounts.liquidity_account == pda.liquidity_account_address(registry, SOL, owner)
        assert accounts.user_ata == pda.associated_token_address(owner, SOL)
        assert accounts.pool_vault == pda.associated_token_address(signer, SOL)
        assert accounts.ssl_fee_vault == pda.fee_vault_address(registry, SOL)

    def test_withdraw_matches_deposit_order(self, resolver, owner):
        deposit = resolver.resolve_deposit(owner, USDC, 1)
        withdraw = resolver.resolve_withdraw(owner, USDC, 1)
        assert isinstance(withdraw, WithdrawAccounts)
        assert withdraw.NAME == "withdraw"
        assert withdraw.addresses() == deposit.addresses()

    def test_unknown_mint(self, resolver, owner):
        with pytest.raises(TokenNotFound):
            resolver.resolve_deposit(owner, Pubkey.new_unique(), 1)

    def test_claim_accounts(self, resolver, owner):
        accounts = resolver.resolve_claim_reward(owner, USDC)
        assert accounts.owner_ata == pda.associated_token_address(owner, USDC)
        assert accounts.ssl_fee_vault == pda.fee_vault_address(resolver.pool_registry, USDC)
        assert accounts.to_account_metas()[1].is_signer

    def test_create_liquidity_account(self, resolver, owner):
        accounts = resolver.resolve_create_liquidity_account(owner, USDT)
        assert accounts.liquidity_account == resolver.liquidity_account(owner, USDT)
        assert accounts.system_program == pda.SYSTEM_PROGRAM_ID

    def test_close_defaults_rent_to_owner(self, resolver, owner):
        accounts = resolver.resolve_close_liquidity_account(owner, USDC)
        assert accounts.rent_recipient == owner
        other = Pubkey.new_unique()
        assert resolver.resolve_close_liquidity_account(owner, USDC, other).rent_recipient == other


def test_check_u64_bounds():
    assert check_u64("x", 0) == 0
    assert check_u64("x", U64_MAX) == U64_MAX
    with pytest.raises(ValueError):
        check_u64("x", U64_MAX + 1)
