"""Tests for on-chain account decoding."""

import struct

import pytest
from solders.pubkey import Pubkey

from gfxssl.errors import AccountDecodeError, PoolNotFound
from gfxssl.state.layouts import (
    LiquidityAccountState,
    OraclePriceHistoryState,
    OracleType,
    PairState,
    PoolRegistryState,
    SSLPoolStatus,
    account_discriminator,
)

from conftest import AUTHORITY, USDC, USDT


class TestLiquidityAccount:

    def test_decode(self, encode_liquidity_account, owner):
        registry = Pubkey.new_unique()
        data = encode_liquidity_account(
            registry, USDC, owner,
            amount_deposited=5_000, last_observed_tap=120, last_claimed=1_700_000_000,
            total_earned=77, created_at=1_690_000_000,
        )
        state = LiquidityAccountState.decode(data)
        assert state.pool_registry == registry
        assert state.mint == USDC
        assert state.owner == owner
        assert state.amount_deposited == 5_000
        assert state.last_observed_tap == 120
        assert state.last_claimed == 1_700_000_000
        assert state.total_earned == 77
        assert state.created_at == 1_690_000_000

    def test_wrong_discriminator(self, encode_liquidity_account, owner):
        data = bytearray(encode_liquidity_account(Pubkey.new_unique(), USDC, owner))
        data[:8] = account_discriminator("Pair")
        with pytest.raises(AccountDecodeError):
            LiquidityAccountState.decode(bytes(data))

    def test_truncated(self, encode_liquidity_account, owner):
        data = encode_liquidity_account(Pubkey.new_unique(), USDC, owner)
        with pytest.raises(AccountDecodeError):
            LiquidityAccountState.decode(data[:100])


class TestPair:

    def test_decode(self, encode_pair):
        registry = Pubkey.new_unique()
        collectors = (Pubkey.new_unique(), Pubkey.new_unique())
        data = encode_pair(registry, (USDC, USDT), collectors, fee_rates=(10, 25), fees=(3, 4), volume=2**70)
        state = PairState.decode(data)
        assert state.pool_registry == registry
        assert state.mints == (USDC, USDT)
        assert state.fee_collector == collectors
        assert state.fee_rates == (10, 25)
        assert state.total_fees_generated_native == (3, 4)
        assert state.total_historical_volume == 2**70


class TestPoolRegistry:

    def test_decode_entries(self, encode_pool_registry, encode_pool_entry):
        histories = (Pubkey.new_unique(),)
        data = encode_pool_registry([
            encode_pool_entry(USDC, reward=1_000, deposits=300, histories=histories),
            encode_pool_entry(USDT, status=2),
        ])
        state = PoolRegistryState.decode(data)
        assert state.admin == AUTHORITY
        assert state.bump == 255
        assert state.num_entries == 2

        usdc = state.pool_for(USDC)
        assert usdc.status is SSLPoolStatus.ACTIVE
        assert usdc.mint_decimals == 6
        assert usdc.total_accumulated_lp_reward == 1_000
        assert usdc.total_liquidity_deposits == 300
        assert usdc.oracle_price_histories[0] == histories[0]
        assert usdc.oracle_price_histories[1] == Pubkey.default()

        assert state.pool_for(USDT).is_suspended

    def test_missing_pool(self, encode_pool_registry, encode_pool_entry):
        state = PoolRegistryState.decode(encode_pool_registry([encode_pool_entry(USDC)]))
        assert state.find_pool(USDT) is None
        with pytest.raises(PoolNotFound):
            state.pool_for(USDT, operation="claimable")

    def test_uninitialized_entry_ignored(self, encode_pool_registry, encode_pool_entry):
        state = PoolRegistryState.decode(encode_pool_registry([encode_pool_entry(USDC, status=0)]))
        assert state.find_pool(USDC) is None

    def test_unknown_status_byte(self, encode_pool_registry, encode_pool_entry):
        state = PoolRegistryState.decode(encode_pool_registry([encode_pool_entry(USDC, status=9)]))
        assert state.entries[0].status is SSLPoolStatus.INVALID


def test_oracle_price_history_header():
    registry, oracle = Pubkey.new_unique(), Pubkey.new_unique()
    body = struct.pack("<BBB", 1, 2, 30) + bytes(5)
    body += bytes(registry) + bytes(oracle) + bytes(USDC)
    body += struct.pack("<Q", 42)
    data = account_discriminator("OraclePriceHistory") + body + bytes(64)

    state = OraclePriceHistoryState.decode(data)
    assert state.oracle_type is OracleType.PYTH
    assert state.minimum_elapsed_slots == 2
    assert state.max_slot_price_staleness == 30
    assert state.pool_registry == registry
    assert state.oracle_address == oracle
    assert state.mint == USDC
    assert state.num_updates == 42
