"""Tests for claimable LP reward accounting."""

import pytest
from solders.pubkey import Pubkey

from gfxssl.errors import AccumulatorInvariantViolated, NoActiveDeposits
from gfxssl.state.layouts import LiquidityAccountState, SSLPoolState, SSLPoolStatus
from gfxssl.state.rewards import U64_MAX, claimable, reward_report

from conftest import USDC, USDT


def make_pool(reward, deposits, mint=USDC):
    return SSLPoolState(
        status=SSLPoolStatus.ACTIVE,
        asset_type=0,
        mint=mint,
        mint_decimals=6,
        bump=255,
        total_accumulated_lp_reward=reward,
        total_liquidity_deposits=deposits,
        oracle_price_histories=(),
    )


def make_account(deposited, observed, mint=USDC, earned=0, last_claimed=0):
    return LiquidityAccountState(
        pool_registry=Pubkey.default(),
        mint=mint,
        owner=Pubkey.new_unique(),
        amount_deposited=deposited,
        last_observed_tap=observed,
        last_claimed=last_claimed,
        total_earned=earned,
        created_at=0,
    )


class TestClaimable:

    def test_pro_rata_share(self):
        assert claimable(make_pool(1_000, 300), make_account(100, 100)) == 300

    def test_floor_rounding(self):
        assert claimable(make_pool(10, 3), make_account(1, 0)) == 3
        assert claimable(make_pool(2, 3), make_account(1, 0)) == 0

    def test_nothing_accrued_since_last_observation(self):
        assert claimable(make_pool(500, 100), make_account(100, 500)) == 0

    def test_no_deposits(self):
        with pytest.raises(NoActiveDeposits):
            claimable(make_pool(1_000, 0), make_account(0, 0))

    def test_accumulator_went_backwards(self):
        with pytest.raises(AccumulatorInvariantViolated):
            claimable(make_pool(100, 10), make_account(10, 101))

    def test_never_pays_more_than_accrued(self):
        pool = make_pool(10_007, 7)
        accounts = [make_account(1, 0) for _ in range(7)]
        total = sum(claimable(pool, account) for account in accounts)
        assert total <= pool.total_accumulated_lp_reward

    def test_monotonic_in_accumulator(self):
        account = make_account(37, 50)
        amounts = [claimable(make_pool(reward, 1_000), account) for reward in (50, 500, 5_000, 50_000)]
        assert amounts == sorted(amounts)

    def test_large_values_use_wide_product(self):
        pool = make_pool(U64_MAX, U64_MAX)
        assert claimable(pool, make_account(U64_MAX, 0)) == U64_MAX

    def test_operand_outside_u64(self):
        with pytest.raises(AccumulatorInvariantViolated):
            claimable(make_pool(U64_MAX + 1, 1), make_account(1, 0))

    def test_result_overflows_u64(self):
        with pytest.raises(AccumulatorInvariantViolated):
            claimable(make_pool(U64_MAX, 1), make_account(2, 0))


class TestRewardReport:

    def test_fields_rendered_as_strings(self):
        account = make_account(100, 100, earned=12, last_claimed=1_700_000_000)
        report = reward_report(make_pool(1_000, 300), account)
        assert report.to_dict() == {
            "amountDeposited": "100",
            "totalEarned": "12",
            "lastClaimed": "1700000000",
            "claimableAmount": "300",
            "mint": str(USDC),
        }

    def test_mint_mismatch(self):
        with pytest.raises(AccumulatorInvariantViolated):
            reward_report(make_pool(1_000, 300), make_account(100, 100, mint=USDT))
