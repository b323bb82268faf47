"""
Reward Accountant: claimable LP fees from the pool's accumulator.

The pool records `total_accumulated_lp_reward`, a running total of fees
shared with LPs. Each liquidity account remembers the total it last
observed; the difference, scaled by the account's share of deposits, is
what the account can claim:

    claimable = (total_accumulated_lp_reward - last_observed_tap)
                * amount_deposited // total_liquidity_deposits

Operands are u64 on chain, the product is formed in u128, and the
division truncates so the pool never pays out more than it holds.
"""

from dataclasses import dataclass
from typing import Dict

from ..errors import AccumulatorInvariantViolated, NoActiveDeposits
from .layouts import LiquidityAccountState, SSLPoolState

U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1


def _u64(name: str, value: int, mint: str) -> int:
    if not 0 <= value <= U64_MAX:
        raise AccumulatorInvariantViolated(f"{name} outside u64 range: {value}", operation="claimable", mint=mint)
    return value


def claimable(pool: SSLPoolState, account: LiquidityAccountState) -> int:
    """
    Amount of `pool.mint` the account could claim right now.

    Raises:
        NoActiveDeposits: The pool has no deposits to divide by.
        AccumulatorInvariantViolated: The account observed a larger
            accumulator than the pool now reports, or a value overflowed.
    """
    mint = str(pool.mint)
    total_reward = _u64("total_accumulated_lp_reward", pool.total_accumulated_lp_reward, mint)
    total_deposits = _u64("total_liquidity_deposits", pool.total_liquidity_deposits, mint)
    observed = _u64("last_observed_tap", account.last_observed_tap, mint)
    deposited = _u64("amount_deposited", account.amount_deposited, mint)

    if total_deposits == 0:
        raise NoActiveDeposits("Pool has no liquidity deposits", operation="claimable", mint=mint)

    accrued = total_reward - observed
    if accrued < 0:
        raise AccumulatorInvariantViolated(
            f"Accumulator went backwards: pool={total_reward} observed={observed}",
            operation="claimable",
            mint=mint,
        )

    product = accrued * deposited
    if product > U128_MAX:
        raise AccumulatorInvariantViolated("Reward product overflows u128", operation="claimable", mint=mint)

    amount = product // total_deposits
    if amount > U64_MAX:
        raise AccumulatorInvariantViolated("Claimable amount overflows u64", operation="claimable", mint=mint)
    return amount


@dataclass(frozen=True)
class RewardReport:
    """Reward read model; numeric fields are rendered as decimal strings."""
    mint: str
    amount_deposited: int
    total_earned: int
    last_claimed: int
    claimable_amount: int

    def to_dict(self) -> Dict[str, str]:
        return {
            "amountDeposited": str(self.amount_deposited),
            "totalEarned": str(self.total_earned),
            "lastClaimed": str(self.last_claimed),
            "claimableAmount": str(self.claimable_amount),
            "mint": self.mint,
        }


def reward_report(pool: SSLPoolState, account: LiquidityAccountState) -> RewardReport:
    if pool.mint != account.mint:
        raise AccumulatorInvariantViolated(
            f"Liquidity account mint {account.mint} does not match pool",
            operation="claimable",
            mint=str(pool.mint),
        )
    return RewardReport(
        mint=str(account.mint),
        amount_deposited=account.amount_deposited,
        total_earned=account.total_earned,
        last_claimed=account.last_claimed,
        claimable_amount=claimable(pool, account),
    )
