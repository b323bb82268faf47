"""On-chain account snapshots and the LP reward read model."""

from .layouts import (
    LiquidityAccountState,
    PairState,
    PoolRegistryState,
    SSLPoolState,
    SSLPoolStatus,
    OraclePriceHistoryState,
    OracleType,
    account_discriminator,
)
from .rewards import claimable, reward_report, RewardReport
