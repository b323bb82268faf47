"""
On-chain account layouts of the SSL v2 program.

Decodes the raw account data returned by `getAccountInfo` into read-only
snapshots. Every account starts with an 8-byte Anchor discriminator,
`sha256("account:<Name>")[:8]`; all integers are little-endian.
"""

import hashlib
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from solders.pubkey import Pubkey

from ..errors import AccountDecodeError, PoolNotFound

DISCRIMINATOR_LEN = 8
PUBKEY_LEN = 32

LIQUIDITY_ACCOUNT_SIZE = 264
PAIR_SIZE = 372
POOL_REGISTRY_SIZE = 9200
SSL_POOL_SIZE = 280
ORACLE_PRICE_HISTORY_SIZE = 6384
MAX_SSL_POOLS_PER_ADMIN = 32
MAX_NUM_ORACLES_PER_MINT = 3

_POOL_REGISTRY_HEADER = 240
_ORACLE_HEADER = 112


def account_discriminator(name: str) -> bytes:
    """Anchor account discriminator for an account type name."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


def _strip_discriminator(name: str, data: bytes, size: int) -> bytes:
    expected = account_discriminator(name)
    if len(data) < DISCRIMINATOR_LEN + size:
        raise AccountDecodeError(
            f"{name} data too short: {len(data)} bytes, expected {DISCRIMINATOR_LEN + size}"
        )
    if data[:DISCRIMINATOR_LEN] != expected:
        raise AccountDecodeError(f"Discriminator mismatch for {name}")
    return data[DISCRIMINATOR_LEN:DISCRIMINATOR_LEN + size]


def _pubkey_at(body: bytes, offset: int) -> Pubkey:
    return Pubkey(body[offset:offset + PUBKEY_LEN])


def _u128_at(body: bytes, offset: int) -> int:
    return int.from_bytes(body[offset:offset + 16], "little")


class SSLPoolStatus(Enum):
    UNINITIALIZED = 0
    ACTIVE = 1
    SUSPENDED = 2
    INVALID = 255

    @classmethod
    def from_byte(cls, value: int) -> "SSLPoolStatus":
        if value in (0, 1, 2):
            return cls(value)
        return cls.INVALID


class OracleType(Enum):
    UNINITIALIZED = 0
    PYTH = 1
    SWITCHBOARD_V2 = 2
    INVALID = 255

    @classmethod
    def from_byte(cls, value: int) -> "OracleType":
        if value in (0, 1, 2):
            return cls(value)
        return cls.INVALID


@dataclass(frozen=True)
class LiquidityAccountState:
    pool_registry: Pubkey
    mint: Pubkey
    owner: Pubkey
    amount_deposited: int
    last_observed_tap: int
    last_claimed: int
    total_earned: int
    created_at: int

    @classmethod
    def decode(cls, data: bytes) -> "LiquidityAccountState":
        body = _strip_discriminator("LiquidityAccount", data, LIQUIDITY_ACCOUNT_SIZE)
        amount, tap, last_claimed, earned, created = struct.unpack_from("<QQqQq", body, 96)
        return cls(
            pool_registry=_pubkey_at(body, 0),
            mint=_pubkey_at(body, 32),
            owner=_pubkey_at(body, 64),
            amount_deposited=amount,
            last_observed_tap=tap,
            last_claimed=last_claimed,
            total_earned=earned,
            created_at=created,
        )


@dataclass(frozen=True)
class PairState:
    pool_registry: Pubkey
    mints: Tuple[Pubkey, Pubkey]
    fee_collector: Tuple[Pubkey, Pubkey]
    fee_rates: Tuple[int, int]
    total_fees_generated_native: Tuple[int, int]
    total_historical_volume: int
    total_internally_swapped: Tuple[int, int]

    @classmethod
    def decode(cls, data: bytes) -> "PairState":
        body = _strip_discriminator("Pair", data, PAIR_SIZE)
        rate_one, rate_two = struct.unpack_from("<HH", body, 160)
        return cls(
            pool_registry=_pubkey_at(body, 0),
            mints=(_pubkey_at(body, 32), _pubkey_at(body, 64)),
            fee_collector=(_pubkey_at(body, 96), _pubkey_at(body, 128)),
            fee_rates=(rate_one, rate_two),
            total_fees_generated_native=(_u128_at(body, 164), _u128_at(body, 180)),
            total_historical_volume=_u128_at(body, 196),
            total_internally_swapped=(_u128_at(body, 212), _u128_at(body, 228)),
        )


@dataclass(frozen=True)
class SSLPoolState:
    """One SSL pool entry of the pool registry."""
    status: SSLPoolStatus
    asset_type: int
    mint: Pubkey
    mint_decimals: int
    bump: int
    total_accumulated_lp_reward: int
    total_liquidity_deposits: int
    oracle_price_histories: Tuple[Pubkey, ...]

    @classmethod
    def decode_entry(cls, entry: bytes) -> "SSLPoolState":
        status, asset_type = struct.unpack_from("<BB", entry, 0)
        decimals, bump = struct.unpack_from("<BB", entry, 40)
        reward, deposits = struct.unpack_from("<QQ", entry, 48)
        histories = tuple(
            _pubkey_at(entry, 64 + i * PUBKEY_LEN) for i in range(MAX_NUM_ORACLES_PER_MINT)
        )
        return cls(
            status=SSLPoolStatus.from_byte(status),
            asset_type=asset_type,
            mint=_pubkey_at(entry, 8),
            mint_decimals=decimals,
            bump=bump,
            total_accumulated_lp_reward=reward,
            total_liquidity_deposits=deposits,
            oracle_price_histories=histories,
        )

    @property
    def is_initialized(self) -> bool:
        return self.status != SSLPoolStatus.UNINITIALIZED

    @property
    def is_suspended(self) -> bool:
        return self.status == SSLPoolStatus.SUSPENDED


@dataclass(frozen=True)
class PoolRegistryState:
    admin: Pubkey
    seed: Pubkey
    suspend_admin: Pubkey
    bump: int
    num_entries: int
    entries: List[SSLPoolState] = field(default_factory=list)

    @classmethod
    def decode(cls, data: bytes) -> "PoolRegistryState":
        body = _strip_discriminator("PoolRegistry", data, POOL_REGISTRY_SIZE)
        (bump,) = struct.unpack_from("<B", body, 96)
        (num_entries,) = struct.unpack_from("<I", body, 104)
        if num_entries > MAX_SSL_POOLS_PER_ADMIN:
            raise AccountDecodeError(f"PoolRegistry reports {num_entries} entries")
        entries = []
        for index in range(num_entries):
            start = _POOL_REGISTRY_HEADER + index * SSL_POOL_SIZE
            entries.append(SSLPoolState.decode_entry(body[start:start + SSL_POOL_SIZE]))
        return cls(
            admin=_pubkey_at(body, 0),
            seed=_pubkey_at(body, 32),
            suspend_admin=_pubkey_at(body, 64),
            bump=bump,
            num_entries=num_entries,
            entries=entries,
        )

    def find_pool(self, mint: Pubkey) -> Optional[SSLPoolState]:
        for entry in self.entries:
            if entry.mint == mint and entry.is_initialized:
                return entry
        return None

    def pool_for(self, mint: Pubkey, operation: Optional[str] = None) -> SSLPoolState:
        pool = self.find_pool(mint)
        if pool is None:
            raise PoolNotFound("No SSL pool for mint in pool registry", operation=operation, mint=str(mint))
        return pool


@dataclass(frozen=True)
class OraclePriceHistoryState:
    """Header of an oracle price history; the price ring itself is not decoded."""
    oracle_type: OracleType
    minimum_elapsed_slots: int
    max_slot_price_staleness: int
    pool_registry: Pubkey
    oracle_address: Pubkey
    mint: Pubkey
    num_updates: int

    @classmethod
    def decode(cls, data: bytes) -> "OraclePriceHistoryState":
        body = _strip_discriminator("OraclePriceHistory", data, _ORACLE_HEADER)
        oracle_type, min_elapsed, staleness = struct.unpack_from("<BBB", body, 0)
        (num_updates,) = struct.unpack_from("<Q", body, 104)
        return cls(
            oracle_type=OracleType.from_byte(oracle_type),
            minimum_elapsed_slots=min_elapsed,
            max_slot_price_staleness=staleness,
            pool_registry=_pubkey_at(body, 8),
            oracle_address=_pubkey_at(body, 40),
            mint=_pubkey_at(body, 72),
            num_updates=num_updates,
        )
