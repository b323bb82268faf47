"""Shared fixtures: a small token registry, fake chain readers and account encoders."""

import struct

import pytest
from solders.pubkey import Pubkey

from gfxssl.core import pda
from gfxssl.core.resolver import AccountResolver
from gfxssl.registry.token_registry import PairConfig, TokenInfo, TokenRegistry
from gfxssl.state.layouts import account_discriminator

USDC = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
USDT = Pubkey.from_string("Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB")
SOL = pda.NATIVE_MINT

AUTHORITY = Pubkey.from_string("GeSkmvDED55EjnybgdN1gJ89p5V5H9W6jrrhxbZ1pDhQ")


class FakeReader:
    """Existence reader backed by a set of addresses; records every batch it is asked about."""

    def __init__(self, existing=()):
        self.existing = set(existing)
        self.calls = []

    async def accounts_exist(self, addresses):
        self.calls.append(list(addresses))
        return [address in self.existing for address in addresses]


class FakeRpc(FakeReader):
    """Account store standing in for SolanaRpcClient."""

    def __init__(self, accounts=None, existing=()):
        self.accounts = dict(accounts or {})
        super().__init__(set(existing) | set(self.accounts))

    async def get_account_info(self, pubkey):
        data = self.accounts.get(pubkey)
        if data is None:
            return None
        return {"lamports": 1_000_000, "owner": str(pda.SSL_PROGRAM_ID), "executable": False, "data": data}


@pytest.fixture
def oracles():
    return {USDC: Pubkey.new_unique(), USDT: Pubkey.new_unique(), SOL: Pubkey.new_unique()}


@pytest.fixture
def fee_destinations():
    return {USDC: Pubkey.new_unique(), USDT: Pubkey.new_unique(), SOL: Pubkey.new_unique()}


@pytest.fixture
def registry(oracles, fee_destinations):
    tokens = [
        TokenInfo("USDC", USDC, oracles[USDC], 6),
        TokenInfo("USDT", USDT, oracles[USDT], 6),
        TokenInfo("SOL", SOL, oracles[SOL], 9),
    ]
    pairs = [
        PairConfig(USDC, USDT, (fee_destinations[USDC], fee_destinations[USDT]), (10, 10)),
        PairConfig(SOL, USDC, (fee_destinations[SOL], fee_destinations[USDC]), (20, 10)),
    ]
    return TokenRegistry(tokens, pairs)


@pytest.fixture
def resolver(registry):
    return AccountResolver(registry, AUTHORITY)


@pytest.fixture
def owner():
    return Pubkey.new_unique()


def _pad(body: bytes, size: int) -> bytes:
    assert len(body) <= size
    return body + bytes(size - len(body))


@pytest.fixture
def encode_liquidity_account():
    def encode(pool_registry, mint, owner, amount_deposited=0, last_observed_tap=0,
               last_claimed=0, total_earned=0, created_at=0):
        body = bytes(pool_registry) + bytes(mint) + bytes(owner)
        body += struct.pack("<QQqQq", amount_deposited, last_observed_tap, last_claimed, total_earned, created_at)
        return account_discriminator("LiquidityAccount") + _pad(body, 264)
    return encode


@pytest.fixture
def encode_pool_entry():
    def encode(mint, reward=0, deposits=0, status=1, decimals=6, histories=()):
        entry = struct.pack("<BB", status, 0) + bytes(6) + bytes(mint)
        entry += struct.pack("<BB", decimals, 254) + bytes(6)
        entry += struct.pack("<QQ", reward, deposits)
        for history in histories:
            entry += bytes(history)
        return _pad(entry, 280)
    return encode


@pytest.fixture
def encode_pool_registry():
    def encode(entries, admin=AUTHORITY, bump=255):
        body = bytes(admin) + bytes(Pubkey.default()) + bytes(admin)
        body += struct.pack("<B", bump) + bytes(7)
        body += struct.pack("<I", len(entries))
        body = _pad(body, 240)
        for entry in entries:
            body += entry
        return account_discriminator("PoolRegistry") + _pad(body, 9200)
    return encode


@pytest.fixture
def encode_price_history():
    def encode(pool_registry, oracle, mint, oracle_type=1, num_updates=0):
        body = struct.pack("<BBB", oracle_type, 2, 30) + bytes(5)
        body += bytes(pool_registry) + bytes(oracle) + bytes(mint)
        body += struct.pack("<Q", num_updates)
        return account_discriminator("OraclePriceHistory") + body + bytes(64)
    return encode


@pytest.fixture
def encode_pair():
    def encode(pool_registry, mints, fee_collector, fee_rates=(10, 10), fees=(0, 0), volume=0):
        body = bytes(pool_registry)
        body += bytes(mints[0]) + bytes(mints[1])
        body += bytes(fee_collector[0]) + bytes(fee_collector[1])
        body += struct.pack("<HH", *fee_rates)
        for value in (fees[0], fees[1], volume, 0, 0):
            body += value.to_bytes(16, "little")
        return account_discriminator("Pair") + _pad(body, 372)
    return encode
