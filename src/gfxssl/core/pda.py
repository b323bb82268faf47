"""
Program-derived address derivation for the SSL v2 program.

Every address the program checks is a PDA built from a fixed seed literal
followed by the pool registry (or the protocol authority for the registry
itself) and up to two more keys. The program derives the same addresses
on its side and rejects mismatches, so derivation here must be bit-exact.
"""

from enum import Enum
from functools import lru_cache
from typing import Sequence, Tuple

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID, WRAPPED_SOL_MINT
from spl.token.instructions import get_associated_token_address

from ..errors import AddressDerivationExhausted

SSL_PROGRAM_ID = Pubkey.from_string("GFXsSL5sSaDfNFQUYsHekbWBW1TsFdjDYzACh62tEHxn")
NATIVE_MINT = WRAPPED_SOL_MINT

MAX_SEED_LEN = 32
MAX_SEEDS = 16


class SeedTag(Enum):
    """Seed literals used by the program, in the order they prefix each PDA."""
    POOL_REGISTRY = b"pool_registry"
    PAIR = b"pair"
    ORACLE_PRICE_HISTORY = b"oracle_price_history"
    LIQUIDITY_ACCOUNT = b"liquidity_account"
    SSL_POOL_SIGNER = b"ssl_pool"
    EVENT_EMITTER = b"event"


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    """
    Search bump seeds 255..0 for the first one yielding an off-curve address.

    Raises:
        AddressDerivationExhausted: No bump produced a valid address.
        ValueError: Seeds violate the runtime's length limits.
    """
    if len(seeds) + 1 > MAX_SEEDS:
        raise ValueError(f"Too many seeds: {len(seeds)}")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"Seed longer than {MAX_SEED_LEN} bytes: {seed!r}")

    for bump in range(255, -1, -1):
        try:
            return Pubkey.create_program_address([*seeds, bytes([bump])], program_id), bump
        except ValueError:
            # on curve, try the next bump
            continue

    raise AddressDerivationExhausted(
        f"No viable bump seed for seeds {[s.hex() for s in seeds]}"
    )


@lru_cache(maxsize=4096)
def _derive_cached(seeds: Tuple[bytes, ...], program_id: Pubkey) -> Pubkey:
    return find_program_address(seeds, program_id)[0]


def derive(
    seed: SeedTag,
    inputs: Sequence[Pubkey],
    program_id: Pubkey = SSL_PROGRAM_ID,
) -> Pubkey:
    """Derive the PDA for a seed tag followed by the given keys, in order."""
    seeds = (seed.value,) + tuple(bytes(key) for key in inputs)
    return _derive_cached(seeds, program_id)


def normalize_mint_order(mint_one: Pubkey, mint_two: Pubkey) -> Tuple[Pubkey, Pubkey]:
    """Order two mints numerically, the way the program stores them on a pair."""
    if bytes(mint_one) < bytes(mint_two):
        return mint_one, mint_two
    return mint_two, mint_one


def pool_registry_address(authority: Pubkey, program_id: Pubkey = SSL_PROGRAM_ID) -> Pubkey:
    return derive(SeedTag.POOL_REGISTRY, [authority], program_id)


def pair_address(
    pool_registry: Pubkey,
    mint_one: Pubkey,
    mint_two: Pubkey,
    program_id: Pubkey = SSL_PROGRAM_ID,
) -> Pubkey:
    """Pair PDA; mint order of the arguments does not matter."""
    first, second = normalize_mint_order(mint_one, mint_two)
    return derive(SeedTag.PAIR, [pool_registry, first, second], program_id)


def oracle_price_history_address(
    pool_registry: Pubkey,
    oracle: Pubkey,
    program_id: Pubkey = SSL_PROGRAM_ID,
) -> Pubkey:
    return derive(SeedTag.ORACLE_PRICE_HISTORY, [pool_registry, oracle], program_id)


def liquidity_account_address(
    pool_registry: Pubkey,
    mint: Pubkey,
    owner: Pubkey,
    program_id: Pubkey = SSL_PROGRAM_ID,
) -> Pubkey:
    return derive(SeedTag.LIQUIDITY_ACCOUNT, [pool_registry, mint, owner], program_id)


def ssl_pool_signer_address(
    pool_registry: Pubkey,
    mint: Pubkey,
    program_id: Pubkey = SSL_PROGRAM_ID,
) -> Pubkey:
    return derive(SeedTag.SSL_POOL_SIGNER, [pool_registry, mint], program_id)


def event_emitter_address(program_id: Pubkey = SSL_PROGRAM_ID) -> Pubkey:
    return derive(SeedTag.EVENT_EMITTER, [], program_id)


@lru_cache(maxsize=4096)
def associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Canonical token account of `owner` for `mint`."""
    return get_associated_token_address(owner, mint)


def pool_vault_address(pool_registry: Pubkey, mint: Pubkey, program_id: Pubkey = SSL_PROGRAM_ID) -> Pubkey:
    """Main vault: the signer's token account in its own mint."""
    signer = ssl_pool_signer_address(pool_registry, mint, program_id)
    return associated_token_address(signer, mint)


def secondary_vault_address(
    pool_registry: Pubkey,
    main_mint: Pubkey,
    secondary_mint: Pubkey,
    program_id: Pubkey = SSL_PROGRAM_ID,
) -> Pubkey:
    """Secondary vault: the signer of `main_mint` holding `secondary_mint`."""
    signer = ssl_pool_signer_address(pool_registry, main_mint, program_id)
    return associated_token_address(signer, secondary_mint)


def fee_vault_address(pool_registry: Pubkey, mint: Pubkey) -> Pubkey:
    """LP fee vault: the pool registry's token account in `mint`."""
    return associated_token_address(pool_registry, mint)
