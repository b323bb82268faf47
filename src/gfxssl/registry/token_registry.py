"""Token Registry: maps mints to oracles and decimals, and pairs to fee settings."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Iterable, List, Optional, Tuple, Union

from solders.pubkey import Pubkey

from ..core.pda import normalize_mint_order
from ..errors import FeeDestinationNotFound, TokenNotFound, UnsupportedPair

MAX_FEE_RATE_BPS = 10_000

Keyish = Union[str, Pubkey]


def to_pubkey(value: Keyish) -> Pubkey:
    if isinstance(value, Pubkey):
        return value
    return Pubkey.from_string(value)


@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    mint: Pubkey
    oracle: Pubkey
    decimals: int


@dataclass(frozen=True)
class PairConfig:
    """A supported pair as listed in configuration, in any mint order."""
    mint_one: Pubkey
    mint_two: Pubkey
    fee_destinations: Tuple[Pubkey, Pubkey]
    fee_rates_bps: Tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class CanonicalPair:
    """
    A supported pair in the order the program derives it.

    `fee_destinations` and `fee_rates_bps` are aligned with
    (`mint_one`, `mint_two`).
    """
    mint_one: Pubkey
    mint_two: Pubkey
    fee_destinations: Tuple[Pubkey, Pubkey]
    fee_rates_bps: Tuple[int, int]

    @property
    def mints(self) -> Tuple[Pubkey, Pubkey]:
        return self.mint_one, self.mint_two

    def fee_destination_for(self, mint: Pubkey) -> Pubkey:
        for stored, destination in zip(self.mints, self.fee_destinations):
            if stored == mint:
                return destination
        raise FeeDestinationNotFound(
            "Output mint matches neither mint of the pair",
            operation="swap",
            mint=str(mint),
            pair=(str(self.mint_one), str(self.mint_two)),
        )

    def fee_rate_for(self, mint: Pubkey) -> int:
        for stored, rate in zip(self.mints, self.fee_rates_bps):
            if stored == mint:
                return rate
        raise FeeDestinationNotFound(
            "Mint matches neither mint of the pair",
            mint=str(mint),
            pair=(str(self.mint_one), str(self.mint_two)),
        )


def _canonicalize(pair: PairConfig) -> CanonicalPair:
    for rate in pair.fee_rates_bps:
        if not 0 <= rate <= MAX_FEE_RATE_BPS:
            raise ValueError(f"Fee rate out of range (0..{MAX_FEE_RATE_BPS} bps): {rate}")
    if pair.mint_one == pair.mint_two:
        raise ValueError(f"Pair mints must differ: {pair.mint_one}")
    first, _ = normalize_mint_order(pair.mint_one, pair.mint_two)
    if first == pair.mint_one:
        return CanonicalPair(
            mint_one=pair.mint_one,
            mint_two=pair.mint_two,
            fee_destinations=tuple(pair.fee_destinations),
            fee_rates_bps=tuple(pair.fee_rates_bps),
        )
    return CanonicalPair(
        mint_one=pair.mint_two,
        mint_two=pair.mint_one,
        fee_destinations=(pair.fee_destinations[1], pair.fee_destinations[0]),
        fee_rates_bps=(pair.fee_rates_bps[1], pair.fee_rates_bps[0]),
    )


class TokenRegistry:
    """
    Static token and pair tables.

    Built once from explicit data and never mutated afterwards. Pairs are
    stored in the program's canonical mint order, so lookups in either
    order return the same `CanonicalPair`.
    """

    def __init__(self, tokens: Iterable[TokenInfo], pairs: Iterable[PairConfig] = ()):
        self._tokens: Dict[Pubkey, TokenInfo] = {}
        for token in tokens:
            if token.mint in self._tokens:
                raise ValueError(f"Duplicate token entry for mint {token.mint}")
            self._tokens[token.mint] = token

        self._pairs: Dict[Tuple[Pubkey, Pubkey], CanonicalPair] = {}
        for pair in pairs:
            canonical = _canonicalize(pair)
            self._pairs[canonical.mints] = canonical

    @classmethod
    def from_dict(cls, data: Dict) -> "TokenRegistry":
        """
        Build from already-parsed configuration data.

        Expected shape::

            {
                "tokens": [{"symbol", "mint", "oracle", "decimals"}, ...],
                "pairs": [{"mints": [a, b], "feeDestinations": [x, y],
                           "feeRatesBps": [r1, r2]}, ...],
            }
        """
        tokens = [
            TokenInfo(
                symbol=item.get("symbol", item["mint"][:8]),
                mint=to_pubkey(item["mint"]),
                oracle=to_pubkey(item["oracle"]),
                decimals=int(item["decimals"]),
            )
            for item in data.get("tokens", [])
        ]
        pairs = []
        for item in data.get("pairs", []):
            mint_one, mint_two = item["mints"]
            dest_one, dest_two = item["feeDestinations"]
            rates = item.get("feeRatesBps", [0, 0])
            if isinstance(rates, int):
                rates = [rates, rates]
            pairs.append(PairConfig(
                mint_one=to_pubkey(mint_one),
                mint_two=to_pubkey(mint_two),
                fee_destinations=(to_pubkey(dest_one), to_pubkey(dest_two)),
                fee_rates_bps=(int(rates[0]), int(rates[1])),
            ))
        return cls(tokens, pairs)

    @classmethod
    def default(cls) -> "TokenRegistry":
        return cls(DEFAULT_TOKENS, DEFAULT_PAIRS)

    @property
    def tokens(self) -> List[TokenInfo]:
        return list(self._tokens.values())

    @property
    def pairs(self) -> List[CanonicalPair]:
        return list(self._pairs.values())

    def get_token(self, mint: Pubkey) -> Optional[TokenInfo]:
        return self._tokens.get(mint)

    def _require(self, mint: Pubkey, operation: Optional[str]) -> TokenInfo:
        token = self._tokens.get(mint)
        if token is None:
            raise TokenNotFound("Mint is not in the token registry", operation=operation, mint=str(mint))
        return token

    def lookup_oracle(self, mint: Pubkey, operation: Optional[str] = None) -> Pubkey:
        return self._require(mint, operation).oracle

    def lookup_decimals(self, mint: Pubkey, operation: Optional[str] = None) -> int:
        return self._require(mint, operation).decimals

    def pair_exists(self, mint_a: Pubkey, mint_b: Pubkey, operation: Optional[str] = None) -> CanonicalPair:
        """Return the stored pair for two mints, trying both orderings."""
        pair = self._pairs.get((mint_a, mint_b)) or self._pairs.get((mint_b, mint_a))
        if pair is None:
            raise UnsupportedPair(
                "Pair is not supported",
                operation=operation,
                pair=(str(mint_a), str(mint_b)),
            )
        return pair

    def resolve(self, symbol_or_mint: str) -> Optional[TokenInfo]:
        """Find a token by symbol (case-insensitive) or base58 mint."""
        wanted = symbol_or_mint.upper()
        for info in self._tokens.values():
            if info.symbol.upper() == wanted:
                return info
        for info in self._tokens.values():
            if str(info.mint) == symbol_or_mint:
                return info
        return None

    def amount_to_raw(self, amount: Union[str, Decimal, int], mint: Pubkey) -> int:
        """UI amount to native units, truncating extra precision."""
        decimals = self.lookup_decimals(mint)
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {amount!r}")
        if not value.is_finite():
            raise ValueError(f"Amount must be finite: {amount!r}")
        scaled = value * (Decimal(10) ** decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    def raw_to_amount(self, raw: int, mint: Pubkey) -> Decimal:
        decimals = self.lookup_decimals(mint)
        return Decimal(raw) / (Decimal(10) ** decimals)


# Mainnet tables used when no explicit configuration is supplied.

MSOL = Pubkey.from_string("mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So")
BONK = Pubkey.from_string("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263")
WSOL = Pubkey.from_string("So11111111111111111111111111111111111111112")
USDT = Pubkey.from_string("Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB")
USDC = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")

DEFAULT_TOKENS: List[TokenInfo] = [
    TokenInfo("MSOL", MSOL, Pubkey.from_string("E4v1BBgoso9s64TQvmyownAVJbhbEPGyzA3qn4n46qj9"), 9),
    TokenInfo("BONK", BONK, Pubkey.from_string("8ihFLu5FimgTQ1Unh4dVyEHUGodJ5gJQCrQf4KUVB9bN"), 5),
    TokenInfo("SOL", WSOL, Pubkey.from_string("H6ARHf6YXhGYeQfUzQNGk6rDNnLBQKrenN712K4AQJEG"), 9),
    TokenInfo("USDT", USDT, Pubkey.from_string("3vxLXJqLqF3JG5TCbYycbKWRBbCJQLxQmBGCkyqEEefL"), 6),
    TokenInfo("USDC", USDC, Pubkey.from_string("Gnt27xtC473ZT2Mw5u8wZ68Z3gULkSTb5DuxJy7eJotD"), 6),
]

# Fee destinations are overwritten by the on-chain pair account when the
# client fetches it; the protocol authority is used as a placeholder here.
_AUTHORITY = Pubkey.from_string("GeSkmvDED55EjnybgdN1gJ89p5V5H9W6jrrhxbZ1pDhQ")

DEFAULT_PAIRS: List[PairConfig] = [
    PairConfig(a, b, (_AUTHORITY, _AUTHORITY))
    for a, b in [
        (MSOL, BONK),
        (WSOL, BONK),
        (WSOL, MSOL),
        (WSOL, USDC),
        (WSOL, USDT),
        (BONK, USDC),
        (MSOL, USDC),
        (USDC, USDT),
        (BONK, USDT),
        (MSOL, USDT),
    ]
]
