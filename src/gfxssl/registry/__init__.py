"""Static token and pair configuration."""

from .token_registry import (
    TokenRegistry,
    TokenInfo,
    PairConfig,
    CanonicalPair,
    DEFAULT_TOKENS,
    DEFAULT_PAIRS,
    to_pubkey,
)
