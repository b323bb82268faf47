"""
Typed account records, one per program instruction.

Field order of each record is the positional account order the program
expects. `LAYOUT` carries the signer/writable flags for each field and
must list fields in that same order.
"""

from dataclasses import dataclass, fields
from typing import Dict, List, Tuple

from solders.instruction import AccountMeta
from solders.pubkey import Pubkey

# (field name, is_signer, is_writable)
AccountFlag = Tuple[str, bool, bool]


class InstructionAccounts:
    """Mixin turning an ordered record into account metas."""

    NAME: str = ""
    LAYOUT: Tuple[AccountFlag, ...] = ()

    def to_account_metas(self) -> List[AccountMeta]:
        return [
            AccountMeta(pubkey=getattr(self, name), is_signer=is_signer, is_writable=is_writable)
            for name, is_signer, is_writable in self.LAYOUT
        ]

    def addresses(self) -> Dict[str, str]:
        """Field name to base58 address, in positional order."""
        return {f.name: str(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class SwapAccounts(InstructionAccounts):
    pair: Pubkey
    pool_registry: Pubkey
    user_wallet: Pubkey
    ssl_pool_in_signer: Pubkey
    ssl_pool_out_signer: Pubkey
    user_ata_in: Pubkey
    user_ata_out: Pubkey
    ssl_out_main_vault: Pubkey
    ssl_out_secondary_vault: Pubkey
    ssl_in_main_vault: Pubkey
    ssl_in_secondary_vault: Pubkey
    ssl_out_fee_vault: Pubkey
    fee_destination: Pubkey
    output_token_price_history: Pubkey
    output_token_oracle: Pubkey
    input_token_price_history: Pubkey
    input_token_oracle: Pubkey
    event_emitter: Pubkey
    token_program: Pubkey

    NAME = "swap"
    LAYOUT = (
        ("pair", False, True),
        ("pool_registry", False, True),
        ("user_wallet", True, False),
        ("ssl_pool_in_signer", False, False),
        ("ssl_pool_out_signer", False, False),
        ("user_ata_in", False, True),
        ("user_ata_out", False, True),
        ("ssl_out_main_vault", False, True),
        ("ssl_out_secondary_vault", False, True),
        ("ssl_in_main_vault", False, True),
        ("ssl_in_secondary_vault", False, True),
        ("ssl_out_fee_vault", False, True),
        ("fee_destination", False, True),
        ("output_token_price_history", False, True),
        ("output_token_oracle", False, False),
        ("input_token_price_history", False, True),
        ("input_token_oracle", False, False),
        ("event_emitter", False, True),
        ("token_program", False, False),
    )


@dataclass(frozen=True)
class CreateLiquidityAccountAccounts(InstructionAccounts):
    pool_registry: Pubkey
    mint: Pubkey
    liquidity_account: Pubkey
    owner: Pubkey
    event_emitter: Pubkey
    system_program: Pubkey

    NAME = "create_liquidity_account"
    LAYOUT = (
        ("pool_registry", False, False),
        ("mint", False, False),
        ("liquidity_account", False, True),
        ("owner", True, True),
        ("event_emitter", False, True),
        ("system_program", False, False),
    )


@dataclass(frozen=True)
class DepositAccounts(InstructionAccounts):
    liquidity_account: Pubkey
    owner: Pubkey
    user_ata: Pubkey
    ssl_pool_signer: Pubkey
    pool_vault: Pubkey
    ssl_fee_vault: Pubkey
    pool_registry: Pubkey
    event_emitter: Pubkey
    token_program: Pubkey

    NAME = "deposit"
    LAYOUT = (
        ("liquidity_account", False, True),
        ("owner", True, False),
        ("user_ata", False, True),
        ("ssl_pool_signer", False, False),
        ("pool_vault", False, True),
        ("ssl_fee_vault", False, True),
        ("pool_registry", False, True),
        ("event_emitter", False, True),
        ("token_program", False, False),
    )


@dataclass(frozen=True)
class WithdrawAccounts(DepositAccounts):
    NAME = "withdraw"


@dataclass(frozen=True)
class ClaimFeesAccounts(InstructionAccounts):
    pool_registry: Pubkey
    owner: Pubkey
    ssl_fee_vault: Pubkey
    owner_ata: Pubkey
    liquidity_account: Pubkey
    event_emitter: Pubkey
    token_program: Pubkey

    NAME = "claim_fees"
    LAYOUT = (
        ("pool_registry", False, False),
        ("owner", True, True),
        ("ssl_fee_vault", False, True),
        ("owner_ata", False, True),
        ("liquidity_account", False, True),
        ("event_emitter", False, True),
        ("token_program", False, False),
    )


@dataclass(frozen=True)
class CloseLiquidityAccountAccounts(InstructionAccounts):
    owner: Pubkey
    rent_recipient: Pubkey
    liquidity_account: Pubkey
    event_emitter: Pubkey
    system_program: Pubkey

    NAME = "close_liquidity_account"
    LAYOUT = (
        ("owner", True, True),
        ("rent_recipient", False, True),
        ("liquidity_account", False, True),
        ("event_emitter", False, True),
        ("system_program", False, False),
    )
