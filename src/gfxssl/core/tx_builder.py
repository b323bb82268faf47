"""
Instruction Assembler: turns resolved accounts into ordered instructions.

Handles:
- Instruction data encoding (Anchor discriminator + u64 args)
- Setup ops (token account creation, native SOL wrapping)
- First-deposit liquidity account creation
- Teardown ops (native SOL unwrapping)
"""

import hashlib
import logging
import struct
from base64 import b64encode
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction
from spl.token import instructions as spl_token

from ..errors import AccountNotFound, LiquidityAccountNotEmpty
from ..state.layouts import LiquidityAccountState
from . import pda
from .accounts import InstructionAccounts
from .resolver import AccountResolver
from .rpc import AccountExistenceReader

logger = logging.getLogger(__name__)


@dataclass
class Operation:
    """A single instruction with a human-readable label."""
    name: str
    instruction: Instruction

    @property
    def program_id(self) -> Pubkey:
        return self.instruction.program_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instruction": self.name,
            "program_id": str(self.instruction.program_id),
            "accounts": [
                {
                    "pubkey": str(meta.pubkey),
                    "is_signer": meta.is_signer,
                    "is_writable": meta.is_writable,
                }
                for meta in self.instruction.accounts
            ],
            "data_base64": b64encode(bytes(self.instruction.data)).decode(),
        }


@dataclass
class AssembledInstructions:
    """Setup, core and teardown ops, to be executed in that order in one transaction."""
    setup_ops: List[Operation] = field(default_factory=list)
    core_ops: List[Operation] = field(default_factory=list)
    teardown_ops: List[Operation] = field(default_factory=list)

    def operations(self) -> List[Operation]:
        return [*self.setup_ops, *self.core_ops, *self.teardown_ops]

    def instructions(self) -> List[Instruction]:
        return [op.instruction for op in self.operations()]

    def to_dict(self) -> Dict[str, List[Dict]]:
        return {
            "setupOps": [op.to_dict() for op in self.setup_ops],
            "coreOps": [op.to_dict() for op in self.core_ops],
            "teardownOps": [op.to_dict() for op in self.teardown_ops],
        }

    def to_unsigned_transaction(self, payer: Pubkey, recent_blockhash: Optional[Hash] = None) -> str:
        """Serialize as an unsigned legacy transaction (base64)."""
        message = Message.new_with_blockhash(
            self.instructions(),
            payer,
            recent_blockhash or Hash.default(),
        )
        transaction = Transaction.new_unsigned(message)
        return b64encode(bytes(transaction)).decode()


def compute_discriminator(name: str) -> bytes:
    """Anchor instruction discriminator: sha256("global:<snake_case_name>")[:8]."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


def encode_instruction_data(name: str, *args: int) -> bytes:
    data = compute_discriminator(name)
    for value in args:
        data += struct.pack("<Q", value)
    return data


def program_instruction(program_id: Pubkey, accounts: InstructionAccounts, *args: int) -> Operation:
    return Operation(
        name=accounts.NAME,
        instruction=Instruction(
            program_id=program_id,
            data=encode_instruction_data(accounts.NAME, *args),
            accounts=accounts.to_account_metas(),
        ),
    )


def create_associated_token_account(payer: Pubkey, owner: Pubkey, mint: Pubkey) -> Operation:
    return Operation(
        name="create_associated_token_account",
        instruction=spl_token.create_associated_token_account(payer=payer, owner=owner, mint=mint),
    )


def wrap_native_ops(owner: Pubkey, lamports: int) -> List[Operation]:
    """Move lamports into the owner's wSOL account, then sync its token balance."""
    wrapped = pda.associated_token_address(owner, pda.NATIVE_MINT)
    transfer_ix = transfer(TransferParams(from_pubkey=owner, to_pubkey=wrapped, lamports=lamports))
    sync_ix = spl_token.sync_native(
        spl_token.SyncNativeParams(program_id=pda.TOKEN_PROGRAM_ID, account=wrapped)
    )
    return [
        Operation(name="transfer", instruction=transfer_ix),
        Operation(name="sync_native", instruction=sync_ix),
    ]


def unwrap_native_op(owner: Pubkey) -> Operation:
    """Close the owner's wSOL account, returning all its lamports to the owner."""
    wrapped = pda.associated_token_address(owner, pda.NATIVE_MINT)
    close_ix = spl_token.close_account(
        spl_token.CloseAccountParams(
            program_id=pda.TOKEN_PROGRAM_ID,
            account=wrapped,
            dest=owner,
            owner=owner,
        )
    )
    return Operation(name="close_account", instruction=close_ix)


class InstructionAssembler:
    """
    Builds ordered instruction lists for user operations.

    Preconditions are checked by the resolver before any read is issued.
    Existence reads for one operation are batched into a single request,
    and nothing is returned unless every read completed.
    """

    def __init__(self, resolver: AccountResolver, reader: AccountExistenceReader):
        self.resolver = resolver
        self.reader = reader

    @property
    def program_id(self) -> Pubkey:
        return self.resolver.program_id

    async def _exists(self, addresses: Sequence[Pubkey]) -> List[bool]:
        results = await self.reader.accounts_exist(list(addresses))
        if len(results) != len(addresses):
            raise ValueError(f"Existence reader returned {len(results)} results for {len(addresses)} addresses")
        return list(results)

    async def assemble_swap(
        self,
        owner: Pubkey,
        mint_in: Pubkey,
        mint_out: Pubkey,
        amount_in: int,
        min_amount_out: int = 0,
        pair=None,
    ) -> AssembledInstructions:
        accounts = self.resolver.resolve_swap(owner, mint_in, mint_out, amount_in, min_amount_out, pair=pair)
        (out_ata_exists,) = await self._exists([accounts.user_ata_out])

        assembled = AssembledInstructions()
        if not out_ata_exists:
            assembled.setup_ops.append(create_associated_token_account(owner, owner, mint_out))
        assembled.core_ops.append(program_instruction(self.program_id, accounts, amount_in, min_amount_out))
        logger.debug("Assembled swap with %d setup ops", len(assembled.setup_ops))
        return assembled

    async def assemble_create_liquidity_account(self, owner: Pubkey, mint: Pubkey) -> AssembledInstructions:
        accounts = self.resolver.resolve_create_liquidity_account(owner, mint)
        return AssembledInstructions(core_ops=[program_instruction(self.program_id, accounts)])

    async def assemble_deposit(
        self,
        owner: Pubkey,
        mint: Pubkey,
        amount: int,
        use_native_wrapping: bool = False,
    ) -> AssembledInstructions:
        accounts = self.resolver.resolve_deposit(owner, mint, amount, use_native_wrapping)
        create_accounts = self.resolver.resolve_create_liquidity_account(owner, mint)

        checks = [accounts.liquidity_account]
        if use_native_wrapping:
            checks.append(accounts.user_ata)
        exists = await self._exists(checks)
        liquidity_exists = exists[0]

        assembled = AssembledInstructions()
        if use_native_wrapping:
            if not exists[1]:
                assembled.setup_ops.append(create_associated_token_account(owner, owner, mint))
            assembled.setup_ops.extend(wrap_native_ops(owner, amount))

        if not liquidity_exists:
            logger.debug("First deposit for %s by %s; creating liquidity account", mint, owner)
            assembled.core_ops.append(program_instruction(self.program_id, create_accounts))
        assembled.core_ops.append(program_instruction(self.program_id, accounts, amount))
        return assembled

    async def assemble_withdraw(
        self,
        owner: Pubkey,
        mint: Pubkey,
        amount: int,
        unwrap_to_native: bool = False,
    ) -> AssembledInstructions:
        accounts = self.resolver.resolve_withdraw(owner, mint, amount, unwrap_to_native)
        liquidity_exists, ata_exists = await self._exists([accounts.liquidity_account, accounts.user_ata])
        if not liquidity_exists:
            raise AccountNotFound(str(accounts.liquidity_account), operation="withdraw", mint=str(mint))

        assembled = AssembledInstructions()
        if not ata_exists:
            assembled.setup_ops.append(create_associated_token_account(owner, owner, mint))
        assembled.core_ops.append(program_instruction(self.program_id, accounts, amount))
        if unwrap_to_native:
            assembled.teardown_ops.append(unwrap_native_op(owner))
        return assembled

    async def assemble_claim_reward(self, owner: Pubkey, mint: Pubkey) -> AssembledInstructions:
        accounts = self.resolver.resolve_claim_reward(owner, mint)
        liquidity_exists, ata_exists = await self._exists([accounts.liquidity_account, accounts.owner_ata])
        if not liquidity_exists:
            raise AccountNotFound(str(accounts.liquidity_account), operation="claim_fees", mint=str(mint))

        assembled = AssembledInstructions()
        if not ata_exists:
            assembled.setup_ops.append(create_associated_token_account(owner, owner, mint))
        assembled.core_ops.append(program_instruction(self.program_id, accounts))
        return assembled

    async def assemble_close_liquidity_account(
        self,
        owner: Pubkey,
        mint: Pubkey,
        liquidity_account: LiquidityAccountState,
        rent_recipient: Optional[Pubkey] = None,
    ) -> AssembledInstructions:
        """Close an empty liquidity account; `liquidity_account` is its current snapshot."""
        if liquidity_account.amount_deposited != 0:
            raise LiquidityAccountNotEmpty(
                f"Liquidity account still holds {liquidity_account.amount_deposited}",
                operation="close_liquidity_account",
                mint=str(mint),
            )
        accounts = self.resolver.resolve_close_liquidity_account(owner, mint, rent_recipient)
        return AssembledInstructions(core_ops=[program_instruction(self.program_id, accounts)])
