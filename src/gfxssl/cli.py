"""
CLI entry point for the SSL v2 client.

Usage:
    gfxssl tokens
    gfxssl accounts swap --owner WALLET --in USDC --out USDT --amount 1
    gfxssl plan deposit --owner WALLET --mint SOL --amount 0.5 --wrap
    gfxssl rewards --owner WALLET --mint USDC
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from solders.pubkey import Pubkey

from .config import SSLConfig, load_env
from .errors import SSLClientError
from .registry.token_registry import TokenInfo, TokenRegistry

console = Console()

OPERATIONS = ["swap", "create", "deposit", "withdraw", "claim", "close"]


def _token(registry: TokenRegistry, value: Optional[str], label: str) -> TokenInfo:
    if not value:
        raise SSLClientError(f"Missing --{label}")
    token = registry.resolve(value)
    if token is None:
        raise SSLClientError(f"Unknown token: {value}")
    return token


def _owner(value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise SSLClientError(f"Invalid owner address {value}: {e}")


def _raw_amount(registry: TokenRegistry, token: TokenInfo, amount: Optional[str]) -> int:
    if amount is None:
        return 0
    return registry.amount_to_raw(amount, token.mint)


def _write_output(path: Optional[str], data: dict):
    if not path:
        return
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    console.print(f"\n[dim]Results exported to: {path}[/dim]")


def resolve_accounts(args: argparse.Namespace) -> int:
    """Show the account set an operation would use (no RPC)."""
    load_env()
    config = SSLConfig.from_env(args.network)
    registry = TokenRegistry.default()

    from .core.resolver import AccountResolver

    try:
        resolver = AccountResolver(registry, config.authority, config.program_id)
        owner = _owner(args.owner)
        op = args.operation
        if op == "swap":
            token_in = _token(registry, args.token_in, "in")
            token_out = _token(registry, args.token_out, "out")
            accounts = resolver.resolve_swap(
                owner, token_in.mint, token_out.mint, _raw_amount(registry, token_in, args.amount)
            )
        else:
            token = _token(registry, args.mint, "mint")
            if op == "create":
                accounts = resolver.resolve_create_liquidity_account(owner, token.mint)
            elif op == "deposit":
                accounts = resolver.resolve_deposit(
                    owner, token.mint, _raw_amount(registry, token, args.amount), args.wrap
                )
            elif op == "withdraw":
                accounts = resolver.resolve_withdraw(
                    owner, token.mint, _raw_amount(registry, token, args.amount), args.unwrap
                )
            elif op == "claim":
                accounts = resolver.resolve_claim_reward(owner, token.mint)
            else:
                accounts = resolver.resolve_close_liquidity_account(owner, token.mint)
    except (SSLClientError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    result = {"instruction": accounts.NAME, "accounts": accounts.addresses()}
    if args.json:
        console.print_json(json.dumps(result))
        _write_output(args.output, result)
        return 0

    table = Table(title=f"{accounts.NAME} accounts")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Account", style="cyan")
    table.add_column("Address")
    table.add_column("Flags", justify="center")
    for index, meta in enumerate(accounts.to_account_metas()):
        name = accounts.LAYOUT[index][0]
        flags = ("s" if meta.is_signer else "") + ("w" if meta.is_writable else "")
        table.add_row(str(index), name, str(meta.pubkey), flags or "-")
    console.print(table)

    _write_output(args.output, result)
    return 0


def plan_operation(args: argparse.Namespace) -> int:
    """Assemble the full ordered instruction list against live chain state."""
    load_env()
    config = SSLConfig.from_env(args.network)
    registry = TokenRegistry.default()

    from .core.client import SSLClient

    console.print()
    console.print(Panel(
        f"[bold cyan]{args.operation}[/bold cyan]\n\n"
        f"[dim]Owner: {args.owner}[/dim]\n"
        f"[dim]RPC: {config.rpc_url}[/dim]",
        title="[bold]SSL v2 Instruction Plan[/bold]",
    ))

    async def _run():
        client = SSLClient(config=config, registry=registry)
        owner = _owner(args.owner)
        op = args.operation
        if op == "swap":
            token_in = _token(registry, args.token_in, "in")
            token_out = _token(registry, args.token_out, "out")
            return await client.swap(
                owner,
                token_in.mint,
                token_out.mint,
                _raw_amount(registry, token_in, args.amount),
                _raw_amount(registry, token_out, args.min_out),
            )
        token = _token(registry, args.mint, "mint")
        if op == "create":
            return await client.create_liquidity_account(owner, token.mint)
        if op == "deposit":
            return await client.deposit(owner, token.mint, _raw_amount(registry, token, args.amount), args.wrap)
        if op == "withdraw":
            return await client.withdraw(owner, token.mint, _raw_amount(registry, token, args.amount), args.unwrap)
        if op == "claim":
            return await client.claim_reward(owner, token.mint)
        return await client.close_liquidity_account(owner, token.mint)

    try:
        assembled = asyncio.run(_run())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if args.json:
        console.print_json(json.dumps(assembled.to_dict()))
        _write_output(args.output, assembled.to_dict())
        return 0

    table = Table(title="Ordered Instructions")
    table.add_column("Stage", style="cyan")
    table.add_column("Instruction")
    table.add_column("Program", style="dim")
    table.add_column("Accounts", justify="right")
    for stage, ops in (("setup", assembled.setup_ops), ("core", assembled.core_ops), ("teardown", assembled.teardown_ops)):
        for op in ops:
            table.add_row(stage, op.name, str(op.program_id), str(len(op.instruction.accounts)))
    console.print(table)

    _write_output(args.output, assembled.to_dict())
    return 0


def show_rewards(args: argparse.Namespace) -> int:
    """Show deposits and claimable LP fees for one liquidity account."""
    load_env()
    config = SSLConfig.from_env(args.network)
    registry = TokenRegistry.default()

    from .core.client import SSLClient

    async def _fetch():
        client = SSLClient(config=config, registry=registry)
        token = _token(registry, args.mint, "mint")
        return token, await client.rewards(_owner(args.owner), token.mint)

    try:
        token, report = asyncio.run(_fetch())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    data = report.to_dict()
    if args.json:
        console.print_json(json.dumps(data))
    else:
        table = Table(title=f"{token.symbol} liquidity")
        table.add_column("Field", style="cyan")
        table.add_column("Native", justify="right")
        table.add_column("UI", justify="right")
        for key in ("amountDeposited", "totalEarned", "claimableAmount"):
            ui = registry.raw_to_amount(int(data[key]), token.mint)
            table.add_row(key, data[key], f"{ui:f}")
        table.add_row("lastClaimed", data["lastClaimed"], "")
        console.print(table)

    _write_output(args.output, data)
    return 0


def list_tokens(args: argparse.Namespace) -> int:
    """List supported tokens and pairs."""
    registry = TokenRegistry.default()

    console.print()
    table = Table(title="Supported Tokens")
    table.add_column("Symbol", style="cyan")
    table.add_column("Decimals", justify="right")
    table.add_column("Mint", style="dim")
    table.add_column("Oracle", style="dim")
    for info in registry.tokens:
        table.add_row(info.symbol, str(info.decimals), str(info.mint), str(info.oracle))
    console.print(table)

    pairs = Table(title="Supported Pairs")
    pairs.add_column("Mint One", style="cyan")
    pairs.add_column("Mint Two", style="cyan")
    pairs.add_column("Fee (bps)", justify="right")
    for pair in registry.pairs:
        one = registry.get_token(pair.mint_one)
        two = registry.get_token(pair.mint_two)
        pairs.add_row(
            one.symbol if one else str(pair.mint_one),
            two.symbol if two else str(pair.mint_two),
            f"{pair.fee_rates_bps[0]}/{pair.fee_rates_bps[1]}",
        )
    console.print(pairs)
    return 0


def _add_operation_args(parser: argparse.ArgumentParser):
    parser.add_argument("operation", choices=OPERATIONS, help="Operation to build")
    parser.add_argument("--owner", "-w", required=True, help="Owner wallet address")
    parser.add_argument("--mint", "-m", help="Token symbol or mint (non-swap operations)")
    parser.add_argument("--in", dest="token_in", help="Input token for swaps")
    parser.add_argument("--out", dest="token_out", help="Output token for swaps")
    parser.add_argument("--amount", "-a", help="UI amount")
    parser.add_argument("--min-out", help="Minimum UI output for swaps")
    parser.add_argument("--wrap", action="store_true", help="Wrap native SOL before depositing")
    parser.add_argument("--unwrap", action="store_true", help="Unwrap to native SOL after withdrawing")
    parser.add_argument(
        "--network", "-n",
        choices=["devnet", "mainnet"],
        default="mainnet",
        help="Network to use (default: mainnet)"
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--output", "-o", help="Output file for JSON results")


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="gfxssl",
        description="Account resolution and instruction assembly for the SSL v2 AMM",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    accounts_parser = subparsers.add_parser("accounts", help="Resolve the accounts of an operation")
    _add_operation_args(accounts_parser)

    plan_parser = subparsers.add_parser("plan", help="Assemble instructions against live state")
    _add_operation_args(plan_parser)

    rewards_parser = subparsers.add_parser("rewards", help="Show claimable LP rewards")
    rewards_parser.add_argument("--owner", "-w", required=True, help="Owner wallet address")
    rewards_parser.add_argument("--mint", "-m", required=True, help="Token symbol or mint")
    rewards_parser.add_argument("--json", action="store_true", help="Print the read model as JSON")
    rewards_parser.add_argument(
        "--network", "-n",
        choices=["devnet", "mainnet"],
        default="mainnet",
        help="Network to use (default: mainnet)"
    )
    rewards_parser.add_argument("--output", "-o", help="Output file for JSON results")

    subparsers.add_parser("tokens", help="List supported tokens and pairs")

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    if args.command == "accounts":
        return resolve_accounts(args)
    elif args.command == "plan":
        return plan_operation(args)
    elif args.command == "rewards":
        return show_rewards(args)
    elif args.command == "tokens":
        return list_tokens(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
