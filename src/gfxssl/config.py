"""Runtime configuration: program id, protocol authority and RPC endpoint."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from solders.pubkey import Pubkey

from .core.pda import SSL_PROGRAM_ID

MAINNET_RPC = "https://api.mainnet-beta.solana.com"
DEVNET_RPC = "https://api.devnet.solana.com"
DEFAULT_AUTHORITY = Pubkey.from_string("GeSkmvDED55EjnybgdN1gJ89p5V5H9W6jrrhxbZ1pDhQ")


def load_env():
    """Load .env file from parent directories."""
    current = Path.cwd()
    for _ in range(5):  # Check up to 5 parent dirs
        env_file = current / ".env"
        if env_file.exists():
            with open(env_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        os.environ.setdefault(key.strip(), value.strip())
            break
        current = current.parent


@dataclass(frozen=True)
class SSLConfig:
    """Configuration for an SSL client."""
    rpc_url: str = MAINNET_RPC
    program_id: Pubkey = SSL_PROGRAM_ID
    authority: Pubkey = DEFAULT_AUTHORITY
    commitment: str = "confirmed"

    @classmethod
    def from_env(cls, network: Optional[str] = None) -> "SSLConfig":
        """
        Read GFXSSL_* environment variables, falling back to mainnet defaults.

        Args:
            network: "mainnet" or "devnet"; picks the default RPC when
                GFXSSL_RPC_URL is not set
        """
        default_rpc = DEVNET_RPC if network == "devnet" else MAINNET_RPC
        program_id = os.environ.get("GFXSSL_PROGRAM_ID")
        authority = os.environ.get("GFXSSL_AUTHORITY")
        return cls(
            rpc_url=os.environ.get("GFXSSL_RPC_URL", default_rpc),
            program_id=Pubkey.from_string(program_id) if program_id else SSL_PROGRAM_ID,
            authority=Pubkey.from_string(authority) if authority else DEFAULT_AUTHORITY,
            commitment=os.environ.get("GFXSSL_COMMITMENT", "confirmed"),
        )
