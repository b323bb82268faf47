"""Error taxonomy for account resolution, assembly and reward queries."""

from typing import Optional


class SSLClientError(Exception):
    """Base class for every recoverable failure raised by this package."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        mint: Optional[str] = None,
        pair: Optional[tuple] = None,
    ):
        self.operation = operation
        self.mint = mint
        self.pair = pair
        context = []
        if operation:
            context.append(f"operation={operation}")
        if mint:
            context.append(f"mint={mint}")
        if pair:
            context.append(f"pair={pair[0]}/{pair[1]}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class UnsupportedPair(SSLClientError):
    pass


class FeeDestinationNotFound(SSLClientError):
    pass


class InvalidNativeWrapRequest(SSLClientError):
    pass


class AddressDerivationExhausted(SSLClientError):
    pass


class NoActiveDeposits(SSLClientError):
    pass


class AccumulatorInvariantViolated(SSLClientError):
    pass


class AccountNotFound(SSLClientError):
    """A snapshot read target does not exist on chain."""

    def __init__(self, address: str, operation: Optional[str] = None, mint: Optional[str] = None):
        self.address = address
        super().__init__(f"Account not found: {address}", operation=operation, mint=mint)


class TokenNotFound(SSLClientError):
    pass


class PoolNotFound(SSLClientError):
    pass


class LiquidityAccountNotEmpty(SSLClientError):
    pass


class AccountDecodeError(SSLClientError):
    pass


class RpcError(SSLClientError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, method: str, error: dict):
        self.method = method
        self.error = error
        super().__init__(f"RPC error from {method}: {error}")
