"""Custom exceptions for the cross-chain gas tracker.

Fee polling and price derivation faults live here so the RPC layer,
pollers, and oracle can share them without circular imports. None of
these ever escape a poll or price refresh: they are caught at that
boundary and turned into store state.
"""


class ChainGasError(Exception):
    """Base exception for all gas tracker errors."""


class ConfigurationFault(ChainGasError):
    """Raised when a network or the price feed has no RPC endpoint configured."""


class TransientFetchFault(ChainGasError):
    """Raised when a single RPC round-trip fails during a poll."""


class UnsupportedMethodFault(ChainGasError):
    """Raised when a node does not implement an optional RPC method.

    Used for eth_maxPriorityFeePerGas, which the fee resolver replaces with a
    fixed fallback instead of surfacing an error.
    """


class PriceUnavailableError(ChainGasError):
    """Raised when no plausible fiat/ETH price could be derived."""
