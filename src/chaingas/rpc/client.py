"""Abstract RPC client interface.

Defines the primitive calls the fee pollers and the price oracle need.
Polling and pricing code depends only on this interface, keeping web3
details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BlockHeader:
    """The subset of a block the fee resolver cares about.

    base_fee_per_gas is None on networks without an EIP-1559 fee market.
    """

    number: int
    timestamp: int  # Unix seconds, as reported by the chain
    base_fee_per_gas: int | None = None  # wei


@dataclass(frozen=True)
class LogEntry:
    """A raw event log."""

    address: str
    topics: tuple[bytes, ...]
    data: bytes
    block_number: int
    log_index: int


class RpcClient(ABC):
    """Abstract base class for per-network JSON-RPC clients."""

    @abstractmethod
    async def get_block_number(self) -> int:
        """Return the latest block number."""
        ...

    @abstractmethod
    async def get_block(self, number: int) -> BlockHeader:
        """Fetch a block header by number."""
        ...

    @abstractmethod
    async def get_gas_price(self) -> int:
        """Return the legacy gas price in wei (eth_gasPrice)."""
        ...

    @abstractmethod
    async def get_max_priority_fee(self) -> int:
        """Return the node's priority fee suggestion in wei.

        Raises:
            UnsupportedMethodFault: If the node does not implement
                eth_maxPriorityFeePerGas.
        """
        ...

    @abstractmethod
    async def get_logs(
        self,
        address: str,
        topics: list[str],
        from_block: int,
        to_block: int | str = "latest",
    ) -> list[LogEntry]:
        """Fetch event logs for a contract over a block range, oldest first."""
        ...

    @abstractmethod
    async def call(self, address: str, data: bytes) -> bytes:
        """Execute a read-only contract call (eth_call) at the latest block."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
        ...
