"""web3.py implementation of the RPC client.

Wraps AsyncWeb3 over an HTTP provider. One instance per network endpoint.
"""

import aiohttp
from web3 import AsyncWeb3

from chaingas.exceptions import UnsupportedMethodFault
from chaingas.logging import get_logger
from chaingas.rpc.client import BlockHeader, LogEntry, RpcClient

logger = get_logger(__name__)


def _to_int(value: int | str) -> int:
    """Decode a quantity that may come back as a hex string from a raw request."""
    if isinstance(value, str):
        return int(value, 16)
    return int(value)


class Web3RpcClient(RpcClient):
    """Concrete JSON-RPC client using web3.py's async API."""

    def __init__(self, url: str, network: str = "", timeout: float = 10.0) -> None:
        self._network = network
        self._w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
            )
        )

    @property
    def web3(self) -> AsyncWeb3:
        """Access the underlying AsyncWeb3 instance."""
        return self._w3

    async def get_block_number(self) -> int:
        return int(await self._w3.eth.block_number)

    async def get_block(self, number: int) -> BlockHeader:
        block = await self._w3.eth.get_block(number)
        base_fee = block.get("baseFeePerGas")
        return BlockHeader(
            number=int(block["number"]),
            timestamp=int(block["timestamp"]),
            base_fee_per_gas=int(base_fee) if base_fee is not None else None,
        )

    async def get_gas_price(self) -> int:
        return int(await self._w3.eth.gas_price)

    async def get_max_priority_fee(self) -> int:
        """Query eth_maxPriorityFeePerGas directly.

        w3.eth.max_priority_fee silently estimates from eth_feeHistory when
        the method is missing; a raw request lets the caller apply its own
        fallback instead.
        """
        try:
            result = await self._w3.manager.coro_request("eth_maxPriorityFeePerGas", [])
        except Exception as e:
            logger.debug(
                "max_priority_fee_unsupported",
                network=self._network,
                error=str(e),
            )
            raise UnsupportedMethodFault(
                f"eth_maxPriorityFeePerGas failed on {self._network or 'node'}: {e}"
            ) from e
        return _to_int(result)

    async def get_logs(
        self,
        address: str,
        topics: list[str],
        from_block: int,
        to_block: int | str = "latest",
    ) -> list[LogEntry]:
        raw_logs = await self._w3.eth.get_logs(
            {
                "address": AsyncWeb3.to_checksum_address(address),
                "topics": topics,
                "fromBlock": from_block,
                "toBlock": to_block,
            }
        )
        return [
            LogEntry(
                address=str(entry["address"]),
                topics=tuple(bytes(t) for t in entry["topics"]),
                data=bytes(entry["data"]),
                block_number=int(entry["blockNumber"]),
                log_index=int(entry["logIndex"]),
            )
            for entry in raw_logs
        ]

    async def call(self, address: str, data: bytes) -> bytes:
        result = await self._w3.eth.call(
            {
                "to": AsyncWeb3.to_checksum_address(address),
                "data": "0x" + data.hex(),
            }
        )
        return bytes(result)

    async def close(self) -> None:
        """Close the provider's HTTP session, if the provider keeps one."""
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is None:
            return
        await disconnect()
        logger.debug("rpc_client_closed", network=self._network)
