"""Per-network fee poller.

Each ChainPoller owns one network's RPC client and turns a single poll into
a PollResult. It never writes shared state: the scheduler applies the result
to the store, so a slow or failing network cannot touch any other network's
fees, candles, or fault message.
"""

import asyncio
from collections.abc import Callable

from chaingas.exceptions import TransientFetchFault
from chaingas.fees.resolver import FeeModelResolver
from chaingas.logging import get_logger
from chaingas.models import FeeSample, PollResult
from chaingas.networks import NetworkSpec
from chaingas.rpc.client import RpcClient
from chaingas.timeutils import EpochMillis, now_millis

logger = get_logger(__name__)


def describe_fault(network: str, error: BaseException) -> str:
    """Build the human-readable fault string shown for a failed poll."""
    detail = str(error) or type(error).__name__
    return f"Failed to fetch gas data for {network}: {detail}"


class ChainPoller:
    """Produces one FeeSample per invocation for a single network.

    Args:
        network: The network this poller is bound to.
        rpc: RPC client connected to that network's endpoint.
        resolver: Fee model resolver (stateless, may be shared).
        clock: Returns the observation time; injectable for tests.
    """

    def __init__(
        self,
        network: NetworkSpec,
        rpc: RpcClient,
        resolver: FeeModelResolver | None = None,
        clock: Callable[[], EpochMillis] = now_millis,
    ) -> None:
        self._network = network
        self._rpc = rpc
        self._resolver = resolver or FeeModelResolver()
        self._clock = clock

    @property
    def network(self) -> NetworkSpec:
        return self._network

    @property
    def rpc(self) -> RpcClient:
        return self._rpc

    async def fetch_sample(self) -> FeeSample:
        """Fetch the latest block and resolve its fees.

        Raises:
            TransientFetchFault: If any RPC round-trip fails.
        """
        name = self._network.name
        try:
            block_number = await self._rpc.get_block_number()
            block = await self._rpc.get_block(block_number)
            base_fee, priority_fee = await self._resolver.resolve(
                self._network,
                block.base_fee_per_gas,
                self._rpc.get_gas_price,
                self._rpc.get_max_priority_fee,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TransientFetchFault(describe_fault(name, e)) from e

        logger.debug(
            "fee_sample",
            network=name,
            block=block.number,
            base_fee_gwei=str(base_fee),
            priority_fee_gwei=str(priority_fee),
        )
        return FeeSample(
            network=name,
            observed_at_ms=self._clock(),
            base_fee_gwei=base_fee,
            priority_fee_gwei=priority_fee,
        )

    async def poll(self) -> PollResult:
        """Run one poll, converting any failure into a fault result."""
        name = self._network.name
        try:
            sample = await self.fetch_sample()
        except TransientFetchFault as e:
            logger.warning("fee_poll_failed", network=name, error=str(e.__cause__ or e))
            return PollResult.failure(name, str(e))
        except Exception as e:
            logger.error("fee_poll_error", network=name, error=str(e), exc_info=True)
            return PollResult.failure(name, describe_fault(name, e))
        return PollResult.success(sample)
