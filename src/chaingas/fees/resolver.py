"""Fee model detection and normalization to Gwei.

Three fee models are recognized:

- Fee-market (EIP-1559): the block carries baseFeePerGas; the priority fee
  comes from eth_maxPriorityFeePerGas, or a fixed 1.5 Gwei when the node
  does not support it.
- Legacy: no base fee in the block; eth_gasPrice is the whole fee and the
  priority fee is zero.
- Rollup with L1 surcharge: legacy pricing plus a flat 30% approximation of
  the L1 data-posting cost. This is a heuristic, not an L1 fee computation.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal

from chaingas.logging import get_logger
from chaingas.networks import NetworkSpec

logger = get_logger(__name__)

GWEI = Decimal(10**9)
DEFAULT_PRIORITY_FEE_GWEI = Decimal("1.5")
L1_SURCHARGE_NUMERATOR = 3
L1_SURCHARGE_DENOMINATOR = 10

WeiQuery = Callable[[], Awaitable[int]]


def wei_to_gwei(wei: int) -> Decimal:
    """Convert an integer wei amount to Decimal Gwei."""
    return Decimal(wei) / GWEI


class FeeModelResolver:
    """Decides which fee model applies and extracts base/priority fees in Gwei.

    The resolver raises nothing of its own. A failing priority-fee query is
    absorbed into the default; a failing gas-price query propagates to the
    poller, which owns I/O fault handling.
    """

    def __init__(
        self, default_priority_fee_gwei: Decimal = DEFAULT_PRIORITY_FEE_GWEI
    ) -> None:
        self._default_priority_fee = default_priority_fee_gwei

    async def resolve(
        self,
        network: NetworkSpec,
        block_base_fee_wei: int | None,
        gas_price_fallback: WeiQuery,
        priority_fee_query: WeiQuery,
    ) -> tuple[Decimal, Decimal]:
        """Resolve (base_fee_gwei, priority_fee_gwei) for one block.

        Args:
            network: The network being resolved (for the rollup flag).
            block_base_fee_wei: baseFeePerGas from the latest block, or None.
            gas_price_fallback: Async callable returning eth_gasPrice in wei.
            priority_fee_query: Async callable returning the suggested
                priority fee in wei.

        Returns:
            Tuple of (base_fee_gwei, priority_fee_gwei) as Decimals.
        """
        if block_base_fee_wei is not None:
            base_fee = wei_to_gwei(block_base_fee_wei)
            try:
                priority_fee = wei_to_gwei(await priority_fee_query())
            except Exception as e:
                logger.debug(
                    "priority_fee_fallback",
                    network=network.name,
                    fallback=str(self._default_priority_fee),
                    error=str(e),
                )
                priority_fee = self._default_priority_fee
            return base_fee, priority_fee

        base_fee = wei_to_gwei(await gas_price_fallback())
        if network.rollup_l1_surcharge:
            base_fee = apply_l1_surcharge(base_fee)
        return base_fee, Decimal("0")


def apply_l1_surcharge(l2_gas_price_gwei: Decimal) -> Decimal:
    """Add the approximate L1 data fee: base + base * 3/10."""
    estimated_l1_fee = (
        l2_gas_price_gwei * L1_SURCHARGE_NUMERATOR / L1_SURCHARGE_DENOMINATOR
    )
    return l2_gas_price_gwei + estimated_l1_fee
