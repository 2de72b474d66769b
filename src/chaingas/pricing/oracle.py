"""ETH/USD reference price from a Uniswap V3 pool.

Two paths, tried in order:

1. Swap log: scan the pool's Swap events over the last N blocks and take
   sqrtPriceX96 from the most recent one (the price the last trade left).
2. Pool state: read sqrtPriceX96 from slot0() directly. Used when no swap
   happened in the window, or the swap path failed or produced an
   implausible value.

POOL TOKEN ORDER: the mainnet USDC/WETH pool has token0 = USDC (6 decimals)
and token1 = WETH (18 decimals). (sqrtPriceX96 / 2**96) ** 2 is therefore
wei per micro-USDC, and USD per ETH is 10**12 divided by that ratio.
Reference check: sqrtPriceX96 = 2**96 * sqrt(10**12 / 3000) gives 3000.

A stale price silently corrupts cost simulations, so any failure is
reported as PriceUnavailableError and published as the 0 sentinel rather
than keeping the previous quote.
"""

import asyncio
from collections.abc import Callable
from decimal import Decimal, localcontext

from eth_abi import decode

from chaingas.config import PriceFeedSettings
from chaingas.exceptions import ConfigurationFault, PriceUnavailableError
from chaingas.logging import get_logger
from chaingas.models import PriceQuote, PriceSource
from chaingas.rpc.client import RpcClient
from chaingas.timeutils import EpochMillis, now_millis

logger = get_logger(__name__)

# keccak256("Swap(address,address,int256,int256,uint160,uint128,int24)")
SWAP_EVENT_TOPIC = "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"
SWAP_EVENT_DATA_TYPES = ["int256", "int256", "uint160", "uint128", "int24"]

# bytes4(keccak256("slot0()"))
SLOT0_SELECTOR = bytes.fromhex("3850c7bd")
SLOT0_RETURN_TYPES = ["uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool"]

Q96 = 2**96


def sqrt_price_to_fiat(
    sqrt_price_x96: int,
    decimals_diff: int = 12,
    stable_is_token0: bool = True,
) -> Decimal:
    """Convert a Q64.96 square-root price into fiat units per ETH.

    Args:
        sqrt_price_x96: The pool's sqrtPriceX96 value.
        decimals_diff: ETH decimals minus stablecoin decimals (18 - 6).
        stable_is_token0: True when the stablecoin is the pool's token0.

    Returns:
        Fiat per ETH, or Decimal("0") for a non-positive input.
    """
    if sqrt_price_x96 <= 0:
        return Decimal("0")
    with localcontext() as ctx:
        ctx.prec = 50
        ratio = (Decimal(sqrt_price_x96) / Decimal(Q96)) ** 2
        scale = Decimal(10) ** decimals_diff
        if stable_is_token0:
            price = scale / ratio
        else:
            price = ratio * scale
    return +price


def decode_swap_sqrt_price(data: bytes) -> int:
    """Extract sqrtPriceX96 from a Swap event's non-indexed data."""
    return int(decode(SWAP_EVENT_DATA_TYPES, data)[2])


def decode_slot0_sqrt_price(data: bytes) -> int:
    """Extract sqrtPriceX96 from a slot0() return value."""
    return int(decode(SLOT0_RETURN_TYPES, data)[0])


class PriceOracle:
    """Derives a fiat/ETH quote from a Uniswap V3 pool.

    Args:
        rpc: Mainnet RPC client, or None when no price feed is configured.
        settings: Pool address, lookback window, decimals, and the
            plausibility range.
        clock: Returns the derivation time; injectable for tests.
    """

    def __init__(
        self,
        rpc: RpcClient | None,
        settings: PriceFeedSettings | None = None,
        clock: Callable[[], EpochMillis] = now_millis,
    ) -> None:
        self._rpc = rpc
        self._settings = settings or PriceFeedSettings()
        self._clock = clock

    @property
    def rpc(self) -> RpcClient | None:
        return self._rpc

    def is_plausible(self, price: Decimal) -> bool:
        """Return True if the price lies within the configured sanity range."""
        return self._settings.min_fiat <= price <= self._settings.max_fiat

    async def derive_fiat_per_eth(self) -> PriceQuote:
        """Derive the current fiat/ETH quote.

        Raises:
            ConfigurationFault: If no price-feed RPC is configured.
            PriceUnavailableError: If both paths fail, or the only price
                obtained is outside the plausible range.
        """
        self._require_rpc()

        price = await self._try_swap_logs()
        if price is not None:
            if self.is_plausible(price):
                return self._quote(price, PriceSource.SWAP_LOG)
            logger.warning("swap_log_price_implausible", price=str(price))

        try:
            price = await self.price_from_pool_state()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("pool_state_price_failed", error=str(e))
            raise PriceUnavailableError(f"Pool state read failed: {e}") from e

        if not self.is_plausible(price):
            logger.warning("pool_state_price_implausible", price=str(price))
            raise PriceUnavailableError(
                f"Derived price {price} outside plausible range "
                f"[{self._settings.min_fiat}, {self._settings.max_fiat}]"
            )
        return self._quote(price, PriceSource.POOL_STATE)

    async def _try_swap_logs(self) -> Decimal | None:
        """Run the swap-log path, treating any failure as 'no price'."""
        try:
            return await self.price_from_swap_logs()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("swap_log_price_failed", error=str(e))
            return None

    async def price_from_swap_logs(self) -> Decimal | None:
        """Price from the most recent Swap event, or None if there was none."""
        rpc = self._require_rpc()
        latest = await rpc.get_block_number()
        from_block = max(latest - self._settings.lookback_blocks, 0)
        logs = await rpc.get_logs(
            self._settings.pool_address,
            [SWAP_EVENT_TOPIC],
            from_block,
            latest,
        )
        if not logs:
            logger.info(
                "no_recent_swaps",
                pool=self._settings.pool_address,
                lookback_blocks=self._settings.lookback_blocks,
            )
            return None

        latest_log = max(logs, key=lambda entry: (entry.block_number, entry.log_index))
        sqrt_price = decode_swap_sqrt_price(latest_log.data)
        return self._to_fiat(sqrt_price)

    async def price_from_pool_state(self) -> Decimal:
        """Price from the pool's current slot0()."""
        raw = await self._require_rpc().call(self._settings.pool_address, SLOT0_SELECTOR)
        return self._to_fiat(decode_slot0_sqrt_price(raw))

    def _require_rpc(self) -> RpcClient:
        if self._rpc is None:
            raise ConfigurationFault("Ethereum RPC not configured for price fetching")
        return self._rpc

    def _to_fiat(self, sqrt_price_x96: int) -> Decimal:
        return sqrt_price_to_fiat(
            sqrt_price_x96,
            decimals_diff=self._settings.decimals_diff,
            stable_is_token0=self._settings.stable_is_token0,
        )

    def _quote(self, price: Decimal, source: PriceSource) -> PriceQuote:
        logger.debug("price_derived", fiat_per_eth=str(price), source=source.value)
        return PriceQuote(fiat_per_eth=price, derived_at_ms=self._clock(), source=source)
