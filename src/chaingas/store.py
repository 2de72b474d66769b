"""Shared in-memory ingestion state.

The IngestionStore owns every NetworkState and the latest PriceQuote.
Pollers and the oracle never write here directly; the scheduler applies
their results through the mutation methods below, each of which is one
all-or-nothing update under an asyncio.Lock.

Locks are scoped to the smallest field-set: one per network plus one for
the price, so a write to one network never waits on another. Readers get
copies (NetworkSnapshot, frozen PriceQuote) and can never observe a
half-applied update.
"""

import asyncio
from dataclasses import replace
from decimal import Decimal

from chaingas.fees.aggregator import OHLCAggregator
from chaingas.logging import get_logger
from chaingas.models import Candle, FeeSample, NetworkSnapshot, NetworkState, PriceQuote
from chaingas.timeutils import EpochMillis

logger = get_logger(__name__)


class IngestionStore:
    """Mutation-serialized state container read by the published-state API.

    Args:
        networks: Names of every configured network. Exactly one
            NetworkState is created per name, for the store's lifetime.
        aggregator: Candle builder used when samples are published.
    """

    def __init__(
        self,
        networks: list[str],
        aggregator: OHLCAggregator | None = None,
    ) -> None:
        self._aggregator = aggregator or OHLCAggregator()
        self._states: dict[str, NetworkState] = {
            name: NetworkState(network=name, max_candles=self._aggregator.max_candles)
            for name in networks
        }
        self._locks: dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in networks}
        self._price = PriceQuote.unavailable(EpochMillis(0))
        self._price_lock = asyncio.Lock()

    @property
    def networks(self) -> list[str]:
        return list(self._states)

    @property
    def aggregator(self) -> OHLCAggregator:
        return self._aggregator

    def _state(self, network: str) -> NetworkState:
        try:
            return self._states[network]
        except KeyError:
            raise KeyError(f"Unknown network: {network}") from None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def set_loading(self, network: str, loading: bool) -> None:
        state = self._state(network)
        async with self._locks[network]:
            state.loading = loading

    async def set_fault(self, network: str, message: str | None) -> None:
        """Record (or clear, with None) a network's fault message.

        Current fees and candles are left alone: a transient failure keeps
        the last known-good reading visible.
        """
        state = self._state(network)
        async with self._locks[network]:
            state.fault = message

    async def set_fees(
        self, network: str, base_fee_gwei: Decimal, priority_fee_gwei: Decimal
    ) -> None:
        state = self._state(network)
        async with self._locks[network]:
            state.base_fee_gwei = base_fee_gwei
            state.priority_fee_gwei = priority_fee_gwei

    async def append_candle(self, sample: FeeSample) -> Candle:
        """Fold a sample into its network's candle series.

        Returns:
            A copy of the tail candle after the merge or roll.
        """
        state = self._state(sample.network)
        async with self._locks[sample.network]:
            candle = self._aggregator.append(state.candles, sample)
            return replace(candle)

    async def publish_sample(self, sample: FeeSample) -> None:
        """Apply a successful poll in one step: clear fault, set fees, fold candle."""
        state = self._state(sample.network)
        async with self._locks[sample.network]:
            state.fault = None
            state.base_fee_gwei = sample.base_fee_gwei
            state.priority_fee_gwei = sample.priority_fee_gwei
            self._aggregator.append(state.candles, sample)

    async def set_price(self, quote: PriceQuote) -> None:
        """Replace the published quote wholesale."""
        async with self._price_lock:
            self._price = quote
        logger.debug(
            "price_published",
            fiat_per_eth=str(quote.fiat_per_eth),
            source=quote.source.value,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def snapshot(self, network: str) -> NetworkSnapshot:
        """Return a consistent, immutable copy of one network's state."""
        state = self._state(network)
        async with self._locks[network]:
            return state.snapshot()

    async def snapshots(self) -> list[NetworkSnapshot]:
        """Return snapshots of every network, in configuration order."""
        return [await self.snapshot(name) for name in self._states]

    async def get_price(self) -> PriceQuote:
        async with self._price_lock:
            return self._price
