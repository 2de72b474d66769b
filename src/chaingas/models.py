"""Shared data models for the cross-chain gas tracker.

All fee values are Decimal Gwei and all prices Decimal fiat units.
Never use float for fees or prices. Timestamps are EpochMillis.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

from chaingas.timeutils import EpochMillis

ZERO = Decimal("0")


class PriceSource(str, Enum):
    """Where a price quote came from."""

    SWAP_LOG = "swap-log"
    POOL_STATE = "pool-state"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class FeeSample:
    """A single point-in-time fee observation for one network."""

    network: str
    observed_at_ms: EpochMillis
    base_fee_gwei: Decimal
    priority_fee_gwei: Decimal

    @property
    def total_gwei(self) -> Decimal:
        return self.base_fee_gwei + self.priority_fee_gwei


@dataclass
class Candle:
    """OHLC summary of total gas (base + priority, Gwei) for one bucket.

    Mutated in place while it is the newest candle of its series; frozen in
    practice once a newer bucket has been opened.
    """

    bucket_start_ms: EpochMillis
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    last_base_fee_gwei: Decimal
    last_priority_fee_gwei: Decimal


@dataclass(frozen=True)
class PollResult:
    """Outcome of one ChainPoller invocation: a sample or a fault message."""

    network: str
    sample: FeeSample | None = None
    fault: str | None = None

    @property
    def ok(self) -> bool:
        return self.sample is not None

    @classmethod
    def success(cls, sample: FeeSample) -> PollResult:
        return cls(network=sample.network, sample=sample)

    @classmethod
    def failure(cls, network: str, message: str) -> PollResult:
        return cls(network=network, fault=message)


@dataclass
class NetworkState:
    """Mutable per-network aggregate owned by the IngestionStore.

    candles is ordered oldest to newest; only the tail is ever mutated, and
    the head is evicted once maxlen is reached.
    """

    network: str
    max_candles: int = 384
    base_fee_gwei: Decimal = ZERO
    priority_fee_gwei: Decimal = ZERO
    candles: deque[Candle] = field(init=False)
    loading: bool = True
    fault: str | None = None

    def __post_init__(self) -> None:
        self.candles = deque(maxlen=self.max_candles)

    def snapshot(self) -> NetworkSnapshot:
        return NetworkSnapshot(
            network=self.network,
            base_fee_gwei=self.base_fee_gwei,
            priority_fee_gwei=self.priority_fee_gwei,
            candles=tuple(replace(c) for c in self.candles),
            loading=self.loading,
            fault=self.fault,
        )


@dataclass(frozen=True)
class NetworkSnapshot:
    """Immutable read view of a NetworkState, handed to readers."""

    network: str
    base_fee_gwei: Decimal
    priority_fee_gwei: Decimal
    candles: tuple[Candle, ...]
    loading: bool
    fault: str | None

    @property
    def total_gwei(self) -> Decimal:
        return self.base_fee_gwei + self.priority_fee_gwei


@dataclass(frozen=True)
class PriceQuote:
    """Latest fiat/ETH reference price. fiat_per_eth == 0 means unavailable."""

    fiat_per_eth: Decimal
    derived_at_ms: EpochMillis
    source: PriceSource

    @property
    def available(self) -> bool:
        return self.fiat_per_eth > 0

    @classmethod
    def unavailable(cls, derived_at_ms: EpochMillis) -> PriceQuote:
        return cls(
            fiat_per_eth=ZERO,
            derived_at_ms=derived_at_ms,
            source=PriceSource.UNAVAILABLE,
        )
